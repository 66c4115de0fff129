"""Resolution of the externally reachable address of every exposed port."""

from typing import Any, Dict, List, Optional, Sequence, Tuple

import pulumi

from .containers import ExposeType, port_key
from .exposure import Exposure


def _field(obj: Any, name: str, key: Optional[str] = None) -> Any:
    """Read a field from either an output type instance or its plain dict form."""
    if obj is None:
        return None
    if isinstance(obj, dict):
        return obj.get(name, obj.get(key or name))
    return getattr(obj, name, None)


def _node_port(spec: Any, key: str) -> Optional[int]:
    for p in _field(spec, "ports") or []:
        if port_key(_field(p, "port"), _field(p, "protocol") or "") == key:
            node_port = _field(p, "node_port", "nodePort")
            return int(node_port) if node_port else None
    return None


def _load_balancer_address(spec: Any, status: Any) -> Optional[str]:
    lb = _field(status, "load_balancer", "loadBalancer")
    for ing in _field(lb, "ingress") or []:
        addr = _field(ing, "ip") or _field(ing, "hostname")
        if addr:
            return addr
    ips = _field(spec, "external_ips", "externalIPs") or []
    return ips[0] if ips else None


def service_endpoint(
    svc_type: Optional[ExposeType],
    hostname: str,
    key: str,
    spec: Any,
    status: Any = None,
) -> Optional[str]:
    """
    Address of a port exposed by a NodePort or LoadBalancer Service.

    Returns None while the node port (or the load balancer address) is not
    allocated, e.g. during a preview.
    """
    if spec is None:
        return None
    node_port = _node_port(spec, key)
    if node_port is None:
        return None

    if svc_type is ExposeType.NODE_PORT:
        return f"{hostname}:{node_port}"
    if svc_type is ExposeType.LOAD_BALANCER:
        addr = _load_balancer_address(spec, status)
        if not addr:
            return None
        return f"{addr}:{node_port}"
    return None


def ingress_endpoint(spec: Any) -> Optional[str]:
    rules = _field(spec, "rules") or []
    if not rules:
        return None
    return _field(rules[0], "host")


def merge_endpoints(
    service_urls: Dict[str, str], ingress_urls: Dict[str, str]
) -> Dict[str, str]:
    """Ingress addresses take precedence over Service ones on the same port."""
    out = dict(service_urls)
    out.update(ingress_urls)
    return out


class EndpointAggregator:
    """Gathers the addresses of all exposures, per container then per port."""

    def __init__(self, hostname: str):
        self.hostname = hostname

    def _endpoint(self, exposure: Exposure) -> Optional[pulumi.Output]:
        expose_type = exposure.binding.expose_type
        if expose_type.is_direct:
            svc = exposure.service
            # Output.all would hand over plain dicts, chaining keeps the output types
            return svc.spec.apply(
                lambda spec: svc.status.apply(
                    lambda status: service_endpoint(
                        exposure.service_type, self.hostname, exposure.key, spec, status
                    )
                )
            )
        if expose_type is ExposeType.INGRESS and exposure.ingress is not None:
            return exposure.ingress.spec.apply(ingress_endpoint)
        return None

    def aggregate(self, exposures: Sequence[Exposure]) -> pulumi.Output:
        containers: List[str] = []
        entries: List[Tuple[str, str, bool, pulumi.Output]] = []
        for exposure in exposures:
            if exposure.container not in containers:
                containers.append(exposure.container)
            url = self._endpoint(exposure)
            if url is not None:
                is_ingress = exposure.binding.expose_type is ExposeType.INGRESS
                entries.append((exposure.container, exposure.key, is_ingress, url))

        def build(values: List[Optional[str]]) -> Dict[str, Dict[str, str]]:
            svc_urls: Dict[str, Dict[str, str]] = {c: {} for c in containers}
            ing_urls: Dict[str, Dict[str, str]] = {c: {} for c in containers}
            for (container, key, is_ingress, _), value in zip(entries, values):
                if not value:
                    continue
                (ing_urls if is_ingress else svc_urls)[container][key] = value
            return {c: merge_endpoints(svc_urls[c], ing_urls[c]) for c in containers}

        if not entries:
            return pulumi.Output.from_input(build([]))
        return pulumi.Output.all(*[e[3] for e in entries]).apply(build)
