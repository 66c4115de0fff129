"""Correlation of port bindings to converted Services, and their exposure."""

import hashlib
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

import pulumi
import pulumi_kubernetes as k8s
from pulumi import ResourceOptions

from .base import CorrelationError, KomposeArgs, declare
from .containers import ExposeType, PortBinding
from .convert import service_ports, services
from .policies import ingress_policy_spec, node_port_policy_spec


# container name -> port key -> converted Service object
ServiceCorrelation = Dict[str, Dict[str, dict]]


@dataclass
class Exposure:
    """The resources exposing one port binding."""

    container: str
    binding: PortBinding
    service: k8s.core.v1.Service
    service_type: Optional[ExposeType] = None
    ingress: Optional[k8s.networking.v1.Ingress] = None
    policy: Optional[k8s.networking.v1.NetworkPolicy] = None
    host: Optional[str] = None

    @property
    def key(self) -> str:
        return self.binding.key


def _name(obj: dict) -> str:
    return obj.get("metadata", {}).get("name", "")


def correlate(objs: List[dict], ports: Dict[str, List[PortBinding]]) -> ServiceCorrelation:
    """
    Match every port binding to the converted Service implementing it.

    Raises:
        CorrelationError: listing every binding without a Service.
    """
    svcs = services(objs)
    out: ServiceCorrelation = {}
    misses = []
    for name, pbs in ports.items():
        for pb in pbs:
            svc = next(
                (s for s in svcs if _name(s) == name and pb.key in service_ports(s)),
                None,
            )
            if svc is None:
                misses.append(f"no service {name} listens on {pb.key}")
                continue
            out.setdefault(name, {})[pb.key] = svc
    if misses:
        raise CorrelationError("\n".join(misses))
    return out


def service_type(bindings: Sequence[PortBinding]) -> Optional[ExposeType]:
    """
    The type of the Service shared by all bindings of a container.

    The last NodePort or LoadBalancer binding wins. This is valid as per the
    default Kubernetes LoadBalancer behavior, i.e. a NodePort is allocated
    for a LoadBalancer.
    """
    winner = None
    for pb in bindings:
        if pb.expose_type.is_direct:
            winner = pb.expose_type
    return winner


def resource_name(
    kind: str,
    identity: str,
    label: Optional[str],
    container: str,
    port: int,
    protocol: str,
) -> str:
    prot = (protocol or "TCP").lower()
    if label:
        return f"kmp-{kind}-{label}-{identity}-{container}-{port}-{prot}"
    return f"kmp-{kind}-{identity}-{container}-{port}-{prot}"


def ingress_host(identity: str, container: str, binding: PortBinding, hostname: str) -> str:
    """
    Host of an Ingress, pseudo-random yet stable for a binding.

    The hash is truncated to the identity length so the host does not
    fingerprint the algorithm.
    """
    seed = f"{identity}-{container}-{binding.port}/{binding.protocol}"
    slug = hashlib.sha256(seed.encode("utf-8")).hexdigest()[: len(identity)]
    return f"{slug}.{hostname}"


class ExposureResolver:
    """
    Creates the converted Services and the resources exposing their ports.

    Bindings are processed in declaration order, container after container.
    """

    def __init__(
        self,
        args: KomposeArgs,
        namespace: k8s.core.v1.Namespace,
        baseline: Sequence[k8s.networking.v1.NetworkPolicy] = (),
        opts: Optional[ResourceOptions] = None,
    ):
        self.args = args
        self.namespace = namespace
        self.baseline = list(baseline)
        self.opts = opts
        self._policies: Dict[str, k8s.networking.v1.NetworkPolicy] = {}

    def _opts(self, *depends_on: pulumi.Resource) -> ResourceOptions:
        return ResourceOptions.merge(
            self.opts, ResourceOptions(depends_on=[self.namespace, *depends_on])
        )

    def resolve(self, objs: List[dict]) -> List[Exposure]:
        # Fail before any exposure resource exists
        correlation = correlate(objs, self.args.ports)
        svcs = self.create_services(objs)

        exposures = []
        for name, pbs in self.args.ports.items():
            svc_type = service_type(pbs)
            for pb in pbs:
                svc_obj = correlation[name][pb.key]
                exposure = Exposure(
                    container=name,
                    binding=pb,
                    service=svcs[_name(svc_obj)],
                    service_type=svc_type,
                )
                if pb.expose_type.is_direct:
                    # Whether the LoadBalancer traffic is routed to the node or
                    # the pod depends on the CNI, yet no node port is reused once
                    # assigned so allowing ingress on it does not widen exposure.
                    exposure.policy = self._node_port_policy(name, pb, svc_obj, exposure.service)
                elif pb.expose_type is ExposeType.INGRESS:
                    exposure.host = ingress_host(
                        self.args.identity, name, pb, self.args.hostname
                    )
                    exposure.ingress = self._ingress(name, pb, svc_obj, exposure)
                    exposure.policy = self._ingress_policy(name, pb, svc_obj, exposure.service)
                exposures.append(exposure)
        return exposures

    def create_services(self, objs: List[dict]) -> Dict[str, k8s.core.v1.Service]:
        """Create every converted Service, typed after its container bindings."""
        out = {}
        for svc in services(objs):
            name = _name(svc)
            meta = svc.get("metadata", {})
            spec = svc.get("spec", {})
            pbs = self.args.ports.get(name, [])
            svc_type = service_type(pbs)

            annotations = meta.get("annotations") or {}
            if svc_type is not None:
                annotations = {}
                for pb in pbs:
                    annotations.update(pb.annotations)
                pulumi.log.info(f"kompose: service {name} exposed as {svc_type.value}")

            out[name] = declare(
                f"service {name}",
                lambda: k8s.core.v1.Service(
                    f"kmp-svc-{self.args.identity}-{name}",
                    metadata=k8s.meta.v1.ObjectMetaArgs(
                        name=name,
                        namespace=self.namespace.metadata.name,
                        labels=meta.get("labels") or {},
                        annotations=annotations,
                    ),
                    spec=k8s.core.v1.ServiceSpecArgs(
                        # Internal and Ingress-only Services keep the default type
                        type=svc_type.value if svc_type is not None else None,
                        selector=spec.get("selector"),
                        ports=[
                            k8s.core.v1.ServicePortArgs(
                                name=p.get("name"),
                                port=int(p["port"]),
                                protocol=(p.get("protocol") or "TCP").upper(),
                                target_port=p.get("targetPort"),
                            )
                            for p in spec.get("ports") or []
                        ],
                    ),
                    opts=self._opts(),
                ),
            )
        return out

    @staticmethod
    def _selector(svc_obj: dict) -> Dict[str, str]:
        return (
            svc_obj.get("spec", {}).get("selector")
            or svc_obj.get("metadata", {}).get("labels")
            or {}
        )

    def _policy(
        self,
        kind: str,
        container: str,
        pb: PortBinding,
        svc_obj: dict,
        svc: k8s.core.v1.Service,
        spec: k8s.networking.v1.NetworkPolicySpecArgs,
    ) -> k8s.networking.v1.NetworkPolicy:
        name = resource_name(
            kind, self.args.identity, self.args.label, container, pb.port, pb.protocol
        )
        # NodePort and LoadBalancer bindings of a port open the same ingress
        if name in self._policies:
            return self._policies[name]
        self._policies[name] = declare(
            f"network policy {name}",
            lambda: k8s.networking.v1.NetworkPolicy(
                name,
                metadata=k8s.meta.v1.ObjectMetaArgs(
                    name=name,
                    namespace=self.namespace.metadata.name,
                    labels=svc_obj.get("metadata", {}).get("labels") or {},
                ),
                spec=spec,
                # Exposure policies build upon the baseline pod selection
                opts=self._opts(*self.baseline, svc),
            ),
        )
        return self._policies[name]

    def _node_port_policy(self, container, pb, svc_obj, svc):
        spec = node_port_policy_spec(
            self._selector(svc_obj), pb.port, pb.protocol, self.args.from_cidr
        )
        return self._policy("ntp", container, pb, svc_obj, svc, spec)

    def _ingress_policy(self, container, pb, svc_obj, svc):
        spec = ingress_policy_spec(
            self._selector(svc_obj),
            pb.port,
            pb.protocol,
            self.args.ingress_namespace,
            self.args.ingress_labels,
        )
        return self._policy("ntp-ing", container, pb, svc_obj, svc, spec)

    def _ingress(
        self, container: str, pb: PortBinding, svc_obj: dict, exposure: Exposure
    ) -> k8s.networking.v1.Ingress:
        name = resource_name(
            "ing", self.args.identity, self.args.label, container, pb.port, pb.protocol
        )
        return declare(
            f"ingress {name}",
            lambda: k8s.networking.v1.Ingress(
                name,
                metadata=k8s.meta.v1.ObjectMetaArgs(
                    name=name,
                    namespace=self.namespace.metadata.name,
                    labels=svc_obj.get("metadata", {}).get("labels") or {},
                    annotations=dict(pb.annotations),
                ),
                spec=k8s.networking.v1.IngressSpecArgs(
                    rules=[
                        k8s.networking.v1.IngressRuleArgs(
                            host=exposure.host,
                            http=k8s.networking.v1.HTTPIngressRuleValueArgs(
                                paths=[
                                    k8s.networking.v1.HTTPIngressPathArgs(
                                        path="/",
                                        path_type="Prefix",
                                        backend=k8s.networking.v1.IngressBackendArgs(
                                            service=k8s.networking.v1.IngressServiceBackendArgs(
                                                name=_name(svc_obj),
                                                port=k8s.networking.v1.ServiceBackendPortArgs(
                                                    number=pb.port,
                                                ),
                                            ),
                                        ),
                                    ),
                                ],
                            ),
                        ),
                    ],
                ),
                opts=self._opts(exposure.service),
            ),
        )
