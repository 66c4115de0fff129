"""Checks of the Kompose arguments against themselves and the converted manifest."""

import contextvars
import ipaddress
import re
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Dict, List, Optional, Protocol

from .base import ConversionError, KomposeArgs, ValidationError
from .convert import service_ports, services


class Converter(Protocol):
    def convert(self, manifest: str, identity: str) -> List[dict]: ...


DNS_LABEL = re.compile(r"^[a-z0-9]([-a-z0-9]*[a-z0-9])?$")


def check_identity(args: KomposeArgs) -> List[str]:
    if not args.identity:
        return ["identity could not be empty"]
    # It names the namespace, hence must be a DNS-1123 label
    if len(args.identity) > 63:
        return [f"identity must be 63 characters or less (got {len(args.identity)})"]
    if not DNS_LABEL.match(args.identity):
        return [
            "identity must consist of lowercase alphanumeric characters or '-', "
            f"start and end with an alphanumeric character (got: {args.identity})"
        ]
    return []


def check_hostname(args: KomposeArgs) -> List[str]:
    if not args.hostname:
        return ["hostname could not be empty"]
    if len(args.hostname) > 253:
        return [f"hostname must be 253 characters or less (got {len(args.hostname)})"]
    label_pattern = r"[a-z0-9]([a-z0-9-]*[a-z0-9])?"
    if not re.match(f"^{label_pattern}(\\.{label_pattern})*$", args.hostname.lower()):
        return [f"Invalid hostname format: {args.hostname}"]
    return []


def check_ports_exist(args: KomposeArgs, objs: List[dict]) -> List[str]:
    """Every declared port binding must exist on the Service of its container."""
    svcs: Dict[str, List[str]] = {}
    for svc in services(objs):
        svcs.setdefault(svc.get("metadata", {}).get("name", ""), []).extend(service_ports(svc))

    errs = []
    for name, pbs in args.ports.items():
        if name not in svcs:
            errs.append(f"service {name} not found")
            continue
        for pb in pbs:
            if pb.key not in svcs[name]:
                errs.append(f"service {name} has no port binding for {pb.key}")
    return errs


def check_any_binding(args: KomposeArgs) -> List[str]:
    if not any(args.ports.values()):
        return ["no port bindings defined"]
    return []


def check_duplicates(args: KomposeArgs) -> List[str]:
    errs = []
    for name, pbs in args.ports.items():
        seen = set()
        dups = []
        for pb in pbs:
            k = f"expose {pb.expose_type.value} on {pb.key}"
            if k in seen:
                dups.append(k)
            seen.add(k)
        if dups:
            errs.append(f"container {name} has duplicated ports: {', '.join(dups)}")
    return errs


def check_network(args: KomposeArgs) -> List[str]:
    errs = []
    try:
        ipaddress.ip_network(args.from_cidr)
    except ValueError:
        errs.append(f"Invalid CIDR format: {args.from_cidr}")
    if args.label:
        if len(args.label) > 63:
            errs.append(f"label must be 63 characters or less (got {len(args.label)})")
        # Labels are embedded in resource names
        elif not DNS_LABEL.match(args.label):
            errs.append(f"Invalid label format: {args.label}")
    return errs


class _Conversion:
    """Conversion check, keeping the converted objects for the caller."""

    def __init__(self, args: KomposeArgs, converter: Converter):
        self.args = args
        self.converter = converter
        self.objs: Optional[List[dict]] = None

    def __call__(self) -> List[str]:
        # Kompose accepts an empty manifest yet produces nothing, which is
        # never something to deploy.
        if not self.args.yaml or not self.args.yaml.strip():
            return ["empty YAML is not allowed"]
        try:
            objs = self.converter.convert(self.args.yaml, self.args.identity)
        except ConversionError as exc:
            return [str(exc)]
        self.objs = objs
        return check_ports_exist(self.args, objs)


def check(args: Optional[KomposeArgs], converter: Converter) -> List[dict]:
    """
    Validate the arguments, running every check concurrently.

    Returns:
        The converted objects of the manifest.

    Raises:
        ValidationError: carrying every violation found.
    """
    if args is None:
        raise ValidationError("nil args")

    conversion = _Conversion(args, converter)
    checks: List[Callable[[], List[str]]] = [
        lambda: check_identity(args),
        lambda: check_hostname(args),
        conversion,
        lambda: check_any_binding(args),
        lambda: check_duplicates(args),
        lambda: check_network(args),
    ]
    with ThreadPoolExecutor(max_workers=len(checks)) as pool:
        # Each check runs in a copy of the caller context, which holds the Pulumi engine handle
        futures = [pool.submit(contextvars.copy_context().run, c) for c in checks]
        errs = [err for fut in futures for err in fut.result()]

    if errs:
        raise ValidationError(errs)
    return conversion.objs or []
