"""Loading of the Kompose arguments from the Pulumi stack configuration."""

from typing import Optional

import pulumi

from .base import DEFAULT_CIDR, DEFAULT_PULL_SECRETS_NAMESPACE, KomposeArgs, ValidationError
from .containers import PortBinding


def load_args(config: Optional[pulumi.Config] = None) -> KomposeArgs:
    """
    Build the Kompose arguments from the stack configuration.

    The compose manifest is read either inline (``yaml``) or from a file
    (``compose_file``).
    """
    config = config or pulumi.Config()

    manifest = config.get("yaml") or ""
    compose_file = config.get("compose_file")
    if not manifest and compose_file:
        try:
            with open(compose_file, encoding="utf-8") as f:
                manifest = f.read()
        except OSError as exc:
            raise ValidationError(f"Failed to read compose file {compose_file}: {exc}")

    ports = {
        name: [PortBinding.from_dict(pb) for pb in pbs or []]
        for name, pbs in (config.get_object("ports") or {}).items()
    }

    return KomposeArgs(
        identity=config.require("identity"),
        hostname=config.get("hostname") or "",
        yaml=manifest,
        ports=ports,
        label=config.get("label"),
        from_cidr=config.get("from_cidr") or DEFAULT_CIDR,
        ingress_namespace=config.get("ingress_namespace") or "",
        ingress_labels=config.get_object("ingress_labels") or {},
        namespace_annotations=config.get_object("namespace_annotations") or {},
        image_pull_secrets_namespace=(
            config.get("image_pull_secrets_namespace") or DEFAULT_PULL_SECRETS_NAMESPACE
        ),
    )
