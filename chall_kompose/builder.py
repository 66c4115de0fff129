"""Builder pattern for creating Kompose arguments easily."""

from typing import Dict, List, Optional

from .base import DEFAULT_CIDR, DEFAULT_PULL_SECRETS_NAMESPACE, KomposeArgs
from .containers import ExposeType, PortBinding


class KomposeArgsBuilder:
    """
    Fluent builder for Kompose deployment arguments.

    Example:
        args = (KomposeArgsBuilder()
            .with_identity("a0b1c2d3")
            .with_hostname("ctf.example.com")
            .with_docker_compose(yaml_content)
            .with_port("node", PortBinding(3000, expose_type=ExposeType.NODE_PORT))
            .with_ingress_namespace("networking")
            .with_ingress_labels({"app": "traefik"})
            .build())
    """

    def __init__(self):
        self._identity: str = ""
        self._hostname: str = ""
        self._label: Optional[str] = None
        self._yaml_content: str = ""
        self._ports: Dict[str, List[PortBinding]] = {}
        self._from_cidr: str = DEFAULT_CIDR
        self._ingress_namespace: str = ""
        self._ingress_labels: Dict[str, str] = {}
        self._namespace_annotations: Dict[str, str] = {}
        self._image_pull_secrets_namespace: str = DEFAULT_PULL_SECRETS_NAMESPACE

    def with_identity(self, identity: str) -> "KomposeArgsBuilder":
        """Set the identity, naming the deployment namespace."""
        self._identity = identity
        return self

    def with_hostname(self, hostname: str) -> "KomposeArgsBuilder":
        self._hostname = hostname
        return self

    def with_label(self, label: str) -> "KomposeArgsBuilder":
        """Set a label embedded in the generated resource names."""
        self._label = label
        return self

    def with_docker_compose(self, yaml_content: str) -> "KomposeArgsBuilder":
        self._yaml_content = yaml_content
        return self

    def with_service_ports(
        self, service_name: str, ports: List[PortBinding]
    ) -> "KomposeArgsBuilder":
        """Set port bindings for a service, replacing previous ones."""
        self._ports[service_name] = list(ports)
        return self

    def with_port(self, service_name: str, binding: PortBinding) -> "KomposeArgsBuilder":
        """Append a port binding to a service."""
        self._ports.setdefault(service_name, []).append(binding)
        return self

    def with_from_cidr(self, cidr: str) -> "KomposeArgsBuilder":
        self._from_cidr = cidr
        return self

    def with_ingress_namespace(self, namespace: str) -> "KomposeArgsBuilder":
        self._ingress_namespace = namespace
        return self

    def with_ingress_labels(self, labels: Dict[str, str]) -> "KomposeArgsBuilder":
        self._ingress_labels = labels
        return self

    def with_namespace_annotations(
        self, annotations: Dict[str, str]
    ) -> "KomposeArgsBuilder":
        self._namespace_annotations = annotations
        return self

    def with_image_pull_secrets_namespace(self, namespace: str) -> "KomposeArgsBuilder":
        """Set the namespace image pull secrets are copied from."""
        self._image_pull_secrets_namespace = namespace
        return self

    def build(self) -> KomposeArgs:
        """Build the arguments.

        Validation happens when deploying, so that every problem is reported
        at once.
        """
        return KomposeArgs(
            identity=self._identity,
            hostname=self._hostname,
            yaml=self._yaml_content,
            ports={name: list(pbs) for name, pbs in self._ports.items()},
            label=self._label,
            from_cidr=self._from_cidr,
            ingress_namespace=self._ingress_namespace,
            ingress_labels=dict(self._ingress_labels),
            namespace_annotations=dict(self._namespace_annotations),
            image_pull_secrets_namespace=self._image_pull_secrets_namespace,
        )


def quick_kompose(
    identity: str,
    hostname: str,
    yaml_content: str,
    service: str,
    port: int,
    expose_type: ExposeType = ExposeType.INTERNAL,
    **kwargs,
) -> KomposeArgs:
    """
    Quickly create Kompose arguments exposing a single port.

    Args:
        identity: The deployment identity
        hostname: Hostname exposed ports are reachable on
        yaml_content: Docker Compose YAML content
        service: Compose service to expose
        port: Port number
        expose_type: How to expose the port
        **kwargs: Additional builder options

    Returns:
        The configured KomposeArgs
    """
    builder = (
        KomposeArgsBuilder()
        .with_identity(identity)
        .with_hostname(hostname)
        .with_docker_compose(yaml_content)
        .with_port(service, PortBinding(port, expose_type=expose_type))
    )

    for key, value in kwargs.items():
        if hasattr(builder, f"with_{key}"):
            getattr(builder, f"with_{key}")(value)

    return builder.build()
