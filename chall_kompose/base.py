"""Base arguments and errors for the Kompose component."""

from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional, TypeVar, Union

from .containers import PortBinding


DEFAULT_CIDR = "0.0.0.0/0"
DEFAULT_PULL_SECRETS_NAMESPACE = "default"

T = TypeVar("T")


@dataclass
class KomposeArgs:
    """Arguments of a Kompose deployment."""

    identity: str
    hostname: str = ""
    # YAML content of a docker-compose.yaml file.
    yaml: str = ""
    # Ports define the binding per each container for how to expose it.
    # As kompose creates one Service for all ports of a container, the
    # underlying Service type is driven by the latest NodePort or
    # LoadBalancer binding of the list.
    ports: Dict[str, List[PortBinding]] = field(default_factory=dict)
    label: Optional[str] = None
    from_cidr: str = DEFAULT_CIDR
    ingress_namespace: str = ""
    ingress_labels: Dict[str, str] = field(default_factory=dict)
    namespace_annotations: Dict[str, str] = field(default_factory=dict)
    # Namespace from which to copy image pull secrets.
    image_pull_secrets_namespace: str = DEFAULT_PULL_SECRETS_NAMESPACE

    def __post_init__(self):
        self.ports = {
            name: [
                pb if isinstance(pb, PortBinding) else PortBinding.from_dict(pb)
                for pb in (pbs or [])
            ]
            for name, pbs in (self.ports or {}).items()
        }
        if not self.from_cidr:
            self.from_cidr = DEFAULT_CIDR
        if not self.image_pull_secrets_namespace:
            self.image_pull_secrets_namespace = DEFAULT_PULL_SECRETS_NAMESPACE
        self.ingress_labels = dict(self.ingress_labels or {})
        self.namespace_annotations = dict(self.namespace_annotations or {})


class KomposeError(Exception):
    """Base class of every error raised by this package."""

    pass


class ValidationError(KomposeError):
    """Raised when the deployment arguments are inconsistent.

    Carries every violation found rather than the first one.
    """

    def __init__(self, errors: Union[str, Exception, Iterable[Union[str, Exception]]]):
        if isinstance(errors, (str, Exception)):
            errors = [errors]
        self.errors: List[str] = [str(err) for err in errors]
        super().__init__("\n".join(self.errors))


class ConversionError(KomposeError):
    """Raised when the compose manifest cannot be converted."""

    pass


class CorrelationError(KomposeError):
    """Raised when a declared port binding matches no converted Service."""

    pass


class ResourceCreationError(KomposeError):
    """Raised when a Kubernetes resource cannot be declared."""

    pass


def declare(what: str, factory: Callable[[], T]) -> T:
    """Declare a resource, reporting a rejected declaration as a ResourceCreationError."""
    try:
        return factory()
    except (TypeError, ValueError) as exc:
        raise ResourceCreationError(f"cannot create {what}: {exc}") from exc
