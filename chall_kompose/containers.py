"""Port binding and exposure configuration classes."""

from dataclasses import dataclass, field
from typing import Dict, Union
from enum import Enum


DEFAULT_PROTOCOL = "TCP"
PROTOCOLS = ("TCP", "UDP", "SCTP")


class ExposeType(Enum):
    """Types of service exposure."""

    INTERNAL = "internal"
    NODE_PORT = "NodePort"
    LOAD_BALANCER = "LoadBalancer"
    INGRESS = "ingress"

    @classmethod
    def parse(cls, value: Union[str, "ExposeType"]) -> "ExposeType":
        """Parse an exposure type regardless of its casing."""
        if isinstance(value, cls):
            return value
        for member in cls:
            if member.value.lower() == str(value).lower():
                return member
        raise ValueError(
            f"Invalid expose type: {value} "
            f"(must be one of {', '.join(m.value for m in cls)})"
        )

    @property
    def is_direct(self) -> bool:
        """Whether this exposure retypes the underlying Service."""
        return self in (ExposeType.NODE_PORT, ExposeType.LOAD_BALANCER)


def port_key(port: int, protocol: str = "") -> str:
    """Build the canonical "<port>/<PROTOCOL>" key, protocol defaulting to TCP."""
    return f"{int(port)}/{(protocol or DEFAULT_PROTOCOL).upper()}"


@dataclass
class PortBinding:
    """Port binding configuration.

    The container a binding applies to is the key of the ports mapping
    holding it.
    """

    port: int
    protocol: str = DEFAULT_PROTOCOL
    expose_type: ExposeType = ExposeType.INTERNAL
    annotations: Dict[str, str] = field(default_factory=dict)

    def __post_init__(self):
        """Validate port binding after initialization."""
        # Normalize protocol to uppercase
        self.protocol = (self.protocol or DEFAULT_PROTOCOL).upper()
        self.expose_type = ExposeType.parse(self.expose_type)

        if self.protocol not in PROTOCOLS:
            raise ValueError(
                f"Invalid protocol: {self.protocol} (must be one of {', '.join(PROTOCOLS)})"
            )

        if isinstance(self.port, bool) or not isinstance(self.port, int):
            raise ValueError(f"Invalid port number: {self.port!r} (must be an integer)")
        if self.port < 1 or self.port > 65535:
            raise ValueError(f"Invalid port number: {self.port} (must be 1-65535)")

    @property
    def key(self) -> str:
        return port_key(self.port, self.protocol)

    @classmethod
    def from_dict(cls, data: Dict) -> "PortBinding":
        """Build a binding from its plain mapping form (config, JSON)."""
        return cls(
            port=int(data["port"]),
            protocol=data.get("protocol") or DEFAULT_PROTOCOL,
            expose_type=ExposeType.parse(
                data.get("expose_type", data.get("exposeType", "internal"))
            ),
            annotations=dict(data.get("annotations") or {}),
        )
