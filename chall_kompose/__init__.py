"""
Chall-Kompose

A Pulumi component deploying docker compose manifests on Kubernetes,
one isolated namespace per instance.
"""

__version__ = "0.1.0"
__all__ = [
    "Kompose",
    "KomposeArgs",
    "KomposeArgsBuilder",
    "KomposeConverter",
    "PortBinding",
    "ExposeType",
    "KomposeError",
    "ValidationError",
    "ConversionError",
    "CorrelationError",
    "ResourceCreationError",
    "load_args",
    "quick_kompose",
]

from .base import (
    KomposeArgs,
    KomposeError,
    ValidationError,
    ConversionError,
    CorrelationError,
    ResourceCreationError,
)
from .containers import PortBinding, ExposeType
from .convert import KomposeConverter
from .kompose import Kompose
from .config import load_args
from .builder import KomposeArgsBuilder, quick_kompose
