from .base import ClientSettings, ForeignConnector
from .registry import ConnectorRegistry, build_default_registry

__all__ = [
    "ClientSettings",
    "ConnectorRegistry",
    "ForeignConnector",
    "build_default_registry",
]
