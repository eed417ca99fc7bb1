from __future__ import annotations

from typing import Any, Callable, Mapping

from fdw_connector.connectors.base import ForeignConnector
from fdw_connector.connectors.cognito import CognitoConnector
from fdw_connector.connectors.qdrant import QdrantConnector
from fdw_connector.domain.error_codes import ErrorCode
from fdw_connector.errors import ConfigurationError

ConnectorFactory = Callable[..., ForeignConnector]


class ConnectorRegistry:
    """
    Назначение/ответственность:
        Явный реестр: идентификатор коннектора -> конструктор.
        Создаётся один раз при старте и передаётся по ссылке тем, кто запускает сканирования.
    """

    def __init__(self) -> None:
        self._factories: dict[str, ConnectorFactory] = {}

    def register(self, connector_id: str, factory: ConnectorFactory) -> None:
        if connector_id in self._factories:
            raise ValueError(f"Connector already registered: {connector_id}")
        self._factories[connector_id] = factory

    def get(self, connector_id: str) -> ConnectorFactory:
        """
        Возвращает фабрику по имени или ConfigurationError(UNKNOWN_CONNECTOR).
        """
        try:
            return self._factories[connector_id]
        except KeyError as exc:
            raise ConfigurationError(
                f"Unknown connector `{connector_id}`. Available: {self.ids()}",
                option="connector",
                code=ErrorCode.UNKNOWN_CONNECTOR,
            ) from exc

    def create(self, connector_id: str, server_options: Mapping[str, str], **kwargs: Any) -> ForeignConnector:
        return self.get(connector_id)(server_options, **kwargs)

    def ids(self) -> list[str]:
        return sorted(self._factories)

    def __contains__(self, connector_id: object) -> bool:
        return connector_id in self._factories


def build_default_registry() -> ConnectorRegistry:
    registry = ConnectorRegistry()
    registry.register(QdrantConnector.connector_id, QdrantConnector)
    registry.register(CognitoConnector.connector_id, CognitoConnector)
    return registry
