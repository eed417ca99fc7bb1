from __future__ import annotations

from typing import Mapping, Protocol

from fdw_connector.domain.contract.column_contract import ColumnContract
from fdw_connector.domain.mapping.record_mapper import RecordMapper
from fdw_connector.domain.ports.source_client import SourceClientProtocol


class ConnectorSpec(Protocol):
    """
    Назначение:
        Всё, что нужно ScanSession от конкретного коннектора:
        контракт колонок, фабрика клиента, маппер и размер батча.
    """

    connector_id: str
    batch_size: int
    max_pages: int | None

    def build_contract(self) -> ColumnContract: ...
    def build_mapper(self) -> RecordMapper: ...
    def resolve_collection(self, options: Mapping[str, str]) -> str: ...
    def build_client(self, options: Mapping[str, str]) -> SourceClientProtocol: ...
