from __future__ import annotations

from typing import Mapping

from fdw_connector.connectors.base import ForeignConnector
from fdw_connector.domain.mapping.accessors import FlatRecordAccessor
from fdw_connector.domain.mapping.record_mapper import RecordMapper
from fdw_connector.domain.models import OptionScope, SemanticType
from fdw_connector.domain.options import require_option
from fdw_connector.infra.http.qdrant_client import QdrantApiClient


class QdrantConnector(ForeignConnector):
    """
    Назначение:
        Коллекция Qdrant как foreign table: id bigint, payload jsonb, vector real[].

    Опции:
        server: api_url, api_key
        table: collection_name
    """

    connector_id = "qdrant"
    allowed_schema = {
        "id": SemanticType.INT64,
        "payload": SemanticType.JSONB,
        "vector": SemanticType.FLOAT_ARRAY,
    }
    required_options = {
        OptionScope.SERVER: ("api_url", "api_key"),
        OptionScope.TABLE: ("collection_name",),
    }
    default_batch_size = 1000

    def build_mapper(self) -> RecordMapper:
        return RecordMapper(FlatRecordAccessor())

    def resolve_collection(self, options: Mapping[str, str]) -> str:
        return require_option("collection_name", options)

    def build_client(self, options: Mapping[str, str]) -> QdrantApiClient:
        settings = self.client_settings
        return QdrantApiClient(
            baseUrl=require_option("api_url", options),
            apiKey=require_option("api_key", options),
            timeoutSeconds=settings.timeout_seconds,
            tlsSkipVerify=settings.tls_skip_verify,
            retries=settings.retries,
            retryBackoffSeconds=settings.retry_backoff_seconds,
        )
