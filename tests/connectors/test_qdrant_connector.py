import json

import httpx
import pytest

import fdw_connector.connectors.qdrant as qdrant_module
from fdw_connector.connectors.base import ClientSettings
from fdw_connector.connectors.qdrant import QdrantConnector
from fdw_connector.domain.models import Column, OptionScope, SemanticType
from fdw_connector.errors import ClientError, ConfigurationError, SchemaError
from fdw_connector.infra.http.qdrant_client import QdrantApiClient

SERVER_OPTIONS = {"api_url": "https://qdrant.local:6333", "api_key": "secret-key"}
COLUMNS = [
    Column("id", SemanticType.INT64),
    Column("payload", SemanticType.JSONB),
    Column("vector", SemanticType.FLOAT_ARRAY),
]


def point(pid):
    return {"id": pid, "payload": {"name": f"p{pid}"}, "vector": [0.1 * pid, 1.0]}


def scroll_response(points, next_offset):
    return httpx.Response(200, json={"result": {"points": points, "next_page_offset": next_offset}, "status": "ok"})


def install_transport(monkeypatch, handler):
    """Подменяет фабрику клиента: тот же QdrantApiClient, но с MockTransport."""

    def factory(**kwargs):
        return QdrantApiClient(transport=httpx.MockTransport(handler), **kwargs)

    monkeypatch.setattr(qdrant_module, "QdrantApiClient", factory)


def make_connector(**kwargs):
    settings = ClientSettings(retries=2, retry_backoff_seconds=0)
    return QdrantConnector(SERVER_OPTIONS, client_settings=settings, **kwargs)


def test_scan_pages_through_scroll_api(monkeypatch):
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        requests.append((request.url.raw_path.decode(), request.headers.get("api-key"), body))
        if "offset" not in body:
            return scroll_response([point(1), point(2)], 3)
        return scroll_response([point(3)], None)

    install_transport(monkeypatch, handler)
    connector = make_connector(batch_size=2)

    connector.begin(COLUMNS, None, {"collection_name": "my collection"})
    rows = [row.as_dict() for row in connector.rows()]
    connector.end()

    assert [row["id"] for row in rows] == [1, 2, 3]
    assert rows[0]["payload"] == {"name": "p1"}
    assert rows[2]["vector"] == [pytest.approx(0.3), 1.0]
    assert len(requests) == 2
    assert requests[0][0] == "/collections/my%20collection/points/scroll"
    assert requests[0][1] == "secret-key"
    assert requests[0][2] == {"limit": 2, "with_payload": True, "with_vector": True}
    assert requests[1][2]["offset"] == 3


def test_projection_to_subset_of_columns(monkeypatch):
    install_transport(monkeypatch, lambda request: scroll_response([point(5)], None))
    connector = make_connector()

    connector.begin([Column("id", SemanticType.INT64)], None, {"collection_name": "c"})

    assert connector.next().as_dict() == {"id": 5}
    assert connector.next() is None


def test_server_errors_are_retried(monkeypatch):
    calls = {"n": 0}

    def handler(request):
        calls["n"] += 1
        if calls["n"] == 1:
            return httpx.Response(503, text="busy")
        return scroll_response([point(1)], None)

    install_transport(monkeypatch, handler)
    connector = make_connector()
    connector.begin(COLUMNS, None, {"collection_name": "c"})

    assert connector.next().value("id") == 1
    assert calls["n"] == 2


def test_unauthorized_aborts_scan(monkeypatch):
    install_transport(monkeypatch, lambda request: httpx.Response(401, text="bad api key"))
    connector = make_connector()
    connector.begin(COLUMNS, None, {"collection_name": "c"})

    with pytest.raises(ClientError) as excinfo:
        connector.next()

    err = excinfo.value
    assert err.code == "UNAUTHORIZED"
    assert err.details["status_code"] == 401
    assert err.details["record_index"] == 0
    assert connector.session.state.value == "ended"


def test_response_without_points_is_invalid(monkeypatch):
    install_transport(monkeypatch, lambda request: httpx.Response(200, json={"result": {}}))
    connector = make_connector()
    connector.begin(COLUMNS, None, {"collection_name": "c"})

    with pytest.raises(ClientError) as excinfo:
        connector.next()
    assert excinfo.value.code == "INVALID_RESPONSE"


def test_network_error_after_retries(monkeypatch):
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    install_transport(monkeypatch, handler)
    connector = make_connector()
    connector.begin(COLUMNS, None, {"collection_name": "c"})

    with pytest.raises(ClientError) as excinfo:
        connector.next()
    assert excinfo.value.code == "NETWORK_ERROR"
    assert excinfo.value.retryable is True


def test_wrong_column_type_rejected_before_any_request(monkeypatch):
    def handler(request):
        raise AssertionError("no request expected")

    install_transport(monkeypatch, handler)
    connector = make_connector()

    with pytest.raises(SchemaError) as excinfo:
        connector.begin([Column("payload", SemanticType.TEXT)], None, {"collection_name": "c"})
    assert excinfo.value.code == "WRONG_COLUMN_TYPE"


def test_missing_options():
    with pytest.raises(ConfigurationError) as excinfo:
        QdrantConnector({"api_url": "https://qdrant.local"})
    assert excinfo.value.option == "api_key"

    connector = QdrantConnector(SERVER_OPTIONS)
    with pytest.raises(ConfigurationError) as excinfo:
        connector.begin(COLUMNS, None, {})
    assert excinfo.value.option == "collection_name"
    assert connector.session is None


def test_validate_options_by_scope():
    QdrantConnector.validate_options(["api_url=https://q", "api_key=k", None], OptionScope.SERVER)
    QdrantConnector.validate_options(["collection_name=c"], OptionScope.TABLE)

    with pytest.raises(ConfigurationError) as excinfo:
        QdrantConnector.validate_options(["api_url=https://q"], OptionScope.SERVER)
    assert excinfo.value.message == "required option `api_key` is not specified"

    with pytest.raises(ConfigurationError) as excinfo:
        QdrantConnector.validate_options(["collection_name"], OptionScope.TABLE)
    assert excinfo.value.code == "INVALID_OPTION"
