import pytest

from fdw_connector.domain.contract.column_contract import ColumnContract
from fdw_connector.domain.diagnostics import ErrorKind, classify, render_diagnostic
from fdw_connector.domain.models import Column, SemanticType
from fdw_connector.domain.options import require_option
from fdw_connector.errors import ClientError, MappingError, ScanStateError, SchemaError


def test_configuration_error_diagnostic_names_option():
    with pytest.raises(Exception) as excinfo:
        require_option("api_key", {})

    diagnostic = render_diagnostic(excinfo.value)

    assert diagnostic.kind is ErrorKind.CONFIGURATION
    assert diagnostic.sqlstate == "HV00J"
    assert diagnostic.code == "OPTION_REQUIRED"
    assert diagnostic.message == "required option `api_key` is not specified"
    assert diagnostic.hint == "set option `api_key` on the server or foreign table"


def test_schema_error_diagnostic_lists_allowed_columns():
    contract = ColumnContract({"id": SemanticType.INT64, "payload": SemanticType.JSONB})
    with pytest.raises(SchemaError) as excinfo:
        contract.validate([Column("vector", SemanticType.FLOAT_ARRAY)])

    diagnostic = render_diagnostic(excinfo.value)

    assert diagnostic.kind is ErrorKind.SCHEMA
    assert diagnostic.sqlstate == "HV007"
    assert diagnostic.hint == "allowed columns: id bigint, payload jsonb"
    assert diagnostic.detail["column"] == "vector"


def test_client_error_diagnostic_masks_secrets():
    error = ClientError(
        "HTTP 403",
        code="FORBIDDEN",
        details={"status_code": 403, "api_key": "secret-key", "record_index": 12},
    )

    diagnostic = render_diagnostic(error)

    assert diagnostic.kind is ErrorKind.CLIENT
    assert diagnostic.sqlstate == "HV00N"
    assert diagnostic.detail["api_key"] == "***"
    assert diagnostic.hint == "scan aborted at record 12"
    assert diagnostic.to_dict()["kind"] == "client"


def test_mapping_and_state_errors_have_own_sqlstate():
    mapping = MappingError("bad ts", column="created_at", expected="timestamp", code="INVALID_TIMESTAMP")
    state = ScanStateError("next_row is not allowed in state ended", state="ended")

    assert render_diagnostic(mapping).sqlstate == "22007"
    assert classify(mapping) is ErrorKind.MAPPING
    assert render_diagnostic(state).sqlstate == "55000"
    assert classify(state) is ErrorKind.STATE


def test_unexpected_exception_is_internal():
    diagnostic = render_diagnostic(RuntimeError("boom"))

    assert diagnostic.kind is ErrorKind.INTERNAL
    assert diagnostic.sqlstate == "HV000"
    assert diagnostic.code == "INTERNAL_ERROR"
    assert diagnostic.message == "RuntimeError: boom"
