from datetime import datetime, timezone

import pytest

from fdw_connector.domain.mapping.accessors import AttributeListAccessor, FlatRecordAccessor
from fdw_connector.domain.mapping.record_mapper import RecordMapper
from fdw_connector.domain.models import Cell, Column, SemanticType
from fdw_connector.errors import MappingError

POINT_COLUMNS = [
    Column("id", SemanticType.INT64),
    Column("payload", SemanticType.JSONB),
    Column("vector", SemanticType.FLOAT_ARRAY),
]

USER_COLUMNS = [
    Column("username", SemanticType.TEXT),
    Column("email", SemanticType.TEXT),
    Column("created_at", SemanticType.TIMESTAMP),
    Column("status", SemanticType.TEXT),
]


def cognito_mapper() -> RecordMapper:
    return RecordMapper(
        AttributeListAccessor(top_level={"username": "Username", "status": "UserStatus", "created_at": "UserCreateDate"})
    )


def test_flat_record_maps_columns_in_declared_order():
    mapper = RecordMapper()
    record = {"id": 7, "payload": {"color": "red"}, "vector": [0.5, 1]}

    row = mapper.to_row(record, list(reversed(POINT_COLUMNS)))

    assert row.names == ("vector", "payload", "id")
    assert row.values() == [[0.5, 1.0], {"color": "red"}, 7]
    assert row.get("id") == Cell(SemanticType.INT64, 7)


def test_missing_and_null_fields_become_null_cells():
    mapper = RecordMapper()

    row = mapper.to_row({"id": 1, "payload": None}, POINT_COLUMNS)

    assert len(row) == 3
    assert row.get("payload") is None
    assert row.get("vector") is None
    assert row.as_dict() == {"id": 1, "payload": None, "vector": None}


def test_row_only_has_requested_columns():
    mapper = RecordMapper()

    row = mapper.to_row({"id": 1, "payload": {}, "vector": [1.0]}, [Column("id", SemanticType.INT64)])

    assert row.as_dict() == {"id": 1}
    with pytest.raises(KeyError):
        row.set("vector", Cell(SemanticType.FLOAT_ARRAY, [1.0]))


def test_flat_accessor_aliases_are_tried_in_order():
    mapper = RecordMapper(FlatRecordAccessor(aliases={"id": ("point_id", "id")}))

    row = mapper.to_row({"id": 2, "point_id": 9}, [Column("id", SemanticType.INT64)])

    assert row.value("id") == 9


def test_attribute_list_record_reads_top_level_and_nested_attributes():
    record = {
        "Username": "jdoe",
        "UserStatus": "CONFIRMED",
        "UserCreateDate": "2024-01-01T00:00:00Z",
        "Attributes": [
            {"Name": "sub", "Value": "e1f2"},
            {"Name": "email", "Value": "jdoe@example.com"},
        ],
    }

    row = cognito_mapper().to_row(record, USER_COLUMNS)

    assert row.as_dict() == {
        "username": "jdoe",
        "email": "jdoe@example.com",
        "created_at": 1704067200,
        "status": "CONFIRMED",
    }


def test_attribute_list_missing_attribute_is_null():
    record = {
        "Username": "anon",
        "UserStatus": "UNCONFIRMED",
        "UserCreateDate": datetime(2024, 1, 1, tzinfo=timezone.utc),
    }

    row = cognito_mapper().to_row(record, USER_COLUMNS)

    assert row.value("email") is None
    assert row.value("created_at") == 1704067200


def test_unparseable_timestamp_raises_mapping_error():
    record = {"Username": "jdoe", "UserCreateDate": "yesterday", "UserStatus": "CONFIRMED"}

    with pytest.raises(MappingError) as excinfo:
        cognito_mapper().to_row(record, USER_COLUMNS, record_index=4)

    err = excinfo.value
    assert err.code == "INVALID_TIMESTAMP"
    assert err.column == "created_at"
    assert err.expected == "timestamp"
    assert err.details["record_index"] == 4
    assert err.details["value"] == "'yesterday'"


def test_wrong_value_type_raises_mapping_error():
    with pytest.raises(MappingError) as excinfo:
        RecordMapper().to_row({"id": "8f0c1b5e-uuid"}, POINT_COLUMNS)

    err = excinfo.value
    assert err.code == "INVALID_FIELD_VALUE"
    assert err.column == "id"
    assert "column `id` (bigint)" in err.message


def test_attribute_list_that_is_not_a_list_raises_mapping_error():
    with pytest.raises(MappingError) as excinfo:
        cognito_mapper().to_row({"Username": "jdoe", "Attributes": 5}, USER_COLUMNS, record_index=0)

    err = excinfo.value
    assert err.code == "INVALID_FIELD_VALUE"
    assert err.column == "email"
    assert "`Attributes` must be a list" in err.message
    assert "value" not in err.details


def test_row_rejects_duplicate_column_names():
    with pytest.raises(ValueError):
        RecordMapper().to_row({"id": 7}, [Column("id", SemanticType.INT64), Column("id", SemanticType.INT64)])
