from datetime import datetime, timedelta, timezone

import pytest

from fdw_connector.domain.mapping.converters import (
    ConversionError,
    to_bool,
    to_float_array,
    to_int64,
    to_jsonb,
    to_text,
    to_timestamp,
)


def test_int64_accepts_ints_integral_floats_and_decimal_strings():
    assert to_int64(42) == 42
    assert to_int64(7.0) == 7
    assert to_int64(" -15 ") == -15


@pytest.mark.parametrize("value", [True, 1.5, "abc", "8f0c1b5e-8c1d-4c55-9a5b-0e8d5f0f0c11", 2**63, [1]])
def test_int64_rejects_invalid_values(value):
    with pytest.raises(ConversionError):
        to_int64(value)


def test_text_converts_scalars_and_rejects_containers():
    assert to_text("Jane") == "Jane"
    assert to_text(10) == "10"
    assert to_text(False) == "false"
    with pytest.raises(ConversionError):
        to_text({"a": 1})


def test_bool_parses_flags():
    assert to_bool(True) is True
    assert to_bool("TRUE") is True
    assert to_bool("no") is False
    assert to_bool(0) is False
    with pytest.raises(ConversionError):
        to_bool("maybe")
    with pytest.raises(ConversionError):
        to_bool(2)


def test_timestamp_parses_rfc3339_to_epoch_seconds():
    assert to_timestamp("1970-01-01T00:00:10Z") == 10
    assert to_timestamp("2024-03-01T12:00:00.123456789+02:00") == int(
        datetime(2024, 3, 1, 10, 0, tzinfo=timezone.utc).timestamp()
    )


def test_timestamp_accepts_datetime_and_epoch_int():
    aware = datetime(2024, 1, 1, 3, 0, tzinfo=timezone(timedelta(hours=3)))
    naive = datetime(2024, 1, 1, 0, 0)

    assert to_timestamp(aware) == 1704067200
    assert to_timestamp(naive) == 1704067200
    assert to_timestamp(1704067200) == 1704067200


@pytest.mark.parametrize("value", ["2024-01-01", "2024-01-01T00:00:00", "01/02/2024 10:00", "2024-13-01T00:00:00Z", True])
def test_timestamp_rejects_non_rfc3339(value):
    with pytest.raises(ConversionError) as excinfo:
        to_timestamp(value)
    assert excinfo.value.timestamp is True


def test_jsonb_keeps_structures_and_parses_strings():
    assert to_jsonb({"a": [1, 2]}) == {"a": [1, 2]}
    assert to_jsonb('[{"provider": "Google"}]') == [{"provider": "Google"}]
    with pytest.raises(ConversionError):
        to_jsonb("{not json")
    with pytest.raises(ConversionError):
        to_jsonb({"a": object()})


def test_float_array_converts_numbers_only():
    assert to_float_array([1, 0.5, -2]) == [1.0, 0.5, -2.0]
    assert to_float_array(()) == []
    with pytest.raises(ConversionError):
        to_float_array([1, "2"])
    with pytest.raises(ConversionError):
        to_float_array({"image": [0.1]})
