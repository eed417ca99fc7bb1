from __future__ import annotations

import json
from datetime import datetime
from typing import Any, Callable

from fdw_connector.common.time import parseRfc3339, toEpochSeconds
from fdw_connector.domain.models import SemanticType

INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1

_TRUE_VALUES = ("1", "true", "yes", "y")
_FALSE_VALUES = ("0", "false", "no", "n")


class ConversionError(ValueError):
    """
    Назначение:
        Значение присутствует, но не приводится к семантическому типу.
        RecordMapper превращает её в MappingError с контекстом колонки/записи.
    """

    def __init__(self, message: str, timestamp: bool = False):
        super().__init__(message)
        self.timestamp = timestamp


def to_int64(value: Any) -> int:
    if isinstance(value, bool):
        raise ConversionError("bool is not valid for bigint")
    if isinstance(value, int):
        result = value
    elif isinstance(value, float):
        if not value.is_integer():
            raise ConversionError(f"non-integral number {value!r} for bigint")
        result = int(value)
    elif isinstance(value, str):
        try:
            result = int(value.strip())
        except ValueError as exc:
            raise ConversionError(f"cannot parse {value!r} as bigint") from exc
    else:
        raise ConversionError(f"unexpected {type(value).__name__} for bigint")
    if result < INT64_MIN or result > INT64_MAX:
        raise ConversionError(f"{result} is out of range for bigint")
    return result


def to_float64(value: Any) -> float:
    if isinstance(value, bool):
        raise ConversionError("bool is not valid for double precision")
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError as exc:
            raise ConversionError(f"cannot parse {value!r} as double precision") from exc
    raise ConversionError(f"unexpected {type(value).__name__} for double precision")


def to_text(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    raise ConversionError(f"unexpected {type(value).__name__} for text")


def to_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        if value in (0, 1):
            return value == 1
        raise ConversionError(f"integer {value} is not a boolean")
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_VALUES:
            return True
        if lowered in _FALSE_VALUES:
            return False
        raise ConversionError(f"cannot parse {value!r} as boolean")
    raise ConversionError(f"unexpected {type(value).__name__} for boolean")


def to_timestamp(value: Any) -> int:
    """
    Назначение:
        Приведение к секундам с начала эпохи.
    Контракт:
        - str: только RFC 3339 (иначе ConversionError с timestamp=True).
        - datetime: naive считается UTC.
        - int: уже секунды эпохи.
    """
    if isinstance(value, datetime):
        return toEpochSeconds(value)
    if isinstance(value, str):
        try:
            return toEpochSeconds(parseRfc3339(value))
        except ValueError as exc:
            raise ConversionError(str(exc), timestamp=True) from exc
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    raise ConversionError(f"unexpected {type(value).__name__} for timestamp", timestamp=True)


def to_jsonb(value: Any) -> Any:
    if isinstance(value, str):
        try:
            return json.loads(value)
        except ValueError as exc:
            raise ConversionError(f"invalid JSON document: {exc}") from exc
    try:
        json.dumps(value, allow_nan=False)
    except (TypeError, ValueError) as exc:
        raise ConversionError(f"value is not JSON serializable: {exc}") from exc
    return value


def to_float_array(value: Any) -> list[float]:
    if not isinstance(value, (list, tuple)):
        raise ConversionError(f"unexpected {type(value).__name__} for real[]")
    result: list[float] = []
    for idx, item in enumerate(value):
        if isinstance(item, bool) or not isinstance(item, (int, float)):
            raise ConversionError(f"element {idx} ({item!r}) is not a number")
        result.append(float(item))
    return result


CONVERTERS: dict[SemanticType, Callable[[Any], Any]] = {
    SemanticType.INT64: to_int64,
    SemanticType.FLOAT64: to_float64,
    SemanticType.TEXT: to_text,
    SemanticType.BOOL: to_bool,
    SemanticType.TIMESTAMP: to_timestamp,
    SemanticType.JSONB: to_jsonb,
    SemanticType.FLOAT_ARRAY: to_float_array,
}


def convert(value: Any, semantic_type: SemanticType) -> Any:
    return CONVERTERS[semantic_type](value)
