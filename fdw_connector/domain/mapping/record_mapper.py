from __future__ import annotations

from typing import Any, Sequence

from fdw_connector.common.sanitize import snippetOf
from fdw_connector.domain.error_codes import ErrorCode
from fdw_connector.domain.mapping.accessors import MISSING, FieldAccessor, FlatRecordAccessor
from fdw_connector.domain.mapping.converters import ConversionError, convert
from fdw_connector.domain.models import Cell, Column, Row
from fdw_connector.errors import MappingError


class RecordMapper:
    """
    Назначение/ответственность:
        Преобразует одну запись источника в Row, ограниченный запрошенными колонками.
    Инварианты/гарантии:
        - В Row ровно по одному слоту на каждую колонку, в порядке списка.
        - Отсутствующее поле или null -> явный None, не ошибка.
        - Поле есть, но не разбирается -> MappingError (строка не собирается).
        - Без состояния и побочных эффектов.
    """

    def __init__(self, accessor: FieldAccessor | None = None):
        self.accessor = accessor or FlatRecordAccessor()

    def to_row(self, record: Any, columns: Sequence[Column], record_index: int | None = None) -> Row:
        row = Row.for_columns(columns)
        for column in columns:
            raw = MISSING
            try:
                raw = self.accessor.get(record, column.name)
                if raw is MISSING or raw is None:
                    continue
                value = convert(raw, column.semantic_type)
            except ConversionError as exc:
                expected = column.semantic_type.host_type
                raise MappingError(
                    f"column `{column.name}` ({expected}): {exc}",
                    column=column.name,
                    expected=expected,
                    value_snippet=None if raw is MISSING else snippetOf(raw),
                    record_index=record_index,
                    code=ErrorCode.INVALID_TIMESTAMP if exc.timestamp else ErrorCode.INVALID_FIELD_VALUE,
                ) from exc
            row.set(column.name, Cell(column.semantic_type, value))
        return row
