from __future__ import annotations

from typing import Iterable, Mapping

from fdw_connector.domain.error_codes import ErrorCode
from fdw_connector.domain.models import Column, SemanticType
from fdw_connector.errors import ColumnViolation, SchemaError


class ColumnContract:
    """
    Назначение/ответственность:
        Проверка объявленных колонок по декларативной таблице allowed-schema
        (имя колонки -> требуемый семантический тип).
    Инварианты/гарантии:
        - Проверка чистая и синхронная, сеть не трогает.
        - Собирает все нарушения за один проход, порядок = порядок колонок.
    """

    def __init__(self, allowed: Mapping[str, SemanticType]):
        if not allowed:
            raise ValueError("allowed schema must not be empty")
        self.allowed = dict(allowed)

    def check(self, columns: Iterable[Column]) -> list[ColumnViolation]:
        """
        Контракт:
            Вход: список колонок.
            Выход: список нарушений (пустой, если колонки допустимы).
        """
        violations: list[ColumnViolation] = []
        seen: set[str] = set()
        for column in columns:
            if column.name in seen:
                violations.append(
                    ColumnViolation(code=ErrorCode.DUPLICATE_COLUMN.value, column=column.name)
                )
                continue
            seen.add(column.name)
            expected = self.allowed.get(column.name)
            if expected is None:
                violations.append(
                    ColumnViolation(code=ErrorCode.UNSUPPORTED_COLUMN.value, column=column.name)
                )
                continue
            if column.semantic_type != expected:
                violations.append(
                    ColumnViolation(
                        code=ErrorCode.WRONG_COLUMN_TYPE.value,
                        column=column.name,
                        expected=expected.host_type,
                        got=column.semantic_type.host_type,
                    )
                )
        return violations

    def validate(self, columns: Iterable[Column]) -> None:
        """
        Контракт:
            - Ничего не возвращает, если все колонки допустимы.
            - Иначе SchemaError со всеми нарушениями.
        """
        violations = self.check(columns)
        if violations:
            error = SchemaError(violations)
            error.details["allowed"] = self.allowed_hint()
            raise error

    def describe(self) -> list[tuple[str, str]]:
        return [(name, semantic_type.host_type) for name, semantic_type in self.allowed.items()]

    def allowed_hint(self) -> str:
        return ", ".join(f"{name} {host_type}" for name, host_type in self.describe())
