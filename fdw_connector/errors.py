from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict


@dataclass
class AppError(Exception):
    """
    Унифицированная ошибка коннектора.
    """

    category: str
    code: str
    message: str
    retryable: bool = False
    details: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        # ErrorCode (str, Enum) храним как простую строку.
        self.code = getattr(self.code, "value", self.code)
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "category": self.category,
            "code": self.code,
            "message": self.message,
            "retryable": self.retryable,
            "details": self.details or {},
        }


class ConfigurationError(AppError):
    """
    Назначение:
        Ошибка опций/настроек коннектора. Возникает до любого сетевого вызова.
    """

    def __init__(self, message: str, option: str | None = None, code: str = "OPTION_REQUIRED"):
        super().__init__(
            category="config",
            code=code,
            message=message,
            details={"option": option} if option else {},
        )
        self.option = option


@dataclass(frozen=True)
class ColumnViolation:
    """
    Назначение:
        Одно нарушение контракта колонок.

    Поля:
        code: UNSUPPORTED_COLUMN | WRONG_COLUMN_TYPE | DUPLICATE_COLUMN
        column: имя колонки
        expected: требуемый тип (для WRONG_COLUMN_TYPE)
        got: объявленный тип
    """

    code: str
    column: str
    expected: str | None = None
    got: str | None = None

    def describe(self) -> str:
        if self.code == "UNSUPPORTED_COLUMN":
            return f"column `{self.column}` is not supported"
        if self.code == "DUPLICATE_COLUMN":
            return f"column `{self.column}` is declared more than once"
        return f"column `{self.column}` can only be defined as `{self.expected}`, got `{self.got}`"


class SchemaError(AppError):
    """
    Назначение:
        Объявленные колонки не соответствуют allowed-schema коннектора.
    Контракт:
        - violations содержит все нарушения в порядке списка колонок (минимум одно).
        - code/column берутся из первого нарушения.
    """

    def __init__(self, violations: list[ColumnViolation]):
        if not violations:
            raise ValueError("SchemaError requires at least one violation")
        first = violations[0]
        message = "; ".join(v.describe() for v in violations)
        super().__init__(
            category="schema",
            code=first.code,
            message=message,
            details={
                "column": first.column,
                "violations": [
                    {"code": v.code, "column": v.column, "expected": v.expected, "got": v.got}
                    for v in violations
                ],
            },
        )
        self.violations = list(violations)
        self.column = first.column


class ClientError(AppError):
    """
    Назначение:
        Ошибка обращения к источнику данных (транспорт, HTTP, формат ответа).
    """

    def __init__(
        self,
        message: str,
        code: str = "API_ERROR",
        retryable: bool = False,
        details: dict | None = None,
    ):
        super().__init__(
            category="client",
            code=code,
            message=message,
            retryable=retryable,
            details=details or {},
        )


class MappingError(AppError):
    """
    Назначение:
        Поле записи присутствует, но не приводится к типу колонки.
    Контракт:
        - column и expected обязательны.
        - record_index заполняется, если известен порядковый номер записи.
    """

    def __init__(
        self,
        message: str,
        column: str,
        expected: str,
        value_snippet: str | None = None,
        record_index: int | None = None,
        code: str = "INVALID_FIELD_VALUE",
    ):
        details: dict[str, Any] = {"column": column, "expected": expected}
        if value_snippet is not None:
            details["value"] = value_snippet
        if record_index is not None:
            details["record_index"] = record_index
        super().__init__(category="mapping", code=code, message=message, details=details)
        self.column = column
        self.expected = expected
        self.record_index = record_index


class ScanStateError(AppError):
    """
    Назначение:
        Нарушение протокола сканирования вызывающей стороной
        (next_row до begin или после end).
    """

    def __init__(self, message: str, state: str):
        super().__init__(
            category="state",
            code="SCAN_NOT_ACTIVE",
            message=message,
            details={"state": state},
        )


__all__ = [
    "AppError",
    "ClientError",
    "ColumnViolation",
    "ConfigurationError",
    "MappingError",
    "ScanStateError",
    "SchemaError",
]
