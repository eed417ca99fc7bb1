from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, cast

from fdw_connector.common.sanitize import maskSecretsInObject, truncateText
from fdw_connector.domain.error_codes import ErrorCode
from fdw_connector.errors import (
    AppError,
    ClientError,
    ConfigurationError,
    MappingError,
    ScanStateError,
    SchemaError,
)


class ErrorKind(str, Enum):
    """
    Назначение:
        Класс ошибки с точки зрения движка: когда возникла и как распространяется.
    """

    CONFIGURATION = "configuration"
    SCHEMA = "schema"
    CLIENT = "client"
    MAPPING = "mapping"
    STATE = "state"
    INTERNAL = "internal"


# SQLSTATE из класса HV (FDW) PostgreSQL
_SQLSTATE_BY_CODE: dict[str, str] = {
    ErrorCode.OPTION_REQUIRED.value: "HV00J",
    ErrorCode.INVALID_OPTION.value: "HV00D",
    ErrorCode.UNKNOWN_CONNECTOR.value: "HV00D",
    ErrorCode.UNSUPPORTED_COLUMN.value: "HV007",
    ErrorCode.WRONG_COLUMN_TYPE.value: "HV004",
    ErrorCode.DUPLICATE_COLUMN.value: "42701",
    ErrorCode.NETWORK_ERROR.value: "HV00N",
    ErrorCode.UNAUTHORIZED.value: "HV00N",
    ErrorCode.FORBIDDEN.value: "HV00N",
    ErrorCode.INVALID_FIELD_VALUE.value: "HV024",
    ErrorCode.INVALID_TIMESTAMP.value: "22007",
    ErrorCode.SCAN_NOT_ACTIVE.value: "55000",
}

_DEFAULT_SQLSTATE = "HV000"


@dataclass(frozen=True)
class Diagnostic:
    """
    Назначение:
        Отчёт об ошибке для движка запросов (аналог ErrorReport).

    Поля:
        kind: ErrorKind
        sqlstate: код SQLSTATE
        code: код ErrorCode
        message: основное сообщение
        hint: подсказка пользователю (может быть пустой)
        detail: контекст (колонка/опция/индекс записи), секреты замаскированы
    """

    kind: ErrorKind
    sqlstate: str
    code: str
    message: str
    hint: str = ""
    detail: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value,
            "sqlstate": self.sqlstate,
            "code": self.code,
            "message": self.message,
            "hint": self.hint,
            "detail": self.detail,
        }


def classify(error: BaseException) -> ErrorKind:
    if isinstance(error, ConfigurationError):
        return ErrorKind.CONFIGURATION
    if isinstance(error, SchemaError):
        return ErrorKind.SCHEMA
    if isinstance(error, ClientError):
        return ErrorKind.CLIENT
    if isinstance(error, MappingError):
        return ErrorKind.MAPPING
    if isinstance(error, ScanStateError):
        return ErrorKind.STATE
    return ErrorKind.INTERNAL


def _hint_for(kind: ErrorKind, error: AppError) -> str:
    details = error.details or {}
    if kind is ErrorKind.CONFIGURATION and details.get("option"):
        return f"set option `{details['option']}` on the server or foreign table"
    if kind is ErrorKind.SCHEMA and details.get("allowed"):
        return f"allowed columns: {details['allowed']}"
    if kind in (ErrorKind.CLIENT, ErrorKind.MAPPING) and "record_index" in details:
        return f"scan aborted at record {details['record_index']}"
    return ""


def render_diagnostic(error: BaseException) -> Diagnostic:
    """
    Назначение:
        Преобразует исключение любого компонента в Diagnostic.
    Контракт:
        - AppError: code/message/details из ошибки, sqlstate по коду.
        - Прочие исключения: kind=INTERNAL, sqlstate HV000.
    """
    kind = classify(error)
    if not isinstance(error, AppError):
        return Diagnostic(
            kind=kind,
            sqlstate=_DEFAULT_SQLSTATE,
            code="INTERNAL_ERROR",
            message=truncateText(f"{type(error).__name__}: {error}") or "",
        )

    detail = cast(dict[str, Any], maskSecretsInObject(dict(error.details or {})))
    return Diagnostic(
        kind=kind,
        sqlstate=_SQLSTATE_BY_CODE.get(error.code, _DEFAULT_SQLSTATE),
        code=error.code,
        message=truncateText(error.message, 500) or "",
        hint=_hint_for(kind, error),
        detail=detail,
    )
