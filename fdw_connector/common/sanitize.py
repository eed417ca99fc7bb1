from __future__ import annotations

from typing import Any, Mapping

SENSITIVE_KEYS: tuple[str, ...] = (
    "api_key",
    "password",
    "token",
    "authorization",
    "secret",
    "aws_secret_access_key",
    "aws_session_token",
)


def maskSecret(value: str | None) -> str | None:
    """
    Назначение:
        Маскирует секреты для безопасного вывода в stdout/logs.

    Выходные данные:
        str | None
            Если value задано - '***', иначе None.
    """
    if value is None:
        return None
    return "***"


def isSensitiveKey(key: str, sensitive_keys: tuple[str, ...] = SENSITIVE_KEYS) -> bool:
    lowered = key.lower()
    return any(marker in lowered for marker in sensitive_keys)


def truncateText(value: str | None, limit: int = 200) -> str | None:
    """
    Назначение:
        Ограничивает длину текста, чтобы не раздувать логи и диагностику.

    Выходные данные:
        str | None
            Строка не длиннее limit символов; None, если вход None.
    """
    if value is None:
        return None
    if len(value) <= limit:
        return value
    suffix = "..." if limit > 3 else ""
    head = limit - len(suffix)
    return value[:head] + suffix


def snippetOf(value: Any, limit: int = 80) -> str:
    """Короткое текстовое представление значения для сообщений об ошибках."""
    return truncateText(repr(value), limit) or ""


def maskSecretsInObject(obj: object, sensitive_keys: tuple[str, ...] = SENSITIVE_KEYS) -> object:
    """
    Назначение:
        Рекурсивно маскирует значения по чувствительным ключам в dict/list.
    """
    if isinstance(obj, Mapping):
        masked: dict[str, object] = {}
        for k, v in obj.items():
            if isinstance(k, str) and isSensitiveKey(k, sensitive_keys):
                masked[k] = maskSecret(str(v) if v is not None else None)
            else:
                masked[k] = maskSecretsInObject(v, sensitive_keys)
        return masked
    if isinstance(obj, list):
        return [maskSecretsInObject(item, sensitive_keys) for item in obj]
    return obj
