from __future__ import annotations

from typing import Iterable, Mapping

from fdw_connector.domain.error_codes import ErrorCode
from fdw_connector.errors import ConfigurationError


def require_option(name: str, options: Mapping[str, str]) -> str:
    """
    Назначение:
        Возвращает значение обязательной опции.
    Ошибки:
        ConfigurationError(OPTION_REQUIRED), если опции нет или она пустая.
    """
    value = options.get(name)
    if value is None or str(value).strip() == "":
        raise ConfigurationError(f"required option `{name}` is not specified", option=name)
    return str(value)


def optional_option(name: str, options: Mapping[str, str], default: str | None = None) -> str | None:
    value = options.get(name)
    if value is None or str(value).strip() == "":
        return default
    return str(value)


def parse_option_list(options: Iterable[str | None]) -> dict[str, str]:
    """
    Назначение:
        Разбор опций в форме движка: список строк "key=value", None пропускаются.
    Ошибки:
        ConfigurationError(INVALID_OPTION) для строки без '='.
    """
    parsed: dict[str, str] = {}
    for raw in options:
        if raw is None:
            continue
        key, sep, value = raw.partition("=")
        key = key.strip()
        if not sep or not key:
            raise ConfigurationError(
                f"option must be in key=value form, got `{raw}`",
                option=key or raw,
                code=ErrorCode.INVALID_OPTION,
            )
        parsed[key] = value.strip()
    return parsed
