from __future__ import annotations

from typing import Any, Mapping, Protocol

from fdw_connector.domain.mapping.converters import ConversionError


class _Missing:
    def __repr__(self) -> str:
        return "MISSING"


MISSING: Any = _Missing()


class FieldAccessor(Protocol):
    """
    Назначение/ответственность:
        Извлечение именованного поля из непрозрачной записи источника.
    Контракт:
        - Возвращает значение поля или MISSING, если поля нет.
        - Не бросает исключений на отсутствующих полях.
    """

    def get(self, record: Any, name: str) -> Any: ...


def _lookup(record: Any, key: str) -> Any:
    if isinstance(record, Mapping):
        return record.get(key, MISSING)
    return getattr(record, key, MISSING)


class FlatRecordAccessor:
    """
    Назначение:
        Плоская запись: поле берётся прямым поиском по имени.
        aliases задаёт альтернативные ключи источника для колонки (проверяются по порядку).
    """

    def __init__(self, aliases: Mapping[str, tuple[str, ...]] | None = None):
        self.aliases = dict(aliases or {})

    def get(self, record: Any, name: str) -> Any:
        for key in self.aliases.get(name, (name,)):
            value = _lookup(record, key)
            if value is not MISSING:
                return value
        return MISSING


class AttributeListAccessor:
    """
    Назначение:
        Запись со вложенным списком атрибутов [{name_key: ..., value_key: ...}].

    Алгоритм:
        - Колонки из top_level читаются прямым ключом записи.
        - Остальные ищутся линейно по имени в record[list_key];
          берётся первое совпадение.
        - record[list_key] не список -> ConversionError.
    """

    def __init__(
        self,
        list_key: str = "Attributes",
        name_key: str = "Name",
        value_key: str = "Value",
        top_level: Mapping[str, str] | None = None,
    ):
        self.list_key = list_key
        self.name_key = name_key
        self.value_key = value_key
        self.top_level = dict(top_level or {})

    def get(self, record: Any, name: str) -> Any:
        if name in self.top_level:
            return _lookup(record, self.top_level[name])
        attributes = _lookup(record, self.list_key)
        if attributes is MISSING or attributes is None:
            return MISSING
        if not isinstance(attributes, (list, tuple)):
            raise ConversionError(f"`{self.list_key}` must be a list, got {type(attributes).__name__}")
        for attribute in attributes:
            if _lookup(attribute, self.name_key) == name:
                return _lookup(attribute, self.value_key)
        return MISSING
