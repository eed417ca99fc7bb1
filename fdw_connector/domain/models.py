from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterator, Sequence


class SemanticType(str, Enum):
    """
    Назначение:
        Закрытый набор семантических типов ячеек.
        Значение enum совпадает с именем типа на стороне движка.
    """

    INT64 = "bigint"
    FLOAT64 = "double precision"
    TEXT = "text"
    BOOL = "boolean"
    TIMESTAMP = "timestamp"
    JSONB = "jsonb"
    FLOAT_ARRAY = "real[]"

    @property
    def host_type(self) -> str:
        return self.value

    @classmethod
    def parse(cls, name: str) -> "SemanticType":
        """
        Назначение:
            Разбор имени типа: принимает имя enum (INT64) или тип движка (bigint).
        Ошибки:
            ValueError для неизвестного имени.
        """
        raw = (name or "").strip()
        key = raw.upper().replace("-", "_")
        if key in cls.__members__:
            return cls.__members__[key]
        lowered = raw.lower()
        for member in cls:
            if member.value == lowered:
                return member
        alias = _TYPE_ALIASES.get(lowered)
        if alias is not None:
            return alias
        raise ValueError(f"Unsupported semantic type: {name}")


_TYPE_ALIASES = {
    "int8": SemanticType.INT64,
    "float8": SemanticType.FLOAT64,
    "bool": SemanticType.BOOL,
    "float4[]": SemanticType.FLOAT_ARRAY,
    "timestamptz": SemanticType.TIMESTAMP,
}


class OptionScope(str, Enum):
    SERVER = "server"
    TABLE = "table"


@dataclass(frozen=True)
class Column:
    """
    Назначение:
        Колонка, объявленная пользователем для foreign table.
    """

    name: str
    semantic_type: SemanticType

    @classmethod
    def parse(cls, spec: str) -> "Column":
        """
        Разбирает строку вида "name:type" (например, "id:bigint").
        """
        name, sep, type_name = spec.partition(":")
        if not sep or not name.strip():
            raise ValueError(f"Column must be declared as name:type, got: {spec}")
        return cls(name=name.strip(), semantic_type=SemanticType.parse(type_name))


@dataclass(frozen=True)
class Cell:
    """
    Назначение:
        Типизированное скалярное значение строки (null представлен отсутствием Cell).
    """

    semantic_type: SemanticType
    value: Any


@dataclass(frozen=True)
class ScanHints:
    """
    Назначение:
        Подсказки движка для сканирования (фильтры, сортировка, limit).
    Контракт:
        - Носят рекомендательный характер, коннектор может их игнорировать.
    """

    quals: tuple[Any, ...] = ()
    sorts: tuple[Any, ...] = ()
    limit: int | None = None


@dataclass(frozen=True)
class SourcePage:
    """
    Назначение:
        Результат одного запроса страницы к источнику.

    Контракт:
        - records: записи в порядке источника (может быть пустым).
        - next_token: None означает, что страниц больше нет.
    """

    records: list[Any]
    next_token: Any | None = None


@dataclass
class Row:
    """
    Назначение/ответственность:
        Упорядоченный набор (имя колонки, Cell | None) строго по списку колонок.
    Инварианты/гарантии:
        - Слот есть для каждой запрошенной колонки, null хранится явно (None).
        - Ячейку для незапрошенной колонки записать нельзя (KeyError).
    """

    names: tuple[str, ...]
    cells: list[Cell | None] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not self.cells:
            self.cells = [None] * len(self.names)
        if len(self.cells) != len(self.names):
            raise ValueError("cells must match column names")
        if len(set(self.names)) != len(self.names):
            raise ValueError(f"duplicate column names: {list(self.names)}")
        self._index = {name: idx for idx, name in enumerate(self.names)}

    @classmethod
    def for_columns(cls, columns: Sequence[Column]) -> "Row":
        return cls(names=tuple(col.name for col in columns))

    def set(self, name: str, cell: Cell | None) -> None:
        self.cells[self._index[name]] = cell

    def get(self, name: str) -> Cell | None:
        return self.cells[self._index[name]]

    def value(self, name: str) -> Any:
        cell = self.get(name)
        return None if cell is None else cell.value

    def values(self) -> list[Any]:
        return [None if cell is None else cell.value for cell in self.cells]

    def as_dict(self) -> dict[str, Any]:
        return dict(zip(self.names, self.values()))

    def __iter__(self) -> Iterator[tuple[str, Cell | None]]:
        return iter(zip(self.names, self.cells))

    def __len__(self) -> int:
        return len(self.names)
