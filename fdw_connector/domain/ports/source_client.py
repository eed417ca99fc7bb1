from __future__ import annotations

from typing import Any, Protocol

from fdw_connector.domain.models import SourcePage


class SourceClientProtocol(Protocol):
    """
    Назначение/ответственность:
        Порт постраничного чтения записей из внешнего источника.
    Взаимодействия:
        Используется PagedCursor; реализации скрывают транспорт, аутентификацию и ретраи.
    Ограничения:
        Синхронное выполнение, одна страница за вызов.
    """

    def fetch_page(self, collection: str, limit: int, token: Any | None) -> SourcePage:
        """
        Контракт (вход/выход):
            - Вход: коллекция, максимум записей, continuation token (None = начало).
            - Выход: SourcePage с записями и следующим токеном (None = конец).
        Ошибки/исключения:
            ClientError при сбое транспорта или неожиданном ответе.
        """
        ...

    def close(self) -> None:
        """Освобождает соединения клиента. Повторный вызов безопасен."""
        ...
