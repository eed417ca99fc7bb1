from __future__ import annotations

import logging
from collections import deque
from typing import Any, Iterator

from fdw_connector.domain.error_codes import ErrorCode
from fdw_connector.domain.ports.source_client import SourceClientProtocol
from fdw_connector.errors import ClientError
from fdw_connector.infra.logging.setup import logEvent


class PagedCursor:
    """
    Назначение/ответственность:
        Pull-итератор по удалённому источнику с батчевой подгрузкой.
        Владеет continuation token и буфером текущей страницы.

    Инварианты/гарантии:
        - Конструктор не ходит в сеть.
        - В памяти не больше одной страницы (batch_size записей).
        - После exhausted=True ни один вызов не доходит до клиента.
        - Порядок записей = порядок источника.
        - Ретраев нет: ошибка клиента пробрасывается, состояние не меняется.

    Алгоритм next():
        1. exhausted -> None.
        2. Буфер не пуст -> первая запись.
        3. Прошлая страница была без токена -> exhausted, None (без запроса).
        4. Иначе один fetch_page(collection, batch_size, token):
           пустая страница -> exhausted, None;
           иначе буфер/токен заменяются, отдаётся первая запись.
    """

    def __init__(
        self,
        collection: str,
        client: SourceClientProtocol,
        batch_size: int,
        max_pages: int | None = None,
        logger: logging.Logger | None = None,
        run_id: str = "-",
    ):
        if batch_size < 1:
            raise ValueError("batch_size must be >= 1")
        if max_pages is not None and max_pages < 1:
            raise ValueError("max_pages must be >= 1")
        self.collection = collection
        self.client = client
        self.batch_size = batch_size
        self.max_pages = max_pages
        self.logger = logger
        self.run_id = run_id

        self._buffer: deque[Any] = deque()
        self._token: Any | None = None
        self._last_page = False
        self.exhausted = False
        self.fetch_count = 0
        self.position = 0

    @property
    def token(self) -> Any | None:
        return self._token

    @property
    def buffered(self) -> int:
        return len(self._buffer)

    def next(self) -> Any | None:
        if self.exhausted:
            return None
        if self._buffer:
            return self._pop()
        if self._last_page:
            self.exhausted = True
            return None

        if self.max_pages is not None and self.fetch_count >= self.max_pages:
            raise ClientError(
                "max pages exceeded",
                code=ErrorCode.MAX_PAGES_EXCEEDED,
                details={"collection": self.collection, "max_pages": self.max_pages},
            )

        page = self.client.fetch_page(self.collection, self.batch_size, self._token)
        self.fetch_count += 1
        self._debug(f"fetched page={self.fetch_count} records={len(page.records)} has_next={page.next_token is not None}")

        if not page.records:
            self.exhausted = True
            return None

        self._buffer = deque(page.records)
        self._token = page.next_token
        self._last_page = page.next_token is None
        return self._pop()

    def close(self) -> None:
        """Сбрасывает буфер и токен; дальнейшие next() возвращают None."""
        self._buffer.clear()
        self._token = None
        self.exhausted = True

    def __iter__(self) -> Iterator[Any]:
        while True:
            record = self.next()
            if record is None:
                return
            yield record

    def _pop(self) -> Any:
        self.position += 1
        return self._buffer.popleft()

    def _debug(self, message: str) -> None:
        if self.logger is not None:
            logEvent(self.logger, logging.DEBUG, self.run_id, "cursor", f"collection={self.collection} {message}")
