from __future__ import annotations

import logging
import uuid
from enum import Enum
from typing import Any, Iterator, Mapping, Sequence

from fdw_connector.domain.mapping.record_mapper import RecordMapper
from fdw_connector.domain.models import Column, Row, ScanHints
from fdw_connector.domain.ports.connector import ConnectorSpec
from fdw_connector.domain.ports.source_client import SourceClientProtocol
from fdw_connector.domain.scan.paged_cursor import PagedCursor
from fdw_connector.errors import AppError, ClientError, MappingError, ScanStateError
from fdw_connector.infra.logging.setup import getScanLogger, logEvent


class ScanState(str, Enum):
    UNSTARTED = "unstarted"
    ACTIVE = "active"
    ENDED = "ended"


class ScanSession:
    """
    Назначение/ответственность:
        Оркестрация одного сканирования begin -> next_row x N -> end
        поверх ColumnContract, PagedCursor и RecordMapper.

    Инварианты/гарантии:
        - Одна сессия = одно сканирование, состояние ни с кем не делится.
        - begin либо полностью переводит в ACTIVE, либо оставляет UNSTARTED.
        - Конец потока (None) не меняет состояние, повторный next_row безопасен.
        - ClientError/MappingError прерывают сканирование: ресурсы освобождаются,
          сессия переходит в ENDED, уже выданные строки остаются в силе.
        - next_row вне ACTIVE -> ScanStateError.
    """

    def __init__(
        self,
        spec: ConnectorSpec,
        logger: logging.Logger | None = None,
        scan_id: str | None = None,
    ):
        self.spec = spec
        self.logger = logger or getScanLogger()
        self.scan_id = scan_id or str(uuid.uuid4())
        self.state = ScanState.UNSTARTED

        self.columns: tuple[Column, ...] = ()
        self.hints: ScanHints | None = None
        self._client: SourceClientProtocol | None = None
        self._cursor: PagedCursor | None = None
        self._mapper: RecordMapper | None = None
        self.rows_emitted = 0
        self._fetches_at_release = 0

    @property
    def cursor(self) -> PagedCursor | None:
        return self._cursor

    def begin(
        self,
        columns: Sequence[Column],
        options: Mapping[str, str],
        hints: ScanHints | None = None,
    ) -> None:
        """
        Контракт:
            UNSTARTED -> ACTIVE.
        Алгоритм:
            - Проверка колонок (SchemaError, до I/O).
            - Коллекция и клиент из опций (ConfigurationError, до I/O).
            - Курсор без сетевых вызовов.
            - При любой ошибке уже созданный клиент закрывается, состояние не меняется.
        """
        if self.state is not ScanState.UNSTARTED:
            raise ScanStateError(f"begin is not allowed in state {self.state.value}", state=self.state.value)

        columns = tuple(columns)
        self.spec.build_contract().validate(columns)
        collection = self.spec.resolve_collection(options)
        mapper = self.spec.build_mapper()
        client = self.spec.build_client(options)
        try:
            cursor = PagedCursor(
                collection=collection,
                client=client,
                batch_size=self.spec.batch_size,
                max_pages=self.spec.max_pages,
                logger=self.logger,
                run_id=self.scan_id,
            )
        except Exception:
            client.close()
            raise

        self.columns = columns
        self.hints = hints
        self._client = client
        self._cursor = cursor
        self._mapper = mapper
        self.state = ScanState.ACTIVE
        logEvent(
            self.logger,
            logging.INFO,
            self.scan_id,
            "scan",
            f"scan started connector={self.spec.connector_id} collection={collection} "
            f"columns={[c.name for c in columns]} batch_size={self.spec.batch_size}",
        )

    def next_row(self) -> Row | None:
        if self.state is not ScanState.ACTIVE or self._cursor is None or self._mapper is None:
            raise ScanStateError(f"next_row is not allowed in state {self.state.value}", state=self.state.value)

        record_index = self._cursor.position
        try:
            record = self._cursor.next()
            if record is None:
                return None
            row = self._mapper.to_row(record, self.columns, record_index=record_index)
        except (ClientError, MappingError) as exc:
            self._abort(exc, record_index)
            raise
        except Exception as exc:
            # Непредвиденная ошибка тоже завершает сканирование и освобождает клиента
            logEvent(
                self.logger,
                logging.ERROR,
                self.scan_id,
                "scan",
                f"scan aborted record_index={record_index} error={type(exc).__name__}: {exc}",
            )
            self._release()
            self.state = ScanState.ENDED
            raise

        self.rows_emitted += 1
        return row

    def rows(self) -> Iterator[Row]:
        while True:
            row = self.next_row()
            if row is None:
                return
            yield row

    def end(self) -> None:
        """ACTIVE|UNSTARTED -> ENDED. Идемпотентен."""
        if self.state is ScanState.ENDED:
            return
        was_active = self.state is ScanState.ACTIVE
        self._release()
        self.state = ScanState.ENDED
        if was_active:
            logEvent(self.logger, logging.INFO, self.scan_id, "scan", f"scan ended {self._stats_line()}")

    def stats(self) -> dict[str, Any]:
        cursor = self._cursor
        return {
            "state": self.state.value,
            "rows": self.rows_emitted,
            "fetches": cursor.fetch_count if cursor is not None else self._fetches_at_release,
            "exhausted": cursor.exhausted if cursor is not None else self.state is ScanState.ENDED,
        }

    def __enter__(self) -> "ScanSession":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.end()

    def _abort(self, exc: AppError, record_index: int) -> None:
        exc.details.setdefault("record_index", record_index)
        if self._cursor is not None:
            exc.details.setdefault("collection", self._cursor.collection)
        logEvent(
            self.logger,
            logging.ERROR,
            self.scan_id,
            "scan",
            f"scan aborted code={exc.code} record_index={record_index} error={exc.message}",
        )
        self._release()
        self.state = ScanState.ENDED

    def _release(self) -> None:
        if self._cursor is not None:
            self._fetches_at_release = self._cursor.fetch_count
            self._cursor.close()
            self._cursor = None
        if self._client is not None:
            client, self._client = self._client, None
            client.close()
        self._mapper = None

    def _stats_line(self) -> str:
        stats = self.stats()
        return f"rows={stats['rows']} fetches={stats['fetches']}"
