from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterator, Mapping, Sequence

from fdw_connector.domain.contract.column_contract import ColumnContract
from fdw_connector.domain.mapping.record_mapper import RecordMapper
from fdw_connector.domain.models import Column, OptionScope, Row, ScanHints, SemanticType
from fdw_connector.domain.options import parse_option_list, require_option
from fdw_connector.domain.ports.source_client import SourceClientProtocol
from fdw_connector.domain.scan.session import ScanSession, ScanState
from fdw_connector.errors import ScanStateError


@dataclass(frozen=True)
class ClientSettings:
    """
    Назначение:
        Параметры транспорта, общие для всех коннекторов (таймаут, ретраи, TLS).
    """

    timeout_seconds: float = 20.0
    retries: int = 3
    retry_backoff_seconds: float = 0.5
    tls_skip_verify: bool = False


class ForeignConnector:
    """
    Назначение/ответственность:
        Базовая реализация протокола сканирования foreign table для одного источника.
        Подкласс декларирует allowed_schema, required_options, размер батча,
        маппер и фабрику клиента; begin/next/end работают через ScanSession.

    Взаимодействия:
        - ScanSession получает коннектор как ConnectorSpec.
        - На каждое begin создаётся новая сессия; прошлая завершается.

    Ограничения:
        Синхронный pull-режим, один активный scan на экземпляр.
    """

    connector_id: str = "unknown"
    allowed_schema: Mapping[str, SemanticType] = {}
    required_options: Mapping[OptionScope, tuple[str, ...]] = {}
    default_batch_size: int = 1000

    def __init__(
        self,
        server_options: Mapping[str, str],
        *,
        batch_size: int | None = None,
        max_pages: int | None = None,
        client_settings: ClientSettings | None = None,
        logger: logging.Logger | None = None,
    ):
        self.server_options = dict(server_options or {})
        for name in self.required_options.get(OptionScope.SERVER, ()):
            require_option(name, self.server_options)
        self.batch_size = batch_size or self.default_batch_size
        self.max_pages = max_pages
        self.client_settings = client_settings or ClientSettings()
        self.logger = logger
        self._session: ScanSession | None = None

    # --- ConnectorSpec ---

    def build_contract(self) -> ColumnContract:
        return ColumnContract(self.allowed_schema)

    def build_mapper(self) -> RecordMapper:
        return RecordMapper()

    def resolve_collection(self, options: Mapping[str, str]) -> str:
        raise NotImplementedError

    def build_client(self, options: Mapping[str, str]) -> SourceClientProtocol:
        raise NotImplementedError

    # --- протокол сканирования ---

    @property
    def session(self) -> ScanSession | None:
        return self._session

    def begin(
        self,
        columns: Sequence[Column],
        hints: ScanHints | None,
        options: Mapping[str, str],
        scan_id: str | None = None,
    ) -> None:
        """
        Контракт:
            - options - опции уровня таблицы, поверх опций сервера.
            - Ошибки конфигурации/схемы пробрасываются до любого I/O.
        """
        if self._session is not None:
            self._session.end()
            self._session = None
        merged = {**self.server_options, **dict(options or {})}
        session = ScanSession(self, logger=self.logger, scan_id=scan_id)
        session.begin(columns, merged, hints)
        self._session = session

    def next(self) -> Row | None:
        if self._session is None:
            raise ScanStateError("next is not allowed before begin", state=ScanState.UNSTARTED.value)
        return self._session.next_row()

    def rows(self) -> Iterator[Row]:
        while True:
            row = self.next()
            if row is None:
                return
            yield row

    def end(self) -> None:
        if self._session is not None:
            self._session.end()

    @classmethod
    def validate_options(cls, options: Sequence[str | None], scope: OptionScope) -> None:
        """
        Назначение:
            Проверка обязательных опций для scope (сервер/таблица) без обращения к сети.
        Контракт:
            - options: строки "key=value" (None пропускаются).
            - ConfigurationError с именем первой отсутствующей опции.
        """
        parsed = parse_option_list(options)
        for name in cls.required_options.get(scope, ()):
            require_option(name, parsed)
        cls.check_option_values(parsed, scope)

    @classmethod
    def check_option_values(cls, options: Mapping[str, str], scope: OptionScope) -> None:
        """Дополнительная проверка значений опций; по умолчанию ничего не делает."""
        return None
