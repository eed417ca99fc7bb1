from __future__ import annotations

import time
from typing import Any
from urllib.parse import quote

import httpx

from fdw_connector.domain.error_codes import ErrorCode
from fdw_connector.domain.models import SourcePage
from fdw_connector.errors import ClientError


class ApiError(ClientError):
    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        body_snippet: str | None = None,
        retryable: bool = False,
        details: dict | None = None,
        code: str | None = None,
    ):
        """
        Назначение:
            Исключение для ошибок HTTP/API уровня QdrantApiClient.
        Контракт:
            - code: ErrorCode (HTTP_4XX, NETWORK_ERROR, INVALID_JSON и т.п.).
            - status_code/body_snippet используются для диагностики.
        """
        merged = dict(details or {})
        if status_code is not None:
            merged.setdefault("status_code", status_code)
        if body_snippet:
            merged.setdefault("body_snippet", body_snippet)
        super().__init__(
            message,
            code=code or ErrorCode.from_status(status_code),
            retryable=retryable,
            details=merged,
        )
        self.status_code = status_code
        self.body_snippet = body_snippet


class QdrantApiClient:
    def __init__(
        self,
        baseUrl: str,
        apiKey: str,
        timeoutSeconds: float = 20.0,
        tlsSkipVerify: bool = False,
        retries: int = 3,
        retryBackoffSeconds: float = 0.5,
        transport: httpx.BaseTransport | None = None,
    ):
        """
        Назначение:
            Клиент Qdrant REST API (scroll точек коллекции) с простой политикой ретраев.
        Контракт:
            - baseUrl и apiKey обязательны.
            - retries/retryBackoffSeconds управляют повторными попытками на 429/5xx/сетевых ошибках.
        """
        self.baseUrl = baseUrl.rstrip("/")
        self.apiKey = apiKey
        self.retries = retries
        self.retryBackoffSeconds = retryBackoffSeconds
        self.retry_attempts = 0

        self.client = httpx.Client(
            base_url=self.baseUrl,
            timeout=timeoutSeconds,
            verify=not tlsSkipVerify,
            transport=transport,
        )

    def _headers(self) -> dict[str, str]:
        return {
            "accept": "application/json",
            "content-type": "application/json",
            "api-key": self.apiKey,
        }

    def _should_retry(self, resp: httpx.Response) -> bool:
        """Решает, стоит ли повторить запрос (429 или 5xx)."""
        if resp.status_code == 429:
            return True
        if 500 <= resp.status_code <= 599:
            return True
        return False

    def _sleep_backoff(self, attempt: int) -> None:
        """Задержка с экспоненциальным ростом для ретраев."""
        delay = self.retryBackoffSeconds * (2 ** attempt)
        time.sleep(delay)

    def _post_with_retry(self, path: str, body: dict[str, Any]) -> httpx.Response:
        """POST с ретраями по 429/5xx и сетевым ошибкам, иначе ApiError."""
        attempt = 0
        while True:
            try:
                resp = self.client.post(path, json=body, headers=self._headers())
            except (httpx.TimeoutException, httpx.TransportError) as exc:
                if attempt >= self.retries:
                    raise ApiError("Network error", status_code=None, retryable=True, code=ErrorCode.NETWORK_ERROR) from exc
                self.retry_attempts += 1
                self._sleep_backoff(attempt)
                attempt += 1
                continue

            if resp.status_code == 200:
                return resp

            if self._should_retry(resp) and attempt < self.retries:
                self.retry_attempts += 1
                self._sleep_backoff(attempt)
                attempt += 1
                continue

            body_snippet = resp.text[:200] if resp.text else None
            raise ApiError(
                f"HTTP {resp.status_code}",
                status_code=resp.status_code,
                body_snippet=body_snippet,
                retryable=self._should_retry(resp),
            )

    def postJson(self, path: str, body: dict[str, Any]) -> Any:
        """POST JSON с ретраями, парсит ответ или бросает ApiError."""
        resp = self._post_with_retry(path, body)
        try:
            return resp.json()
        except ValueError as exc:
            raise ApiError(
                "Invalid JSON response",
                status_code=resp.status_code,
                retryable=False,
                code=ErrorCode.INVALID_JSON,
            ) from exc

    def scrollPoints(self, collection: str, limit: int, offset: Any | None) -> tuple[list[dict[str, Any]], Any | None]:
        """
        Назначение:
            Одна страница точек коллекции.
        Выходные данные:
            (points, next_page_offset); next_page_offset=None -> страниц больше нет.
        """
        body: dict[str, Any] = {"limit": limit, "with_payload": True, "with_vector": True}
        if offset is not None:
            body["offset"] = offset
        data = self.postJson(f"/collections/{quote(collection, safe='')}/points/scroll", body)

        result = data.get("result") if isinstance(data, dict) else None
        points = result.get("points") if isinstance(result, dict) else None
        if not isinstance(points, list):
            raise ApiError(
                "Unexpected response format: no result.points array",
                code=ErrorCode.INVALID_RESPONSE,
                retryable=False,
            )
        return points, result.get("next_page_offset")

    def fetch_page(self, collection: str, limit: int, token: Any | None) -> SourcePage:
        points, next_offset = self.scrollPoints(collection, limit, token)
        return SourcePage(records=points, next_token=next_offset)

    def close(self) -> None:
        self.client.close()
