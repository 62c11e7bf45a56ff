from __future__ import annotations

import time
from typing import Any

import httpx

from decs_provider.common.sanitize import truncateText
from decs_provider.config import DEFAULT_TIMEOUT_SECONDS, READ_TIMEOUT_SECONDS
from decs_provider.domain.error_codes import ErrorCode
from decs_provider.domain.exceptions import DecodeError, TransportError


class DecsApiClient:
    def __init__(
        self,
        baseUrl: str,
        jwt: str | None = None,
        username: str | None = None,
        password: str | None = None,
        tlsSkipVerify: bool = False,
        caFile: str | None = None,
        retries: int = 0,
        retryBackoffSeconds: float = 0.5,
        transport: httpx.BaseTransport | None = None,
    ):
        """
        Назначение:
            Клиент DECS controller API (транспорт + авторизация + политика ретраев).
        Контракт:
            - baseUrl обязателен; авторизация: bearer JWT, иначе basic (username/password).
            - Таймауты фиксированы: чтение READ_TIMEOUT_SECONDS, остальное DEFAULT_TIMEOUT_SECONDS.
            - retries/retryBackoffSeconds управляют повторами по 429/5xx и сетевым ошибкам;
              по умолчанию повторов нет.
        """
        if not baseUrl:
            raise ValueError("baseUrl is required")

        verify: bool | str = True
        if tlsSkipVerify:
            verify = False
        elif caFile:
            verify = caFile

        auth: tuple[str, str] | None = None
        if not jwt and username and password:
            auth = (username, password)

        self.baseUrl = baseUrl.rstrip("/")
        self.jwt = jwt
        self.retries = retries
        self.retryBackoffSeconds = retryBackoffSeconds
        self.retry_attempts = 0

        self.client = httpx.Client(
            base_url=self.baseUrl,
            timeout=httpx.Timeout(DEFAULT_TIMEOUT_SECONDS, read=READ_TIMEOUT_SECONDS),
            verify=verify,
            auth=auth,
            transport=transport,
        )

    def __enter__(self) -> "DecsApiClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        self.client.close()

    def resetRetryAttempts(self) -> None:
        """Сбрасывает счётчик retry_attempts."""
        self.retry_attempts = 0

    def getRetryAttempts(self) -> int:
        """Возвращает количество выполненных повторных попыток."""
        return self.retry_attempts

    def _headers(self) -> dict[str, str]:
        """Базовые заголовки; при наличии JWT добавляет bearer-авторизацию."""
        headers = {"accept": "application/json"}
        if self.jwt:
            headers["Authorization"] = f"bearer {self.jwt}"
        return headers

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
        if delay > 0:
            time.sleep(delay)

    def _request_with_retry(self, method: str, path: str, params: dict[str, Any]) -> httpx.Response:
        """Запрос с ретраями по 429/5xx и сетевым ошибкам, иначе TransportError."""
        attempt = 0
        while True:
            try:
                resp = self.client.request(method, path, params=params, headers=self._headers())
            except (httpx.TimeoutException, httpx.TransportError) as exc:
                if attempt >= self.retries:
                    raise TransportError(
                        f"Network error: {exc}",
                        status_code=None,
                        code=ErrorCode.NETWORK_ERROR,
                    ) from exc
                self.retry_attempts += 1
                self._sleep_backoff(attempt)
                attempt += 1
                continue

            if 200 <= resp.status_code <= 299:
                return resp

            if self._should_retry(resp) and attempt < self.retries:
                self.retry_attempts += 1
                self._sleep_backoff(attempt)
                attempt += 1
                continue

            body = resp.text or None
            snippet = truncateText(body, 200)
            message = f"HTTP {resp.status_code}"
            if snippet:
                message = f"{message}: {snippet}"
            raise TransportError(message, status_code=resp.status_code, body=body)

    def postJson(self, path: str, params: dict[str, Any] | None = None) -> Any:
        """
        Назначение:
            POST с пустым телом и query-параметрами; парсит JSON-ответ.
        Ошибки:
            TransportError (сеть/HTTP), DecodeError (пустое тело или невалидный JSON).
        """
        params = params or {}
        resp = self._request_with_retry("POST", path, params)
        if not resp.text:
            raise DecodeError("Empty response body", code=ErrorCode.INVALID_JSON)
        try:
            return resp.json()
        except ValueError as exc:
            raise DecodeError(
                f"Invalid JSON response: {truncateText(resp.text, 200)}",
                code=ErrorCode.INVALID_JSON,
            ) from exc
