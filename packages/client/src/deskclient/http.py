# This project was developed with assistance from AI tools.
"""Async HTTP transport for the Visa Desk REST API.

``ApiClient`` owns one ``httpx.AsyncClient`` and the injected
``SessionContext``. It adds the bearer token, turns non-2xx responses into
``ApiError`` subclasses, retries idempotent reads on 429/5xx with capped
exponential backoff, and makes at most one token refresh per request.
"""

import asyncio
import logging
import random
from collections.abc import Awaitable, Callable
from typing import Any

import httpx

from .config import ClientSettings
from .errors import (
    MALFORMED_MESSAGE,
    ApiError,
    NetworkError,
    error_from_response,
    parse_retry_after,
)
from .session import JsonFileTokenStore, SessionContext

logger = logging.getLogger(__name__)

IDEMPOTENT_METHODS = frozenset({"GET", "HEAD"})
RETRYABLE_STATUSES = frozenset({429, 500, 502, 503, 504})

Sleep = Callable[[float], Awaitable[None]]


def _decode(response: httpx.Response) -> Any:
    """JSON body of a successful response; a non-JSON body is an ``ApiError``."""
    try:
        return response.json()
    except ValueError as exc:
        logger.warning("Undecodable %d response from %s", response.status_code, response.url)
        raise ApiError(response.status_code, None, MALFORMED_MESSAGE) from exc


class ApiClient:
    """Low-level request executor shared by the resource services."""

    def __init__(
        self,
        settings: ClientSettings | None = None,
        session: SessionContext | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        sleep: Sleep = asyncio.sleep,
        jitter: Callable[[], float] | None = None,
    ):
        self.settings = settings or ClientSettings()
        if session is None:
            store = JsonFileTokenStore(self.settings.token_file) if self.settings.token_file else None
            session = SessionContext(store)
        self.session = session
        self._http = httpx.AsyncClient(
            base_url=self.settings.base_url.rstrip("/"),
            timeout=self.settings.timeout,
            transport=transport,
        )
        self._sleep = sleep
        self._jitter = jitter or (lambda: random.uniform(0, self.settings.retry_jitter_ms))

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    # ------------------------------------------------------------------
    # Public verbs
    # ------------------------------------------------------------------

    async def get(self, path: str, **kwargs) -> Any:
        return await self.request("GET", path, **kwargs)

    async def post(self, path: str, **kwargs) -> Any:
        return await self.request("POST", path, **kwargs)

    async def patch(self, path: str, **kwargs) -> Any:
        return await self.request("PATCH", path, **kwargs)

    async def delete(self, path: str, **kwargs) -> Any:
        return await self.request("DELETE", path, **kwargs)

    def retry_delay(self, attempt: int, retry_after: float | None = None) -> float:
        """Seconds to wait before retry number ``attempt`` (1-based)."""
        if retry_after is not None:
            delay_ms = retry_after * 1000
        else:
            delay_ms = self.settings.retry_base_delay_ms * 2 ** (attempt - 1) + self._jitter()
        return min(delay_ms, self.settings.retry_max_delay_ms) / 1000

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: Any = None,
        files: Any = None,
        data: dict[str, Any] | None = None,
        auth: bool = True,
    ) -> Any:
        """Send one logical request and return the decoded JSON body.

        A 204 resolves to None.

        Raises:
            AuthenticationError: 401 that one refresh could not cure.
            ApiError: any other non-2xx response after retries are exhausted.
            NetworkError: no response was received.
        """
        method = method.upper()
        retries = 0
        refreshed = False
        while True:
            try:
                response = await self._send(
                    method, path, params=params, json=json, files=files, data=data, auth=auth
                )
            except httpx.TransportError as exc:
                if method in IDEMPOTENT_METHODS and retries < self.settings.max_retries:
                    retries += 1
                    delay = self.retry_delay(retries)
                    logger.warning(
                        "%s %s failed (%s); retry %d in %.2fs", method, path, exc, retries, delay
                    )
                    await self._sleep(delay)
                    continue
                raise NetworkError() from exc

            if response.status_code == 401 and auth:
                if not refreshed and self.session.refresh_token:
                    refreshed = True
                    if await self._refresh():
                        continue
                logger.info("Unrecoverable 401 on %s %s; signing out", method, path)
                self.session.clear()
                raise error_from_response(response)

            if (
                response.status_code in RETRYABLE_STATUSES
                and method in IDEMPOTENT_METHODS
                and retries < self.settings.max_retries
            ):
                retries += 1
                delay = self.retry_delay(retries, parse_retry_after(response))
                logger.warning(
                    "%s %s returned %d; retry %d in %.2fs",
                    method,
                    path,
                    response.status_code,
                    retries,
                    delay,
                )
                await self._sleep(delay)
                continue

            if response.is_error:
                raise error_from_response(response)
            if response.status_code == 204 or not response.content:
                return None
            return _decode(response)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _send(self, method, path, *, params, json, files, data, auth) -> httpx.Response:
        headers = {}
        if auth and self.session.access_token:
            headers["Authorization"] = f"Bearer {self.session.access_token}"
        return await self._http.request(
            method,
            path,
            params=params,
            json=json,
            files=files,
            data=data,
            headers=headers,
        )

    async def _refresh(self) -> bool:
        """Exchange the refresh token once; False means the session is dead."""
        try:
            response = await self._http.post(
                "/auth/refresh", json={"refresh_token": self.session.refresh_token}
            )
        except httpx.TransportError:
            logger.warning("Token refresh failed: no response")
            return False
        if response.status_code != 200:
            logger.info("Token refresh rejected with %d", response.status_code)
            return False
        try:
            access_token = response.json()["access_token"]
        except (ValueError, KeyError, TypeError):
            logger.warning("Token refresh returned an unusable body")
            return False
        self.session.update_access_token(access_token)
        return True

    async def login(self, username: str, password: str, *, remember_me: bool = False) -> dict:
        """Sign in and store the tokens in the session context."""
        body = await self.request(
            "POST",
            "/auth/login",
            json={"username": username, "password": password, "remember_me": remember_me},
            auth=False,
        )
        self.session.sign_in(
            body["access_token"], body["refresh_token"], body.get("user"), remember_me=remember_me
        )
        return body

    def logout(self) -> None:
        self.session.clear()

