"""Base HTTP client with retry logic."""

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime
from typing import Any, TypeVar

import httpx
from loguru import logger
from pydantic import BaseModel, ValidationError
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    retry_if_result,
    stop_after_attempt,
)

from ballot_client.errors import ApiError, ErrorKind, map_status
from ballot_client.session import SessionStore

REST_PREFIX = "/rest/v1"

Params = list[tuple[str, str]]
ModelT = TypeVar("ModelT", bound=BaseModel)


@dataclass
class ClientConfig:
    """Connection settings for the hosted store."""

    base_url: str
    api_key: str
    timeout: float = 30.0
    max_retries: int = 3
    retry_delay: float = 1.0


def backoff_delay(attempt: int, base_delay: float) -> float:
    """Delay before retry number `attempt` (0-based)."""
    return base_delay * 2**attempt


def _is_retryable_response(resp: httpx.Response) -> bool:
    """Server errors and rate limiting are retried; other 4xx are final."""
    return resp.status_code >= 500 or resp.status_code == 429


# ========== Filters ==========


def _fmt(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


def eq(column: str, value: Any) -> tuple[str, str]:
    return column, f"eq.{_fmt(value)}"


def gte(column: str, value: Any) -> tuple[str, str]:
    return column, f"gte.{_fmt(value)}"


def order(*columns: str) -> tuple[str, str]:
    """order("position", "-total_votes") -> position.asc,total_votes.desc"""
    parts = [f"{c[1:]}.desc" if c.startswith("-") else f"{c}.asc" for c in columns]
    return "order", ",".join(parts)


# ========== Client ==========


class BaseClient:
    """Base async HTTP client for the store's REST interface."""

    def __init__(
        self,
        config: ClientConfig,
        transport: httpx.AsyncBaseTransport | None = None,
        session: SessionStore | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self._config = config
        self._transport = transport
        self._session = session
        self._sleep = sleep
        self._client: httpx.AsyncClient | None = None
        self._request_count = 0
        logger.debug("{}: base_url={}", self.__class__.__name__, config.base_url)

    async def __aenter__(self):
        self._client = httpx.AsyncClient(
            base_url=self._config.base_url,
            timeout=self._config.timeout,
            transport=self._transport,
        )
        return self

    async def __aexit__(self, *_):
        logger.debug("{}: total requests {}", self.__class__.__name__, self._request_count)
        if self._client:
            await self._client.aclose()
            self._client = None

    @property
    def request_count(self) -> int:
        return self._request_count

    def _headers(self) -> dict[str, str]:
        token = self._session.access_token if self._session else None
        return {
            "apikey": self._config.api_key,
            "Authorization": f"Bearer {token or self._config.api_key}",
            "Content-Type": "application/json",
            "Prefer": "return=representation",
        }

    async def _send(self, method: str, url: str, **kwargs) -> httpx.Response:
        if self._client is None:
            raise RuntimeError(f"{self.__class__.__name__} used outside 'async with'")
        self._request_count += 1
        headers = {**self._headers(), **kwargs.pop("headers", {})}
        return await self._client.request(method, url, headers=headers, **kwargs)

    def _log_retry(self, state: RetryCallState) -> None:
        outcome = state.outcome
        reason = outcome.exception() if outcome.failed else f"HTTP {outcome.result().status_code}"
        logger.warning(
            "Retry {}/{} in {:.2f}s: {}",
            state.attempt_number,
            state.retry_object.stop.max_attempt_number - 1,
            state.next_action.sleep,
            reason,
        )

    async def request_with_retry(
        self,
        method: str,
        url: str,
        max_retries: int | None = None,
        **kwargs,
    ) -> httpx.Response:
        """Send a request, retrying transport errors, 5xx and 429 with exponential backoff.

        Returns the final response (possibly a 5xx/429 after retries are exhausted).
        Raises ApiError(NETWORK_ERROR) if no response was ever received, and
        ApiError(UNKNOWN_ERROR) if a response arrived but could not be read.
        """
        retries = self._config.max_retries if max_retries is None else max_retries
        retrying = AsyncRetrying(
            sleep=self._sleep,
            stop=stop_after_attempt(retries + 1),
            wait=lambda state: backoff_delay(state.attempt_number - 1, self._config.retry_delay),
            retry=retry_if_exception_type(httpx.TransportError) | retry_if_result(_is_retryable_response),
            before_sleep=self._log_retry,
            retry_error_callback=lambda state: state.outcome.result(),
        )
        try:
            return await retrying(self._send, method, url, **kwargs)
        except httpx.TransportError as e:
            logger.error("{} {} failed after {} retries: {}", method, url, retries, e)
            raise ApiError(ErrorKind.NETWORK_ERROR, "Network error. Please check your connection") from e
        except httpx.HTTPError as e:
            logger.error("{} {} unreadable response: {}", method, url, e)
            raise ApiError(ErrorKind.UNKNOWN_ERROR, "Malformed response from server") from e

    async def _request(
        self,
        method: str,
        path: str,
        params: Params | None = None,
        json: Any = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        """Request with retry; raise mapped ApiError on non-2xx."""
        resp = await self.request_with_retry(method, path, params=params, json=json, headers=headers or {})
        if resp.is_success:
            return resp
        try:
            payload = resp.json()
        except ValueError:
            payload = {}
        raise map_status(resp.status_code, payload)

    @staticmethod
    def _rows(resp: httpx.Response) -> list[dict]:
        """Decode a JSON array of rows; anything else is a malformed response."""
        if not resp.content:
            return []
        try:
            data = resp.json()
        except ValueError as e:
            raise ApiError(ErrorKind.UNKNOWN_ERROR, "Malformed response from server", resp.status_code) from e
        if isinstance(data, dict):
            data = [data]
        if not isinstance(data, list) or not all(isinstance(r, dict) for r in data):
            raise ApiError(ErrorKind.UNKNOWN_ERROR, "Malformed response from server", resp.status_code)
        return data

    # ========== Table operations ==========

    async def _select(
        self,
        table: str,
        *filters: tuple[str, str],
        columns: str = "*",
        limit: int | None = None,
    ) -> list[dict]:
        """GET /rest/v1/{table}?select=...&<filters>"""
        params: Params = [("select", columns), *filters]
        if limit is not None:
            params.append(("limit", str(limit)))
        resp = await self._request("GET", f"{REST_PREFIX}/{table}", params=params)
        return self._rows(resp)

    async def _count(self, table: str, *filters: tuple[str, str]) -> int:
        """Exact row count via Content-Range."""
        resp = await self._request(
            "GET",
            f"{REST_PREFIX}/{table}",
            params=[("select", "id"), *filters],
            headers={"Prefer": "count=exact"},
        )
        content_range = resp.headers.get("content-range", "")
        total = content_range.rpartition("/")[2]
        if total.isdigit():
            return int(total)
        return len(self._rows(resp))

    async def _insert(self, table: str, rows: dict | list[dict]) -> list[dict]:
        """POST /rest/v1/{table}"""
        resp = await self._request("POST", f"{REST_PREFIX}/{table}", json=rows)
        return self._rows(resp)

    async def _update(self, table: str, values: dict, *filters: tuple[str, str]) -> list[dict]:
        """PATCH /rest/v1/{table}?<filters>"""
        resp = await self._request("PATCH", f"{REST_PREFIX}/{table}", params=list(filters), json=values)
        return self._rows(resp)

    async def _delete(self, table: str, *filters: tuple[str, str]) -> list[dict]:
        """DELETE /rest/v1/{table}?<filters>"""
        resp = await self._request("DELETE", f"{REST_PREFIX}/{table}", params=list(filters))
        return self._rows(resp)


def parse_rows(model: type[ModelT], rows: list[dict]) -> list[ModelT]:
    """Validate rows against a schema; schema mismatch is a malformed response."""
    try:
        return [model.model_validate(r) for r in rows]
    except ValidationError as e:
        logger.warning("Malformed {} rows: {}", model.__name__, e)
        raise ApiError(ErrorKind.UNKNOWN_ERROR, "Malformed response from server") from e


def optional_row(model: type[ModelT], rows: list[dict]) -> ModelT | None:
    """First parsed row, or None when the store returned no rows."""
    return parse_rows(model, rows[:1])[0] if rows else None


def single_row(model: type[ModelT], rows: list[dict]) -> ModelT:
    """First parsed row of a write that must return one."""
    if not rows:
        raise ApiError(ErrorKind.UNKNOWN_ERROR, "Empty response from server")
    return parse_rows(model, rows[:1])[0]
