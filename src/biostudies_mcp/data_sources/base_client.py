"""
Base client for upstream REST APIs.

Provides: lazy aiohttp session management, a fixed per-request timeout,
bearer-token auth, structured logging, and uniform ApiResult outcomes.
Every failure (HTTP, timeout, transport) is returned, never raised, and no
request is retried.
"""

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from typing import Any

import aiohttp
from pydantic import BaseModel

from biostudies_mcp import __version__
from biostudies_mcp.config import Settings
from biostudies_mcp.constants import (
    BIOSTUDIES_BASE_URL,
    DEFAULT_TIMEOUT,
    TIMEOUT_STATUS,
    TRANSPORT_ERROR_STATUS,
)
from biostudies_mcp.models.model_results import ApiFailure, ApiResult, ApiSuccess

logger = logging.getLogger("biostudies_mcp.data_sources")


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


class ClientConfig(BaseModel):
    """Connection settings for a client instance."""

    base_url: str = BIOSTUDIES_BASE_URL
    timeout_seconds: float = DEFAULT_TIMEOUT
    user_agent: str = f"biostudies-mcp/{__version__}"

    @classmethod
    def from_settings(cls, settings: Settings) -> "ClientConfig":
        return cls(
            base_url=settings.biostudies_base_url.rstrip("/"),
            timeout_seconds=settings.request_timeout_seconds,
        )


# ---------------------------------------------------------------------------
# Auth session
# ---------------------------------------------------------------------------


class AuthSession(BaseModel):
    """
    Bearer token held by one client instance.

    Written only by authenticate()/set_token(), read when each request is
    built. ``expires`` is stored as returned by the server and never
    enforced; callers that care about token lifetime track it themselves.
    Concurrent writers race: the last one wins.
    """

    token: str | None = None
    expires: str | None = None
    user: str | None = None

    @property
    def is_authenticated(self) -> bool:
        return bool(self.token)

    def set_token(
        self, token: str, expires: str | None = None, user: str | None = None
    ) -> None:
        self.token = token
        self.expires = expires
        self.user = user

    def clear(self) -> None:
        self.token = None
        self.expires = None
        self.user = None


# ---------------------------------------------------------------------------
# Request context (for structured logging)
# ---------------------------------------------------------------------------


class RequestContext(BaseModel):
    """Metadata attached to every outgoing request for logging."""

    source: str  # e.g. "biostudies"
    method: str  # e.g. "get_study_details"
    params: dict[str, Any] = {}


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class DataSourceError(Exception):
    """Raised for client misuse; upstream failures are returned as ApiFailure."""

    def __init__(self, source: str, message: str, status_code: int | None = None):
        self.source = source
        self.status_code = status_code
        super().__init__(f"[{source}] {message}")


# ---------------------------------------------------------------------------
# Base client
# ---------------------------------------------------------------------------


class BaseClient(ABC):
    """
    Abstract base for REST clients.

    Subclasses implement `_source_name` and their own typed methods that
    call `_rest_get()` / `_rest_post()`.
    """

    SUPPORTED_METHODS = frozenset({"GET", "POST"})

    def __init__(self, config: ClientConfig | None = None):
        self.config = config or ClientConfig()
        self.auth = AuthSession()
        self._session: aiohttp.ClientSession | None = None

    @property
    @abstractmethod
    def _source_name(self) -> str:
        """Identifier for this data source, e.g. 'biostudies'."""
        ...

    # -- Session management --------------------------------------------------

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(total=self.config.timeout_seconds)
            self._session = aiohttp.ClientSession(timeout=timeout)
        return self._session

    async def close(self) -> None:
        if self._session and not self._session.closed:
            await self._session.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        await self.close()

    def _headers(self) -> dict[str, str]:
        headers = {
            "Accept": "application/json",
            "Content-Type": "application/json",
            "User-Agent": self.config.user_agent,
        }
        if self.auth.token:
            headers["Authorization"] = f"Bearer {self.auth.token}"
        return headers

    # -- Core request --------------------------------------------------------

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: list[tuple[str, str]] | None = None,
        json_body: dict[str, Any] | None = None,
        context: RequestContext | None = None,
    ) -> ApiResult:
        """
        Make a single HTTP request and wrap the outcome.

        Parameters
        ----------
        method : str
            HTTP method - "GET" or "POST".
        path : str
            Endpoint path relative to ``config.base_url``, e.g. "/studies".
        params : list of (key, value), optional
            Query string pairs; repeated keys are preserved.
        json_body : dict, optional
            JSON body (for POST).
        context : RequestContext, optional
            Logging context.

        Returns
        -------
        ApiSuccess
            For 2xx. JSON bodies are parsed, anything else is raw text.
        ApiFailure
            Non-2xx with the upstream message, 408 on timeout, 0 when no
            response was received.
        """
        method = method.upper()
        if method not in self.SUPPORTED_METHODS:
            raise DataSourceError(self._source_name, f"Unsupported HTTP method {method}")

        ctx = context or RequestContext(source=self._source_name, method="unknown")
        url = f"{self.config.base_url}{path}"
        start = time.monotonic()

        logger.info("Request [%s.%s] %s url=%s", ctx.source, ctx.method, method, url)

        try:
            session = await self._get_session()
            if method == "GET":
                resp = await session.get(url, params=params, headers=self._headers())
            else:
                resp = await session.post(
                    url, json=json_body, params=params, headers=self._headers()
                )
            try:
                data = await self._read_body(resp)
            finally:
                resp.release()

        except asyncio.TimeoutError:
            elapsed = time.monotonic() - start
            logger.warning(
                "Timeout [%s.%s] elapsed=%.1fs", ctx.source, ctx.method, elapsed
            )
            return ApiFailure(error="Request timeout", status=TIMEOUT_STATUS)

        except aiohttp.ClientError as e:
            logger.warning("Connection error [%s.%s]: %s", ctx.source, ctx.method, e)
            return ApiFailure(
                error=str(e) or type(e).__name__, status=TRANSPORT_ERROR_STATUS
            )

        elapsed = time.monotonic() - start

        if not 200 <= resp.status < 300:
            message = self._error_message(resp.status, resp.reason, data)
            logger.warning(
                "HTTP error [%s.%s] status=%d elapsed=%.2fs: %s",
                ctx.source,
                ctx.method,
                resp.status,
                elapsed,
                message,
            )
            return ApiFailure(error=message, status=resp.status)

        logger.info(
            "Success [%s.%s] status=%d elapsed=%.2fs",
            ctx.source,
            ctx.method,
            resp.status,
            elapsed,
        )
        return ApiSuccess(data=data, status=resp.status)

    @staticmethod
    async def _read_body(resp: aiohttp.ClientResponse) -> Any:
        content_type = resp.headers.get("Content-Type", "")
        if "application/json" in content_type:
            try:
                return await resp.json(content_type=None)
            except ValueError:
                return None
        if 200 <= resp.status < 300:
            # Raw passthrough; invalid bytes are replaced.
            return await resp.text(errors="replace")
        return None

    @staticmethod
    def _error_message(status: int, reason: str | None, data: Any) -> str:
        """Human-readable message from an error body, else from the status line."""
        if isinstance(data, dict):
            message = data.get("message") or data.get("error")
            if message:
                return str(message)
        if data:
            return f"HTTP {status}"
        return f"HTTP {status}: {reason}" if reason else f"HTTP {status}"

    # -- Convenience methods for subclasses ----------------------------------

    async def _rest_get(
        self,
        path: str,
        params: list[tuple[str, str]] | None = None,
        *,
        context: RequestContext | None = None,
    ) -> ApiResult:
        return await self._request("GET", path, params=params, context=context)

    async def _rest_post(
        self,
        path: str,
        json_body: dict[str, Any],
        *,
        context: RequestContext | None = None,
    ) -> ApiResult:
        return await self._request("POST", path, json_body=json_body, context=context)
