"""Shared HTTP client for the storefront API.

Every call goes through a single ``httpx.AsyncClient`` whose cookie jar holds
the session cookies, so credentials are forwarded on each request. A response
with status 401 triggers one refresh of the session followed by exactly one
re-issue of the original request:

    Initial --401--> RetriedOnce --(2xx)--> Resolved
                         |
                         +--(refresh failed / any error)--> Failed

The retry flag lives on the ``PendingRequest`` for that call only, so
concurrent requests never share it.
"""

import asyncio
from dataclasses import dataclass
from typing import Any, Protocol
from urllib.parse import urlsplit

import httpx
import structlog

from .config import SessionConfig
from .exceptions import (
    ApiConnectionError,
    ApiHTTPError,
    ApiTimeoutError,
    SessionExpiredError,
    StorefrontClientError,
)
from .paths import path_matches

logger = structlog.get_logger()


class Navigator(Protocol):
    """Where the user currently is, and how to send them somewhere else."""

    @property
    def current_path(self) -> str: ...

    def redirect(self, url: str) -> None: ...


class InMemoryNavigator:
    """Navigator that tracks the location in memory and records redirects."""

    def __init__(self, current_path: str = "/") -> None:
        self._current_path = current_path
        self.redirects: list[str] = []

    @property
    def current_path(self) -> str:
        return self._current_path

    def navigate(self, path: str) -> None:
        """Move to ``path`` without recording a forced redirect."""
        self._current_path = path

    def redirect(self, url: str) -> None:
        self.redirects.append(url)
        parts = urlsplit(url)
        self._current_path = parts.path + (f"?{parts.query}" if parts.query else "")


@dataclass
class PendingRequest:
    """One outbound call, rebuildable for its single retry."""

    method: str
    path: str
    params: dict[str, Any] | None = None
    json: Any = None
    data: Any = None
    headers: dict[str, str] | None = None
    redirect_on_expiry: bool = True
    retried: bool = False

    def build(self, client: httpx.AsyncClient) -> httpx.Request:
        # Rebuilt on every attempt so a retry carries the rotated cookies.
        return client.build_request(
            self.method,
            self.path,
            params=self.params,
            json=self.json,
            data=self.data,
            headers=self.headers,
        )


class ApiClient:
    """HTTP client for storefront API communication."""

    def __init__(
        self,
        config: SessionConfig,
        navigator: Navigator | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        cookies: dict[str, str] | None = None,
    ) -> None:
        """Initialize the API client.

        Args:
            config: Session configuration
            navigator: Location used for the forced login redirect
            transport: Optional httpx transport (tests, custom proxies)
            cookies: Initial session cookies
        """
        self.config = config
        self.navigator: Navigator = navigator or InMemoryNavigator()
        self._client = httpx.AsyncClient(
            base_url=config.api_url,
            timeout=httpx.Timeout(config.request_timeout, connect=config.connect_timeout),
            cookies=cookies,
            follow_redirects=True,
            transport=transport,
        )
        self._refresh_task: asyncio.Task[None] | None = None

    @property
    def cookies(self) -> httpx.Cookies:
        """Cookie jar holding the session tokens."""
        return self._client.cookies

    async def get(self, path: str, **kwargs: Any) -> httpx.Response:
        return await self.request("GET", path, **kwargs)

    async def post(self, path: str, **kwargs: Any) -> httpx.Response:
        return await self.request("POST", path, **kwargs)

    async def put(self, path: str, **kwargs: Any) -> httpx.Response:
        return await self.request("PUT", path, **kwargs)

    async def delete(self, path: str, **kwargs: Any) -> httpx.Response:
        return await self.request("DELETE", path, **kwargs)

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: Any = None,
        data: Any = None,
        headers: dict[str, str] | None = None,
        redirect_on_expiry: bool = True,
    ) -> httpx.Response:
        """Make a request, refreshing the session once on 401.

        Args:
            method: HTTP method (GET, POST, etc.)
            path: API path relative to the base URL (e.g., /cart)
            params: Optional query parameters
            json: Optional JSON body
            data: Optional form body
            headers: Optional extra headers
            redirect_on_expiry: Send the user to the login page if the
                session cannot be refreshed

        Returns:
            The successful response

        Raises:
            SessionExpiredError: If the refresh after a 401 failed
            ApiHTTPError: For any other non-success status, including a
                second 401 on the retried request
            ApiConnectionError: If the API cannot be reached
            ApiTimeoutError: If the request times out
        """
        pending = PendingRequest(
            method=method.upper(),
            path=path,
            params=params,
            json=json,
            data=data,
            headers=headers,
            redirect_on_expiry=redirect_on_expiry,
        )
        response = await self._send(pending)

        if response.status_code == httpx.codes.UNAUTHORIZED and not pending.retried:
            pending.retried = True
            logger.info("Access token rejected, refreshing session", method=pending.method, path=path)
            try:
                await self.refresh_session()
            except StorefrontClientError as e:
                if pending.redirect_on_expiry:
                    self._on_session_expired()
                raise SessionExpiredError(e.status_code) from e
            response = await self._send(pending)

        if response.is_success:
            return response
        raise self._http_error(response)

    async def refresh_session(self) -> None:
        """Ask the API to rotate the session cookies.

        The call itself is never intercepted. When ``coalesce_refresh`` is
        enabled, callers arriving while a refresh is in flight share it.

        Raises:
            ApiHTTPError: If the refresh endpoint rejects the session
            ApiConnectionError: If the API cannot be reached
            ApiTimeoutError: If the request times out
        """
        if not self.config.coalesce_refresh:
            await self._post_refresh()
            return

        if self._refresh_task is None or self._refresh_task.done():
            self._refresh_task = asyncio.create_task(self._post_refresh())
        else:
            logger.debug("Joining in-flight session refresh")
        await asyncio.shield(self._refresh_task)

    async def _post_refresh(self) -> None:
        response = await self._send(PendingRequest("POST", self.config.refresh_path, retried=True))
        if not response.is_success:
            logger.warning("Session refresh rejected", status=response.status_code)
            raise self._http_error(response)
        logger.debug("Session refreshed")

    async def _send(self, pending: PendingRequest) -> httpx.Response:
        request = pending.build(self._client)
        try:
            return await self._client.send(request)
        except httpx.TimeoutException as e:
            logger.warning("Storefront API timeout", url=str(request.url), error=str(e))
            raise ApiTimeoutError(str(e)) from e
        except httpx.RequestError as e:
            logger.warning("Storefront API request error", url=str(request.url), error=str(e))
            raise ApiConnectionError(str(e)) from e

    def _on_session_expired(self) -> None:
        current = self.navigator.current_path
        if path_matches(current, self.config.auth_entry_paths):
            logger.info("Session expired on an auth page, staying put", path=current)
            return
        logger.info("Session expired, redirecting to login", from_path=current)
        self.navigator.redirect(self.config.login_path)

    @staticmethod
    def _http_error(response: httpx.Response) -> ApiHTTPError:
        detail = response.text
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict):
            detail = str(body.get("message") or body.get("detail") or detail)
        return ApiHTTPError(response.status_code, detail, response)

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()
