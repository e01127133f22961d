"""Thin authenticated transport for Microsoft Graph.

GraphClient owns one requests.Session and one bearer token per tenant. It
maps HTTP failures onto the tool's exceptions and leaves the meaning of a
404 to the caller, which can inspect ``RemoteFailure.status``.
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, Any, Final

import requests

from .auth import acquire_token
from .exceptions import AuthenticationError, RemoteFailure

if TYPE_CHECKING:
    from collections.abc import Iterator

    from .config import TenantConfig

logger: logging.Logger = logging.getLogger(__name__)

GRAPH_BASE_URL: Final[str] = "https://graph.microsoft.com/v1.0"
REQUEST_TIMEOUT: Final[float] = 60.0
# Graph tokens live for 60-90 minutes; renew well before the shortest lifetime
TOKEN_LIFETIME: Final[float] = 50 * 60.0


class GraphClient:
    """Authenticated JSON calls against one tenant's Graph endpoint."""

    config: TenantConfig
    base_url: str
    _session: requests.Session
    _token: str | None
    _token_acquired_at: float

    def __init__(
        self,
        config: TenantConfig,
        *,
        session: requests.Session | None = None,
        base_url: str = GRAPH_BASE_URL,
    ) -> None:
        self.config = config
        self.base_url = base_url.rstrip("/")
        self._session = session or requests.Session()
        self._token = None
        self._token_acquired_at = 0.0

    @property
    def tenant_name(self) -> str:
        return self.config.name

    def authenticate(self) -> None:
        """Acquire a bearer token unless a fresh one is already held."""
        if self._token is not None and time.monotonic() - self._token_acquired_at < TOKEN_LIFETIME:
            return
        self._token = acquire_token(self.config, self._session)
        self._token_acquired_at = time.monotonic()

    def get(self, path: str, params: dict[str, str] | None = None) -> dict[str, Any]:
        return _json(self._request("GET", path, params=params))

    def post(self, path: str, payload: dict[str, Any]) -> dict[str, Any]:
        response = self._request("POST", path, json=payload)
        if response.status_code == 204 or not response.content:
            return {}
        return _json(response)

    def delete(self, path: str) -> None:
        self._request("DELETE", path)

    def paginate(self, path: str, params: dict[str, str] | None = None) -> Iterator[dict[str, Any]]:
        """Yield every item of a collection, following ``@odata.nextLink``.

        Each call starts again from the first page.
        """
        page = self.get(path, params=params)
        while True:
            yield from page.get("value", [])
            next_link = page.get("@odata.nextLink")
            if not next_link:
                return
            logger.debug(f"Following next page link for {path}")
            # nextLink is absolute and already carries the query string
            page = _json(self._request("GET", next_link))

    def _url(self, path: str) -> str:
        if path.startswith(("https://", "http://")):
            return path
        return f"{self.base_url}/{path.lstrip('/')}"

    def _request(self, method: str, path: str, **kwargs: Any) -> requests.Response:
        self.authenticate()
        url = self._url(path)
        headers = {"Authorization": f"Bearer {self._token}", "Accept": "application/json"}

        logger.debug(f"{method} {url} ({self.tenant_name})")
        try:
            response = self._session.request(method, url, headers=headers, timeout=REQUEST_TIMEOUT, **kwargs)
        except requests.RequestException as e:
            msg = f"{method} {url} failed: {e}"
            raise RemoteFailure(None, msg) from e

        if response.status_code in (401, 403):
            msg = (
                f"{self.tenant_name} tenant rejected {method} {path} "
                f"(HTTP {response.status_code}): {_error_message(response)}"
            )
            raise AuthenticationError(msg)
        if not response.ok:
            raise RemoteFailure(response.status_code, _error_message(response))
        return response


def odata_quote(value: str) -> str:
    """Escape a string literal for an OData filter expression."""
    return value.replace("'", "''")


def _json(response: requests.Response) -> dict[str, Any]:
    try:
        return response.json()
    except ValueError as e:
        msg = f"Response from {response.url} is not JSON: {response.text[:200]!r}"
        raise RemoteFailure(response.status_code, msg) from e


def _error_message(response: requests.Response) -> str:
    """Extract the Graph error message from a failed response."""
    try:
        body = response.json()
    except ValueError:
        return response.text[:200] or response.reason or ""
    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict):
        code = error.get("code", "")
        message = error.get("message", "")
        return f"{code}: {message}" if code else message
    return str(body)[:200]
