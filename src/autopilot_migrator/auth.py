"""Client-credentials token exchange against the Microsoft identity platform."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Final

import requests

from .exceptions import AuthenticationError

if TYPE_CHECKING:
    from .config import TenantConfig

logger: logging.Logger = logging.getLogger(__name__)

TOKEN_URL_TEMPLATE: Final[str] = "https://login.microsoftonline.com/{tenant_id}/oauth2/v2.0/token"  # noqa: S105
GRAPH_SCOPE: Final[str] = "https://graph.microsoft.com/.default"
REQUEST_TIMEOUT: Final[float] = 30.0


def acquire_token(config: TenantConfig, session: requests.Session | None = None) -> str:
    """Exchange the tenant's client id and secret for a Graph bearer token.

    Raises:
        AuthenticationError: If the token endpoint is unreachable or refuses the credentials
    """
    http = session or requests.Session()
    url = TOKEN_URL_TEMPLATE.format(tenant_id=config.tenant_id)
    data = {
        "grant_type": "client_credentials",
        "client_id": config.client_id,
        "client_secret": config.client_secret,
        "scope": GRAPH_SCOPE,
    }

    try:
        response = http.post(url, data=data, timeout=REQUEST_TIMEOUT)
    except requests.RequestException as e:
        msg = f"Token request for {config.name} tenant failed: {e}"
        raise AuthenticationError(msg) from e

    if response.status_code != 200:
        msg = (
            f"Token request for {config.name} tenant rejected "
            f"(HTTP {response.status_code}): {_error_description(response)}"
        )
        raise AuthenticationError(msg)

    token = response.json().get("access_token")
    if not token:
        msg = f"Token response for {config.name} tenant did not contain an access token"
        raise AuthenticationError(msg)

    logger.info(f"Authenticated to {config.name} tenant {config.tenant_id}")
    return token


def _error_description(response: requests.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text[:200]
    return body.get("error_description") or body.get("error") or str(body)
