"""Tenant credentials and run settings.

Credentials come from, in order: an explicit pass path, the
``{PREFIX}_CLIENT_SECRET`` environment variable, or the pass path named by
``{PREFIX}_CLIENT_SECRET_PASS_PATH``. Tenant and client ids always come from
the environment.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Final

from . import utils
from .exceptions import ConfigurationError

logger: logging.Logger = logging.getLogger(__name__)

SOURCE_PREFIX: Final[str] = "SOURCE"
TARGET_PREFIX: Final[str] = "TARGET"

DEFAULT_POLL_TIMEOUT: Final[float] = 300.0
DEFAULT_POLL_INTERVAL: Final[float] = 10.0
DEFAULT_PACING_DELAY: Final[float] = 2.0


@dataclass(frozen=True)
class TenantConfig:
    """Identity of one tenant's app registration."""

    tenant_id: str
    client_id: str
    client_secret: str
    name: str = "tenant"

    def __repr__(self) -> str:
        # Keep the secret out of tracebacks and debug logs
        return f"TenantConfig(name={self.name!r}, tenant_id={self.tenant_id!r}, client_id={self.client_id!r})"


@dataclass(frozen=True)
class MigrationSettings:
    """Timing knobs for deletion polling and batch pacing, in seconds."""

    poll_timeout: float = DEFAULT_POLL_TIMEOUT
    poll_interval: float = DEFAULT_POLL_INTERVAL
    pacing_delay: float = DEFAULT_PACING_DELAY
    dry_run: bool = False

    def __post_init__(self) -> None:
        if self.poll_timeout <= 0:
            msg = f"Poll timeout must be positive, got {self.poll_timeout}"
            raise ConfigurationError(msg)
        if self.poll_interval <= 0:
            msg = f"Poll interval must be positive, got {self.poll_interval}"
            raise ConfigurationError(msg)
        if self.pacing_delay < 0:
            msg = f"Pacing delay cannot be negative, got {self.pacing_delay}"
            raise ConfigurationError(msg)


def _require_env(name: str) -> str:
    value = os.environ.get(name, "").strip()
    if not value:
        msg = f"Environment variable {name} is not set"
        raise ConfigurationError(msg)
    return value


def get_client_secret(prefix: str, pass_path: str | None = None) -> str:
    """Get the client secret for a tenant from pass or the environment."""
    if pass_path:
        try:
            return utils.get_pass_value(pass_path)
        except (utils.PassError, ValueError) as e:
            msg = f"Cannot read {prefix.lower()} client secret from pass: {e}"
            raise ConfigurationError(msg) from e

    secret = os.environ.get(f"{prefix}_CLIENT_SECRET")
    if secret:
        return secret

    env_pass_path = os.environ.get(f"{prefix}_CLIENT_SECRET_PASS_PATH")
    if env_pass_path:
        return get_client_secret(prefix, env_pass_path)

    msg = (
        f"No client secret for {prefix.lower()} tenant: "
        f"set {prefix}_CLIENT_SECRET or {prefix}_CLIENT_SECRET_PASS_PATH"
    )
    raise ConfigurationError(msg)


def load_tenant_config(prefix: str, *, secret_pass_path: str | None = None) -> TenantConfig:
    """Load a TenantConfig from ``{prefix}_*`` environment variables."""
    config = TenantConfig(
        tenant_id=_require_env(f"{prefix}_TENANT_ID"),
        client_id=_require_env(f"{prefix}_CLIENT_ID"),
        client_secret=get_client_secret(prefix, secret_pass_path),
        name=prefix.lower(),
    )
    logger.debug(f"Loaded {config.name} tenant configuration for tenant {config.tenant_id}")
    return config
