"""
StreakMint Configuration

All settings come from STREAKMINT_* environment variables. The administrator
address has no default: a ledger without an administrator cannot have its
category base URIs managed.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import List, Mapping, Optional

from streakmint.core.reward_exceptions import ConfigurationError

logger = logging.getLogger(__name__)

ENV_PREFIX = "STREAKMINT_"

# Order matters: Theta, Beta, Alpha, Sigma
BASE_URI_ENV_VARS = (
    "STREAKMINT_THETA_BASE_URI",
    "STREAKMINT_BETA_BASE_URI",
    "STREAKMINT_ALPHA_BASE_URI",
    "STREAKMINT_SIGMA_BASE_URI",
)

DEFAULT_API_HOST = "127.0.0.1"
DEFAULT_API_PORT = 8090
DEFAULT_LOG_LEVEL = "INFO"


def _get_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(
            f"{name} must be an integer, got {raw!r}",
            details={"env_var": name},
        )


def _get_bool(env: Mapping[str, str], name: str, default: bool) -> bool:
    raw = env.get(name, "").strip().lower()
    if not raw:
        return default
    return raw in ("1", "true", "yes", "on")


@dataclass
class RewardConfig:
    """Runtime settings for the ledger, its storage and the HTTP API."""

    admin_address: str
    base_uris: List[str]
    data_dir: str
    persist: bool = True
    api_host: str = DEFAULT_API_HOST
    api_port: int = DEFAULT_API_PORT
    log_level: str = DEFAULT_LOG_LEVEL
    log_dir: Optional[str] = None

    @property
    def snapshot_path(self) -> str:
        return os.path.join(self.data_dir, "ledger.json")

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "RewardConfig":
        """
        Build configuration from environment variables.

        Args:
            env: Mapping to read instead of os.environ

        Raises:
            ConfigurationError: If STREAKMINT_ADMIN_ADDRESS is missing or a
                numeric setting cannot be parsed
        """
        if env is None:
            env = os.environ

        admin = env.get("STREAKMINT_ADMIN_ADDRESS", "").strip()
        if not admin:
            raise ConfigurationError(
                "STREAKMINT_ADMIN_ADDRESS environment variable is required",
                details={"env_var": "STREAKMINT_ADMIN_ADDRESS"},
            )

        base_uris = [env.get(name, "") for name in BASE_URI_ENV_VARS]
        missing = [name for name, uri in zip(BASE_URI_ENV_VARS, base_uris) if not uri]
        if missing:
            logger.warning(
                "No base URI configured for %d categories; token URIs will be empty",
                len(missing),
                extra={"event": "config.base_uri_missing", "env_vars": missing},
            )

        log_level = env.get("STREAKMINT_LOG_LEVEL", DEFAULT_LOG_LEVEL).strip().upper()
        if log_level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ConfigurationError(
                f"STREAKMINT_LOG_LEVEL must be a logging level name, got {log_level!r}",
                details={"env_var": "STREAKMINT_LOG_LEVEL"},
            )

        return cls(
            admin_address=admin,
            base_uris=base_uris,
            data_dir=env.get(
                "STREAKMINT_DATA_DIR", os.path.join(os.getcwd(), "streakmint_data")
            ),
            persist=_get_bool(env, "STREAKMINT_PERSIST", True),
            api_host=env.get("STREAKMINT_API_HOST", DEFAULT_API_HOST),
            api_port=_get_int(env, "STREAKMINT_API_PORT", DEFAULT_API_PORT),
            log_level=log_level,
            log_dir=env.get("STREAKMINT_LOG_DIR") or None,
        )
