"""
config.py

Client configuration.

A ClientConfig is built once per client and never changes afterwards. Values
can be given explicitly, or resolved from the environment with
``config_from_env``:
  1) explicit keyword override
  2) environment variable (OCEAN_CLIENT_BASE_URL, OCEAN_CLIENT_USER_AGENT,
     OCEAN_CLIENT_TIMEOUT, DIGITALOCEAN_ACCESS_TOKEN)
  3) module default
"""

import logging
import os
from typing import Any, Dict, Optional

import httpx
from pydantic import BaseModel, ConfigDict, Field, field_validator

logger = logging.getLogger(__name__)

LIBRARY_VERSION = "1.60.0"
DEFAULT_BASE_URL = "https://api.digitalocean.com/"
USER_AGENT = f"ocean-client/{LIBRARY_VERSION}"
MEDIA_TYPE = "application/json"
TIMEOUT = 30.0

ENV_BASE_URL = "OCEAN_CLIENT_BASE_URL"
ENV_USER_AGENT = "OCEAN_CLIENT_USER_AGENT"
ENV_TIMEOUT = "OCEAN_CLIENT_TIMEOUT"
ENV_TOKEN = "DIGITALOCEAN_ACCESS_TOKEN"


class ClientConfig(BaseModel):
    """Immutable settings shared by every request a client builds."""
    model_config = ConfigDict(frozen=True)

    base_url: str = DEFAULT_BASE_URL
    user_agent: str = USER_AGENT
    # Extra headers set on every request to the API.
    headers: Dict[str, str] = Field(default_factory=dict)
    token: Optional[str] = Field(default=None, repr=False)
    timeout: float = Field(default=TIMEOUT, gt=0)

    @field_validator("base_url")
    @classmethod
    def _check_base_url(cls, value: str) -> str:
        try:
            url = httpx.URL(value)
        except httpx.InvalidURL as e:
            raise ValueError(f"invalid base_url {value!r}: {e}") from e
        if url.scheme not in ("http", "https") or not url.host:
            raise ValueError(f"base_url must be an absolute http(s) URL, got {value!r}")
        # Relative paths are joined beneath the base path.
        if not value.endswith("/"):
            value += "/"
        return value

    def with_options(
        self,
        *,
        base_url: Optional[str] = None,
        user_agent: Optional[str] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> "ClientConfig":
        """
        Return a copy with client options applied.

        :param base_url: replaces the base URL
        :param user_agent: prepended to the library user agent
        :param headers: merged over the existing extra headers
        """
        data = self.model_dump()
        if base_url is not None:
            data["base_url"] = base_url
        if user_agent is not None:
            data["user_agent"] = f"{user_agent} {self.user_agent}"
        if headers:
            data["headers"] = {**self.headers, **headers}
        return ClientConfig(**data)


def _resolve_timeout(default: float) -> float:
    env_val = os.environ.get(ENV_TIMEOUT)
    if env_val is not None:
        try:
            value = float(env_val)
            if value > 0:
                return value
        except ValueError:
            pass
        logger.warning(f"Ignoring invalid {ENV_TIMEOUT}={env_val!r}")
    return default


def config_from_env(**overrides: Any) -> ClientConfig:
    """
    Build a ClientConfig from keyword overrides, then the environment, then
    module defaults.
    """
    data: Dict[str, Any] = {
        "base_url": os.environ.get(ENV_BASE_URL) or DEFAULT_BASE_URL,
        "user_agent": os.environ.get(ENV_USER_AGENT) or USER_AGENT,
        "token": os.environ.get(ENV_TOKEN) or None,
        "timeout": _resolve_timeout(TIMEOUT),
    }
    data.update({k: v for k, v in overrides.items() if v is not None})
    return ClientConfig(**data)
