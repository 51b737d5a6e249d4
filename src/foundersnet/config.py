"""Client configuration.

Values come from an optional YAML file and are overridden by environment
variables:

- FOUNDERSNET_CONFIG: path of the YAML file (default ``foundersnet.yaml``)
- FOUNDERSNET_BASE_URL: origin of the web app, e.g. ``https://hfn.example``
- FOUNDERSNET_POLL_INTERVAL / FOUNDERSNET_FALLBACK_INTERVAL: seconds
- FOUNDERSNET_REQUEST_TIMEOUT: seconds per REST request
- FOUNDERSNET_STORAGE: local storage file
- FOUNDERSNET_USER_ID: user ID sent in the socket handshake
"""

import logging
import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = "foundersnet.yaml"

_ENV_OVERRIDES = {
    "FOUNDERSNET_BASE_URL": "base_url",
    "FOUNDERSNET_POLL_INTERVAL": "poll_interval",
    "FOUNDERSNET_FALLBACK_INTERVAL": "fallback_interval",
    "FOUNDERSNET_REQUEST_TIMEOUT": "request_timeout",
    "FOUNDERSNET_STORAGE": "storage_path",
    "FOUNDERSNET_USER_ID": "user_id",
}


class ClientConfig(BaseModel):
    """Connection and polling settings for the notification client."""

    base_url: str = Field("http://localhost:5000", description="Web app origin")
    ws_path: str = Field("/ws", description="Socket endpoint path")
    poll_interval: float = Field(
        30.0, gt=0, description="Seconds between polls after the socket drops"
    )
    fallback_interval: float = Field(
        60.0, gt=0, description="Seconds between polls when no socket could be created"
    )
    request_timeout: float = Field(30.0, gt=0, description="Per-request timeout in seconds")
    storage_path: Path = Field(
        Path.home() / ".foundersnet" / "storage.json",
        description="Local key/value storage file",
    )
    user_id: int | str | None = Field(None, description="User ID for the socket handshake")

    model_config = {"extra": "forbid"}

    @field_validator("base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        if "://" not in v:
            raise ValueError(f"base_url must include a scheme: {v!r}")
        return v.rstrip("/")

    @field_validator("ws_path")
    @classmethod
    def leading_slash(cls, v: str) -> str:
        return v if v.startswith("/") else f"/{v}"

    @classmethod
    def from_yaml(cls, path: Path | str) -> "ClientConfig":
        """Load a configuration from a YAML file."""
        path = Path(path)
        with path.open() as f:
            data = yaml.safe_load(f) or {}
        return cls.model_validate(data)

    def to_yaml(self, path: Path | str) -> None:
        """Save the configuration to a YAML file."""
        path = Path(path)
        data = self.model_dump(mode="json", exclude_none=True)
        with path.open("w") as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False)


def load_config(path: Path | str | None = None) -> ClientConfig:
    """Build the effective configuration from file and environment."""
    if path is None:
        path = os.environ.get("FOUNDERSNET_CONFIG", DEFAULT_CONFIG_FILE)
    path = Path(path)

    data: dict[str, Any] = {}
    if path.exists():
        logger.debug("Loading configuration from %s", path)
        with path.open() as f:
            data = yaml.safe_load(f) or {}

    for env_var, field in _ENV_OVERRIDES.items():
        value = os.environ.get(env_var)
        if value:
            data[field] = value

    return ClientConfig.model_validate(data)
