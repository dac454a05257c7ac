"""
RIGRELAY - Configuration

Process settings come from the environment (``RIGRELAY_*``) or a ``.env``
file. The updater endpoint comes from a separate JSON file that sits next to
the payload content; it is optional and every failure falls back to the
default endpoint.
"""

import json
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from rigrelay.utils.logger import logger

DEFAULT_SESSION_ID = "89AC63D12B18F3EE9808C13899C9B695"
DEFAULT_ENDPOINT = "ws://localhost:8081"
DEFAULT_CONFIG_FILE = "server_config.json"


class Settings(BaseSettings):
    """Relay process settings - all optional with defaults."""

    model_config = SettingsConfigDict(
        env_prefix="RIGRELAY_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ===========================================
    # Listeners
    # ===========================================
    host: str = Field(default="0.0.0.0", description="Interface to bind both servers to")
    ws_port: int = Field(default=8080, ge=0, le=65535, description="WebSocket port")
    http_port: int = Field(default=9123, ge=0, le=65535, description="Static HTTP port")

    # ===========================================
    # Content
    # ===========================================
    content_root: Path = Field(
        default=Path("."),
        description="Directory holding payload.mjs, payloads/ and entry/",
    )
    static_root: Path = Field(default=Path("."), description="Directory served over HTTP")
    config_file: Path = Field(
        default=Path(DEFAULT_CONFIG_FILE),
        description="Endpoint JSON file, relative to content_root unless absolute",
    )
    default_endpoint: str = Field(
        default=DEFAULT_ENDPOINT,
        min_length=1,
        description="Endpoint used when the config file cannot supply one",
    )

    # ===========================================
    # Protocol
    # ===========================================
    session_id: str = Field(
        default=DEFAULT_SESSION_ID,
        min_length=1,
        description="Session tag attached to every reply",
    )

    # ===========================================
    # Lifecycle / Logging
    # ===========================================
    shutdown_grace: float = Field(
        default=5.0,
        gt=0,
        le=60,
        description="Seconds to wait for connections before forcing exit",
    )
    log_level: str = Field(default="INFO", description="Log level")
    log_file: Optional[str] = Field(default=None, description="Optional log file")

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        """Accept log levels in any case."""
        return v.upper()

    def resolved_config_file(self) -> Path:
        """Endpoint file location, resolved against the content root."""
        if self.config_file.is_absolute():
            return self.config_file
        return self.content_root / self.config_file


# ===========================================
# Endpoint file
# ===========================================

class EndpointSource(str, Enum):
    """Where the endpoint value came from."""
    CONFIG = "config"
    MISSING_FILE = "missing_file"
    UNREADABLE = "unreadable"
    INVALID_JSON = "invalid_json"
    INVALID_SHAPE = "invalid_shape"
    MISSING_FIELD = "missing_field"


class ServerConfigFile(BaseModel):
    """Shape of server_config.json."""

    model_config = ConfigDict(extra="ignore")

    updater_url: Optional[str] = None


@dataclass(frozen=True)
class EndpointConfig:
    """The endpoint substituted into the template, plus its provenance."""
    endpoint: str
    source: EndpointSource

    @property
    def is_fallback(self) -> bool:
        return self.source != EndpointSource.CONFIG


def load_endpoint(path: Path, default: str = DEFAULT_ENDPOINT) -> EndpointConfig:
    """
    Read ``updater_url`` from the JSON config file.

    Never raises: every failure is logged as its own condition and the
    default endpoint is returned.
    """
    try:
        raw = Path(path).read_text(encoding="utf-8")
    except FileNotFoundError:
        logger.warning(f"{path} not found. Using default updater URL: {default}")
        return EndpointConfig(default, EndpointSource.MISSING_FILE)
    except (OSError, UnicodeDecodeError) as e:
        logger.error(f"Failed to read {path}: {e}. Using default updater URL.")
        return EndpointConfig(default, EndpointSource.UNREADABLE)

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        logger.error(f"Error parsing {path}: {e}. Using default updater URL.")
        return EndpointConfig(default, EndpointSource.INVALID_JSON)

    try:
        parsed = ServerConfigFile.model_validate(data)
    except ValidationError as e:
        logger.error(
            f"Unexpected structure in {path}: {e.error_count()} validation error(s). "
            f"Using default updater URL."
        )
        return EndpointConfig(default, EndpointSource.INVALID_SHAPE)

    if not parsed.updater_url:
        logger.warning(f"'updater_url' missing in {path}. Using default: {default}")
        return EndpointConfig(default, EndpointSource.MISSING_FIELD)

    logger.info(f"Using updater URL from {path}: {parsed.updater_url}")
    return EndpointConfig(parsed.updater_url, EndpointSource.CONFIG)
