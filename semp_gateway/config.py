"""
Gateway configuration loaded from environment variables.

Uses Pydantic BaseSettings for automatic env var loading and validation.
Every value has a default, so the gateway starts with no configuration;
a ``.env`` file in the working directory is honoured.

CHANGELOG:
- 2026-10-16: Add UPnP description settings (STORY-012)
- 2026-10-15: Add hook timeout and worker settings (STORY-011)
- 2026-10-10: Initial creation (STORY-001)

TODO:
- None
"""

import logging
import uuid

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings

_LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


class GatewaySettings(BaseSettings):
    """SEMP gateway configuration.

    Attributes:
        gateway_host: Interface both listeners bind to.
        advertised_ip: Address written into description.xml for the
            energy manager to contact.
        semp_port: Port of the SEMP protocol listener.
        api_port: Port of the management (REST) listener.
        gateway_uuid: UPnP UDN of the gateway. Random when not set.
        friendly_name: UPnP friendlyName / modelName.
        manufacturer: UPnP manufacturer.
        hook_timeout_s: Timeout for notification hook POSTs.
        hook_workers: Threads dispatching notification hook POSTs.
        log_level: Root log level name.
    """

    gateway_host: str = "0.0.0.0"
    advertised_ip: str = "127.0.0.1"
    semp_port: int = 9980
    api_port: int = 9981
    gateway_uuid: str = Field(default_factory=lambda: str(uuid.uuid4()))
    friendly_name: str = "SEMP Gateway"
    manufacturer: str = "semp-gateway"
    hook_timeout_s: float = 5.0
    hook_workers: int = 4
    log_level: str = "INFO"

    @field_validator("semp_port", "api_port")
    @classmethod
    def port_must_be_valid(cls, v: int) -> int:
        """Validate listener ports are in the TCP port range."""
        if v < 1 or v > 65535:
            raise ValueError("Port must be between 1 and 65535")
        return v

    @field_validator("gateway_uuid")
    @classmethod
    def gateway_uuid_must_not_be_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("GATEWAY_UUID must not be blank")
        return v.strip()

    @field_validator("hook_timeout_s")
    @classmethod
    def hook_timeout_must_be_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("HOOK_TIMEOUT_S must be > 0")
        return v

    @field_validator("hook_workers")
    @classmethod
    def hook_workers_must_be_valid(cls, v: int) -> int:
        if v < 1 or v > 64:
            raise ValueError("HOOK_WORKERS must be >= 1 and <= 64")
        return v

    @field_validator("log_level")
    @classmethod
    def log_level_must_be_known(cls, v: str) -> str:
        """Normalise and validate the log level name."""
        level = v.strip().upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"LOG_LEVEL must be one of {', '.join(_LOG_LEVELS)}")
        return level

    @model_validator(mode="after")
    def _ports_must_differ(self) -> "GatewaySettings":
        """Both listeners bind the same host, so they need distinct ports."""
        if self.semp_port == self.api_port:
            raise ValueError("SEMP_PORT and API_PORT must differ")
        return self

    @property
    def log_level_value(self) -> int:
        return logging.getLevelName(self.log_level)

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}
