"""Configuration management for pi400admin.

Loads settings from a YAML configuration file with environment variable
overrides (prefix ``PI400ADMIN_``, ``__`` for nesting). Supports .env files.
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("config/pi400admin.yaml")

DEFAULT_SERVICES = ["target-ssh", "target-serial", "pi400-hid", "kiosk"]
DEFAULT_CONSOLE_SERVICES = ["target-ssh", "target-serial", "pi400-hid"]


def _require_absolute(value: str) -> str:
    if not Path(value).is_absolute():
        raise ValueError(f"program path must be absolute: {value!r}")
    return value


class ServerConfig(BaseModel):
    host: str = Field(default="127.0.0.1")
    port: int = Field(default=5000, ge=1, le=65535)
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])


class ServicesConfig(BaseModel):
    allowed: list[str] = Field(
        default_factory=lambda: list(DEFAULT_SERVICES),
        description="systemd units that may be started, stopped or restarted",
    )
    log_units: list[str] = Field(
        default_factory=list,
        description="Units whose journal is tailed (defaults to 'allowed')",
    )
    log_lines: int = Field(default=200, gt=0)

    @field_validator("allowed")
    @classmethod
    def _allowed_not_empty(cls, value: list[str]) -> list[str]:
        if not value or any(not name for name in value):
            raise ValueError("services.allowed must list at least one non-empty name")
        return value

    @property
    def effective_log_units(self) -> list[str]:
        return self.log_units or self.allowed


class CommandsConfig(BaseModel):
    systemctl: str = Field(default="/usr/bin/systemctl")
    journalctl: str = Field(default="/usr/bin/journalctl")
    ip: str = Field(default="/usr/sbin/ip")
    iptables: str = Field(default="/usr/sbin/iptables")
    nat_script: str = Field(default="/usr/local/sbin/pi400-nat")
    usb_gadget_script: str = Field(default="/usr/local/sbin/pi400-usb-gadget")
    target_ip_script: str = Field(default="/usr/local/sbin/pi400-target-ip")
    timeout: float = Field(default=8.0, gt=0)
    max_output_bytes: int | None = Field(default=None, gt=0)
    status_ok_exit_codes: list[int] = Field(default_factory=lambda: [0, 3])

    @field_validator(
        "systemctl",
        "journalctl",
        "ip",
        "iptables",
        "nat_script",
        "usb_gadget_script",
        "target_ip_script",
    )
    @classmethod
    def _absolute_paths(cls, value: str) -> str:
        return _require_absolute(value)


class NatConfig(BaseModel):
    default_uplink: str = Field(default="wlan0")
    allowed_uplinks: list[str] = Field(default_factory=lambda: ["wlan0", "eth0"])

    @model_validator(mode="after")
    def _default_is_allowed(self) -> NatConfig:
        if not self.allowed_uplinks:
            raise ValueError("nat.allowed_uplinks must not be empty")
        if self.default_uplink not in self.allowed_uplinks:
            raise ValueError(
                f"nat.default_uplink {self.default_uplink!r} is not in nat.allowed_uplinks"
            )
        return self


class ConsoleConfig(BaseModel):
    api_base: str = Field(default="http://127.0.0.1:5000")
    timeout: float = Field(default=10.0, gt=0)
    services: list[str] = Field(default_factory=lambda: list(DEFAULT_CONSOLE_SERVICES))
    poll_interval: float = Field(default=5.0, gt=0)


class LoggingConfig(BaseModel):
    level: str = Field(default="INFO")
    format: str = Field(
        default="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    file: str | None = Field(default=None)


class Settings(BaseSettings):
    """Root configuration for pi400admin.

    Loads from YAML file and supports environment variable overrides.
    Reads .env files automatically. Precedence: environment, .env,
    YAML (passed as keyword arguments), defaults.
    """

    model_config = {
        "env_prefix": "PI400ADMIN_",
        "env_nested_delimiter": "__",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    server: ServerConfig = Field(default_factory=ServerConfig)
    services: ServicesConfig = Field(default_factory=ServicesConfig)
    commands: CommandsConfig = Field(default_factory=CommandsConfig)
    nat: NatConfig = Field(default_factory=NatConfig)
    console: ConsoleConfig = Field(default_factory=ConsoleConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # Keyword arguments carry the YAML file, so the environment wins over them.
        return env_settings, dotenv_settings, init_settings, file_secret_settings


def load_settings(config_path: Path | str | None = None) -> Settings:
    """Load settings from YAML + .env + environment variables.

    Environment variables override the YAML file key by key; keys set
    nowhere fall back to defaults.
    """
    path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH

    yaml_data = {}
    if path.exists():
        with open(path) as f:
            yaml_data = yaml.safe_load(f) or {}
        logger.info("Loaded configuration from %s", path)
    else:
        logger.warning("Config file %s not found, using defaults + env vars", path)

    return Settings(**yaml_data)
