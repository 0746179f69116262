"""
Configuration management using pydantic-settings.

Sources, lowest priority first:
- built-in defaults (per network)
- DCRMS_* environment variables
- config file (-C, or ~/.dcrms/dcrms.conf when present)
- command line flags

RPC credentials missing from all of them are read from dcrwallet.conf.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

from loguru import logger
from pydantic import ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from dcrms.constants import DEFAULT_HTTP_TIMEOUT, DEFAULT_RPC_TIMEOUT
from dcrms.errors import ConfigError
from dcrms.netparams import NetParams, get_params

# Config file keys that differ from the field names
_KEY_ALIASES = {
    "pass": "password",
    "username": "user",
    "log": "log_level",
    "loglevel": "log_level",
    "dcrdata": "dcrdata_url",
    "insight": "insight_url",
}

_LOG_LEVELS = {"TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"}


def default_app_dir() -> Path:
    return Path.home() / ".dcrms"


def default_config_file() -> Path:
    return default_app_dir() / "dcrms.conf"


def default_wallet_dir() -> Path:
    return Path.home() / ".dcrwallet"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="DCRMS_", case_sensitive=False, extra="ignore")

    net: Literal["mainnet", "testnet3"] = "mainnet"
    wallet: str | None = None  # Defaults to the network's wallet URL
    cert: Path | None = None  # Defaults to ~/.dcrwallet/rpc.cert
    user: str = ""
    password: str = ""

    log_level: str = "INFO"

    dcrdata_url: str | None = None
    insight_url: str | None = None
    http_timeout: float = DEFAULT_HTTP_TIMEOUT
    rpc_timeout: float = DEFAULT_RPC_TIMEOUT

    @field_validator("wallet", "dcrdata_url", "insight_url")
    @classmethod
    def no_trailing_slash(cls, v: str | None) -> str | None:
        if v is not None and v.endswith("/"):
            raise ValueError(f"URL must not end with a slash: {v}")
        return v

    @field_validator("log_level")
    @classmethod
    def known_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"unknown log level: {v}")
        return level

    @property
    def params(self) -> NetParams:
        return get_params(self.net)

    @property
    def wallet_url(self) -> str:
        return self.wallet or self.params.wallet_url

    @property
    def cert_path(self) -> Path:
        return (self.cert or default_wallet_dir() / "rpc.cert").expanduser()

    @property
    def dcrdata_base_url(self) -> str:
        return self.dcrdata_url or self.params.dcrdata_url

    @property
    def insight_base_url(self) -> str:
        return self.insight_url or self.params.insight_url

    def read_cert(self) -> bytes:
        """
        Read the wallet's TLS certificate.

        Raises:
            ConfigError: If the certificate can't be read
        """
        try:
            return self.cert_path.read_bytes()
        except OSError as e:
            raise ConfigError(f"could not read wallet certificate {self.cert_path}: {e}") from e


def read_config_file(path: Path) -> dict[str, str]:
    """
    Parse a key=value config file.

    Blank lines, #/; comments and [section] headers are skipped; leading
    dashes on keys are allowed so command line style '--net=testnet3' works.

    Raises:
        ConfigError: If the file can't be read or a line has no '='
    """
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"could not read config file {path}: {e}") from e

    values: dict[str, str] = {}
    for lineno, raw_line in enumerate(text.splitlines(), start=1):
        line = raw_line.strip()
        if not line or line[0] in "#;" or (line.startswith("[") and line.endswith("]")):
            continue
        key, sep, value = line.partition("=")
        if not sep:
            raise ConfigError(f"{path}:{lineno}: expected key=value, got {line!r}")
        values[key.strip().lstrip("-").lower()] = value.strip()
    return values


def _to_fields(values: dict[str, str], source: Path) -> dict[str, str]:
    fields: dict[str, str] = {}
    for key, value in values.items():
        name = _KEY_ALIASES.get(key, key)
        if name not in Settings.model_fields:
            raise ConfigError(f"{source}: unknown option {key!r}")
        fields[name] = value
    return fields


def read_wallet_credentials(path: Path | None = None) -> tuple[str, str]:
    """
    RPC username and password from dcrwallet.conf, empty strings if absent.

    Raises:
        ConfigError: If the file exists but can't be parsed
    """
    path = path or default_wallet_dir() / "dcrwallet.conf"
    if not path.exists():
        return "", ""
    values = read_config_file(path)
    return values.get("username", ""), values.get("password", "")


def load_settings(
    config_file: Path | None = None, overrides: dict[str, Any] | None = None
) -> Settings:
    """
    Resolve settings from all sources.

    Args:
        config_file: Explicit config file; must exist when given
        overrides: Command line values; None entries are ignored

    Raises:
        ConfigError: On unreadable files, invalid values or missing credentials
    """
    file_values: dict[str, str] = {}
    if config_file is not None:
        file_values = _to_fields(read_config_file(config_file), config_file)
    elif default_config_file().exists():
        file_values = _to_fields(read_config_file(default_config_file()), default_config_file())

    cli_values = {k: v for k, v in (overrides or {}).items() if v is not None}
    try:
        settings = Settings(**{**file_values, **cli_values})
    except ValidationError as e:
        raise ConfigError(f"invalid configuration: {e}") from e

    if not settings.user or not settings.password:
        user, password = read_wallet_credentials()
        settings = settings.model_copy(
            update={"user": settings.user or user, "password": settings.password or password}
        )
        if not settings.user or not settings.password:
            raise ConfigError("wallet RPC username and password are required")
        logger.debug("Using RPC credentials from dcrwallet.conf")

    return settings
