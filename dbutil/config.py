"""Connection configuration records and the TOML configuration source."""

from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path
from typing import Any, Mapping

import tomllib

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from .errors import ConfigInvalid, ConfigNotFound

LOG = logging.getLogger(__name__)

PACKAGE_DIR = Path(__file__).resolve().parent
CONFIG_DIR_NAME = "config"


class ConfigMode(str, Enum):
    """Selects where named configuration files are looked up."""

    STANDALONE = "standalone"
    AS_DEPENDENCY = "asDependency"


class ConfigOptions(BaseModel):
    """Usage defaults applied to every query on a connection."""

    model_config = ConfigDict(frozen=True)

    verbose: bool = False


class ConnectionDetails(BaseModel):
    """Everything needed to open pooled connections to one database."""

    model_config = ConfigDict(frozen=True)

    host: str = "localhost"
    port: int = 5432
    database: str
    user: str
    password: str = ""
    max_pool_size: int = Field(default=10, gt=0)
    idle_timeout_ms: int = Field(default=10_000, ge=0)
    connect_timeout: float | None = None


class ConnectionConfig(BaseModel):
    """Options plus connection details for one named connection."""

    model_config = ConfigDict(frozen=True)

    options: ConfigOptions = Field(default_factory=ConfigOptions)
    connection_details: ConnectionDetails


def resolve_config_mode(mode: ConfigMode | str | None) -> ConfigMode:
    """Coerce ``mode``; a missing or empty mode means ``asDependency``."""

    if not mode:
        return ConfigMode.AS_DEPENDENCY
    return ConfigMode(mode)


def config_base_dir(mode: ConfigMode | str | None) -> Path:
    """Base directory holding the ``config/`` folder for the given mode."""

    if resolve_config_mode(mode) is ConfigMode.STANDALONE:
        return Path.cwd()
    return PACKAGE_DIR


def config_path(name: str, mode: ConfigMode | str | None = ConfigMode.AS_DEPENDENCY) -> Path:
    """Location of the configuration file for ``name``."""

    return config_base_dir(mode) / CONFIG_DIR_NAME / f"{name}.toml"


def load_connection_config(
    name: str,
    mode: ConfigMode | str | None = ConfigMode.AS_DEPENDENCY,
) -> ConnectionConfig:
    """Load and validate the named configuration file."""

    mode = resolve_config_mode(mode)
    path = config_path(name, mode)
    try:
        with path.open("rb") as handle:
            raw = tomllib.load(handle)
    except FileNotFoundError as exc:
        raise ConfigNotFound(name, mode.value, path) from exc
    except tomllib.TOMLDecodeError as exc:
        raise ConfigInvalid(path, str(exc)) from exc
    LOG.debug("Loaded connection config", extra={"connection": name, "path": str(path)})
    return parse_connection_config(raw, path=path)


def parse_connection_config(data: Mapping[str, Any], *, path: Path | None = None) -> ConnectionConfig:
    """Build a ConnectionConfig from ``[options]`` / ``[connection]`` tables."""

    payload: dict[str, Any] = {}
    options = data.get("options")
    if isinstance(options, dict):
        payload["options"] = options
    details = data.get("connection", data.get("connection_details"))
    if details is not None:
        payload["connection_details"] = details
    try:
        return ConnectionConfig(**payload)
    except PydanticValidationError as exc:
        raise ConfigInvalid(path or Path("<memory>"), str(exc)) from exc


__all__ = [
    "ConfigMode",
    "ConfigOptions",
    "ConnectionConfig",
    "ConnectionDetails",
    "config_path",
    "load_connection_config",
    "parse_connection_config",
    "resolve_config_mode",
]
