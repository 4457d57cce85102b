"""Application configuration, read from a TOML file and the environment."""

from __future__ import annotations

import copy
import os
import tomllib
from collections.abc import Mapping
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

import platformdirs

_DEFAULTS: dict[str, Any] = {
    "database": {"url": "localhost", "name": "erp", "schema": "public"}
}
_ENV_PREFIX = "erp"
_ENV_SEPARATOR = "_"


class ConfigError(Exception):
    """The configuration could not be read or is incomplete."""


def _merge(target: dict[str, Any], source: Mapping[str, Any]) -> None:
    for key, value in source.items():
        current = target.get(key)
        if isinstance(current, dict) and isinstance(value, Mapping):
            _merge(current, value)
        else:
            target[key] = copy.deepcopy(value)


def _from_environment(environ: Mapping[str, str]) -> dict[str, Any]:
    """Turn ERP_SECTION_KEY variables into nested settings."""
    prefix = _ENV_PREFIX + _ENV_SEPARATOR
    result: dict[str, Any] = {}
    for key, value in environ.items():
        lowered = key.lower()
        if not lowered.startswith(prefix):
            continue
        parts = lowered[len(prefix):].split(_ENV_SEPARATOR)
        if not all(parts):
            continue
        node = result
        for part in parts[:-1]:
            child = node.get(part)
            if not isinstance(child, dict):
                child = node[part] = {}
            node = child
        node[parts[-1]] = value
    return result


def _string(section: Mapping[str, Any], key: str, dotted: str) -> str:
    if key not in section:
        raise ConfigError(f"missing field `{key}`")
    value = section[key]
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    raise ConfigError(f"invalid type for `{dotted}`: expected a string")


@dataclass
class DatabaseConfig:
    """Where and how to connect to the database."""

    url: str = ""
    name: str = ""
    schema: str = ""
    user: str = ""
    password: str = ""


@dataclass
class Config:
    """Settings of the application."""

    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    plugin_path: str = ""

    @classmethod
    def load(cls, path: str | os.PathLike[str], environ: Mapping[str, str] | None = None) -> Config:
        """Read settings from a TOML file, overridden by ERP_* variables."""
        path = Path(path)
        try:
            with path.open("rb") as handle:
                data = tomllib.load(handle)
        except FileNotFoundError:
            raise ConfigError(f"Configuration file {path} not found") from None
        except tomllib.TOMLDecodeError as exc:
            raise ConfigError(f"Cannot parse config file {path}: {exc}") from exc

        settings = copy.deepcopy(_DEFAULTS)
        _merge(settings, data)
        _merge(settings, _from_environment(os.environ if environ is None else environ))
        return cls._from_settings(settings)

    @classmethod
    def _from_settings(cls, settings: Mapping[str, Any]) -> Config:
        section = settings.get("database")
        if not isinstance(section, Mapping):
            raise ConfigError("missing field `database`")
        database = DatabaseConfig(
            **{
                f.name: _string(section, f.name, f"database.{f.name}")
                for f in fields(DatabaseConfig)
            }
        )
        return cls(database, _string(settings, "plugin_path", "plugin_path"))

    @classmethod
    def try_default(cls) -> Config:
        """Read the config.toml file of the user's configuration directory."""
        config_dir = Path(platformdirs.user_config_dir("erp", "oddlyoko"))
        config_file = config_dir / "config.toml"
        print(f"Loading config from {config_file}")
        return cls.load(config_file)