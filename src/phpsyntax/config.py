from __future__ import annotations

from datetime import date, datetime, time
import os
from pathlib import Path
from typing import TypeAlias
import tomllib

from phpsyntax.exceptions import ConfigurationError

DEFAULT_CONFIG_NAME = "phpsyntax.toml"
CONFIG_SECTION = "phpsyntax"

TomlScalar: TypeAlias = str | int | float | bool | None | date | datetime | time
TomlValue: TypeAlias = TomlScalar | list["TomlValue"] | dict[str, "TomlValue"]
TomlTable: TypeAlias = dict[str, TomlValue]

_TRUTHY_VALUES = {"1", "yes", "y", "true", "t", "on"}
_FALSEY_VALUES = {"0", "no", "n", "false", "f", "off", ""}


def _load_toml(path: Path) -> TomlTable:
    try:
        raw = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return {}
    except OSError:
        return {}
    try:
        data = tomllib.loads(raw)
    except tomllib.TOMLDecodeError:
        return {}
    return data if isinstance(data, dict) else {}


def _load_explicit_toml(path: Path) -> TomlTable:
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigurationError(f"Failed to read config file {path}: {exc.strerror or exc}") from exc
    try:
        data = tomllib.loads(raw)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigurationError(f"Invalid config file {path}: {exc}") from exc
    return data if isinstance(data, dict) else {}


def load_config(root: Path | None = None, config_path: Path | None = None) -> TomlTable:
    """Read the implicit `phpsyntax.toml` leniently; an explicit path must be valid."""
    if config_path is not None:
        return _load_explicit_toml(config_path)
    base = root if root is not None else Path.cwd()
    return _load_toml(base / DEFAULT_CONFIG_NAME)


def check_defaults(root: Path | None = None, config_path: Path | None = None) -> TomlTable:
    data = load_config(root=root, config_path=config_path)
    section = data.get(CONFIG_SECTION, {})
    return section if isinstance(section, dict) else {}


def parse_bool(name: str, value: TomlValue) -> bool:
    """Accept the boolean spellings GitHub Actions users write in ``with:`` blocks."""
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    if isinstance(value, int) and not isinstance(value, bool):
        value = str(value)
    if isinstance(value, str):
        text = value.strip().lower()
        if text in _TRUTHY_VALUES:
            return True
        if text in _FALSEY_VALUES:
            return False
        raise ValueError(f'Invalid {name} option: "{text}" is not a boolean-like value')
    raise ValueError(f'Invalid {name} option: "{value}" is not a boolean-like value')


def split_lines(value: TomlValue) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        text = value.replace("\r\n", "\n").replace("\r", "\n")
        return [line.strip() for line in text.split("\n") if line.strip()]
    if isinstance(value, (list, tuple)):
        items: list[str] = []
        for item in value:
            items.extend(split_lines(item))
        return items
    return [str(value).strip()]


def normalize_relative_paths(name: str, values: list[str], *, sep: str = os.sep) -> list[str]:
    result: list[str] = []
    for value in values:
        line = value.strip().replace("/", sep)
        if not line:
            continue
        if line.startswith(sep) or (sep == "\\" and line[1:2] == ":"):
            raise ValueError(f'Invalid {name} option: "{line}" is an absolute path')
        result.append(line.rstrip(sep))
    return result
