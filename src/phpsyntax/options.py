"""Resolution of run options from the command line, Actions inputs and phpsyntax.toml."""

from __future__ import annotations

from dataclasses import dataclass
import json
import os
from pathlib import Path
from typing import Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from phpsyntax.config import (
    TomlTable,
    TomlValue,
    check_defaults,
    normalize_relative_paths,
    parse_bool,
    split_lines,
)
from phpsyntax.exceptions import ConfigurationError

DEFAULT_PHP = "php"


class CheckOptions(BaseModel):
    model_config = ConfigDict(frozen=True)

    directory: Path
    include: Tuple[str, ...] = ()
    exclude: Tuple[str, ...] = ()
    fail_on_warnings: bool = False
    support_duplicated_names: bool = False
    debug: bool = False
    php: str = DEFAULT_PHP
    timeout: Optional[float] = None

    @field_validator("directory")
    @classmethod
    def _existing_directory(cls, value: Path) -> Path:
        if not value.is_absolute():
            raise ValueError(f'Invalid directory option: "{value}" is not an absolute path')
        if not value.exists():
            raise ValueError(f'Invalid directory option: "{value}" does not exist')
        if not value.is_dir():
            raise ValueError(f'Invalid directory option: "{value}" is not a directory')
        return value

    @field_validator("php")
    @classmethod
    def _non_empty_php(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Invalid php option: the interpreter must not be empty")
        return value.strip()

    @field_validator("timeout")
    @classmethod
    def _positive_timeout(cls, value: Optional[float]) -> Optional[float]:
        if value is not None and value <= 0:
            raise ValueError(f'Invalid timeout option: "{value}" is not a positive number')
        return value

    def describe(self) -> list[str]:
        return [
            "Input options:",
            f"- directory: {json.dumps(str(self.directory))}",
            f"- include: {json.dumps(list(self.include))}",
            f"- exclude: {json.dumps(list(self.exclude))}",
            f"- fail-on-warnings: {json.dumps(self.fail_on_warnings)}",
            f"- support-duplicated-names: {json.dumps(self.support_duplicated_names)}",
            f"- php: {json.dumps(self.php)}",
            f"- timeout: {json.dumps(self.timeout)}",
        ]


@dataclass(frozen=True)
class OptionOverrides:
    """Values given explicitly on the command line; ``None`` means not given."""

    directory: Path | None = None
    include: list[str] | None = None
    exclude: list[str] | None = None
    fail_on_warnings: bool | None = None
    support_duplicated_names: bool | None = None
    debug: bool | None = None
    php: str | None = None
    timeout: float | None = None
    config: Path | None = None


def input_env_name(name: str) -> str:
    return "INPUT_" + name.replace(" ", "_").upper()


def _env_input(environ: Mapping[str, str], name: str) -> str | None:
    raw = environ.get(input_env_name(name))
    if raw is None or not raw.strip():
        return None
    return raw.strip()


def _first_given(*values: TomlValue) -> TomlValue:
    for value in values:
        if value is not None:
            return value
    return None


def _resolve_directory(raw: str | None, *, cwd: Path) -> Path:
    if raw is None:
        return cwd
    text = raw.replace("/", os.sep)
    path = Path(text)
    if not path.is_absolute():
        path = cwd / path
    return Path(os.path.normpath(path))


def _validation_message(exc: ValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return str(exc)
    first = errors[0]
    original = (first.get("ctx") or {}).get("error")
    if original is not None:
        return str(original)
    location = ".".join(str(part) for part in first.get("loc", ()))
    return f"Invalid {location} option: {first.get('msg', '')}"


def _timeout_value(value: TomlValue) -> float | None:
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValueError(f'Invalid timeout option: "{value}" is not a positive number')
    try:
        return float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        raise ValueError(f'Invalid timeout option: "{value}" is not a positive number') from None


def resolve_options(
    overrides: OptionOverrides | None = None,
    *,
    environ: Mapping[str, str] | None = None,
    cwd: Path | None = None,
) -> CheckOptions:
    """Merge command line, ``INPUT_*`` variables and ``phpsyntax.toml`` into options.

    Raises ``ConfigurationError`` before anything is executed if a value is
    invalid.
    """
    overrides = overrides or OptionOverrides()
    environ = os.environ if environ is None else environ
    cwd = cwd if cwd is not None else Path.cwd()

    raw_directory = (
        str(overrides.directory)
        if overrides.directory is not None
        else _env_input(environ, "directory")
    )
    directory = _resolve_directory(raw_directory, cwd=cwd)
    config_path = overrides.config
    if config_path is not None and not config_path.is_absolute():
        config_path = cwd / config_path
    defaults: TomlTable = {}
    if directory.is_dir():
        defaults = check_defaults(root=directory, config_path=config_path)

    def _pick(name: str, override: TomlValue) -> TomlValue:
        return _first_given(override, _env_input(environ, name), defaults.get(name))

    try:
        include = normalize_relative_paths(
            "include", split_lines(_pick("include", overrides.include))
        )
        exclude = normalize_relative_paths(
            "exclude", split_lines(_pick("exclude", overrides.exclude))
        )
        fail_on_warnings = parse_bool(
            "fail-on-warnings", _pick("fail-on-warnings", overrides.fail_on_warnings)
        )
        support_duplicated_names = parse_bool(
            "support-duplicated-names",
            _pick("support-duplicated-names", overrides.support_duplicated_names),
        )
        debug = parse_bool("debug", _pick("debug", overrides.debug))
        timeout = _timeout_value(_pick("timeout", overrides.timeout))
    except ValueError as exc:
        raise ConfigurationError(str(exc)) from exc
    php = _pick("php", overrides.php)
    try:
        return CheckOptions(
            directory=directory,
            include=tuple(include),
            exclude=tuple(exclude),
            fail_on_warnings=fail_on_warnings,
            support_duplicated_names=support_duplicated_names,
            debug=debug,
            php=str(php) if php is not None else DEFAULT_PHP,
            timeout=timeout,
        )
    except ValidationError as exc:
        raise ConfigurationError(_validation_message(exc)) from exc
