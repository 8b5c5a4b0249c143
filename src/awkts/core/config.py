"""Configuration models and loaders for :mod:`awkts`."""

from __future__ import annotations

from collections.abc import Mapping as MappingABC
from pathlib import Path
from typing import Any, Mapping

import tomllib
import tomlkit
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from awkts.resources import get_resource


class ConfigError(ValueError):
    """Raised when a configuration layer cannot be read or validated."""


class EngineConfig(BaseModel):
    """Configuration record passed into every engine query."""

    indent_unit: int = Field(
        default=4,
        ge=1,
        description="Columns per indentation unit.",
    )
    tab_width: int = Field(
        default=8,
        ge=1,
        description="Columns a tab character advances to when measuring.",
    )
    enabled_features: frozenset[str] | None = Field(
        default=None,
        description=(
            "Explicit set of highlight features; ``None`` derives the set "
            "from ``font_lock_level``."
        ),
    )
    font_lock_level: int = Field(
        default=3,
        ge=1,
        le=4,
        description="Highest feature level enabled when no explicit set is given.",
    )
    prefer_top_level: bool = Field(
        default=False,
        description="Only list definitions without an enclosing definition.",
    )

    model_config = {
        "frozen": True,
        "str_strip_whitespace": True,
    }

    @field_validator("enabled_features")
    @classmethod
    def _normalize_features(
        cls,
        value: frozenset[str] | None,
    ) -> frozenset[str] | None:
        if value is None:
            return None
        normalized = frozenset(name.strip() for name in value if name.strip())
        return normalized

    def feature_enabled(self, name: str, level: int) -> bool:
        """Return ``True`` when feature ``name`` at ``level`` is active.

        Example:
            >>> EngineConfig(font_lock_level=2).feature_enabled("number", 3)
            False
            >>> EngineConfig(enabled_features={"number"}).feature_enabled("number", 3)
            True
        """

        if self.enabled_features is not None:
            return name in self.enabled_features
        return level <= self.font_lock_level


class ParserSettings(BaseModel):
    """Where to find the tree-sitter grammar binding."""

    grammar_module: str = Field(
        default="tree_sitter_awk",
        description="Python module exposing the compiled grammar.",
    )
    language_function: str = Field(
        default="language",
        description="Callable on ``grammar_module`` returning the language pointer.",
    )

    model_config = {
        "frozen": True,
        "str_strip_whitespace": True,
    }

    @field_validator("grammar_module", "language_function")
    @classmethod
    def _require_value(cls, value: str) -> str:
        if not value:
            raise ValueError("Parser settings cannot be blank.")
        return value


class AppConfig(BaseModel):
    """Root configuration for the :mod:`awkts` application."""

    log_level: str = Field(
        default="WARNING",
        description="Default logging level for the application runtime.",
    )
    log_dir: Path | None = Field(
        default=None,
        description="Directory receiving the rotating awkts.log file.",
    )
    engine: EngineConfig = Field(
        default_factory=EngineConfig,
        description="Engine query configuration.",
    )
    parser: ParserSettings = Field(
        default_factory=ParserSettings,
        description="Grammar binding settings.",
    )

    model_config = {
        "str_strip_whitespace": True,
        "validate_assignment": True,
    }

    @model_validator(mode="after")
    def _post_process(self) -> "AppConfig":
        """Normalize fields after validation."""

        object.__setattr__(self, "log_level", self.log_level.upper())
        return self


DEFAULTS_RESOURCE_NAME = "awkts.defaults.toml"
USER_CONFIG_FILENAME = "awkts.toml"

_ENV_LOG_LEVEL = "AWKTS_LOG_LEVEL"
_ENV_INDENT_UNIT = "AWKTS_INDENT_UNIT"
_ENV_LOG_DIR = "AWKTS_LOG_DIR"


def read_packaged_defaults_text() -> str:
    """Return the raw packaged defaults TOML content.

    Example:
        >>> text = read_packaged_defaults_text()
        >>> text.startswith("#")
        True
    """

    resource = get_resource(DEFAULTS_RESOURCE_NAME)
    return resource.read_text(encoding="utf-8")


def load_packaged_defaults() -> dict[str, Any]:
    """Load the packaged defaults as a plain dictionary.

    Example:
        >>> defaults = load_packaged_defaults()
        >>> defaults["engine"]["indent_unit"]
        4
    """

    text = read_packaged_defaults_text()
    data: dict[str, Any] = tomllib.loads(text)
    return data


def read_user_config(path: Path) -> dict[str, Any]:
    """Parse a user ``awkts.toml`` file.

    Raises:
        ConfigError: If the file cannot be read or is not valid TOML.
    """

    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Cannot read config file {path}: {exc}") from exc
    try:
        return tomllib.loads(text)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"Invalid TOML in {path}: {exc}") from exc


def env_overrides(environ: Mapping[str, str]) -> dict[str, Any]:
    """Translate ``AWKTS_*`` environment variables into a config layer.

    Example:
        >>> env_overrides({"AWKTS_INDENT_UNIT": "2"})
        {'engine': {'indent_unit': '2'}}
    """

    layer: dict[str, Any] = {}
    level = environ.get(_ENV_LOG_LEVEL)
    if level:
        layer["log_level"] = level
    log_dir = environ.get(_ENV_LOG_DIR)
    if log_dir:
        layer["log_dir"] = log_dir
    unit = environ.get(_ENV_INDENT_UNIT)
    if unit:
        layer["engine"] = {"indent_unit": unit}
    return layer


def _deep_merge(
    base: Mapping[str, Any],
    overlay: Mapping[str, Any],
) -> dict[str, Any]:
    """Recursively merge ``overlay`` into ``base`` returning a new dict."""

    merged: dict[str, Any] = dict(base)
    for key, value in overlay.items():
        if (
            key in merged
            and isinstance(merged[key], MappingABC)
            and isinstance(value, MappingABC)
        ):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(
    *,
    defaults: Mapping[str, Any],
    user_config: Mapping[str, Any] | None = None,
    env_config: Mapping[str, Any] | None = None,
    cli_overrides: Mapping[str, Any] | None = None,
) -> AppConfig:
    """Load configuration according to the precedence stack.

    Args:
        defaults: Packaged defaults shipped with the application.
        user_config: Parsed user ``awkts.toml`` content.
        env_config: Settings derived from environment variables.
        cli_overrides: Settings supplied via CLI flags.

    Returns:
        A validated :class:`AppConfig` instance.

    Raises:
        ConfigError: If the merged layers do not validate.
    """

    stack = dict(defaults)
    for layer in (user_config, env_config, cli_overrides):
        if layer:
            stack = _deep_merge(stack, layer)

    try:
        return AppConfig.model_validate(stack)
    except ValidationError as exc:
        raise ConfigError(str(exc)) from exc


def render_user_config(
    config: AppConfig,
    *,
    include_defaults: bool = True,
) -> str:
    """Render an ``awkts.toml`` template for users to customize.

    Args:
        config: Configuration instance to serialize.
        include_defaults: Whether to inline commentary.

    Returns:
        A TOML-formatted string ready to persist for the user.
    """

    document = tomlkit.document()

    if include_defaults:
        document.add(tomlkit.comment("Generated by awkts init-config"))
        document.add(
            tomlkit.comment(
                "Precedence: CLI flags > env vars > awkts.toml > defaults"
            )
        )
        document.add(tomlkit.comment("Environment overrides:"))
        document.add(tomlkit.comment(f"  {_ENV_LOG_LEVEL}=info"))
        document.add(tomlkit.comment(f"  {_ENV_INDENT_UNIT}=2"))
        document.add(tomlkit.comment(f"  {_ENV_LOG_DIR}=~/.cache/awkts"))
        document.add(tomlkit.nl())

    document["log_level"] = config.log_level
    if config.log_dir is not None:
        document["log_dir"] = str(config.log_dir)
    elif include_defaults:
        document.add(
            tomlkit.comment('log_dir = "~/.cache/awkts"  # also write a rotating awkts.log')
        )

    engine = config.engine
    engine_table = tomlkit.table()
    engine_table["indent_unit"] = engine.indent_unit
    engine_table["tab_width"] = engine.tab_width
    engine_table["font_lock_level"] = engine.font_lock_level
    engine_table["prefer_top_level"] = engine.prefer_top_level
    if engine.enabled_features is not None:
        engine_table["enabled_features"] = sorted(engine.enabled_features)
    elif include_defaults:
        engine_table.add(
            tomlkit.comment(
                'enabled_features = ["comment", "keyword"]  # overrides the level'
            )
        )
    document["engine"] = engine_table

    parser_table = tomlkit.table()
    parser_table["grammar_module"] = config.parser.grammar_module
    parser_table["language_function"] = config.parser.language_function
    document["parser"] = parser_table

    return tomlkit.dumps(document)


__all__ = [
    "AppConfig",
    "ConfigError",
    "DEFAULTS_RESOURCE_NAME",
    "EngineConfig",
    "ParserSettings",
    "USER_CONFIG_FILENAME",
    "env_overrides",
    "load_config",
    "load_packaged_defaults",
    "read_packaged_defaults_text",
    "read_user_config",
    "render_user_config",
]
