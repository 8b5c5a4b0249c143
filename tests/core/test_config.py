"""Tests for :mod:`awkts.core.config`."""

from __future__ import annotations

from pathlib import Path
import tomllib

import pytest
from pydantic import ValidationError

from awkts.core.config import (
    AppConfig,
    ConfigError,
    EngineConfig,
    env_overrides,
    load_config,
    load_packaged_defaults,
    read_user_config,
    render_user_config,
)
from awkts.resources import get_resource


def test_packaged_defaults_validate() -> None:
    config = load_config(defaults=load_packaged_defaults())

    assert config.log_level == "WARNING"
    assert config.engine == EngineConfig()
    assert config.parser.grammar_module == "tree_sitter_awk"


def test_layers_apply_in_precedence_order() -> None:
    config = load_config(
        defaults=load_packaged_defaults(),
        user_config={"log_level": "info", "engine": {"indent_unit": 2, "tab_width": 4}},
        env_config=env_overrides({"AWKTS_INDENT_UNIT": "3"}),
        cli_overrides={"log_level": "debug"},
    )

    assert config.log_level == "DEBUG"
    assert config.engine.indent_unit == 3
    # Deep merge keeps sibling keys from lower layers.
    assert config.engine.tab_width == 4
    assert config.engine.font_lock_level == 3


def test_env_overrides_ignore_unset_and_blank_values() -> None:
    assert env_overrides({}) == {}
    assert env_overrides({"AWKTS_LOG_LEVEL": "", "HOME": "/root"}) == {}
    assert env_overrides({"AWKTS_LOG_LEVEL": "error"}) == {"log_level": "error"}
    assert env_overrides({"AWKTS_LOG_DIR": "/var/log/awkts"}) == {"log_dir": "/var/log/awkts"}


def test_log_dir_layers_into_a_path(tmp_path: Path) -> None:
    defaults = load_config(defaults=load_packaged_defaults())
    from_env = load_config(
        defaults=load_packaged_defaults(),
        env_config=env_overrides({"AWKTS_LOG_DIR": str(tmp_path)}),
    )

    assert defaults.log_dir is None
    assert from_env.log_dir == tmp_path
    assert "# log_dir" in render_user_config(defaults)
    assert tomllib.loads(render_user_config(from_env))["log_dir"] == str(tmp_path)


@pytest.mark.parametrize(
    "layer",
    [
        {"engine": {"indent_unit": 0}},
        {"engine": {"font_lock_level": 5}},
        {"engine": {"tab_width": "wide"}},
        {"parser": {"grammar_module": ""}},
    ],
)
def test_invalid_layers_raise_config_error(layer) -> None:
    with pytest.raises(ConfigError):
        load_config(defaults=load_packaged_defaults(), user_config=layer)


def test_read_user_config_reports_bad_files(tmp_path: Path) -> None:
    broken = tmp_path / "awkts.toml"
    broken.write_text("engine = [", encoding="utf-8")

    with pytest.raises(ConfigError, match="Invalid TOML"):
        read_user_config(broken)
    with pytest.raises(ConfigError, match="Cannot read"):
        read_user_config(tmp_path / "missing.toml")


def test_rendered_config_round_trips() -> None:
    original = AppConfig(
        log_level="info",
        engine=EngineConfig(indent_unit=2, enabled_features={"comment", "keyword"}),
    )

    rendered = render_user_config(original)
    reloaded = load_config(
        defaults=load_packaged_defaults(),
        user_config=tomllib.loads(rendered),
    )

    assert rendered.startswith("# Generated by awkts init-config")
    assert reloaded.log_level == "INFO"
    assert reloaded.engine == original.engine


def test_rendered_defaults_document_the_feature_override() -> None:
    rendered = render_user_config(AppConfig())

    assert "# enabled_features" in rendered
    assert "enabled_features" not in tomllib.loads(rendered)["engine"]
    assert "#" not in render_user_config(AppConfig(), include_defaults=False)


def test_feature_selection_prefers_explicit_set() -> None:
    by_level = EngineConfig(font_lock_level=2)
    explicit = EngineConfig(font_lock_level=4, enabled_features={" error ", ""})

    assert by_level.feature_enabled("keyword", 2)
    assert not by_level.feature_enabled("number", 3)
    assert explicit.enabled_features == frozenset({"error"})
    assert explicit.feature_enabled("error", 4)
    assert not explicit.feature_enabled("comment", 1)


def test_engine_config_is_frozen() -> None:
    config = EngineConfig()

    with pytest.raises(ValidationError):
        config.indent_unit = 8  # type: ignore[misc]


def test_get_resource_missing_file_raises() -> None:
    with pytest.raises(FileNotFoundError):
        get_resource("does-not-exist.toml")
