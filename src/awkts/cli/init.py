"""Configuration helpers for the ``awkts`` commands."""

from __future__ import annotations

from pathlib import Path
from typing import Mapping

from awkts.core.config import (
    AppConfig,
    ConfigError,
    USER_CONFIG_FILENAME,
    env_overrides,
    load_config,
    load_packaged_defaults,
    read_user_config,
    render_user_config,
)


def default_config_path(cwd: Path | None = None) -> Path:
    return (cwd or Path.cwd()) / USER_CONFIG_FILENAME


def resolve_app_config(
    *,
    config_path: Path | None = None,
    log_level: str | None = None,
    log_dir: Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> AppConfig:
    """Layer packaged defaults, ``awkts.toml``, environment and flags.

    An explicit ``config_path`` must exist; otherwise ``./awkts.toml`` is
    read when present.

    Raises:
        ConfigError: If a layer is unreadable or the result is invalid.
    """

    user_config = None
    if config_path is not None:
        if not config_path.is_file():
            raise ConfigError(f"Config file not found: {config_path}")
        user_config = read_user_config(config_path)
    else:
        candidate = default_config_path()
        if candidate.is_file():
            user_config = read_user_config(candidate)

    cli_overrides: dict[str, object] = {}
    if log_level:
        cli_overrides["log_level"] = log_level
    if log_dir is not None:
        cli_overrides["log_dir"] = log_dir
    return load_config(
        defaults=load_packaged_defaults(),
        user_config=user_config,
        env_config=env_overrides(environ or {}),
        cli_overrides=cli_overrides,
    )


def write_user_config(
    path: Path,
    *,
    config: AppConfig | None = None,
    force: bool = False,
) -> Path:
    """Write a commented ``awkts.toml`` template to ``path``.

    Example:
        >>> import tempfile
        >>> target = Path(tempfile.mkdtemp()) / "awkts.toml"
        >>> write_user_config(target).name
        'awkts.toml'

    Raises:
        FileExistsError: If ``path`` exists and ``force`` is not set.
    """

    if path.exists() and not force:
        raise FileExistsError(path)
    resolved = config or load_config(defaults=load_packaged_defaults())
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(render_user_config(resolved), encoding="utf-8")
    return path


__all__ = [
    "default_config_path",
    "resolve_app_config",
    "write_user_config",
]
