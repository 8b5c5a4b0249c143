"""Command-line interface for :mod:`awkts`.

This module exposes the Typer application behind the ``awkts`` console
script: highlighting, reindentation and outline queries over AWK files.

Example:
    >>> import typer
    >>> from awkts.cli import create_app
    >>> app = create_app()
    >>> isinstance(app, typer.Typer)
    True
"""

from __future__ import annotations

from dataclasses import dataclass
import json
import os
from pathlib import Path

import typer

from awkts.awk import build_default_rules
from awkts.cli.init import default_config_path, resolve_app_config, write_user_config
from awkts.core.config import AppConfig, ConfigError, EngineConfig
from awkts.core.logging import Logger, configure_logging, get_logger
from awkts.engine.errors import AwktsError, ParserUnavailableError
from awkts.engine.language import LanguageRules
from awkts.engine.parsing import parse_source
from awkts.engine.source import SourceText
from awkts.service import EditingSession

_app_help = (
    "Syntax-directed editing support for AWK."
    "\n\n"
    "Highlight, reindent and outline AWK programs using tree-sitter-awk."
)


@dataclass(slots=True)
class CLIContext:
    """Shared state carried across ``awkts`` commands."""

    config: AppConfig
    logger: Logger
    rules: LanguageRules | None = None

    def language_rules(self) -> LanguageRules:
        if self.rules is None:
            self.rules = build_default_rules(logger=self.logger)
        return self.rules


def _require_context(ctx: typer.Context) -> CLIContext:
    context = getattr(ctx, "obj", None)
    if not isinstance(context, CLIContext):
        typer.secho("Internal error: CLI context not initialized.", fg=typer.colors.RED)
        raise typer.Exit(code=1)
    return context


def _file_argument():
    return typer.Argument(
        ...,
        exists=True,
        dir_okay=False,
        readable=True,
        help="AWK source file.",
    )


def _open_session(
    context: CLIContext,
    path: Path,
    engine: EngineConfig,
) -> EditingSession:
    source = SourceText(path.read_bytes())
    try:
        tree = parse_source(source, context.config.parser)
    except ParserUnavailableError as exc:
        typer.secho(f"Parser unavailable: {exc}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=2) from exc
    context.logger.debug("file-parsed", path=str(path), nodes=tree.node_count)
    return EditingSession(
        source,
        tree,
        config=engine,
        rules=context.language_rules(),
        logger=context.logger,
    )


def _engine_overrides(
    engine: EngineConfig,
    *,
    features: list[str] | None = None,
    level: int | None = None,
    top_level: bool | None = None,
) -> EngineConfig:
    updates: dict[str, object] = {}
    if features:
        updates["enabled_features"] = frozenset(features)
    if level is not None:
        updates["font_lock_level"] = level
        if not features:
            updates["enabled_features"] = None
    if top_level is not None:
        updates["prefer_top_level"] = top_level
    if not updates:
        return engine
    return EngineConfig.model_validate({**engine.model_dump(), **updates})


def create_app() -> "typer.Typer":
    """Return the Typer application powering the ``awkts`` CLI."""

    app = typer.Typer(
        help=_app_help,
        no_args_is_help=True,
        rich_markup_mode="rich",
        invoke_without_command=False,
        cls=typer.core.TyperGroup,
    )

    @app.callback()
    def main_callback(
        ctx: typer.Context,
        config_path: Path | None = typer.Option(
            None,
            "--config",
            "-c",
            help="Read settings from this awkts.toml (defaults to ./awkts.toml).",
        ),
        log_level: str | None = typer.Option(
            None,
            "--log-level",
            "-l",
            help="Override the logging level (DEBUG/INFO/WARNING/ERROR).",
        ),
        log_dir: Path | None = typer.Option(
            None,
            "--log-dir",
            help="Also write a rotating JSON awkts.log into this directory.",
        ),
    ) -> None:
        """Resolve configuration and logging before dispatching."""

        try:
            config = resolve_app_config(
                config_path=config_path,
                log_level=log_level,
                log_dir=log_dir,
                environ=os.environ,
            )
        except ConfigError as exc:
            typer.secho(f"Configuration error: {exc}", fg=typer.colors.RED, err=True)
            raise typer.Exit(code=2) from exc

        try:
            configure_logging(level=config.log_level, log_dir=config.log_dir)
        except ValueError as exc:
            raise typer.BadParameter(str(exc), param_hint="--log-level") from exc
        except OSError as exc:
            raise typer.BadParameter(str(exc), param_hint="--log-dir") from exc

        ctx.obj = CLIContext(
            config=config,
            logger=get_logger(__name__, command=ctx.invoked_subcommand),
        )

    @app.command("highlight", help="Print highlight assignments for a file.")
    def highlight_command(
        ctx: typer.Context,
        path: Path = _file_argument(),
        feature: list[str] = typer.Option(
            None,
            "--feature",
            "-f",
            metavar="NAME",
            help="Enable only these feature groups (repeatable).",
        ),
        level: int | None = typer.Option(
            None,
            "--level",
            min=1,
            max=4,
            help="Font-lock level to enable when no feature is named.",
        ),
        start: int | None = typer.Option(None, "--start", min=0, help="First byte."),
        end: int | None = typer.Option(None, "--end", min=0, help="Byte after the last."),
    ) -> None:
        context = _require_context(ctx)
        engine = _engine_overrides(context.config.engine, features=feature, level=level)
        session = _open_session(context, path, engine)
        source = session.source
        assignments = session.highlight(start=start, end=end)
        for assignment in assignments:
            text = source.text(assignment.start, assignment.end)
            typer.echo(
                f"{assignment.start} {assignment.end} "
                f"{assignment.classification.value} {json.dumps(text)}"
            )
        context.logger.info("highlight-complete", path=str(path), assignments=len(assignments))

    @app.command("indent", help="Reindent a file (prints the result by default).")
    def indent_command(
        ctx: typer.Context,
        path: Path = _file_argument(),
        write: bool = typer.Option(False, "--write", "-w", help="Rewrite the file in place."),
        check: bool = typer.Option(
            False,
            "--check",
            help="Exit with status 1 when the file is not indented.",
        ),
    ) -> None:
        context = _require_context(ctx)
        if write and check:
            raise typer.BadParameter("Use either --write or --check", param_hint="--write/--check")
        session = _open_session(context, path, context.config.engine)
        original = session.source.text(0, len(session.source))
        reindented = session.reindent()
        changed = reindented != original
        context.logger.info("indent-complete", path=str(path), changed=changed)

        if check:
            if changed:
                typer.secho(f"{path}: not indented", fg=typer.colors.YELLOW)
                raise typer.Exit(code=1)
            typer.echo(f"{path}: ok")
            return
        if write:
            if changed:
                path.write_text(reindented, encoding="utf-8")
                typer.secho(f"Reindented {path}", fg=typer.colors.GREEN)
            else:
                typer.echo(f"{path}: already indented")
            return
        typer.echo(reindented, nl=False)

    @app.command("outline", help="List the definitions in a file.")
    def outline_command(
        ctx: typer.Context,
        path: Path = _file_argument(),
        top_level: bool | None = typer.Option(
            None,
            "--top-level/--all",
            help="Only list definitions without an enclosing definition.",
        ),
    ) -> None:
        context = _require_context(ctx)
        engine = _engine_overrides(context.config.engine, top_level=top_level)
        session = _open_session(context, path, engine)
        for entry in session.outline():
            line = session.source.line_of(entry.start) + 1
            typer.echo(f"{entry.category}\t{entry.name}\t{path}:{line}")

    @app.command("features", help="List highlight feature groups and their state.")
    def features_command(
        ctx: typer.Context,
        level: int | None = typer.Option(None, "--level", min=1, max=4),
    ) -> None:
        context = _require_context(ctx)
        engine = _engine_overrides(context.config.engine, level=level)
        typer.secho("Features:", bold=True)
        for group in context.language_rules().highlight:
            state = "enabled" if engine.feature_enabled(group.name, group.level) else "disabled"
            typer.echo(f"  - {group.name} (level {group.level}): {state}")

    @app.command("init-config", help="Write a commented awkts.toml template.")
    def init_config_command(
        ctx: typer.Context,
        path: Path | None = typer.Argument(None, help="Destination (defaults to ./awkts.toml)."),
        force: bool = typer.Option(False, "--force", help="Overwrite an existing file."),
    ) -> None:
        context = _require_context(ctx)
        target = path or default_config_path()
        try:
            write_user_config(target, config=context.config, force=force)
        except FileExistsError as exc:
            typer.secho(
                f"{target} already exists; pass --force to overwrite.",
                fg=typer.colors.RED,
                err=True,
            )
            raise typer.Exit(code=1) from exc
        typer.secho(f"Wrote {target}", fg=typer.colors.GREEN)

    return app


def run_safely(app: "typer.Typer", *, prog_name: str = "awkts") -> None:
    """Invoke ``app`` converting engine failures into exit status 2."""

    try:
        app(prog_name=prog_name)
    except AwktsError as exc:
        typer.secho(f"Error: {exc}", fg=typer.colors.RED, err=True)
        raise SystemExit(2) from exc


__all__ = ["CLIContext", "create_app", "run_safely"]
