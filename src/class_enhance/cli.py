"""Typer CLI entrypoint for class_enhance."""

from __future__ import annotations

import logging
from pathlib import Path

import typer
import yaml
from click.core import ParameterSource

from class_enhance.config import AppSettings, load_settings
from class_enhance.engine import load_engine
from class_enhance.errors import ConfigurationError, EnhancementFailedError
from class_enhance.listener import LoggingListener
from class_enhance.logging_utils import configure_logging
from class_enhance.orchestrator import EnhanceRunResult, RunConfig, ensure_passed, run_enhancement
from class_enhance.packages import PackageFilter
from class_enhance.walker import enumerate_candidates
from class_enhance.writer import write_run_artifacts

EXIT_POLICY_FAILURE = 1
EXIT_CONFIGURATION_ERROR = 2

app = typer.Typer(
    add_completion=False,
    help="class_enhance command line interface.",
    no_args_is_help=True,
)


def _load_and_optionally_configure_logger(
    config_file: Path | None,
    configure: bool,
) -> tuple[AppSettings, logging.Logger]:
    settings = load_settings(config_file=config_file)
    if configure:
        logger = configure_logging(settings.paths.logs_root / "enhance.log")
    else:
        logger = logging.getLogger("class_enhance")
    return settings, logger


def build_run_config(
    settings: AppSettings,
    source_root: Path,
    *,
    destination_root: Path | None = None,
    packages: str | None = None,
    transform_args: str | None = None,
    classpath: list[str] | None = None,
    workers: int | None = None,
    fail_on_exceptions: bool | None = None,
    skip_if_missing: bool = True,
) -> RunConfig:
    """Merge settings with command-line overrides into an immutable run config."""

    enhance = settings.enhance
    return RunConfig(
        source_root=source_root,
        destination_root=destination_root,
        packages=packages if packages is not None else enhance.packages,
        transform_args=transform_args if transform_args is not None else enhance.transform_args,
        fail_on_exceptions=fail_on_exceptions if fail_on_exceptions is not None else enhance.fail_on_exceptions,
        classpath=tuple(enhance.classpath) + tuple(classpath or ()),
        extra_classpath=enhance.extra_classpath,
        source_first=enhance.source_first,
        skip_if_missing=skip_if_missing,
        workers=workers if workers is not None else enhance.workers,
        progress_every=enhance.progress_every,
    )


def _command_line_flag(ctx: typer.Context, name: str, value: bool | None) -> bool | None:
    """Return the flag only when it was given on the command line, else defer to settings."""

    if ctx.get_parameter_source(name) != ParameterSource.COMMANDLINE:
        return None
    return value


def _echo_result(result: EnhanceRunResult) -> None:
    summary = result.summary
    typer.echo(f"run_id: {result.run_id}")
    typer.echo(f"source_root: {result.config.source_root}")
    typer.echo(f"source_missing: {result.source_missing}")
    for outcome, count in summary.counts.items():
        typer.echo(f"{outcome.lower()}: {count}")
    typer.echo(f"failed_classes: {len(summary.errors)}")
    typer.echo(f"passed: {result.passed}")


def _run_goal(
    *,
    goal: str,
    default_source: Path,
    source: Path | None,
    destination: Path | None,
    packages: str | None,
    transform_args: str | None,
    classpath: list[str] | None,
    workers: int | None,
    fail_on_exceptions: bool | None,
    write_artifacts: bool,
    settings: AppSettings,
    logger: logging.Logger,
    skip_if_missing: bool,
) -> None:
    logger.info("%s.current_directory path=%s", goal, Path.cwd())
    run_config = build_run_config(
        settings,
        source or default_source,
        destination_root=destination,
        packages=packages,
        transform_args=transform_args,
        classpath=classpath,
        workers=workers,
        fail_on_exceptions=fail_on_exceptions,
        skip_if_missing=skip_if_missing,
    )
    try:
        engine = load_engine(
            command=settings.engine.command,
            entry_point=settings.engine.entry_point,
            timeout_sec=settings.engine.timeout_sec,
            transform_args=run_config.transform_args,
            logger=logger,
        )
        result = run_enhancement(run_config, engine, listener=LoggingListener(logger), logger=logger)
    except ConfigurationError as exc:
        logger.error("%s.configuration_error error=%s", goal, exc)
        typer.echo(f"Configuration error: {exc}", err=True)
        raise typer.Exit(code=EXIT_CONFIGURATION_ERROR) from exc

    _echo_result(result)
    if write_artifacts and not result.source_missing:
        paths = write_run_artifacts(result, settings.paths.artifacts_root, logger=logger)
        typer.echo(f"summary_path: {paths.summary_path}")

    try:
        ensure_passed(result)
    except EnhancementFailedError as exc:
        for class_name in exc.failed_classes:
            logger.error("%s.failed_class class_name=%s", goal, class_name)
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=EXIT_POLICY_FAILURE) from exc


@app.command("show-config")
def show_config(
    config_file: Path | None = typer.Option(
        None,
        "--config-file",
        help="Optional settings YAML path.",
        exists=False,
        file_okay=True,
        dir_okay=False,
        readable=True,
    ),
) -> None:
    """Print the effective configuration after env overrides."""

    settings, _ = _load_and_optionally_configure_logger(config_file, configure=False)
    rendered = yaml.safe_dump(settings.as_dict(), sort_keys=False)
    typer.echo(rendered)


@app.command("list-candidates")
def list_candidates(
    source: Path | None = typer.Option(None, "--source", help="Class root (defaults to main classes)."),
    packages: str | None = typer.Option(None, "--packages", help="Comma-delimited package patterns."),
    config_file: Path | None = typer.Option(
        None,
        "--config-file",
        help="Optional settings YAML path.",
        exists=False,
        file_okay=True,
        dir_okay=False,
        readable=True,
    ),
) -> None:
    """List class files the filter selects, without invoking the engine."""

    settings, _ = _load_and_optionally_configure_logger(config_file, configure=False)
    source_root = source or settings.paths.main_classes
    package_filter = PackageFilter.parse(packages if packages is not None else settings.enhance.packages)
    count = 0
    for candidate in enumerate_candidates(source_root, package_filter):
        typer.echo(f"{candidate.class_name}\t{candidate.relative_path}")
        count += 1
    typer.echo(f"candidates: {count}")


@app.command("enhance")
def enhance(
    ctx: typer.Context,
    source: Path | None = typer.Option(None, "--source", help="Class root (defaults to main classes)."),
    destination: Path | None = typer.Option(None, "--destination", help="Output root (defaults to source)."),
    packages: str | None = typer.Option(None, "--packages", help="Comma-delimited package patterns."),
    transform_args: str | None = typer.Option(None, "--transform-args", help="Arguments passed to the engine."),
    classpath: list[str] | None = typer.Option(None, "--classpath", help="Extra classpath element (repeatable)."),
    workers: int | None = typer.Option(None, "--workers", min=0, help="Transform workers (0 = CPU count)."),
    fail_on_exceptions: bool | None = typer.Option(
        None,
        "--fail-on-exceptions/--no-fail-on-exceptions",
        help="Exit non-zero when any class failed to enhance (defaults to settings).",
    ),
    write_artifacts: bool = typer.Option(True, "--write-artifacts/--no-write-artifacts", help="Write run summaries."),
    config_file: Path | None = typer.Option(
        None,
        "--config-file",
        help="Optional settings YAML path.",
        exists=False,
        file_okay=True,
        dir_okay=False,
        readable=True,
    ),
) -> None:
    """Enhance the module's main classes."""

    settings, logger = _load_and_optionally_configure_logger(config_file, configure=True)
    _run_goal(
        goal="enhance",
        default_source=settings.paths.main_classes,
        source=source,
        destination=destination,
        packages=packages,
        transform_args=transform_args,
        classpath=classpath,
        workers=workers,
        fail_on_exceptions=_command_line_flag(ctx, "fail_on_exceptions", fail_on_exceptions),
        write_artifacts=write_artifacts,
        settings=settings,
        logger=logger,
        skip_if_missing=False,
    )


@app.command("test-enhance")
def test_enhance(
    ctx: typer.Context,
    source: Path | None = typer.Option(None, "--source", help="Class root (defaults to test classes)."),
    destination: Path | None = typer.Option(None, "--destination", help="Output root (defaults to source)."),
    packages: str | None = typer.Option(None, "--packages", help="Comma-delimited package patterns."),
    transform_args: str | None = typer.Option(None, "--transform-args", help="Arguments passed to the engine."),
    classpath: list[str] | None = typer.Option(None, "--classpath", help="Extra classpath element (repeatable)."),
    workers: int | None = typer.Option(None, "--workers", min=0, help="Transform workers (0 = CPU count)."),
    fail_on_exceptions: bool | None = typer.Option(
        None,
        "--fail-on-exceptions/--no-fail-on-exceptions",
        help="Exit non-zero when any class failed to enhance (defaults to settings).",
    ),
    write_artifacts: bool = typer.Option(True, "--write-artifacts/--no-write-artifacts", help="Write run summaries."),
    config_file: Path | None = typer.Option(
        None,
        "--config-file",
        help="Optional settings YAML path.",
        exists=False,
        file_okay=True,
        dir_okay=False,
        readable=True,
    ),
) -> None:
    """Enhance the module's test classes; a missing test root is skipped quietly."""

    settings, logger = _load_and_optionally_configure_logger(config_file, configure=True)
    _run_goal(
        goal="test_enhance",
        default_source=settings.paths.test_classes,
        source=source,
        destination=destination,
        packages=packages,
        transform_args=transform_args,
        classpath=classpath,
        workers=workers,
        fail_on_exceptions=_command_line_flag(ctx, "fail_on_exceptions", fail_on_exceptions),
        write_artifacts=write_artifacts,
        settings=settings,
        logger=logger,
        skip_if_missing=True,
    )


def main() -> None:
    """CLI script entrypoint."""

    app()


if __name__ == "__main__":
    main()
