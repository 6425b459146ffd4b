"""card-pipeline command line.

    card-pipeline validate --set 9 --languages EN,DE,FR,IT --range 1-204
    card-pipeline reconcile --set 9 --languages IT --range 1-204 --apply
    card-pipeline cleanup --set 9 --languages EN,IT
    card-pipeline config
"""

from pathlib import Path
from typing import Optional

import click

import constants
from cli.common import (
    EXIT_ERROR,
    EXIT_UNRESOLVED,
    ProgressPrinter,
    apply_log_overrides,
    console_level,
    default_report_path,
    exit_with_message,
    write_json_outputs,
)
from cli.handlers import (
    handle_cleanup,
    handle_reconcile,
    handle_show_config,
    handle_validate,
)
from config.schema import ReconcileConfig, load_config, save_config
from config.settings import PipelineSettings
from core import __version__
from core.logging import setup_logging
from errors import ConfigurationError


def run_options(command):
    """Options shared by ``validate`` and ``reconcile``."""
    options = [
        click.option(
            "--config",
            "config_path",
            type=click.Path(dir_okay=False, path_type=Path),
            help="YAML/JSON run configuration; flags override its values.",
        ),
        click.option("--set", "set_id", help="Set number, e.g. 9 or 009."),
        click.option(
            "--languages",
            help=f"Comma-separated languages ({','.join(constants.VALID_LANGUAGES)}).",
        ),
        click.option("--range", "card_range", help="Card numbers, e.g. 1-204."),
        click.option(
            "--primary",
            "primary_language",
            help="Language that owns the shared art-only images.",
        ),
        click.option(
            "--variants/--no-variants",
            "include_variants",
            default=None,
            help="Check the art-only and art-and-name crops.",
        ),
        click.option(
            "--include-existing",
            is_flag=True,
            default=False,
            help="Also check card numbers already on disk outside the range.",
        ),
        click.option(
            "--tolerance",
            "tolerance_px",
            type=int,
            help="Accepted pixel deviation from expected dimensions.",
        ),
        click.option(
            "--report",
            "report_path",
            type=click.Path(dir_okay=False, path_type=Path),
            help="Write the JSON report here (default: reports dir).",
        ),
        click.option(
            "--json", "json_mode", is_flag=True, default=False, help="Print the report as JSON."
        ),
    ]
    for option in reversed(options):
        command = option(command)
    return command


def _build_config(config_path: Optional[Path], **overrides) -> ReconcileConfig:
    # Unset flags must not override values from a config file
    if not overrides.get("include_existing"):
        overrides["include_existing"] = None
    if config_path is not None:
        return load_config(config_path, **overrides)

    missing = [
        flag
        for flag, key in (("--set", "set_id"), ("--range", "card_range"))
        if overrides.get(key) is None
    ]
    if missing:
        raise click.UsageError(f"Missing option(s): {', '.join(missing)} (or use --config)")
    try:
        return ReconcileConfig(**{k: v for k, v in overrides.items() if v is not None})
    except ValueError as exc:
        raise ConfigurationError(f"Invalid run configuration: {exc}") from exc


def _config_or_exit(config_path: Optional[Path], **overrides) -> ReconcileConfig:
    try:
        return _build_config(config_path, **overrides)
    except ConfigurationError as exc:
        exit_with_message(f"[ERROR] {exc}", code=EXIT_ERROR)


def _emit_report(ctx, report, command: str, report_path: Optional[Path], json_mode) -> None:
    settings: PipelineSettings = ctx.obj["settings"]
    _, _, json_mode = apply_log_overrides(json_mode=json_mode or None)

    out_path = report_path or default_report_path(
        settings.reports_dir, command, report.set_id, report.started_at
    )
    write_json_outputs(payload=report.to_dict(), out_path=out_path, emit_stdout=bool(json_mode))

    if not json_mode:
        for line in report.summary_lines():
            click.echo(line)
        for warning in report.warnings:
            click.echo(f"  ! {warning}")
        for error in report.errors:
            click.echo(f"  x {error}", err=True)
        click.echo(f"Report written to {out_path}")


@click.group()
@click.version_option(__version__, prog_name="card-pipeline")
@click.option("--quiet", is_flag=True, default=False, help="Only log warnings and errors.")
@click.option("--verbose", is_flag=True, default=False, help="Log debug output.")
@click.option(
    "--cards-root",
    type=click.Path(file_okay=False, path_type=Path),
    help="Root of the card image tree (overrides CIP_CARDS_ROOT).",
)
@click.pass_context
def cli(ctx, quiet, verbose, cards_root):
    """Validate and repair the card image tree."""
    overrides = {}
    if cards_root is not None:
        overrides["cards_root"] = cards_root.expanduser().resolve()
    settings = PipelineSettings(**overrides)

    quiet, verbose, _ = apply_log_overrides(quiet=quiet or None, verbose=verbose or None)
    setup_logging(settings, level=console_level(quiet, verbose, settings.log_level))

    ctx.ensure_object(dict)
    ctx.obj["settings"] = settings


@cli.command()
@run_options
@click.pass_context
def validate(ctx, config_path, report_path, json_mode, **overrides):
    """Report missing, corrupt and misfit images without changing anything."""
    config = _config_or_exit(config_path, **overrides)
    printer = ProgressPrinter()

    result = handle_validate(config, ctx.obj["settings"], progress=printer.card_done)
    if not result["ok"]:
        exit_with_message(f"[ERROR] {result['error']}", code=EXIT_ERROR)

    report = result["value"]
    _emit_report(ctx, report, "validate", report_path, json_mode)
    if report.total_issues:
        raise SystemExit(EXIT_UNRESOLVED)


@cli.command()
@run_options
@click.option(
    "--apply",
    "apply_repairs",
    is_flag=True,
    default=False,
    help="Actually repair. Without it the run is a dry run.",
)
@click.option("--attempts", "max_attempts", type=int, help="Repair passes per card.")
@click.option("--workers", "max_workers", type=int, help="Cards processed in parallel.")
@click.pass_context
def reconcile(ctx, config_path, report_path, json_mode, apply_repairs, **overrides):
    """Repair cards until every expected image exists and is valid."""
    if apply_repairs:
        overrides["dry_run"] = False
    config = _config_or_exit(config_path, **overrides)
    if config.dry_run:
        click.echo("Dry run: no files will be changed (use --apply to repair).", err=True)

    printer = ProgressPrinter()
    result = handle_reconcile(config, ctx.obj["settings"], progress=printer.card_done)
    if not result["ok"]:
        exit_with_message(f"[ERROR] {result['error']}", code=EXIT_ERROR)

    report = result["value"]
    _emit_report(ctx, report, "reconcile", report_path, json_mode)
    if not report.ok:
        raise SystemExit(EXIT_UNRESOLVED)


@cli.command()
@click.option("--set", "set_id", required=True, help="Set number.")
@click.option(
    "--languages",
    default=",".join(constants.VALID_LANGUAGES),
    show_default=True,
    help="Comma-separated languages.",
)
@click.option("--dry-run", is_flag=True, default=False, help="List files without deleting.")
@click.pass_context
def cleanup(ctx, set_id, languages, dry_run):
    """Delete converted JPG/PNG sources and leftover staging files."""
    languages = [code.strip().upper() for code in languages.split(",") if code.strip()]
    set_id = set_id.strip().zfill(constants.SET_ID_WIDTH)

    result = handle_cleanup(set_id, languages, ctx.obj["settings"], dry_run=dry_run)
    if not result["ok"]:
        exit_with_message(f"[ERROR] {result['error']}", code=EXIT_ERROR)

    summary = result["value"]
    verb = "Would remove" if dry_run else "Removed"
    for path in summary.removed:
        click.echo(f"{verb} {path}")
    click.echo(f"{verb} {summary.removed_count} file(s); kept {len(summary.kept)}")
    if summary.errors:
        exit_with_message("\n".join(summary.errors), code=EXIT_ERROR)


@cli.command("config")
@click.option(
    "--write",
    "write_path",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Write a run configuration template here.",
)
@click.option("--set", "set_id", default="1", show_default=True)
@click.option("--range", "card_range", default="1-204", show_default=True)
@click.pass_context
def config_command(ctx, write_path, set_id, card_range):
    """Show effective settings or write a run configuration template."""
    if write_path is not None:
        template = ReconcileConfig(
            set_id=set_id,
            languages=list(constants.VALID_LANGUAGES),
            card_range=card_range,
        )
        save_config(template, write_path)
        click.echo(f"Wrote {write_path}")
        return

    result = handle_show_config(ctx.obj["settings"])
    if not result["ok"]:
        exit_with_message(f"[ERROR] {result['error']}", code=EXIT_ERROR)
    write_json_outputs(payload=result["value"], emit_stdout=True)


def main():
    cli(obj={})


if __name__ == "__main__":
    main()
