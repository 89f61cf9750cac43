"""
gemstage — CLI entrypoint.

Usage:
    python -m gemstage.main --help
    python -m gemstage.main install build/gems
    python -m gemstage.main install --gemfile app/Gemfile build/gems --json
    python -m gemstage.main check build/gems
    python -m gemstage.main history
"""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path

import click

from gemstage import __version__
from gemstage.core.observability.logging_config import setup_logging


@click.group()
@click.version_option(version=__version__, prog_name="gemstage")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to gemstage.yml (default: auto-detect).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
) -> None:
    """gemstage — install a Bundler project's gems into a directory."""
    ctx.ensure_object(dict)
    ctx.obj["quiet"] = quiet
    ctx.obj["config_path"] = Path(config_path) if config_path else None

    if debug:
        level = "DEBUG"
    elif verbose:
        level = "INFO"
    elif quiet:
        level = "ERROR"
    else:
        level = os.environ.get("GEMSTAGE_LOG_LEVEL", "WARNING")

    setup_logging(
        level=level,
        log_file=os.environ.get("GEMSTAGE_LOG_FILE"),
        log_file_level=os.environ.get("GEMSTAGE_LOG_FILE_LEVEL"),
    )


# ── Helpers ─────────────────────────────────────────────────────


def _load(ctx: click.Context):
    """Load config and resolve the project root, or exit with an error."""
    from gemstage.core.config.loader import ConfigError, find_config_file, load_config

    config_path: Path | None = ctx.obj.get("config_path")
    try:
        config = load_config(config_path)
    except ConfigError as e:
        click.secho(f"❌ {e}", fg="red")
        sys.exit(1)

    found = config_path or find_config_file()
    project_root = found.parent.resolve() if found else Path.cwd()
    return config, project_root


def _resolve_gemfile(gemfile: str | None, default_name: str, project_root: Path) -> Path:
    if gemfile:
        return Path(gemfile)
    return project_root / default_name


# ── Install ─────────────────────────────────────────────────────


@cli.command()
@click.argument("target_dir", type=click.Path(file_okay=False))
@click.option("--gemfile", "-g", default=None, help="Gemfile to install (default: from config / ./Gemfile).")
@click.option("--local", is_flag=True, help="Use only gems already cached locally.")
@click.option("--no-audit", is_flag=True, help="Do not record this run in the audit ledger.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def install(
    ctx: click.Context,
    target_dir: str,
    gemfile: str | None,
    local: bool,
    no_audit: bool,
    as_json: bool,
) -> None:
    """Resolve the Gemfile and install every gem into TARGET_DIR.

    With --json, stdout carries only the JSON document; a failure message
    is reported in its "message" field instead of on a line of its own.
    """
    from gemstage.core.persistence.audit import AuditWriter
    from gemstage.core.services.install_orchestrator import InstallOrchestrator

    config, project_root = _load(ctx)
    if local:
        config = config.model_copy(update={"local": True})

    audit = None if (no_audit or not config.audit) else AuditWriter(project_root=project_root)
    # With --json the failure text is part of the document, not a stray line
    echo = (lambda _msg: None) if as_json else click.echo
    orchestrator = InstallOrchestrator(config=config, audit=audit, echo=echo)

    manifest = _resolve_gemfile(gemfile, config.gemfile, project_root)
    outcome = orchestrator.install_from_manifest(target_dir, manifest)

    if as_json:
        click.echo(json.dumps(outcome.to_dict(), indent=2))
    elif outcome.ok:
        if not ctx.obj.get("quiet"):
            lock = "locked" if outcome.lockfile_present else "fresh resolution"
            click.secho(f"✅ Gems installed into {outcome.target_dir} ({lock})", fg="green")
    else:
        click.secho(f"❌ Install failed [{outcome.kind}]", fg="red")

    if not outcome.ok:
        sys.exit(1)


@cli.command()
@click.argument("target_dir", type=click.Path(file_okay=False))
@click.option("--gemfile", "-g", default=None, help="Gemfile to check (default: from config / ./Gemfile).")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def check(ctx: click.Context, target_dir: str, gemfile: str | None, as_json: bool) -> None:
    """Check whether TARGET_DIR already satisfies the Gemfile.

    With --json, a failure message is reported in the document's
    "message" field.
    """
    from gemstage.core.services.install_orchestrator import InstallOrchestrator

    config, project_root = _load(ctx)
    echo = (lambda _msg: None) if as_json else click.echo
    orchestrator = InstallOrchestrator(config=config, echo=echo)

    manifest = _resolve_gemfile(gemfile, config.gemfile, project_root)
    outcome = orchestrator.check(target_dir, manifest)

    if as_json:
        click.echo(json.dumps(outcome.to_dict(), indent=2))
    elif outcome.ok:
        click.secho(f"✅ {outcome.target_dir} satisfies {outcome.manifest}", fg="green")
    else:
        click.secho("⚠️  Target is missing gems; run 'gemstage install'", fg="yellow")

    if not outcome.ok:
        sys.exit(1)


# ── History ─────────────────────────────────────────────────────


@cli.command()
@click.option("-n", "count", default=10, show_default=True, help="Number of entries to show.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def history(ctx: click.Context, count: int, as_json: bool) -> None:
    """Show recent install runs from the audit ledger."""
    from gemstage.core.persistence.audit import AuditWriter

    _config, project_root = _load(ctx)
    entries = AuditWriter(project_root=project_root).read_recent(count)

    if as_json:
        click.echo(json.dumps([e.model_dump(mode="json") for e in entries], indent=2))
        return

    if not entries:
        click.echo("No install runs recorded.")
        return

    for entry in entries:
        icon = "✅" if entry.status == "ok" else "❌"
        kind = f" [{entry.failure_kind}]" if entry.failure_kind else ""
        click.echo(f"{icon} {entry.timestamp}  {entry.manifest} → {entry.target_dir}{kind}")


def main() -> None:
    cli(obj={})


if __name__ == "__main__":
    main()
