"""
node-doctor — CLI entrypoint.

Usage:
    node-doctor --help
    node-doctor check --json
    node-doctor list --all
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click

from node_doctor import __version__
from node_doctor.core.observability.logging_config import configure_cli_logging


def _format_size(size: int) -> str:
    value = float(size)
    for unit in ("B", "KB", "MB", "GB"):
        if value < 1024:
            return f"{value:.0f} {unit}" if unit == "B" else f"{value:.1f} {unit}"
        value /= 1024
    return f"{value:.1f} TB"


def _load_settings(ctx: click.Context):
    from node_doctor.core.config.loader import ConfigError, load_settings

    try:
        return load_settings(ctx.obj.get("config_path"))
    except ConfigError as e:
        click.secho(f"❌ {e}", fg="red", err=True)
        sys.exit(2)


@click.group()
@click.version_option(version=__version__, prog_name="node-doctor")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to node-doctor.yml (default: auto-detect).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
) -> None:
    """Node Doctor — diagnose your Node.js toolchain."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug
    ctx.obj["config_path"] = Path(config_path) if config_path else None

    # Project-scoped probes (.nvmrc, package.json, .vscode) look here
    from node_doctor.core.config.loader import find_settings_file
    from node_doctor.core.context import set_project_dir
    _cfg = ctx.obj["config_path"] or find_settings_file()
    set_project_dir(_cfg.parent.resolve() if _cfg else Path.cwd())

    configure_cli_logging(debug=debug, verbose=verbose, quiet=quiet)


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.option("--skip-ports", is_flag=True, help="Don't scan listening ports.")
@click.option("--skip-shell", is_flag=True, help="Don't read shell config files.")
@click.pass_context
def check(ctx: click.Context, as_json: bool, skip_ports: bool, skip_shell: bool) -> None:
    """Run the health assessment; exit 1 if any check fails."""
    from node_doctor.core.services.health import (
        format_as_json,
        format_as_text,
        run_health_assessment,
    )
    from node_doctor.detectors import build_default_registry

    settings = _load_settings(ctx)
    registry = build_default_registry()
    results = registry.scan_all()

    assessment = run_health_assessment(
        results,
        registry,
        skip_ports=skip_ports or settings.skip_ports,
        skip_shell=skip_shell or settings.skip_shell,
        settings=settings,
    )

    if as_json:
        click.echo(format_as_json(assessment))
    else:
        click.echo(format_as_text(assessment))

    sys.exit(assessment.exit_code)


@cli.command("list")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.option("--all", "include_all", is_flag=True, help="Include system and Homebrew installs.")
@click.pass_context
def list_installations(ctx: click.Context, as_json: bool, include_all: bool) -> None:
    """List Node.js versions installed by every version manager."""
    from node_doctor.detectors import build_default_registry

    registry = build_default_registry()
    results = registry.scan_all()
    installations = registry.get_all_installations(results, include_non_deletable=include_all)

    if as_json:
        payload = [i.model_dump(mode="json", by_alias=True) for i in installations]
        click.echo(json.dumps(payload, indent=2))
        return

    summary = registry.get_summary(results)
    if not installations:
        click.secho("No Node.js installations found.", fg="yellow")
        return

    if not ctx.obj.get("quiet"):
        click.secho(f"\n📦 {len(installations)} installation(s)", fg="cyan", bold=True)
        for item in summary:
            click.echo(f"   {item.icon} {item.display_name}: {item.count} ({_format_size(item.size)})")
        click.echo()

    for inst in installations:
        arch = f" [{inst.arch}]" if inst.arch else ""
        click.secho(f"   {inst.detector_icon} {inst.version}{arch}", fg="green", nl=False)
        click.echo(f"  {_format_size(inst.size)}  → {inst.path}")
        if ctx.obj.get("verbose") and inst.verified:
            click.echo(f"     │ {inst.verified}")

    click.echo()


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.option("--skip-ports", is_flag=True, help="Don't scan listening ports.")
@click.option("--skip-shell", is_flag=True, help="Don't read shell config files.")
@click.pass_context
def info(ctx: click.Context, as_json: bool, skip_ports: bool, skip_shell: bool) -> None:
    """Show the raw environment snapshot the checks are based on."""
    from node_doctor.core.services.health import collect_health_data
    from node_doctor.detectors import build_default_registry

    settings = _load_settings(ctx)
    registry = build_default_registry()
    data = collect_health_data(
        registry.scan_all(),
        registry,
        skip_ports=skip_ports or settings.skip_ports,
        skip_shell=skip_shell or settings.skip_shell,
        settings=settings,
    )

    if as_json:
        click.echo(json.dumps(data.model_dump(mode="json", by_alias=True), indent=2))
        return

    system = data.system
    click.secho(f"\n🩺 Node {system.node_version}", fg="cyan", bold=True)
    click.echo(f"   Platform: {system.platform}")
    click.echo(f"   Shell:    {system.shell}")
    click.echo(f"   npm:      {system.npm_version or 'not found'}")
    if system.exec_path:
        click.echo(f"   Path:     {system.exec_path}")
    click.echo()

    click.secho(f"   Node in PATH: {len(data.nodes_in_path)}", fg="white", bold=True)
    for node in data.nodes_in_path:
        marker = " ← active" if node.is_current else ""
        click.echo(f"     • {node.version} ({node.runner.name}){marker}  → {node.executable}")

    if data.managers:
        click.echo()
        click.secho(f"   Managers: {len(data.managers)}", fg="white", bold=True)
        for mgr in data.managers:
            click.echo(f"     {mgr.icon} {mgr.display_name}: {mgr.version_count} version(s)")

    registry_status = data.registry.status
    click.echo()
    click.secho("   Registry:", fg="white", bold=True)
    click.echo(f"     {data.registry.info.global_registry.registry}", nl=False)
    if registry_status.available:
        click.secho(f" ({registry_status.latency}ms)", fg="green")
    else:
        click.secho(" (unreachable)", fg="red")

    click.echo()


if __name__ == "__main__":
    cli()
