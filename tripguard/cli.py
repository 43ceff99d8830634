"""tripguard CLI: run the moderation pipeline by hand and review incidents."""

import asyncio
import logging

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from tripguard import __version__

console = Console()


def _load_config(config_path: str | None):
    from tripguard.config import GuardConfig, load_config

    if config_path:
        return load_config(config_path)
    return GuardConfig.from_env()


@click.group()
@click.version_option(version=__version__)
@click.option("--config", "config_path", default=None, help="YAML config file")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def main(ctx, config_path: str | None, verbose: bool):
    """tripguard: input moderation for AI travel-itinerary generation.

    Operator tooling around the validation pipeline. The application
    itself calls the library directly.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    ctx.obj = {"config_path": config_path}


# ── Check ────────────────────────────────────────────────────────────


@main.command()
@click.option("--destination", "-d", default="", help="Destination as typed by the user")
@click.option("--notes", "-n", default="", help="Trip notes as typed by the user")
@click.option("--user-id", default=None, help="User identifier for the incident log")
@click.pass_context
def check(ctx, destination: str, notes: str, user_id: str | None):
    """Run one destination/notes pair through the full pipeline."""
    from tripguard.moderation.models import ValidationRequest
    from tripguard.moderation.orchestrator import build_orchestrator

    config = _load_config(ctx.obj["config_path"])
    orchestrator = build_orchestrator(config=config)
    request = ValidationRequest(destination=destination, notes=notes, user_id=user_id)

    async def run():
        verdict = await orchestrator.validate_user_input(request)
        await orchestrator.aclose()
        return verdict

    verdict = asyncio.run(run())

    status = "[green]ACCEPT[/]" if verdict.is_valid else "[red]REJECT[/]"
    lines = [
        f"Decision:      {status}",
        f"Layer:         {verdict.layer}",
        f"Category:      {verdict.category.value if verdict.category else '-'}",
        f"Travel:        {verdict.is_travel_related}",
        f"Injection:     {verdict.has_prompt_injection}",
        f"Inappropriate: {verdict.has_inappropriate_content}",
        f"Confidence:    {verdict.confidence}",
    ]
    if verdict.reason:
        lines.append(f"Reason:        {verdict.reason}")
    console.print(Panel("\n".join(lines), title="Validation Result"))
    if not verdict.is_valid:
        ctx.exit(1)


# ── Instructions ─────────────────────────────────────────────────────


@main.command()
def instructions():
    """Print the security block prepended to generation prompts."""
    from tripguard.moderation.instructions import build_security_instructions

    click.echo(build_security_instructions())


# ── Incidents ────────────────────────────────────────────────────────


@main.group()
def incidents():
    """Review the incident log."""


@incidents.command(name="list")
@click.option("--category", "-c", default=None, help="Filter by category")
@click.option("--severity", "-s", default=None, type=click.Choice(["soft_warn", "hard_block"]))
@click.option("--user-id", default=None, help="Filter by user")
@click.option("--limit", default=50, show_default=True)
@click.pass_context
def list_incidents(ctx, category: str | None, severity: str | None, user_id: str | None, limit: int):
    """List recent incidents, newest first."""
    from tripguard.security.incident_log import IncidentLogger

    config = _load_config(ctx.obj["config_path"])
    log = IncidentLogger(config.incident_path)
    records = log.get_incidents(category=category, severity=severity, user_id=user_id, limit=limit)

    if not records:
        console.print("[yellow]No incidents recorded.[/]")
        return

    table = Table(title=f"Incidents ({len(records)} shown)")
    table.add_column("Time", style="dim")
    table.add_column("Category", style="cyan")
    table.add_column("Severity")
    table.add_column("Layer")
    table.add_column("Conf", justify="right")
    table.add_column("Script")
    table.add_column("User")
    table.add_column("Input")

    for r in records:
        severity_label = "[red]hard_block[/]" if r.severity == "hard_block" else "[yellow]soft_warn[/]"
        table.add_row(
            r.timestamp[:19],
            r.category or "-",
            severity_label,
            r.layer,
            str(r.confidence),
            r.locale_hint or "-",
            r.user_id,
            r.input_digest[:40],
        )

    console.print(table)


@incidents.command(name="export")
@click.option("--format", "fmt", default="json", type=click.Choice(["json", "csv"]))
@click.option("--category", "-c", default=None, help="Filter by category")
@click.option("--start", "start_date", default=None, help="ISO timestamp lower bound")
@click.option("--end", "end_date", default=None, help="ISO timestamp upper bound")
@click.option("--output", "-o", default=None, help="Write to a file instead of stdout")
@click.pass_context
def export_incidents(ctx, fmt: str, category: str | None, start_date: str | None, end_date: str | None, output: str | None):
    """Export incidents for offline analysis."""
    from tripguard.security.incident_log import IncidentLogger

    config = _load_config(ctx.obj["config_path"])
    log = IncidentLogger(config.incident_path)
    data = log.export_incidents(
        fmt,
        category=category,
        start_date=start_date,
        end_date=end_date,
        limit=100000,
    )
    if output:
        with open(output, "w", encoding="utf-8") as fh:
            fh.write(data)
        console.print(f"[green]Exported to[/] {output}")
    else:
        click.echo(data)


if __name__ == "__main__":
    main()
