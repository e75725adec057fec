from __future__ import annotations

import asyncio
import dataclasses
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table
from skillforge_core.config import BridgeConfig
from skillforge_core.errors import ConfigError, RegistryError
from skillforge_core.logging import setup_logging
from skillforge_mcp.enrichment import SkillEnrichmentCache
from skillforge_mcp.metadata import MetadataFetcher
from skillforge_mcp.naming import ToolNameAllocator, derive_tool_name
from skillforge_mcp.types import EnrichedSkill

console = Console()

app = typer.Typer(
    name="skillforge",
    help="SkillForge: on-chain skills as MCP tools",
    no_args_is_help=True,
)


def _load_config(env_file: Path | None) -> BridgeConfig:
    try:
        return BridgeConfig.from_env(env_file=env_file)
    except ConfigError as exc:
        console.print(f"[red]Configuration error:[/red] {exc}")
        raise typer.Exit(1) from None


@app.command()
def serve(
    port: int | None = typer.Option(None, help="Listen port (default: $PORT or 3001)"),
    host: str | None = typer.Option(None, help="Listen address"),
    interval_ms: int | None = typer.Option(
        None, "--interval-ms", help="Registry re-sync interval in milliseconds"
    ),
    log_level: str | None = typer.Option(None, help="Log level (DEBUG, INFO, ...)"),
    json_logs: bool = typer.Option(False, "--json-logs", help="Emit JSON log lines"),
    env_file: Path | None = typer.Option(None, help="Path to a .env file"),
) -> None:
    """Run the MCP bridge over SSE."""
    from skillforge_mcp.server import serve as serve_bridge

    config = _load_config(env_file)
    server_cfg = config.server
    server_cfg = dataclasses.replace(
        server_cfg,
        port=port if port is not None else server_cfg.port,
        host=host or server_cfg.host,
        log_level=log_level or server_cfg.log_level,
        json_logs=json_logs or server_cfg.json_logs,
    )
    sync_cfg = config.sync
    if interval_ms is not None:
        if interval_ms <= 0:
            console.print("[red]--interval-ms must be positive[/red]")
            raise typer.Exit(1)
        sync_cfg = dataclasses.replace(sync_cfg, interval_seconds=interval_ms / 1000)
    config = dataclasses.replace(config, server=server_cfg, sync=sync_cfg)

    logger = setup_logging(server_cfg.log_level, json_output=server_cfg.json_logs)
    try:
        asyncio.run(serve_bridge(config))
    except ConfigError as exc:
        logger.error("Fatal error: %s", exc)
        console.print(f"[red]Configuration error:[/red] {exc}")
        raise typer.Exit(1) from None
    except KeyboardInterrupt:
        console.print("[dim]Shutting down.[/dim]")


async def _read_skills(config: BridgeConfig) -> tuple[list[EnrichedSkill], int]:
    """Return the enriched registry and the contract's own skill count."""
    from skillforge_mcp.chain import ChainSkillClient

    client = ChainSkillClient(config.chain)
    fetcher = MetadataFetcher(
        config.metadata.gateways, config.metadata.timeout_seconds
    )
    cache = SkillEnrichmentCache(fetcher, config.metadata.max_concurrent_fetches)
    try:
        skills = await cache.enrich_all(await client.read_all())
        return skills, await client.total_skills()
    finally:
        await fetcher.aclose()


async def _read_skill(config: BridgeConfig, skill_id: int) -> EnrichedSkill:
    from skillforge_mcp.chain import ChainSkillClient

    client = ChainSkillClient(config.chain)
    fetcher = MetadataFetcher(
        config.metadata.gateways, config.metadata.timeout_seconds
    )
    try:
        return await SkillEnrichmentCache(fetcher).enrich(await client.get_skill(skill_id))
    finally:
        await fetcher.aclose()


@app.command("skills")
def skills_list(
    show_all: bool = typer.Option(False, "--all", help="Include inactive skills"),
    env_file: Path | None = typer.Option(None, help="Path to a .env file"),
) -> None:
    """List registry skills and the tool names they are served under."""
    config = _load_config(env_file)
    setup_logging("WARNING")
    try:
        skills, total = asyncio.run(_read_skills(config))
    except (ConfigError, RegistryError) as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(1) from None

    shown = [s for s in skills if show_all or s.is_active]
    if not shown:
        console.print("[yellow]No skills found in the registry.[/yellow]")
        raise typer.Exit(0)

    table = Table(
        title="SkillForge Registry",
        show_header=True,
        header_style="bold cyan",
    )
    table.add_column("Tool", style="bold")
    table.add_column("ID", justify="right")
    table.add_column("Name")
    table.add_column("Price (wei)", justify="right")
    table.add_column("Calls", justify="right")
    table.add_column("Category")
    table.add_column("Tags")
    if show_all:
        table.add_column("Active", justify="center")

    names = ToolNameAllocator()
    for skill in shown:
        row = [
            names.allocate(skill.name, skill.skill_id) if skill.is_active else "-",
            str(skill.skill_id),
            skill.name,
            str(skill.price_per_use),
            str(skill.total_calls),
            skill.category,
            ", ".join(skill.tags) if skill.tags else "-",
        ]
        if show_all:
            row.append("yes" if skill.is_active else "no")
        table.add_row(*row)

    console.print(table)
    console.print(f"\n[dim]{len(shown)} skill(s) listed, {total} registered on chain.[/dim]")


@app.command("tool-name")
def tool_name(
    display_name: str = typer.Argument(..., help="Skill display name"),
) -> None:
    """Show the tool identifier a skill name is published under."""
    console.print(derive_tool_name(display_name))


@app.command("skill")
def skill_show(
    skill_id: int = typer.Argument(..., help="Registry skill id"),
    env_file: Path | None = typer.Option(None, help="Path to a .env file"),
) -> None:
    """Show one registry skill with its resolved metadata."""
    config = _load_config(env_file)
    setup_logging("WARNING")
    try:
        skill = asyncio.run(_read_skill(config, skill_id))
    except (ConfigError, RegistryError, TypeError, ValueError) as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(1) from None

    table = Table(show_header=False, box=None)
    table.add_column("Field", style="bold cyan")
    table.add_column("Value")
    table.add_row("Name", skill.name)
    table.add_row("Tool", derive_tool_name(skill.name) if skill.is_active else "-")
    table.add_row("Description", skill.description)
    table.add_row("Category", skill.category)
    table.add_row("Tags", ", ".join(skill.tags) if skill.tags else "-")
    table.add_row("Creator", skill.creator)
    table.add_row("Price (wei)", str(skill.price_per_use))
    table.add_row("Calls", str(skill.total_calls))
    table.add_row("Active", "yes" if skill.is_active else "no")
    table.add_row("Metadata", skill.metadata_uri or "-")
    console.print(table)
