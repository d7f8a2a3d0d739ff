from __future__ import annotations

import hashlib
import json
import math
import random
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from iron_frontier.core.conditions import GameContext
from iron_frontier.core.dialogue import get_visible_choices, resolve_entry_point
from iron_frontier.core.integrity import collect_integrity_warnings
from iron_frontier.core.loader import ContentRegistry, ContentValidationError, load_content
from iron_frontier.core.loot import roll_loot_table
from iron_frontier.core.rng import DeterministicRNG, RandomFn
from iron_frontier.core.selector import get_available_choices, select_random_event
from iron_frontier.core.settings import ToolSettings
from iron_frontier.core.travel import calculate_route_travel_time, find_route, is_route_passable
from iron_frontier.services.logger import configure_logging
from iron_frontier.services.settings_store import SettingsStore

app = typer.Typer(add_completion=False, help="Validate and exercise Iron Frontier content.")
console = Console()

PACKAGE_CONTENT_DIR = Path(__file__).resolve().parents[1] / "content"
DEFAULT_SETTINGS_PATH = Path.home() / ".iron_frontier" / "settings.json"


def _normalize_seed(raw_seed: str) -> int | str:
    try:
        return int(raw_seed)
    except ValueError:
        return raw_seed


def _settings(ctx: typer.Context) -> ToolSettings:
    return ctx.obj["settings"]


def _random_fn(settings: ToolSettings, seed: Optional[str]) -> RandomFn:
    if seed is not None:
        return DeterministicRNG.from_seed(_normalize_seed(seed)).next_float
    if settings.rolls.seeded:
        return DeterministicRNG.from_seed(settings.rolls.base_seed).next_float
    return random.random


def _load_registry(ctx: typer.Context, content_dir: Optional[Path]) -> ContentRegistry:
    settings = _settings(ctx)
    directory = content_dir or (Path(settings.content.content_dir) if settings.content.content_dir else PACKAGE_CONTENT_DIR)
    try:
        return load_content(directory)
    except ContentValidationError as exc:
        console.print(f"[bold red]Content load failed:[/bold red] {exc}", markup=True)
        raise typer.Exit(1) from exc


@app.callback()
def main(
    ctx: typer.Context,
    settings_path: Path = typer.Option(DEFAULT_SETTINGS_PATH, "--settings", help="Path to the tool settings JSON."),
    quiet: bool = typer.Option(False, "--quiet", help="Keep log output off the console."),
) -> None:
    settings = ToolSettings.model_validate(SettingsStore(settings_path).load())
    logs_dir = Path(settings.logging.logs_dir)
    if not logs_dir.is_absolute():
        logs_dir = settings_path.parent / logs_dir
    configure_logging(logs_dir, settings.logging.level, settings.logging.keep_archives, console=not quiet)
    ctx.obj = {"settings": settings}


@app.command()
def validate(
    ctx: typer.Context,
    content_dir: Optional[Path] = typer.Option(None, "--content-dir", help="Content directory to validate."),
    strict: bool = typer.Option(False, "--strict", help="Fail when integrity warnings are found."),
) -> None:
    registry = _load_registry(ctx, content_dir)
    warnings = collect_integrity_warnings(registry)

    summary = Table(title="Content Summary")
    summary.add_column("Kind", style="cyan", no_wrap=True)
    summary.add_column("Count", style="white", justify="right")
    summary.add_row("Loot tables", str(len(registry.loottables)))
    summary.add_row("Events", str(len(registry.events)))
    summary.add_row("Dialogue trees", str(len(registry.dialogue_trees)))
    summary.add_row("NPCs", str(len(registry.npcs)))
    summary.add_row("Quests", str(len(registry.quests)))
    summary.add_row("Towns", str(len(registry.towns)))
    summary.add_row("Routes", str(len(registry.routes)))
    summary.add_row("Locations", str(len(registry.locations)))
    console.print(summary)

    if not warnings:
        console.print("[bold green]No integrity problems found.[/bold green]")
        return

    table = Table(title="Integrity Warnings")
    table.add_column("#", style="cyan", justify="right")
    table.add_column("Problem", style="yellow")
    for index, warning in enumerate(warnings, start=1):
        table.add_row(str(index), warning)
    console.print(table)
    if strict or _settings(ctx).content.fail_on_integrity_warnings:
        raise typer.Exit(1)


@app.command("roll-loot")
def roll_loot(
    ctx: typer.Context,
    table_id: str = typer.Argument(..., help="Loot table id."),
    level: Optional[int] = typer.Option(None, "--level", min=1, help="Player level for conditioned entries."),
    seed: Optional[str] = typer.Option(None, "--seed", help="Seed value (int or string)."),
    times: int = typer.Option(1, "--times", min=1, help="How many times to roll the table."),
    content_dir: Optional[Path] = typer.Option(None, "--content-dir"),
) -> None:
    registry = _load_registry(ctx, content_dir)
    if registry.get_loot_table_by_id(table_id) is None:
        console.print(f"[bold red]Unknown loot table '{table_id}'.[/bold red]")
        raise typer.Exit(1)

    random_fn = _random_fn(_settings(ctx), seed)
    totals: dict[str, int] = {}
    rolls: list[list[list[object]]] = []
    for _ in range(times):
        drops = roll_loot_table(registry, table_id, level, random_fn)
        rolls.append([[drop.item_id, drop.quantity] for drop in drops])
        for drop in drops:
            totals[drop.item_id] = totals.get(drop.item_id, 0) + drop.quantity

    summary = Table(title=f"Loot: {table_id}")
    summary.add_column("Item", style="cyan", no_wrap=True)
    summary.add_column("Total", style="white", justify="right")
    for item_id, quantity in sorted(totals.items()):
        summary.add_row(item_id, str(quantity))
    console.print(summary)

    payload = {"table": table_id, "level": level, "seed": seed, "times": times, "rolls": rolls}
    signature = hashlib.sha256(json.dumps(payload, sort_keys=True).encode("utf-8")).hexdigest()[:16]
    console.print(f"\n[bold green]Deterministic signature:[/bold green] {signature}")


@app.command("roll-event")
def roll_event(
    ctx: typer.Context,
    category: str = typer.Argument(..., help="Event category: travel|town|camp."),
    seed: Optional[str] = typer.Option(None, "--seed", help="Seed value (int or string)."),
    level: Optional[int] = typer.Option(None, "--level", min=1),
    gold: int = typer.Option(0, "--gold", min=0),
    time_of_day: str = typer.Option("morning", "--time-of-day"),
    flags: list[str] = typer.Option([], "--flag", help="Game flag that is set. Repeatable."),
    items: list[str] = typer.Option([], "--item", help="Item in inventory. Repeatable."),
    content_dir: Optional[Path] = typer.Option(None, "--content-dir"),
) -> None:
    if category not in {"travel", "town", "camp"}:
        console.print(f"[bold red]Unknown category '{category}'.[/bold red]")
        raise typer.Exit(1)

    registry = _load_registry(ctx, content_dir)
    settings = _settings(ctx)
    context = GameContext(
        time_of_day=time_of_day,
        player_level=level or settings.rolls.default_player_level,
        player_gold=gold,
        inventory=list(items),
        game_flags=set(flags),
    )
    event = select_random_event(registry, category, context, _random_fn(settings, seed))  # type: ignore[arg-type]
    if event is None:
        console.print("[yellow]No eligible event.[/yellow]")
        return

    console.print(f"[bold]{event.title}[/bold] ({event.rarity})")
    console.print(event.description, markup=False)
    choices = Table(title="Available Choices")
    choices.add_column("Id", style="cyan", no_wrap=True)
    choices.add_column("Text", style="white")
    for choice in get_available_choices(event, context):
        choices.add_row(choice.id, choice.text)
    console.print(choices)


@app.command()
def talk(
    ctx: typer.Context,
    tree_id: str = typer.Argument(..., help="Dialogue tree id."),
    npc_id: Optional[str] = typer.Option(None, "--npc", help="NPC being spoken to; defaults to the tree's owner."),
    flags: list[str] = typer.Option([], "--flag", help="Game flag that is set. Repeatable."),
    active_quests: list[str] = typer.Option([], "--active-quest"),
    completed_quests: list[str] = typer.Option([], "--completed-quest"),
    return_visit: bool = typer.Option(False, "--return-visit/--first-meeting"),
    content_dir: Optional[Path] = typer.Option(None, "--content-dir"),
) -> None:
    registry = _load_registry(ctx, content_dir)
    tree = registry.get_dialogue_tree_by_id(tree_id)
    if tree is None:
        console.print(f"[bold red]Unknown dialogue tree '{tree_id}'.[/bold red]")
        raise typer.Exit(1)

    if npc_id is None:
        owner = next((npc for npc in registry.npcs if tree_id in npc.dialogue_tree_ids), None)
        npc_id = owner.id if owner is not None else None
    npc = registry.get_npc_by_id(npc_id) if npc_id else None
    context = GameContext(
        game_flags=set(flags),
        active_quests=list(active_quests),
        completed_quests=list(completed_quests),
        talked_to={npc_id} if (return_visit and npc_id) else set(),
        current_npc_id=npc_id,
    )
    default_faction = npc.faction if npc is not None else None
    entry = resolve_entry_point(tree, context, default_faction)
    if entry is None:
        console.print("[yellow]No entry point matches; the conversation does not start.[/yellow]")
        return

    node = tree.node_by_id(entry.node_id)
    if node is None:
        console.print(f"[bold red]Entry node '{entry.node_id}' is missing from '{tree_id}'.[/bold red]")
        raise typer.Exit(1)
    speaker = node.speaker or (npc.name if npc is not None else "?")
    console.print(f"[bold]{speaker}[/bold] ({node.id})")
    console.print(node.text, markup=False)

    choices = Table(title="Choices")
    choices.add_column("#", style="cyan", justify="right")
    choices.add_column("Text", style="white")
    choices.add_column("Next", style="magenta")
    for index, choice in enumerate(get_visible_choices(node, context, default_faction)):
        choices.add_row(str(index), choice.text, choice.next_node_id or "(end)")
    console.print(choices)


@app.command()
def travel(
    ctx: typer.Context,
    from_town: str = typer.Argument(..., help="Starting town id."),
    to_town: str = typer.Argument(..., help="Destination town id."),
    method: str = typer.Option("walk", "--method", help="walk|horse|stagecoach|train"),
    content_dir: Optional[Path] = typer.Option(None, "--content-dir"),
) -> None:
    if method not in {"walk", "horse", "stagecoach", "train"}:
        console.print(f"[bold red]Unknown travel method '{method}'.[/bold red]")
        raise typer.Exit(1)

    registry = _load_registry(ctx, content_dir)
    if registry.world is None:
        console.print("[bold red]No world definition loaded.[/bold red]")
        raise typer.Exit(1)

    route = find_route(registry.world, from_town, to_town)
    if route is None:
        console.print(f"[yellow]No route from '{from_town}' to '{to_town}'.[/yellow]")
        raise typer.Exit(1)

    hours = calculate_route_travel_time(registry.world, from_town, to_town, method)  # type: ignore[arg-type]
    summary = Table(title=route.name)
    summary.add_column("Field", style="cyan", no_wrap=True)
    summary.add_column("Value", style="white")
    summary.add_row("Route", route.id)
    summary.add_row("Method", method)
    summary.add_row("Hours", "impassable" if math.isinf(hours) else str(hours))
    summary.add_row("Passable", str(is_route_passable(route)))
    summary.add_row("Condition", route.condition or "clear")
    console.print(summary)


if __name__ == "__main__":
    app()
