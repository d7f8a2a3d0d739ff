from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, TypeVar

from pydantic import BaseModel, TypeAdapter, ValidationError

from .integrity import collect_integrity_warnings
from .location_models import Assemblage, Location
from .models import (
    MONEY_DROPS,
    DialogueTree,
    EventCategory,
    EventChoice,
    EventEffect,
    EventRarity,
    LootTable,
    MoneyDrop,
    NPCDefinition,
    Quest,
    QuestType,
    RandomEvent,
)
from .world_models import Faction, Route, Town, WorldDefinition

T = TypeVar("T")
M = TypeVar("M", bound=BaseModel)

logger = logging.getLogger(__name__)


class ContentValidationError(ValueError):
    def __init__(self, message: str, details: list[str] | None = None) -> None:
        self.details = details or []
        suffix = "\n".join(self.details)
        super().__init__(f"{message}\n{suffix}" if suffix else message)


@dataclass(frozen=True, slots=True)
class ContentRegistry:
    loottables: list[LootTable]
    money_drops: dict[str, MoneyDrop]
    events: list[RandomEvent]
    dialogue_trees: list[DialogueTree]
    npcs: list[NPCDefinition]
    quests: list[Quest]
    towns: list[Town]
    routes: list[Route]
    world: WorldDefinition | None
    assemblages: list[Assemblage]
    locations: list[Location]
    loottable_by_id: dict[str, LootTable]
    event_by_id: dict[str, RandomEvent]
    dialogue_tree_by_id: dict[str, DialogueTree]
    npc_by_id: dict[str, NPCDefinition]
    quest_by_id: dict[str, Quest]
    town_by_id: dict[str, Town]
    route_by_id: dict[str, Route]
    faction_by_id: dict[str, Faction]
    assemblage_by_id: dict[str, Assemblage]
    location_by_id: dict[str, Location]

    @classmethod
    def build(
        cls,
        *,
        loottables: list[LootTable] | None = None,
        money_drops: Mapping[str, MoneyDrop] | None = None,
        events: list[RandomEvent] | None = None,
        dialogue_trees: list[DialogueTree] | None = None,
        npcs: list[NPCDefinition] | None = None,
        quests: list[Quest] | None = None,
        towns: list[Town] | None = None,
        routes: list[Route] | None = None,
        world: WorldDefinition | None = None,
        assemblages: list[Assemblage] | None = None,
        locations: list[Location] | None = None,
    ) -> "ContentRegistry":
        loottables = list(loottables or [])
        events = list(events or [])
        dialogue_trees = list(dialogue_trees or [])
        npcs = list(npcs or [])
        quests = list(quests or [])
        towns = list(towns or [])
        routes = list(routes or [])
        assemblages = list(assemblages or [])
        locations = list(locations or [])
        factions = world.factions if world is not None else []
        return cls(
            loottables=loottables,
            money_drops=dict(MONEY_DROPS if money_drops is None else money_drops),
            events=events,
            dialogue_trees=dialogue_trees,
            npcs=npcs,
            quests=quests,
            towns=towns,
            routes=routes,
            world=world,
            assemblages=assemblages,
            locations=locations,
            loottable_by_id={table.id: table for table in loottables},
            event_by_id={event.id: event for event in events},
            dialogue_tree_by_id={tree.id: tree for tree in dialogue_trees},
            npc_by_id={npc.id: npc for npc in npcs},
            quest_by_id={quest.id: quest for quest in quests},
            town_by_id={town.id: town for town in towns},
            route_by_id={route.id: route for route in routes},
            faction_by_id={faction.id: faction for faction in factions},
            assemblage_by_id={assemblage.id: assemblage for assemblage in assemblages},
            location_by_id={location.id: location for location in locations},
        )

    def get_loot_table_by_id(self, table_id: str) -> LootTable | None:
        return self.loottable_by_id.get(table_id)

    def get_event_by_id(self, event_id: str) -> RandomEvent | None:
        return self.event_by_id.get(event_id)

    def get_dialogue_tree_by_id(self, tree_id: str) -> DialogueTree | None:
        return self.dialogue_tree_by_id.get(tree_id)

    def get_npc_by_id(self, npc_id: str) -> NPCDefinition | None:
        return self.npc_by_id.get(npc_id)

    def get_quest_by_id(self, quest_id: str) -> Quest | None:
        return self.quest_by_id.get(quest_id)

    def get_town_by_id(self, town_id: str) -> Town | None:
        return self.town_by_id.get(town_id)

    def get_route_by_id(self, route_id: str) -> Route | None:
        return self.route_by_id.get(route_id)

    def get_faction_by_id(self, faction_id: str) -> Faction | None:
        return self.faction_by_id.get(faction_id)

    def get_assemblage_by_id(self, assemblage_id: str) -> Assemblage | None:
        return self.assemblage_by_id.get(assemblage_id)

    def get_location_by_id(self, location_id: str) -> Location | None:
        return self.location_by_id.get(location_id)

    def get_events_by_category(self, category: EventCategory) -> list[RandomEvent]:
        return [event for event in self.events if event.category == category]

    def get_events_by_rarity(self, rarity: EventRarity) -> list[RandomEvent]:
        return [event for event in self.events if event.rarity == rarity]

    def get_npcs_by_location(self, location_id: str) -> list[NPCDefinition]:
        return [npc for npc in self.npcs if npc.location_id == location_id]

    def get_quests_by_type(self, quest_type: QuestType) -> list[Quest]:
        return [quest for quest in self.quests if quest.type == quest_type]

    def get_towns_by_tag(self, tag: str) -> list[Town]:
        return [town for town in self.towns if tag in town.tags]

    def get_routes_by_tag(self, tag: str) -> list[Route]:
        return [route for route in self.routes if tag in (route.tags or [])]


def _format_errors(source: str, exc: ValidationError) -> list[str]:
    errors = []
    for issue in exc.errors():
        issue_path = ".".join(str(part) for part in issue.get("loc", [])) or "(root)"
        errors.append(f"{source}:{issue_path}: {issue.get('msg', 'validation error')}")
    return errors


def _parse_model(model: type[M], data: Any, source: str) -> M:
    if isinstance(data, model):
        return data
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        raise ContentValidationError(f"Schema validation failed for {source}.", _format_errors(source, exc)) from exc


def _load_json(path: Path) -> Any:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise ContentValidationError(f"Missing content file: {path}") from exc
    except json.JSONDecodeError as exc:
        raise ContentValidationError(f"Invalid JSON in {path.name}: {exc.msg} at line {exc.lineno}") from exc


def _load_typed_list(path: Path, item_type: type[T]) -> list[T]:
    data = _load_json(path)
    adapter = TypeAdapter(list[item_type])  # type: ignore[index]
    try:
        return adapter.validate_python(data)
    except ValidationError as exc:
        raise ContentValidationError(f"Schema validation failed for {path.name}.", _format_errors(path.name, exc)) from exc


def _load_optional_typed_list(path: Path, item_type: type[T]) -> list[T]:
    if not path.exists():
        return []
    return _load_typed_list(path, item_type)


def _load_money_drops(path: Path) -> dict[str, MoneyDrop]:
    if not path.exists():
        return dict(MONEY_DROPS)
    data = _load_json(path)
    adapter = TypeAdapter(dict[str, MoneyDrop])
    try:
        return adapter.validate_python(data)
    except ValidationError as exc:
        raise ContentValidationError(f"Schema validation failed for {path.name}.", _format_errors(path.name, exc)) from exc


def _assert_unique_ids(kind: str, values: list[Any]) -> None:
    seen: set[str] = set()
    for entry in values:
        entry_id = entry.id
        if entry_id in seen:
            raise ContentValidationError(f"Duplicate {kind} id '{entry_id}'.")
        seen.add(entry_id)


def _load_world(path: Path, towns: list[Town], routes: list[Route]) -> WorldDefinition | None:
    if not path.exists():
        return None
    payload = _load_json(path)
    if not isinstance(payload, dict):
        raise ContentValidationError(f"{path.name} must contain a JSON object.")
    if "towns" in payload or "routes" in payload:
        raise ContentValidationError(f"{path.name} must not inline towns or routes; they load from towns.json and routes.json.")
    return validate_world({**payload, "towns": towns, "routes": routes})


def validate_loot_table(data: Any) -> LootTable:
    return _parse_model(LootTable, data, "loot table")


def validate_random_event(data: Any) -> RandomEvent:
    return _parse_model(RandomEvent, data, "random event")


def validate_event_choice(data: Any) -> EventChoice:
    return _parse_model(EventChoice, data, "event choice")


def validate_event_effect(data: Any) -> EventEffect:
    return _parse_model(EventEffect, data, "event effect")


def validate_dialogue_tree(data: Any) -> DialogueTree:
    return _parse_model(DialogueTree, data, "dialogue tree")


def validate_npc(data: Any) -> NPCDefinition:
    return _parse_model(NPCDefinition, data, "npc")


def validate_quest(data: Any) -> Quest:
    return _parse_model(Quest, data, "quest")


def validate_town(data: Any) -> Town:
    return _parse_model(Town, data, "town")


def validate_route(data: Any) -> Route:
    return _parse_model(Route, data, "route")


def validate_world(data: Any) -> WorldDefinition:
    return _parse_model(WorldDefinition, data, "world")


def validate_location(data: Any) -> Location:
    return _parse_model(Location, data, "location")


def validate_assemblage(data: Any) -> Assemblage:
    return _parse_model(Assemblage, data, "assemblage")


def safe_parse_town(data: Any) -> Town | None:
    try:
        return validate_town(data)
    except ContentValidationError:
        return None


def safe_parse_route(data: Any) -> Route | None:
    try:
        return validate_route(data)
    except ContentValidationError:
        return None


def safe_parse_world(data: Any) -> WorldDefinition | None:
    try:
        return validate_world(data)
    except ContentValidationError:
        return None


def load_content(content_dir: Path | str) -> ContentRegistry:
    base_path = Path(content_dir)
    loottables = _load_typed_list(base_path / "loottables.json", LootTable)
    money_drops = _load_money_drops(base_path / "moneydrops.json")
    events = _load_typed_list(base_path / "events.json", RandomEvent)
    dialogue_trees = _load_typed_list(base_path / "dialogues.json", DialogueTree)
    npcs = _load_typed_list(base_path / "npcs.json", NPCDefinition)
    quests = _load_typed_list(base_path / "quests.json", Quest)
    towns = _load_typed_list(base_path / "towns.json", Town)
    routes = _load_typed_list(base_path / "routes.json", Route)
    assemblages = _load_optional_typed_list(base_path / "assemblages.json", Assemblage)
    locations = _load_optional_typed_list(base_path / "locations.json", Location)

    _assert_unique_ids("loot table", loottables)
    _assert_unique_ids("event", events)
    _assert_unique_ids("dialogue tree", dialogue_trees)
    _assert_unique_ids("npc", npcs)
    _assert_unique_ids("quest", quests)
    _assert_unique_ids("town", towns)
    _assert_unique_ids("route", routes)
    _assert_unique_ids("assemblage", assemblages)
    _assert_unique_ids("location", locations)

    world = _load_world(base_path / "world.json", towns, routes)
    if world is not None:
        _assert_unique_ids("faction", world.factions)

    registry = ContentRegistry.build(
        loottables=loottables,
        money_drops=money_drops,
        events=events,
        dialogue_trees=dialogue_trees,
        npcs=npcs,
        quests=quests,
        towns=towns,
        routes=routes,
        world=world,
        assemblages=assemblages,
        locations=locations,
    )
    logger.info(
        "Loaded content from %s: %d loot tables, %d events, %d dialogue trees, %d npcs, %d quests, "
        "%d towns, %d routes, %d locations",
        base_path,
        len(loottables),
        len(events),
        len(dialogue_trees),
        len(npcs),
        len(quests),
        len(towns),
        len(routes),
        len(locations),
    )

    for warning in collect_integrity_warnings(registry):
        logger.warning("Integrity: %s", warning)
    return registry
