from __future__ import annotations

from typing import TYPE_CHECKING, Any, Iterable

from pydantic import ValidationError

from .location_models import Location
from .models import DialogueTree, HexCoord
from .world_models import Route, Town, WorldDefinition

if TYPE_CHECKING:
    from .loader import ContentRegistry

QUEST_EVENT_EFFECTS = {"start_quest", "advance_quest"}
QUEST_DIALOGUE_EFFECTS = {"start_quest", "complete_quest", "advance_quest"}
QUEST_DIALOGUE_CONDITIONS = {"quest_active", "quest_complete", "quest_not_started"}


def _duplicates(values: Iterable[str]) -> list[str]:
    seen: set[str] = set()
    repeated: list[str] = []
    for value in values:
        if value in seen and value not in repeated:
            repeated.append(value)
        seen.add(value)
    return repeated


def validate_town_integrity(town: Town) -> list[str]:
    errors: list[str] = []
    npc_ids = set(town.npcs)

    for shop in town.shops:
        if shop.operator_npc_id not in npc_ids:
            errors.append(f'Shop "{shop.name}" references NPC "{shop.operator_npc_id}" not in town\'s NPC list')

    for building in town.buildings:
        for resident_id in building.resident_npc_ids:
            if resident_id not in npc_ids:
                errors.append(f'Building "{building.id}" references NPC "{resident_id}" not in town\'s NPC list')

    for entry_id in _duplicates(entry.id for entry in town.entry_points):
        errors.append(f'Duplicate entry point ID: "{entry_id}"')

    return errors


def _invalid_trigger_value(trigger_type: str, value: float | None) -> bool:
    if value is None:
        return True
    upper = 23 if trigger_type == "time" else 1
    return value < 0 or value > upper


def validate_route_integrity(route: Route) -> list[str]:
    errors: list[str] = []
    landmarks = route.landmarks or []
    encounters = route.encounters or []
    events = route.events or []

    for landmark in landmarks:
        if landmark.position < 0 or landmark.position > 1:
            errors.append(f'Landmark "{landmark.name}" has invalid position {landmark.position:g} (must be 0-1)')

    for encounter in encounters:
        if encounter.weight < 0:
            errors.append(f'Encounter "{encounter.name}" has negative weight')

    for event in events:
        if event.trigger_type in {"distance", "time", "random"} and _invalid_trigger_value(
            event.trigger_type, event.trigger_value
        ):
            errors.append(f'Event "{event.name}" has invalid {event.trigger_type} trigger value')

    for kind, ids in (
        ("encounter", [encounter.id for encounter in encounters]),
        ("event", [event.id for event in events]),
        ("landmark", [landmark.id for landmark in landmarks]),
    ):
        for duplicate in _duplicates(ids):
            errors.append(f'Duplicate {kind} ID: "{duplicate}"')

    return errors


def validate_world_integrity(world: WorldDefinition) -> list[str]:
    errors: list[str] = []
    town_ids = {town.id for town in world.towns}
    route_ids = {route.id for route in world.routes}
    faction_ids = {faction.id for faction in world.factions}

    if world.starting_town_id not in town_ids:
        errors.append(f'Starting town "{world.starting_town_id}" not found in towns list')

    starting = world.starting_conditions
    if starting.town_id not in town_ids:
        errors.append(f'Starting conditions town "{starting.town_id}" not found')
    for town_id in starting.discovered_towns:
        if town_id not in town_ids:
            errors.append(f'Discovered town "{town_id}" in starting conditions not found')
    for route_id in starting.discovered_routes:
        if route_id not in route_ids:
            errors.append(f'Discovered route "{route_id}" in starting conditions not found')

    for route in world.routes:
        if route.from_town not in town_ids:
            errors.append(f'Route "{route.id}" references unknown fromTown "{route.from_town}"')
        if route.to_town not in town_ids:
            errors.append(f'Route "{route.id}" references unknown toTown "{route.to_town}"')

    for town in world.towns:
        for entry in town.entry_points:
            if entry.route_id and entry.route_id not in route_ids:
                errors.append(
                    f'Town "{town.id}" entry point "{entry.id}" references unknown route "{entry.route_id}"'
                )
        if town.controlling_faction and town.controlling_faction not in faction_ids:
            errors.append(f'Town "{town.id}" references unknown faction "{town.controlling_faction}"')

    for faction in world.factions:
        for related_id in faction.faction_relations:
            if related_id not in faction_ids:
                errors.append(f'Faction "{faction.id}" has relation with unknown faction "{related_id}"')

    for event in world.timeline_events:
        if event.event_type == "quest_start" and not event.target:
            errors.append(f'Timeline event "{event.id}" is quest_start but has no target')

    return errors


def validate_world_complete(data: Any) -> list[str]:
    """Parse ``data`` as a world and report every structural and referential problem.

    Never raises. A shape failure is reported as a single message and stops
    further checks.
    """
    try:
        world = data if isinstance(data, WorldDefinition) else WorldDefinition.model_validate(data)
    except ValidationError as exc:
        return [f"Schema validation failed: {exc}"]

    errors = validate_world_integrity(world)
    for town in world.towns:
        errors.extend(f'Town "{town.id}": {error}' for error in validate_town_integrity(town))
    for route in world.routes:
        errors.extend(f'Route "{route.id}": {error}' for error in validate_route_integrity(route))
    return errors


def validate_dialogue_tree_integrity(tree: DialogueTree) -> list[str]:
    errors: list[str] = []
    node_ids = {node.id for node in tree.nodes}

    for duplicate in _duplicates(node.id for node in tree.nodes):
        errors.append(f"Duplicate node ID: {duplicate}")

    for entry in tree.entry_points:
        if entry.node_id not in node_ids:
            errors.append(f"Entry point references unknown node: {entry.node_id}")

    for node in tree.nodes:
        if node.next_node_id and node.next_node_id not in node_ids:
            errors.append(f"Node {node.id} references unknown next node: {node.next_node_id}")
        for choice in node.choices:
            if choice.next_node_id and choice.next_node_id not in node_ids:
                errors.append(f"Choice in node {node.id} references unknown node: {choice.next_node_id}")
            check = choice.skill_check
            if check is None:
                continue
            for branch_id in (check.success_node_id, check.failure_node_id):
                if branch_id and branch_id not in node_ids:
                    errors.append(f"Skill check in node {node.id} references unknown node: {branch_id}")

    return errors


def _in_bounds(coord: HexCoord, location: Location) -> bool:
    return 0 <= coord.q < location.width and 0 <= coord.r < location.height


def validate_location_integrity(location: Location, assemblages: dict[str, Any] | set[str]) -> list[str]:
    """Check assemblage placements, anchors and ids of one location.

    ``assemblages`` maps assemblage id to its definition; a plain id set skips
    the rotation check.
    """
    errors: list[str] = []

    for ref in location.assemblages:
        if ref.assemblage_id not in assemblages:
            errors.append(
                f'Assemblage instance "{ref.instance_id}" references unknown assemblage "{ref.assemblage_id}"'
            )
        elif isinstance(assemblages, dict):
            valid_rotations = assemblages[ref.assemblage_id].valid_rotations
            if ref.rotation not in valid_rotations:
                errors.append(
                    f'Assemblage instance "{ref.instance_id}" uses rotation {ref.rotation} '
                    f'not allowed by "{ref.assemblage_id}"'
                )
        if not _in_bounds(ref.anchor, location):
            errors.append(f'Assemblage instance "{ref.instance_id}" anchor ({ref.anchor.q}, {ref.anchor.r}) is out of bounds')

    for slot in location.slots:
        if not _in_bounds(slot.anchor, location):
            errors.append(f'Slot "{slot.id}" anchor ({slot.anchor.q}, {slot.anchor.r}) is out of bounds')

    for entry in location.entry_points:
        if not _in_bounds(entry.coord, location):
            errors.append(f'Entry point "{entry.id}" coord ({entry.coord.q}, {entry.coord.r}) is out of bounds')

    if location.player_spawn is not None and not _in_bounds(location.player_spawn.coord, location):
        errors.append("Player spawn is out of bounds")

    for tile in location.base_tiles:
        if not _in_bounds(tile.coord, location):
            errors.append(f"Base tile ({tile.coord.q}, {tile.coord.r}) is out of bounds")

    placed_ids = [slot.id for slot in location.slots] + [ref.instance_id for ref in location.assemblages]
    for duplicate in _duplicates(placed_ids):
        errors.append(f'Duplicate slot or instance ID: "{duplicate}"')
    for duplicate in _duplicates(entry.id for entry in location.entry_points):
        errors.append(f'Duplicate entry point ID: "{duplicate}"')

    return errors


def validate_registry_references(registry: ContentRegistry) -> list[str]:
    errors: list[str] = []
    tree_ids = set(registry.dialogue_tree_by_id)
    quest_ids = set(registry.quest_by_id)
    npc_ids = set(registry.npc_by_id)
    place_ids = set(registry.town_by_id) | set(registry.location_by_id)

    for npc in registry.npcs:
        if npc.location_id not in place_ids:
            errors.append(f'NPC "{npc.id}" references unknown location "{npc.location_id}"')
        for tree_id in npc.dialogue_tree_ids:
            if tree_id not in tree_ids:
                errors.append(f'NPC "{npc.id}" references unknown dialogue tree "{tree_id}"')
        if npc.primary_dialogue_id and npc.primary_dialogue_id not in tree_ids:
            errors.append(f'NPC "{npc.id}" references unknown dialogue tree "{npc.primary_dialogue_id}"')
        for quest_id in npc.quest_ids:
            if quest_id not in quest_ids:
                errors.append(f'NPC "{npc.id}" references unknown quest "{quest_id}"')
        for relationship in npc.relationships:
            if relationship.npc_id not in npc_ids:
                errors.append(f'NPC "{npc.id}" references unknown NPC "{relationship.npc_id}"')

    for quest in registry.quests:
        if quest.giver_npc_id and quest.giver_npc_id not in npc_ids:
            errors.append(f'Quest "{quest.id}" references unknown giver NPC "{quest.giver_npc_id}"')
        for required_id in quest.prerequisites.completed_quests:
            if required_id not in quest_ids:
                errors.append(f'Quest "{quest.id}" references unknown prerequisite quest "{required_id}"')
        for unlocked_id in quest.rewards.unlocks_quests:
            if unlocked_id not in quest_ids:
                errors.append(f'Quest "{quest.id}" references unknown unlocked quest "{unlocked_id}"')

    for town in registry.towns:
        for npc_id in town.npcs:
            if npc_id not in npc_ids:
                errors.append(f'Town "{town.id}" references unknown NPC "{npc_id}"')
        for quest_id in town.quests:
            if quest_id not in quest_ids:
                errors.append(f'Town "{town.id}" references unknown quest "{quest_id}"')

    for route in registry.routes:
        for landmark in route.landmarks or []:
            for container in landmark.containers:
                if container.loot_table_id not in registry.loottable_by_id:
                    errors.append(
                        f'Landmark "{landmark.id}" references unknown loot table "{container.loot_table_id}"'
                    )
            for npc_id in landmark.npc_ids:
                if npc_id not in npc_ids:
                    errors.append(f'Landmark "{landmark.id}" references unknown NPC "{npc_id}"')
            for quest_id in landmark.quest_ids:
                if quest_id not in quest_ids:
                    errors.append(f'Landmark "{landmark.id}" references unknown quest "{quest_id}"')
        for event in route.events or []:
            if event.dialogue_tree_id and event.dialogue_tree_id not in tree_ids:
                errors.append(f'Route event "{event.id}" references unknown dialogue tree "{event.dialogue_tree_id}"')
            if event.quest_id and event.quest_id not in quest_ids:
                errors.append(f'Route event "{event.id}" references unknown quest "{event.quest_id}"')

    for event in registry.events:
        for choice in event.choices:
            effects = list(choice.effects or [])
            if choice.skill_check is not None:
                effects += choice.skill_check.success_effects + choice.skill_check.failure_effects
            for effect in effects:
                if effect.type in QUEST_EVENT_EFFECTS and effect.target not in quest_ids:
                    errors.append(f'Event "{event.id}" choice "{choice.id}" references unknown quest "{effect.target}"')

    for tree in registry.dialogue_trees:
        for node in tree.nodes:
            effects = list(node.on_enter_effects)
            conditions = []
            for choice in node.choices:
                effects += choice.effects
                conditions += choice.conditions
                if choice.skill_check is not None:
                    effects += choice.skill_check.success_effects + choice.skill_check.failure_effects
            for effect in effects:
                if effect.type in QUEST_DIALOGUE_EFFECTS and effect.target not in quest_ids:
                    errors.append(f'Dialogue "{tree.id}" node "{node.id}" references unknown quest "{effect.target}"')
            for condition in conditions:
                if condition.type in QUEST_DIALOGUE_CONDITIONS and condition.target not in quest_ids:
                    errors.append(
                        f'Dialogue "{tree.id}" node "{node.id}" references unknown quest "{condition.target}"'
                    )
        for entry in tree.entry_points:
            for condition in entry.conditions:
                if condition.type in QUEST_DIALOGUE_CONDITIONS and condition.target not in quest_ids:
                    errors.append(f'Dialogue "{tree.id}" entry point references unknown quest "{condition.target}"')

    return errors


def collect_integrity_warnings(registry: ContentRegistry) -> list[str]:
    warnings: list[str] = []
    if registry.world is not None:
        warnings.extend(validate_world_complete(registry.world))
    else:
        for town in registry.towns:
            warnings.extend(f'Town "{town.id}": {error}' for error in validate_town_integrity(town))
        for route in registry.routes:
            warnings.extend(f'Route "{route.id}": {error}' for error in validate_route_integrity(route))

    for tree in registry.dialogue_trees:
        warnings.extend(f'Dialogue "{tree.id}": {error}' for error in validate_dialogue_tree_integrity(tree))
    for location in registry.locations:
        warnings.extend(
            f'Location "{location.id}": {error}'
            for error in validate_location_integrity(location, registry.assemblage_by_id)
        )
    warnings.extend(validate_registry_references(registry))
    return warnings
