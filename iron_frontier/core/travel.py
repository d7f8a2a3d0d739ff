from __future__ import annotations

import math
import random
from typing import Any

from .conditions import GameContext
from .rng import RandomFn, weighted_pick
from .world_models import (
    DifficultyPreset,
    Route,
    RouteCondition,
    RouteEncounter,
    RouteLandmark,
    TimeConfig,
    Town,
    TravelMethod,
    TravelMethodConfig,
    WorldDefinition,
)

CONDITION_MODIFIERS: dict[RouteCondition, float] = {
    "clear": 1.0,
    "rough": 1.3,
    "dangerous": 1.1,
    "blocked": math.inf,
    "flooded": 2.0,
    "snowed_in": 1.8,
}

DIFFICULTY_PRESETS: dict[DifficultyPreset, dict[str, Any]] = {
    "easy": {
        "player_damage_multiplier": 0.75,
        "enemy_damage_multiplier": 0.75,
        "encounter_frequency": 0.7,
        "resource_consumption": 0.75,
        "shop_price_modifier": 0.85,
        "xp_multiplier": 1.25,
        "always_can_flee": True,
    },
    "normal": {
        "player_damage_multiplier": 1.0,
        "enemy_damage_multiplier": 1.0,
        "encounter_frequency": 1.0,
        "resource_consumption": 1.0,
        "shop_price_modifier": 1.0,
        "xp_multiplier": 1.0,
        "always_can_flee": True,
    },
    "hard": {
        "player_damage_multiplier": 1.25,
        "enemy_damage_multiplier": 1.25,
        "encounter_frequency": 1.3,
        "resource_consumption": 1.25,
        "shop_price_modifier": 1.2,
        "xp_multiplier": 0.85,
        "always_can_flee": False,
    },
    "brutal": {
        "player_damage_multiplier": 1.5,
        "enemy_damage_multiplier": 1.5,
        "encounter_frequency": 1.5,
        "resource_consumption": 1.5,
        "shop_price_modifier": 1.5,
        "xp_multiplier": 0.5,
        "always_can_flee": False,
        "permadeath": True,
    },
}


def _method_config(route: Route, method: TravelMethod) -> TravelMethodConfig | None:
    for config in route.travel_methods or []:
        if config.method == method:
            return config
    return None


def calculate_travel_time(route: Route, method: TravelMethod = "walk") -> float:
    """Hours to cross ``route``. Blocked routes take forever (``math.inf``)."""
    hours: float = route.length
    config = _method_config(route, method)
    if config is not None and config.available:
        hours = math.ceil(hours / config.speed_modifier)

    modifier = CONDITION_MODIFIERS[route.condition or "clear"]
    if math.isinf(modifier):
        return math.inf
    return math.ceil(hours * modifier)


def find_route(world: WorldDefinition, from_town_id: str, to_town_id: str) -> Route | None:
    for route in world.routes:
        if route.from_town == from_town_id and route.to_town == to_town_id:
            return route
        if route.bidirectional and route.from_town == to_town_id and route.to_town == from_town_id:
            return route
    return None


def get_routes_for_town(world: WorldDefinition, town_id: str) -> list[Route]:
    return [
        route
        for route in world.routes
        if route.from_town == town_id or (route.bidirectional and route.to_town == town_id)
    ]


def get_connected_towns(world: WorldDefinition, town_id: str) -> list[Town]:
    connected: set[str] = set()
    for route in world.routes:
        if route.from_town == town_id:
            connected.add(route.to_town)
        elif route.bidirectional and route.to_town == town_id:
            connected.add(route.from_town)
    return [town for town in world.towns if town.id in connected]


def calculate_route_travel_time(
    world: WorldDefinition,
    from_town_id: str,
    to_town_id: str,
    method: TravelMethod = "walk",
) -> float:
    route = find_route(world, from_town_id, to_town_id)
    if route is None:
        return math.inf

    config = _method_config(route, method)
    if config is None or not config.available:
        walk = _method_config(route, "walk")
        if walk is None or not walk.available:
            return math.inf
        return route.length
    return math.ceil(route.length / config.speed_modifier)


def is_route_passable(route: Route, context: GameContext | None = None) -> bool:
    if route.passable is False:
        return False
    if (route.condition or "clear") == "blocked":
        return False

    condition = route.unlock_condition
    if condition is None or condition.type == "always" or not condition.target:
        return True
    context = context or GameContext()
    if condition.type == "quest_complete":
        return condition.target in context.completed_quests
    if condition.type == "flag":
        return condition.target in context.game_flags
    if condition.type == "item":
        return condition.target in context.inventory
    return True


def is_town_unlocked(town: Town, context: GameContext) -> bool:
    condition = town.unlock_condition
    if condition is None or condition.type == "always":
        return True

    if condition.type == "quest_complete":
        return not condition.target or condition.target in context.completed_quests
    if condition.type == "quest_stage":
        if not condition.target or not condition.stage_id:
            return False
        return context.quest_stages.get(condition.target) == condition.stage_id
    if condition.type == "reputation":
        if not condition.target or condition.value is None:
            return False
        return context.reputation(condition.target) >= condition.value
    if condition.type == "item":
        return not condition.target or condition.target in context.inventory
    if condition.type == "level":
        return context.player_level >= (condition.value if condition.value is not None else 1)
    if condition.type == "flag":
        return not condition.target or condition.target in context.game_flags
    return True


def get_time_of_day(hour: int, config: TimeConfig | None = None) -> str:
    bounds = (config or TimeConfig()).day_boundaries
    if hour >= bounds.night_start or hour < bounds.morning_start:
        return "night"
    if hour >= bounds.evening_start:
        return "evening"
    if hour >= bounds.afternoon_start:
        return "afternoon"
    return "morning"


def get_landmarks_in_range(route: Route, start_position: float, end_position: float) -> list[RouteLandmark]:
    low = min(start_position, end_position)
    high = max(start_position, end_position)
    return [landmark for landmark in route.landmarks or [] if low <= landmark.position <= high]


def _encounter_allowed(
    encounter: RouteEncounter,
    time_of_day: str | None,
    player_level: int | None,
    flags: set[str] | None,
) -> bool:
    cond = encounter.conditions
    if cond is None:
        return True
    if cond.time_of_day and time_of_day and time_of_day not in cond.time_of_day:
        return False
    if cond.min_level and player_level is not None and player_level < cond.min_level:
        return False
    if cond.max_level and player_level is not None and player_level > cond.max_level:
        return False
    if cond.requires_flag and flags is not None and cond.requires_flag not in flags:
        return False
    if cond.exclude_if_flag and flags is not None and cond.exclude_if_flag in flags:
        return False
    return True


def select_random_encounter(
    route: Route,
    time_of_day: str | None = None,
    player_level: int | None = None,
    flags: set[str] | None = None,
    random_fn: RandomFn = random.random,
) -> RouteEncounter | None:
    eligible = [
        encounter
        for encounter in route.encounters or []
        if _encounter_allowed(encounter, time_of_day, player_level, flags)
    ]
    return weighted_pick(eligible, lambda encounter: encounter.weight, random_fn)


def get_difficulty_modifiers(preset: DifficultyPreset) -> dict[str, Any]:
    return dict(DIFFICULTY_PRESETS[preset])
