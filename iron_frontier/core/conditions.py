from __future__ import annotations

from dataclasses import dataclass, field
from typing import ClassVar, Iterable, Union

from .models import EventConditions, LootCondition


@dataclass(slots=True)
class GameContext:
    """Snapshot of player and world state handed in by the game loop.

    Times are in milliseconds. Reputation missing for a faction counts as 0.
    """

    time_of_day: str = "morning"
    player_level: int = 1
    player_gold: int = 0
    player_health_percent: float = 100.0
    inventory: list[str] = field(default_factory=list)
    faction_reputation: dict[str, int] = field(default_factory=dict)
    game_flags: set[str] = field(default_factory=set)
    completed_quests: list[str] = field(default_factory=list)
    active_quests: list[str] = field(default_factory=list)
    # Active quest id -> id of its current stage.
    quest_stages: dict[str, str] = field(default_factory=dict)
    current_location_id: str | None = None
    current_region_id: str | None = None
    current_terrain: str | None = None
    weather: str | None = None
    triggered_event_ids: set[str] = field(default_factory=set)
    event_cooldowns: dict[str, int] = field(default_factory=dict)
    current_time: int = 0
    talked_to: set[str] = field(default_factory=set)
    current_npc_id: str | None = None

    def reputation(self, faction_id: str) -> int:
        return self.faction_reputation.get(faction_id, 0)


@dataclass(frozen=True, slots=True)
class TimeOfDayIn:
    kind: ClassVar[str] = "time_of_day_in"
    values: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class MinLevel:
    kind: ClassVar[str] = "min_level"
    value: int


@dataclass(frozen=True, slots=True)
class MaxLevel:
    kind: ClassVar[str] = "max_level"
    value: int


@dataclass(frozen=True, slots=True)
class MinGold:
    kind: ClassVar[str] = "min_gold"
    value: int


@dataclass(frozen=True, slots=True)
class MinHealthPercent:
    kind: ClassVar[str] = "min_health_percent"
    value: float


@dataclass(frozen=True, slots=True)
class HasItems:
    kind: ClassVar[str] = "has_items"
    item_ids: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class MinReputation:
    kind: ClassVar[str] = "min_reputation"
    faction_id: str
    value: int


@dataclass(frozen=True, slots=True)
class MaxReputation:
    kind: ClassVar[str] = "max_reputation"
    faction_id: str
    value: int


@dataclass(frozen=True, slots=True)
class RequiresFlags:
    kind: ClassVar[str] = "requires_flags"
    flags: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class ForbidsFlags:
    kind: ClassVar[str] = "forbids_flags"
    flags: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class QuestsCompleted:
    kind: ClassVar[str] = "quests_completed"
    quest_ids: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class QuestsActive:
    kind: ClassVar[str] = "quests_active"
    quest_ids: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class LocationIn:
    kind: ClassVar[str] = "location_in"
    location_ids: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class RegionIn:
    kind: ClassVar[str] = "region_in"
    region_ids: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class TerrainIn:
    kind: ClassVar[str] = "terrain_in"
    terrains: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class WeatherIn:
    kind: ClassVar[str] = "weather_in"
    weathers: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class PlayerLevelAtLeast:
    kind: ClassVar[str] = "player_level_at_least"
    level: int


@dataclass(frozen=True, slots=True)
class PlayerLevelAtMost:
    kind: ClassVar[str] = "player_level_at_most"
    level: int


Predicate = Union[
    TimeOfDayIn,
    MinLevel,
    MaxLevel,
    MinGold,
    MinHealthPercent,
    HasItems,
    MinReputation,
    MaxReputation,
    RequiresFlags,
    ForbidsFlags,
    QuestsCompleted,
    QuestsActive,
    LocationIn,
    RegionIn,
    TerrainIn,
    WeatherIn,
    PlayerLevelAtLeast,
    PlayerLevelAtMost,
]


def compile_event_conditions(conditions: EventConditions | None) -> tuple[Predicate, ...]:
    """One predicate per populated field. Zero thresholds count as unset."""
    if conditions is None:
        return ()

    predicates: list[Predicate] = []
    if conditions.time_of_day is not None:
        predicates.append(TimeOfDayIn(tuple(conditions.time_of_day)))
    if conditions.min_level:
        predicates.append(MinLevel(conditions.min_level))
    if conditions.max_level:
        predicates.append(MaxLevel(conditions.max_level))
    if conditions.min_gold:
        predicates.append(MinGold(conditions.min_gold))
    if conditions.min_health_percent:
        predicates.append(MinHealthPercent(conditions.min_health_percent))
    if conditions.required_items is not None:
        predicates.append(HasItems(tuple(conditions.required_items)))
    for faction_id, value in (conditions.min_reputation or {}).items():
        predicates.append(MinReputation(faction_id, value))
    for faction_id, value in (conditions.max_reputation or {}).items():
        predicates.append(MaxReputation(faction_id, value))
    if conditions.required_flags is not None:
        predicates.append(RequiresFlags(tuple(conditions.required_flags)))
    if conditions.forbidden_flags is not None:
        predicates.append(ForbidsFlags(tuple(conditions.forbidden_flags)))
    if conditions.completed_quests is not None:
        predicates.append(QuestsCompleted(tuple(conditions.completed_quests)))
    if conditions.active_quests is not None:
        predicates.append(QuestsActive(tuple(conditions.active_quests)))
    if conditions.location_ids is not None:
        predicates.append(LocationIn(tuple(conditions.location_ids)))
    if conditions.region_ids is not None:
        predicates.append(RegionIn(tuple(conditions.region_ids)))
    if conditions.terrain_types is not None:
        predicates.append(TerrainIn(tuple(conditions.terrain_types)))
    if conditions.weather is not None:
        predicates.append(WeatherIn(tuple(conditions.weather)))
    return tuple(predicates)


def compile_choice_conditions(conditions: EventConditions | None) -> tuple[Predicate, ...]:
    """Choices only gate on gold, items, flags and minimum reputation."""
    if conditions is None:
        return ()

    predicates: list[Predicate] = []
    if conditions.min_gold:
        predicates.append(MinGold(conditions.min_gold))
    if conditions.required_items is not None:
        predicates.append(HasItems(tuple(conditions.required_items)))
    if conditions.required_flags is not None:
        predicates.append(RequiresFlags(tuple(conditions.required_flags)))
    if conditions.forbidden_flags is not None:
        predicates.append(ForbidsFlags(tuple(conditions.forbidden_flags)))
    for faction_id, value in (conditions.min_reputation or {}).items():
        predicates.append(MinReputation(faction_id, value))
    return tuple(predicates)


def compile_loot_condition(condition: LootCondition | None) -> tuple[Predicate, ...]:
    if condition is None:
        return ()

    predicates: list[Predicate] = []
    if condition.min_player_level:
        predicates.append(PlayerLevelAtLeast(condition.min_player_level))
    if condition.max_player_level:
        predicates.append(PlayerLevelAtMost(condition.max_player_level))
    return tuple(predicates)


def _matches_optional(values: tuple[str, ...], current: str | None) -> bool:
    # An unknown context value never filters.
    return not current or current in values


def evaluate(predicate: Predicate, context: GameContext) -> bool:
    kind = predicate.kind

    if kind == "time_of_day_in":
        return context.time_of_day in predicate.values or "any" in predicate.values
    if kind == "min_level":
        return context.player_level >= predicate.value
    if kind == "max_level":
        return context.player_level <= predicate.value
    if kind == "min_gold":
        return context.player_gold >= predicate.value
    if kind == "min_health_percent":
        return context.player_health_percent >= predicate.value
    if kind == "has_items":
        return all(item_id in context.inventory for item_id in predicate.item_ids)
    if kind == "min_reputation":
        return context.reputation(predicate.faction_id) >= predicate.value
    if kind == "max_reputation":
        return context.reputation(predicate.faction_id) <= predicate.value
    if kind == "requires_flags":
        return all(flag in context.game_flags for flag in predicate.flags)
    if kind == "forbids_flags":
        return not any(flag in context.game_flags for flag in predicate.flags)
    if kind == "quests_completed":
        return all(quest_id in context.completed_quests for quest_id in predicate.quest_ids)
    if kind == "quests_active":
        return all(quest_id in context.active_quests for quest_id in predicate.quest_ids)
    if kind == "location_in":
        return _matches_optional(predicate.location_ids, context.current_location_id)
    if kind == "region_in":
        return _matches_optional(predicate.region_ids, context.current_region_id)
    if kind == "terrain_in":
        return _matches_optional(predicate.terrains, context.current_terrain)
    if kind == "weather_in":
        return _matches_optional(predicate.weathers, context.weather)
    # Loot level gates: an unknown player level (0) never excludes.
    if kind == "player_level_at_least":
        return not context.player_level or context.player_level >= predicate.level
    if kind == "player_level_at_most":
        return not context.player_level or context.player_level <= predicate.level

    raise ValueError(f"Unknown predicate kind '{kind}'.")


def evaluate_all(predicates: Iterable[Predicate], context: GameContext) -> bool:
    return all(evaluate(predicate, context) for predicate in predicates)
