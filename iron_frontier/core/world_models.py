from __future__ import annotations

from typing import Literal

from pydantic import Field, model_validator

from .models import StrictModel

TownSize = Literal["small", "medium", "large"]
TownTheme = Literal["frontier", "mining", "ranching", "outlaw", "religious", "railroad", "abandoned", "military"]
TownBuildingType = Literal[
    "cabin",
    "house",
    "mansion",
    "saloon",
    "general_store",
    "gunsmith",
    "bank",
    "hotel",
    "mine_office",
    "smelter",
    "workshop",
    "stable",
    "warehouse",
    "sheriff_office",
    "church",
    "train_station",
    "telegraph_office",
    "town_hall",
    "doctor_office",
    "well",
    "water_tower",
    "windmill",
    "watch_tower",
    "fort",
    "jail",
]
ShopType = Literal[
    "general_store",
    "gunsmith",
    "blacksmith",
    "doctor",
    "saloon",
    "stable",
    "black_market",
    "trading_post",
]
LawLevel = Literal["lawless", "frontier", "orderly", "strict"]
CompassDirection = Literal["north", "south", "east", "west"]
MapIcon = Literal["town", "village", "outpost", "fort", "camp", "ruins", "special"]
UnlockType = Literal["quest_complete", "quest_stage", "reputation", "item", "level", "flag", "always"]

RouteTerrain = Literal["desert", "plains", "mountains", "badlands", "riverside", "forest", "scrubland", "salt_flat"]
RouteCondition = Literal["clear", "rough", "dangerous", "blocked", "flooded", "snowed_in"]
EncounterTimeOfDay = Literal["morning", "afternoon", "evening", "night"]
EncounterWeather = Literal["clear", "rain", "storm", "sandstorm", "fog"]
EncounterType = Literal["combat", "trader", "traveler", "event", "ambush", "wildlife"]
RouteEventTrigger = Literal["distance", "first_visit", "time", "random", "quest", "flag"]
RouteEffectType = Literal["set_flag", "give_item", "take_item", "start_combat", "dialogue", "discovery", "reputation"]
LandmarkType = Literal[
    "camp",
    "ruins",
    "oasis",
    "cave",
    "overlook",
    "waystation",
    "grave",
    "wreckage",
    "monument",
    "mine_entrance",
    "spring",
    "crossroads",
]
ResourceType = Literal["water", "food", "ore", "wood", "herbs"]
TravelMethod = Literal["walk", "horse", "stagecoach", "train"]
RouteWeather = Literal["clear", "rain", "storm", "sandstorm", "fog", "snow"]
Season = Literal["spring", "summer", "fall", "winter"]
RouteUnlockType = Literal["quest_complete", "flag", "item", "always"]

DifficultyPreset = Literal["easy", "normal", "hard", "brutal"]
TimelineEventType = Literal["quest_start", "dialogue", "world_change", "custom"]


# ---------------------------------------------------------------------------
# Towns
# ---------------------------------------------------------------------------


class TownPosition(StrictModel):
    x: float
    z: float


class ShopHours(StrictModel):
    open: int = Field(ge=0, le=23)
    close: int = Field(ge=0, le=23)


class TownShop(StrictModel):
    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    type: ShopType
    operator_npc_id: str = Field(alias="operatorNpcId", min_length=1)
    shop_inventory_id: str | None = Field(default=None, alias="shopInventoryId")
    hours: ShopHours | None = None
    price_modifier: float = Field(default=1.0, alias="priceModifier", ge=0.1, le=5)
    description: str | None = None


class TownBuilding(StrictModel):
    id: str = Field(min_length=1)
    type: TownBuildingType
    name: str | None = None
    local_position: TownPosition | None = Field(default=None, alias="localPosition")
    enterable: bool = True
    interior_map_id: str | None = Field(default=None, alias="interiorMapId")
    resident_npc_ids: list[str] = Field(default_factory=list, alias="residentNpcIds")
    tags: list[str] = Field(default_factory=list)


class TownUnlockCondition(StrictModel):
    type: UnlockType
    target: str | None = None
    value: float | None = None
    stage_id: str | None = Field(default=None, alias="stageId")


class TownEntryPoint(StrictModel):
    id: str = Field(min_length=1)
    direction: CompassDirection
    route_id: str | None = Field(default=None, alias="routeId")


class Town(StrictModel):
    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    description: str
    theme: TownTheme
    position: TownPosition
    size: TownSize
    npcs: list[str] = Field(default_factory=list)
    shops: list[TownShop] = Field(default_factory=list)
    quests: list[str] = Field(default_factory=list)
    buildings: list[TownBuilding] = Field(default_factory=list)
    unlock_condition: TownUnlockCondition | None = Field(default=None, alias="unlockCondition")
    start_discovered: bool = Field(default=False, alias="startDiscovered")
    danger_level: int = Field(default=0, alias="dangerLevel", ge=0, le=10)
    economy_level: int = Field(default=5, alias="economyLevel", ge=1, le=10)
    law_level: LawLevel = Field(default="frontier", alias="lawLevel")
    controlling_faction: str | None = Field(default=None, alias="controllingFaction")
    lore: str | None = None
    map_icon: MapIcon = Field(default="town", alias="mapIcon")
    entry_points: list[TownEntryPoint] = Field(default_factory=list, alias="entryPoints")
    tags: list[str] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------


class EncounterTrigger(StrictModel):
    time_of_day: list[EncounterTimeOfDay] | None = Field(default=None, alias="timeOfDay")
    min_level: int | None = Field(default=None, alias="minLevel", ge=1)
    max_level: int | None = Field(default=None, alias="maxLevel", ge=1)
    requires_flag: str | None = Field(default=None, alias="requiresFlag")
    exclude_if_flag: str | None = Field(default=None, alias="excludeIfFlag")
    weather: list[EncounterWeather] | None = None


class EncounterEnemy(StrictModel):
    enemy_id: str = Field(alias="enemyId", min_length=1)
    count: int = Field(ge=1, le=10)
    level_scale: float = Field(alias="levelScale", ge=0.5, le=2)


class RewardItem(StrictModel):
    item_id: str = Field(alias="itemId", min_length=1)
    quantity: int = Field(ge=1)
    chance: float = Field(ge=0, le=1)


class EncounterRewards(StrictModel):
    xp: int = Field(ge=0)
    gold: int = Field(ge=0)
    items: list[RewardItem] | None = None


class RouteEncounter(StrictModel):
    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    type: EncounterType
    # Negative weights are reported by integrity checks, not rejected here.
    weight: float
    template_id: str | None = Field(default=None, alias="templateId")
    enemies: list[EncounterEnemy] | None = None
    conditions: EncounterTrigger | None = None
    description: str | None = None
    repeatable: bool | None = None
    rewards: EncounterRewards | None = None
    tags: list[str] | None = None


class RouteEffect(StrictModel):
    type: RouteEffectType
    target: str | None = None
    value: float | None = None
    string_value: str | None = Field(default=None, alias="stringValue")


class RouteEvent(StrictModel):
    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    description: str
    trigger_type: RouteEventTrigger = Field(alias="triggerType")
    trigger_value: float | None = Field(default=None, alias="triggerValue")
    quest_id: str | None = Field(default=None, alias="questId")
    flag_name: str | None = Field(default=None, alias="flagName")
    effects: list[RouteEffect] = Field(default_factory=list)
    dialogue_tree_id: str | None = Field(default=None, alias="dialogueTreeId")
    combat_encounter_id: str | None = Field(default=None, alias="combatEncounterId")
    repeatable: bool = False
    tags: list[str] = Field(default_factory=list)


class LandmarkResource(StrictModel):
    type: ResourceType
    quantity: int = Field(ge=1)
    respawn_hours: int | None = Field(default=None, alias="respawnHours", ge=0)


class LandmarkContainer(StrictModel):
    id: str = Field(min_length=1)
    loot_table_id: str = Field(alias="lootTableId", min_length=1)
    locked: bool = False
    lock_difficulty: int | None = Field(default=None, alias="lockDifficulty", ge=0, le=100)


class RouteLandmark(StrictModel):
    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    type: LandmarkType
    description: str
    # Range is checked by integrity validation so authoring mistakes surface as warnings.
    position: float
    start_discovered: bool = Field(default=False, alias="startDiscovered")
    can_rest: bool = Field(default=False, alias="canRest")
    rest_quality: float = Field(default=1.0, alias="restQuality", ge=0.1, le=2)
    resources: list[LandmarkResource] = Field(default_factory=list)
    containers: list[LandmarkContainer] = Field(default_factory=list)
    npc_ids: list[str] = Field(default_factory=list, alias="npcIds")
    quest_ids: list[str] = Field(default_factory=list, alias="questIds")
    lore: str | None = None
    tags: list[str] = Field(default_factory=list)


class RouteUnlockCondition(StrictModel):
    type: RouteUnlockType
    target: str | None = None


class TravelMethodConfig(StrictModel):
    method: TravelMethod
    available: bool
    speed_modifier: float = Field(alias="speedModifier", ge=0.5, le=5)
    cost: int = Field(ge=0)


class WeatherPattern(StrictModel):
    type: RouteWeather
    probability: float = Field(ge=0, le=1)
    season_restriction: list[Season] | None = Field(default=None, alias="seasonRestriction")


class Waypoint(StrictModel):
    x: float
    z: float


class Route(StrictModel):
    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    description: str
    from_town: str = Field(alias="fromTown", min_length=1)
    to_town: str = Field(alias="toTown", min_length=1)
    terrain: RouteTerrain
    secondary_terrain: RouteTerrain | None = Field(default=None, alias="secondaryTerrain")
    length: int = Field(ge=1)
    condition: RouteCondition | None = None
    danger_level: int | None = Field(default=None, alias="dangerLevel", ge=0, le=10)
    encounters: list[RouteEncounter] | None = None
    encounter_frequency: float | None = Field(default=None, alias="encounterFrequency", ge=0, le=5)
    events: list[RouteEvent] | None = None
    landmarks: list[RouteLandmark] | None = None
    bidirectional: bool | None = None
    passable: bool | None = None
    blocked_reason: str | None = Field(default=None, alias="blockedReason")
    unlock_condition: RouteUnlockCondition | None = Field(default=None, alias="unlockCondition")
    travel_methods: list[TravelMethodConfig] | None = Field(default=None, alias="travelMethods")
    weather_patterns: list[WeatherPattern] | None = Field(default=None, alias="weatherPatterns")
    waypoints: list[Waypoint] | None = None
    lore: str | None = None
    tags: list[str] | None = None


# ---------------------------------------------------------------------------
# World
# ---------------------------------------------------------------------------


class DayBoundaries(StrictModel):
    morning_start: int = Field(default=6, alias="morningStart", ge=0, le=23)
    afternoon_start: int = Field(default=12, alias="afternoonStart", ge=0, le=23)
    evening_start: int = Field(default=17, alias="eveningStart", ge=0, le=23)
    night_start: int = Field(default=21, alias="nightStart", ge=0, le=23)


class TimeConfig(StrictModel):
    game_minutes_per_real_second: float = Field(default=0.5, alias="gameMinutesPerRealSecond", ge=0.1, le=10)
    starting_hour: int = Field(default=8, alias="startingHour", ge=0, le=23)
    starting_day: int = Field(default=1, alias="startingDay", ge=1)
    day_boundaries: DayBoundaries = Field(default_factory=DayBoundaries, alias="dayBoundaries")
    pause_in_menus: bool = Field(default=True, alias="pauseInMenus")
    pause_in_combat: bool = Field(default=True, alias="pauseInCombat")


class DifficultyConfig(StrictModel):
    preset: DifficultyPreset | Literal["custom"] = "normal"
    player_damage_multiplier: float = Field(default=1.0, alias="playerDamageMultiplier", ge=0.25, le=4)
    enemy_damage_multiplier: float = Field(default=1.0, alias="enemyDamageMultiplier", ge=0.25, le=4)
    encounter_frequency: float = Field(default=1.0, alias="encounterFrequency", ge=0, le=3)
    resource_consumption: float = Field(default=1.0, alias="resourceConsumption", ge=0.25, le=4)
    shop_price_modifier: float = Field(default=1.0, alias="shopPriceModifier", ge=0.5, le=3)
    xp_multiplier: float = Field(default=1.0, alias="xpMultiplier", ge=0.25, le=4)
    permadeath: bool = False
    always_can_flee: bool = Field(default=True, alias="alwaysCanFlee")


class NoProvisionsEffect(StrictModel):
    fatigue_multiplier: float = Field(default=2.0, alias="fatigueMultiplier", ge=1, le=10)
    health_drain_per_hour: float = Field(default=5.0, alias="healthDrainPerHour", ge=0, le=50)


class SurvivalConfig(StrictModel):
    fatigue_enabled: bool = Field(default=True, alias="fatigueEnabled")
    fatigue_gain_rate: float = Field(default=5.0, alias="fatigueGainRate", ge=0, le=100)
    max_fatigue: int = Field(default=100, alias="maxFatigue", ge=1, le=1000)
    fatigue_recovery_rate: float = Field(default=15.0, alias="fatigueRecoveryRate", ge=0, le=100)
    provisions_enabled: bool = Field(default=True, alias="provisionsEnabled")
    provisions_consume_rate: float = Field(default=0.5, alias="provisionsConsumeRate", ge=0, le=10)
    max_provisions: int = Field(default=50, alias="maxProvisions", ge=1, le=1000)
    no_provisions_effect: NoProvisionsEffect = Field(default_factory=NoProvisionsEffect, alias="noProvisionsEffect")


class ReputationThresholds(StrictModel):
    hostile: int = -50
    unfriendly: int = -20
    neutral: int = 0
    friendly: int = 20
    allied: int = 50


class Faction(StrictModel):
    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    description: str
    starting_reputation: int = Field(default=0, alias="startingReputation", ge=-100, le=100)
    reputation_thresholds: ReputationThresholds = Field(
        default_factory=ReputationThresholds, alias="reputationThresholds"
    )
    faction_relations: dict[str, int] = Field(default_factory=dict, alias="factionRelations")
    color: str | None = None
    icon: str | None = None
    tags: list[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def validate_relations(self) -> "Faction":
        for faction_id, relation in self.faction_relations.items():
            if relation < -100 or relation > 100:
                raise ValueError(f"Faction relation with '{faction_id}' must be between -100 and 100.")
        return self


class StartingItem(StrictModel):
    item_id: str = Field(alias="itemId", min_length=1)
    quantity: int = Field(default=1, ge=1)


class StartingEquipment(StrictModel):
    weapon: str | None = None
    armor: str | None = None
    accessory: str | None = None


class StartingConditions(StrictModel):
    town_id: str = Field(alias="townId", min_length=1)
    entry_point_id: str | None = Field(default=None, alias="entryPointId")
    gold: int = Field(default=50, ge=0)
    provisions: int = Field(default=20, ge=0)
    level: int = Field(default=1, ge=1, le=10)
    health_percent: int = Field(default=100, alias="healthPercent", ge=1, le=100)
    fatigue: int = Field(default=0, ge=0, le=100)
    inventory: list[StartingItem] = Field(default_factory=list)
    equipment: StartingEquipment = Field(default_factory=StartingEquipment)
    active_quests: list[str] = Field(default_factory=list, alias="activeQuests")
    flags: dict[str, bool] = Field(default_factory=dict)
    discovered_towns: list[str] = Field(default_factory=list, alias="discoveredTowns")
    discovered_routes: list[str] = Field(default_factory=list, alias="discoveredRoutes")


class WorldConfig(StrictModel):
    time: TimeConfig | None = None
    difficulty: DifficultyConfig | None = None
    survival: SurvivalConfig | None = None
    max_save_slots: int = Field(default=10, alias="maxSaveSlots", ge=1, le=100)
    autosave_interval_minutes: int = Field(default=5, alias="autosaveIntervalMinutes", ge=0, le=60)
    show_tutorials: bool = Field(default=True, alias="showTutorials")
    combat_animations: bool = Field(default=True, alias="combatAnimations")
    game_speed_multiplier: float = Field(default=1.0, alias="gameSpeedMultiplier", ge=0.5, le=4)


class MapDimensions(StrictModel):
    width: int = Field(default=1000, ge=100, le=10000)
    height: int = Field(default=1000, ge=100, le=10000)


class TimelineEvent(StrictModel):
    id: str = Field(min_length=1)
    day: int = Field(ge=1)
    hour: int | None = Field(default=None, ge=0, le=23)
    event_type: TimelineEventType = Field(alias="eventType")
    target: str | None = None
    description: str | None = None
    repeatable: bool = False


class WorldDefinition(StrictModel):
    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    description: str
    version: str
    towns: list[Town]
    routes: list[Route]
    factions: list[Faction] = Field(default_factory=list)
    starting_town_id: str = Field(alias="startingTownId", min_length=1)
    starting_conditions: StartingConditions = Field(alias="startingConditions")
    config: WorldConfig | None = None
    map_dimensions: MapDimensions = Field(default_factory=MapDimensions, alias="mapDimensions")
    main_quest_id: str | None = Field(default=None, alias="mainQuestId")
    timeline_events: list[TimelineEvent] = Field(default_factory=list, alias="timelineEvents")
    lore: str | None = None
    author: str | None = None
    created_at: int | None = Field(default=None, alias="createdAt")
    modified_at: int | None = Field(default=None, alias="modifiedAt")
    tags: list[str] = Field(default_factory=list)
