from __future__ import annotations

from typing import Literal

from pydantic import Field, field_validator

from .models import HexCoord, StrictModel

TerrainType = Literal[
    "grass",
    "grass_hill",
    "grass_forest",
    "sand",
    "sand_hill",
    "sand_dunes",
    "dirt",
    "dirt_hill",
    "stone",
    "stone_hill",
    "stone_mountain",
    "stone_rocks",
    "water",
    "water_shallow",
    "water_deep",
    "mesa",
    "canyon",
    "badlands",
]
FeatureType = Literal[
    "none",
    "tree",
    "tree_dead",
    "bush",
    "cactus",
    "cactus_tall",
    "stump",
    "log",
    "rock_small",
    "rock_large",
    "boulder",
    "ore_vein",
    "oil_seep",
    "spring",
    "barrel",
    "barrel_water",
    "barrel_hay",
    "fence",
    "bench",
    "cart",
    "wanted_poster",
    "signpost",
    "ruins",
    "campfire_pit",
]
StructureType = Literal[
    "none",
    "cabin",
    "house",
    "mansion",
    "saloon_building",
    "store_building",
    "bank_building",
    "hotel_building",
    "mine_building",
    "smelter_building",
    "workshop_building",
    "windmill",
    "water_tower",
    "office_building",
    "church_building",
    "station_building",
    "telegraph_building",
    "well",
    "stable",
    "warehouse",
    "dock",
    "watch_tower",
    "fort",
]
EdgeType = Literal["none", "river", "road", "railroad", "cliff", "bridge", "ford", "fence"]
SlotType = Literal[
    "tavern",
    "general_store",
    "gunsmith",
    "doctor",
    "bank",
    "hotel",
    "stable",
    "law_office",
    "church",
    "telegraph",
    "train_station",
    "mine",
    "smelter",
    "workshop",
    "farm",
    "ranch",
    "residence",
    "residence_wealthy",
    "residence_poor",
    "camp",
    "hideout",
    "waystation",
    "water_source",
    "landmark",
    "ruins",
    "quest_location",
    "hidden_cache",
    "ambush_point",
    "meeting_point",
]
MarkerType = Literal[
    "entrance",
    "exit",
    "spawn_point",
    "counter",
    "desk",
    "bed",
    "chair",
    "table",
    "storage",
    "display",
    "workbench",
    "evidence_spot",
    "hiding_spot",
    "ambush_trigger",
    "conversation_spot",
    "cell",
    "vault",
    "altar",
    "stage",
    "rest_spot",
    "vantage_point",
]
ZoneType = Literal[
    "loot_area",
    "npc_area",
    "combat_area",
    "combat_zone",
    "event_stage",
    "decoration_area",
    "restricted_area",
    "public_area",
]
LocationType = Literal[
    "town", "city", "village", "outpost", "mine", "camp", "ranch", "fort", "ruins", "cave", "encounter", "special"
]
LocationSize = Literal["tiny", "small", "medium", "large", "huge"]
EntryDirection = Literal["north", "south", "east", "west", "up", "down"]
ConnectionType = Literal["road", "trail", "railroad", "river", "stairs", "portal"]
PopulationDensity = Literal["abandoned", "sparse", "normal", "crowded"]
LawLevel = Literal["lawless", "frontier", "orderly", "strict"]


class Marker(StrictModel):
    type: MarkerType
    name: str
    offset: HexCoord
    facing: int | None = Field(default=None, ge=0, le=5)
    tags: list[str] = Field(default_factory=list)


class Zone(StrictModel):
    type: ZoneType
    name: str
    tiles: list[HexCoord] = Field(min_length=1)
    priority: int | None = None
    tags: list[str] | None = None


class TileDef(StrictModel):
    coord: HexCoord
    terrain: TerrainType
    elevation: int | None = Field(default=None, ge=0, le=4)
    feature: FeatureType | None = None
    structure: StructureType | None = None
    structure_rotation: int | None = Field(default=None, alias="structureRotation", ge=0, le=5)
    edges: list[EdgeType] | None = Field(default=None, min_length=6, max_length=6)
    variant: int | None = Field(default=None, ge=0, le=3)


class SlotInstance(StrictModel):
    id: str
    type: SlotType
    name: str | None = None
    anchor: HexCoord
    rotation: int = Field(default=0, ge=0, le=5)
    tiles: list[TileDef] = Field(min_length=1)
    markers: list[Marker] = Field(default_factory=list)
    zones: list[Zone] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    importance: int = Field(default=3, ge=1, le=5)


class Assemblage(StrictModel):
    id: str
    name: str
    description: str | None = None
    tags: list[str] = Field(default_factory=list)
    primary_slot: SlotType = Field(alias="primarySlot")
    secondary_slots: list[SlotType] = Field(default_factory=list, alias="secondarySlots")
    tiles: list[TileDef] = Field(min_length=1)
    markers: list[Marker] = Field(default_factory=list)
    zones: list[Zone] = Field(default_factory=list)
    valid_rotations: list[int] = Field(default_factory=lambda: [0, 1, 2, 3, 4, 5], alias="validRotations")
    required_terrain: list[TerrainType] | None = Field(default=None, alias="requiredTerrain")
    forbidden_terrain: list[TerrainType] | None = Field(default=None, alias="forbiddenTerrain")
    min_water_distance: int = Field(default=0, alias="minWaterDistance", ge=0)
    requires_road_access: bool = Field(default=False, alias="requiresRoadAccess")

    @field_validator("valid_rotations")
    @classmethod
    def validate_rotations(cls, value: list[int]) -> list[int]:
        for rotation in value:
            if rotation < 0 or rotation > 5:
                raise ValueError("Assemblage rotations must be between 0 and 5.")
        return value


class AssemblageRef(StrictModel):
    assemblage_id: str = Field(alias="assemblageId")
    instance_id: str = Field(alias="instanceId")
    anchor: HexCoord
    rotation: int = Field(default=0, ge=0, le=5)
    slot_type_override: SlotType | None = Field(default=None, alias="slotTypeOverride")
    tags: list[str] = Field(default_factory=list)
    importance: int | None = Field(default=None, ge=1, le=5)


class LocationEntryPoint(StrictModel):
    id: str
    coord: HexCoord
    direction: EntryDirection
    connection_type: ConnectionType | None = Field(default=None, alias="connectionType")
    tags: list[str] = Field(default_factory=list)


class PlayerSpawn(StrictModel):
    coord: HexCoord
    facing: int | None = Field(default=None, ge=0, le=5)


class Atmosphere(StrictModel):
    danger_level: int = Field(default=0, alias="dangerLevel", ge=0, le=10)
    wealth_level: int = Field(default=5, alias="wealthLevel", ge=1, le=10)
    population_density: PopulationDensity = Field(default="normal", alias="populationDensity")
    law_level: LawLevel = Field(default="frontier", alias="lawLevel")


class Location(StrictModel):
    id: str
    name: str
    type: LocationType
    size: LocationSize
    description: str | None = None
    lore: str | None = None
    seed: int
    width: int = Field(ge=8, le=128)
    height: int = Field(ge=8, le=128)
    base_terrain: TerrainType = Field(alias="baseTerrain")
    slots: list[SlotInstance] = Field(default_factory=list)
    assemblages: list[AssemblageRef] = Field(default_factory=list)
    base_tiles: list[TileDef] = Field(default_factory=list, alias="baseTiles")
    entry_points: list[LocationEntryPoint] = Field(alias="entryPoints", min_length=1)
    player_spawn: PlayerSpawn | None = Field(default=None, alias="playerSpawn")
    tags: list[str] = Field(default_factory=list)
    atmosphere: Atmosphere = Field(default_factory=Atmosphere)

    def spawn_coord(self) -> HexCoord:
        if self.player_spawn is not None:
            return self.player_spawn.coord
        return self.entry_points[0].coord
