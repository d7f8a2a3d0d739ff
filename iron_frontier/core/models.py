from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

EventCategory = Literal["travel", "town", "camp"]
EventRarity = Literal["common", "uncommon", "rare", "legendary"]
LootRarity = Literal["common", "uncommon", "rare", "legendary"]
TimeOfDay = Literal["dawn", "morning", "afternoon", "evening", "night", "any"]
Weather = Literal["clear", "cloudy", "rain", "storm", "snow"]
SkillName = Literal["combat", "speech", "survival", "stealth", "repair", "medicine"]
ChoiceTag = Literal["moral", "aggressive", "peaceful", "greedy", "generous", "coward", "brave"]
EventEffectType = Literal[
    "give_gold",
    "take_gold",
    "give_item",
    "take_item",
    "heal",
    "damage",
    "change_reputation",
    "start_quest",
    "advance_quest",
    "set_flag",
    "clear_flag",
    "unlock_location",
    "trigger_combat",
    "give_xp",
    "change_morale",
    "add_companion",
    "reveal_lore",
]
DialogueConditionType = Literal[
    "quest_active",
    "quest_complete",
    "quest_not_started",
    "has_item",
    "lacks_item",
    "reputation_gte",
    "reputation_lte",
    "gold_gte",
    "talked_to",
    "not_talked_to",
    "time_of_day",
    "flag_set",
    "flag_not_set",
    "first_meeting",
    "return_visit",
]
DialogueEffectType = Literal[
    "start_quest",
    "complete_quest",
    "advance_quest",
    "give_item",
    "take_item",
    "give_gold",
    "take_gold",
    "change_reputation",
    "set_flag",
    "clear_flag",
    "unlock_location",
    "change_npc_state",
    "trigger_event",
    "open_shop",
]
NPCRole = Literal[
    "sheriff",
    "deputy",
    "mayor",
    "merchant",
    "bartender",
    "banker",
    "blacksmith",
    "doctor",
    "preacher",
    "undertaker",
    "rancher",
    "miner",
    "farmer",
    "prospector",
    "outlaw",
    "gang_leader",
    "bounty_hunter",
    "drifter",
    "gambler",
    "townsfolk",
]
NPCFaction = Literal["neutral", "ivrc", "copperhead", "freeminer", "remnant", "townsfolk"]
RelationshipType = Literal["ally", "enemy", "neutral", "family", "romantic", "rival"]
ObjectiveType = Literal["kill", "collect", "talk", "visit", "interact", "deliver"]
QuestType = Literal["main", "side", "faction", "bounty", "delivery", "exploration"]

LOOT_RARITY_WEIGHTS: dict[LootRarity, int] = {
    "common": 100,
    "uncommon": 30,
    "rare": 10,
    "legendary": 2,
}


class StrictModel(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)


class HexCoord(StrictModel):
    q: int
    r: int


# ---------------------------------------------------------------------------
# Loot
# ---------------------------------------------------------------------------


class LootCondition(StrictModel):
    min_player_level: int | None = Field(default=None, alias="minPlayerLevel", ge=1)
    max_player_level: int | None = Field(default=None, alias="maxPlayerLevel", ge=1)


class LootEntry(StrictModel):
    item_id: str = Field(alias="itemId", min_length=1)
    weight: float = Field(ge=0)
    min_quantity: int = Field(alias="minQuantity", ge=0)
    max_quantity: int = Field(alias="maxQuantity", ge=0)
    condition: LootCondition | None = None

    @model_validator(mode="after")
    def validate_quantity_range(self) -> "LootEntry":
        if self.max_quantity < self.min_quantity:
            raise ValueError("LootEntry.maxQuantity must be greater than or equal to minQuantity.")
        return self


class LootTable(StrictModel):
    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    entries: list[LootEntry] = Field(min_length=1)
    rolls: int = Field(default=1, ge=1)
    empty_chance: float = Field(default=0.0, alias="emptyChance", ge=0, le=1)


class MoneyDrop(StrictModel):
    min_amount: int = Field(alias="minAmount", ge=0)
    max_amount: int = Field(alias="maxAmount", ge=0)
    chance: float = Field(ge=0, le=1)

    @model_validator(mode="after")
    def validate_amount_range(self) -> "MoneyDrop":
        if self.max_amount < self.min_amount:
            raise ValueError("MoneyDrop.maxAmount must be greater than or equal to minAmount.")
        return self


MONEY_DROPS: dict[str, MoneyDrop] = {
    "wildlife": MoneyDrop(min_amount=0, max_amount=0, chance=0),
    "bandit_common": MoneyDrop(min_amount=5, max_amount=15, chance=0.8),
    "bandit_leader": MoneyDrop(min_amount=20, max_amount=40, chance=1.0),
    "outlaw_common": MoneyDrop(min_amount=15, max_amount=30, chance=0.9),
    "outlaw_leader": MoneyDrop(min_amount=40, max_amount=80, chance=1.0),
    "ivrc_guard": MoneyDrop(min_amount=10, max_amount=20, chance=0.7),
    "ivrc_leader": MoneyDrop(min_amount=30, max_amount=60, chance=1.0),
    "automaton": MoneyDrop(min_amount=5, max_amount=15, chance=0.3),
    "boss_act1": MoneyDrop(min_amount=100, max_amount=150, chance=1.0),
    "boss_act2": MoneyDrop(min_amount=150, max_amount=200, chance=1.0),
    "boss_final": MoneyDrop(min_amount=300, max_amount=500, chance=1.0),
}


# ---------------------------------------------------------------------------
# Random events
# ---------------------------------------------------------------------------


class EventConditions(StrictModel):
    time_of_day: list[TimeOfDay] | None = Field(default=None, alias="timeOfDay")
    min_level: int | None = Field(default=None, alias="minLevel", ge=1)
    max_level: int | None = Field(default=None, alias="maxLevel", ge=1)
    min_gold: int | None = Field(default=None, alias="minGold", ge=0)
    required_items: list[str] | None = Field(default=None, alias="requiredItems")
    min_reputation: dict[str, int] | None = Field(default=None, alias="minReputation")
    max_reputation: dict[str, int] | None = Field(default=None, alias="maxReputation")
    required_flags: list[str] | None = Field(default=None, alias="requiredFlags")
    forbidden_flags: list[str] | None = Field(default=None, alias="forbiddenFlags")
    completed_quests: list[str] | None = Field(default=None, alias="completedQuests")
    active_quests: list[str] | None = Field(default=None, alias="activeQuests")
    min_health_percent: float | None = Field(default=None, alias="minHealthPercent", ge=0, le=100)
    terrain_types: list[str] | None = Field(default=None, alias="terrainTypes")
    region_ids: list[str] | None = Field(default=None, alias="regionIds")
    location_ids: list[str] | None = Field(default=None, alias="locationIds")
    weather: list[Weather] | None = None


class EventEffect(StrictModel):
    type: EventEffectType
    target: str | None = None
    value: float | None = None
    value_range: tuple[int, int] | None = Field(default=None, alias="valueRange")
    string_value: str | None = Field(default=None, alias="stringValue")
    chance: float | None = Field(default=None, ge=0, le=1)

    @model_validator(mode="after")
    def validate_value_range(self) -> "EventEffect":
        if self.value_range is not None and self.value_range[1] < self.value_range[0]:
            raise ValueError("EventEffect.valueRange max must be greater than or equal to min.")
        return self


class SkillCheck(StrictModel):
    skill: SkillName
    difficulty: int = Field(ge=1, le=100)
    success_effects: list[EventEffect] = Field(default_factory=list, alias="successEffects")
    failure_effects: list[EventEffect] = Field(default_factory=list, alias="failureEffects")
    success_text: str = Field(alias="successText")
    failure_text: str = Field(alias="failureText")


class EventChoice(StrictModel):
    id: str = Field(min_length=1)
    text: str = Field(min_length=1)
    tooltip: str | None = None
    conditions: EventConditions | None = None
    effects: list[EventEffect] | None = None
    result_text: str = Field(alias="resultText")
    skill_check: SkillCheck | None = Field(default=None, alias="skillCheck")
    tags: list[ChoiceTag] | None = None


class RandomEvent(StrictModel):
    id: str = Field(min_length=1)
    title: str = Field(min_length=1)
    description: str
    category: EventCategory
    rarity: EventRarity
    weight: float = Field(default=1.0, ge=0)
    conditions: EventConditions = Field(default_factory=EventConditions)
    choices: list[EventChoice] = Field(min_length=1)
    repeatable: bool = True
    cooldown_hours: int = Field(default=24, alias="cooldownHours", ge=0)
    tags: list[str] = Field(default_factory=list)
    image_id: str | None = Field(default=None, alias="imageId")
    sound_id: str | None = Field(default=None, alias="soundId")


# ---------------------------------------------------------------------------
# Dialogue
# ---------------------------------------------------------------------------


class DialogueCondition(StrictModel):
    type: DialogueConditionType
    target: str | None = None
    value: float | None = None
    string_value: str | None = Field(default=None, alias="stringValue")


class DialogueEffect(StrictModel):
    type: DialogueEffectType
    target: str | None = None
    value: float | None = None
    string_value: str | None = Field(default=None, alias="stringValue")


class DialogueSkillCheck(StrictModel):
    skill: SkillName
    difficulty: int = Field(ge=1, le=100)
    success_effects: list[DialogueEffect] = Field(default_factory=list, alias="successEffects")
    failure_effects: list[DialogueEffect] = Field(default_factory=list, alias="failureEffects")
    success_text: str = Field(alias="successText")
    failure_text: str = Field(alias="failureText")
    success_node_id: str | None = Field(default=None, alias="successNodeId")
    failure_node_id: str | None = Field(default=None, alias="failureNodeId")


class DialogueChoice(StrictModel):
    text: str = Field(min_length=1)
    next_node_id: str | None = Field(alias="nextNodeId")
    conditions: list[DialogueCondition] = Field(default_factory=list)
    effects: list[DialogueEffect] = Field(default_factory=list)
    result_text: str | None = Field(default=None, alias="resultText")
    skill_check: DialogueSkillCheck | None = Field(default=None, alias="skillCheck")
    tags: list[str] = Field(default_factory=list)
    hint: str | None = None


class DialogueNode(StrictModel):
    id: str = Field(min_length=1)
    text: str
    speaker: str | None = None
    choices: list[DialogueChoice] = Field(default_factory=list)
    next_node_id: str | None = Field(default=None, alias="nextNodeId")
    choice_delay: int = Field(default=0, alias="choiceDelay", ge=0)
    on_enter_effects: list[DialogueEffect] = Field(default_factory=list, alias="onEnterEffects")
    tags: list[str] = Field(default_factory=list)
    expression: str | None = None


class DialogueEntryPoint(StrictModel):
    node_id: str = Field(alias="nodeId", min_length=1)
    conditions: list[DialogueCondition] = Field(default_factory=list)
    priority: int = 0


class DialogueTree(StrictModel):
    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    description: str | None = None
    nodes: list[DialogueNode] = Field(min_length=1)
    entry_points: list[DialogueEntryPoint] = Field(alias="entryPoints", min_length=1)
    tags: list[str] = Field(default_factory=list)

    def node_by_id(self, node_id: str) -> DialogueNode | None:
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None


# ---------------------------------------------------------------------------
# NPCs and quests
# ---------------------------------------------------------------------------


class NPCPersonality(StrictModel):
    aggression: float = Field(default=0.3, ge=0, le=1)
    friendliness: float = Field(default=0.5, ge=0, le=1)
    curiosity: float = Field(default=0.5, ge=0, le=1)
    greed: float = Field(default=0.3, ge=0, le=1)
    honesty: float = Field(default=0.7, ge=0, le=1)
    lawfulness: float = Field(default=0.5, ge=0, le=1)


class NPCRelationship(StrictModel):
    npc_id: str = Field(alias="npcId", min_length=1)
    type: RelationshipType
    notes: str | None = None


class NPCDefinition(StrictModel):
    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    title: str | None = None
    role: NPCRole
    faction: NPCFaction = "neutral"
    location_id: str = Field(alias="locationId", min_length=1)
    spawn_coord: HexCoord | None = Field(default=None, alias="spawnCoord")
    personality: NPCPersonality = Field(default_factory=NPCPersonality)
    description: str | None = None
    portrait_id: str | None = Field(default=None, alias="portraitId")
    dialogue_tree_ids: list[str] = Field(default_factory=list, alias="dialogueTreeIds")
    primary_dialogue_id: str | None = Field(default=None, alias="primaryDialogueId")
    essential: bool = False
    quest_giver: bool = Field(default=False, alias="questGiver")
    quest_ids: list[str] = Field(default_factory=list, alias="questIds")
    shop_id: str | None = Field(default=None, alias="shopId")
    backstory: str | None = None
    relationships: list[NPCRelationship] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)


class MapMarker(StrictModel):
    location_id: str = Field(alias="locationId", min_length=1)
    marker_label: str | None = Field(default=None, alias="markerLabel")


class Objective(StrictModel):
    id: str = Field(min_length=1)
    description: str
    type: ObjectiveType
    target: str = Field(min_length=1)
    deliver_to: str | None = Field(default=None, alias="deliverTo")
    count: int = Field(default=1, ge=1)
    current: int = Field(default=0, ge=0)
    optional: bool = False
    hidden: bool = False
    hint: str | None = None
    map_marker: MapMarker | None = Field(default=None, alias="mapMarker")


class ItemGrant(StrictModel):
    item_id: str = Field(alias="itemId", min_length=1)
    quantity: int = Field(default=1, ge=1)


class StageRewards(StrictModel):
    xp: int = Field(default=0, ge=0)
    gold: int = Field(default=0, ge=0)
    items: list[ItemGrant] = Field(default_factory=list)
    reputation: dict[str, int] = Field(default_factory=dict)


class QuestStage(StrictModel):
    id: str = Field(min_length=1)
    title: str
    description: str
    objectives: list[Objective] = Field(min_length=1)
    on_start_text: str | None = Field(default=None, alias="onStartText")
    on_complete_text: str | None = Field(default=None, alias="onCompleteText")
    stage_rewards: StageRewards = Field(default_factory=StageRewards, alias="stageRewards")


class QuestPrerequisites(StrictModel):
    completed_quests: list[str] = Field(default_factory=list, alias="completedQuests")
    min_level: int | None = Field(default=None, alias="minLevel", ge=1)
    faction_reputation: dict[str, int] = Field(default_factory=dict, alias="factionReputation")
    required_items: list[str] = Field(default_factory=list, alias="requiredItems")


class QuestRewards(StageRewards):
    unlocks_quests: list[str] = Field(default_factory=list, alias="unlocksQuests")


class Quest(StrictModel):
    id: str = Field(min_length=1)
    title: str = Field(min_length=1)
    description: str
    type: QuestType
    giver_npc_id: str | None = Field(alias="giverNpcId")
    start_location_id: str | None = Field(default=None, alias="startLocationId")
    recommended_level: int = Field(default=1, alias="recommendedLevel", ge=1, le=10)
    stages: list[QuestStage] = Field(min_length=1)
    prerequisites: QuestPrerequisites = Field(default_factory=QuestPrerequisites)
    rewards: QuestRewards
    tags: list[str] = Field(default_factory=list)
    repeatable: bool = False
    time_limit_hours: int | None = Field(default=None, alias="timeLimitHours", ge=1)
