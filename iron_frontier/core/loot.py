from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from typing import Iterable, Mapping

from .conditions import GameContext, compile_loot_condition, evaluate_all
from .loader import ContentRegistry
from .models import MONEY_DROPS, LootEntry, MoneyDrop
from .rng import RandomFn, uniform_int, weighted_pick

logger = logging.getLogger(__name__)
roll_logger = logging.getLogger("iron_frontier.rolls")

DEFAULT_LOOT_TABLE = "chest_common"

BOSS_TABLES_BY_ACT = (
    ("act1", "boss_bandit_king"),
    ("act2", "boss_saboteur"),
    ("final", "boss_final"),
)
LEADER_TABLES_BY_FACTION = {
    "raiders": "bandit_leader",
    "copperhead": "outlaw_leader",
    "ivrc_guards": "ivrc_leader",
    "remnant": "automaton_rare",
}


@dataclass(slots=True)
class LootDrop:
    item_id: str
    quantity: int


@dataclass(slots=True)
class LootResult:
    table_id: str
    drops: list[LootDrop] = field(default_factory=list)
    gold: int = 0


def _entry_allowed(entry: LootEntry, level_context: GameContext) -> bool:
    return evaluate_all(compile_loot_condition(entry.condition), level_context)


def roll_loot_table(
    registry: ContentRegistry,
    table_id: str,
    player_level: int | None = None,
    random_fn: RandomFn = random.random,
) -> list[LootDrop]:
    """Roll every draw of a loot table and merge repeated items.

    Unknown tables yield nothing. A draw whose level-filtered entries carry no
    weight is skipped. Result order is not part of the contract.
    """
    table = registry.get_loot_table_by_id(table_id)
    if table is None:
        logger.debug("Unknown loot table '%s'", table_id)
        return []

    level_context = GameContext(player_level=player_level or 0)
    combined: dict[str, int] = {}
    for draw in range(table.rolls):
        if random_fn() < table.empty_chance:
            continue
        candidates = [entry for entry in table.entries if _entry_allowed(entry, level_context)]
        entry = weighted_pick(candidates, lambda candidate: candidate.weight, random_fn)
        if entry is None:
            logger.debug("Loot table '%s' draw %d has no weighted entries at level %s", table_id, draw, player_level)
            continue
        quantity = uniform_int(entry.min_quantity, entry.max_quantity, random_fn)
        combined[entry.item_id] = combined.get(entry.item_id, 0) + quantity

    drops = [LootDrop(item_id=item_id, quantity=quantity) for item_id, quantity in combined.items()]
    roll_logger.info(
        "loot table=%s level=%s drops=%s",
        table_id,
        player_level,
        ",".join(f"{drop.item_id}x{drop.quantity}" for drop in drops) or "-",
    )
    return drops


def roll_money_drop(
    enemy_type: str,
    random_fn: RandomFn = random.random,
    drops: Mapping[str, MoneyDrop] = MONEY_DROPS,
) -> int:
    config = drops.get(enemy_type)
    if config is None:
        return 0
    if random_fn() > config.chance:
        return 0
    return uniform_int(config.min_amount, config.max_amount, random_fn)


def get_loot_table_for_enemy(faction: str, tags: Iterable[str]) -> str:
    tag_set = set(tags)

    if "boss" in tag_set:
        for act_tag, table_id in BOSS_TABLES_BY_ACT:
            if act_tag in tag_set:
                return table_id

    if ("mini_boss" in tag_set or "leader" in tag_set) and faction in LEADER_TABLES_BY_FACTION:
        return LEADER_TABLES_BY_FACTION[faction]

    if faction == "wildlife":
        if "poison" in tag_set:
            return "wildlife_venom"
        if "rare" in tag_set:
            return "wildlife_rare"
        if "uncommon" in tag_set:
            return "wildlife_pelts"
        return "wildlife_common"
    if faction == "raiders":
        return "bandit_common"
    if faction == "copperhead":
        return "outlaw_common"
    if faction == "ivrc_guards":
        return "ivrc_common"
    if faction == "remnant":
        if "rare" in tag_set:
            return "automaton_rare"
        if "corrupted" in tag_set:
            return "corrupted_human"
        return "automaton_scrap"
    return DEFAULT_LOOT_TABLE


def roll_enemy_loot(
    registry: ContentRegistry,
    faction: str,
    tags: Iterable[str],
    enemy_type: str,
    player_level: int | None = None,
    random_fn: RandomFn = random.random,
) -> LootResult:
    table_id = get_loot_table_for_enemy(faction, tags)
    drops = roll_loot_table(registry, table_id, player_level, random_fn)
    gold = roll_money_drop(enemy_type, random_fn, registry.money_drops)
    return LootResult(table_id=table_id, drops=drops, gold=gold)
