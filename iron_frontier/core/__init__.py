"""Content schemas, registry and the selection/validation utilities built on them."""

from .conditions import GameContext
from .dialogue import DialogueSession, End, GoTo, get_entry_node, resolve_entry_point, select_choice
from .integrity import (
    collect_integrity_warnings,
    validate_dialogue_tree_integrity,
    validate_route_integrity,
    validate_town_integrity,
    validate_world_complete,
    validate_world_integrity,
)
from .loader import ContentRegistry, ContentValidationError, load_content
from .loot import get_loot_table_for_enemy, roll_enemy_loot, roll_loot_table, roll_money_drop
from .rng import DeterministicRNG, weighted_pick
from .selector import get_available_choices, select_random_event

__all__ = [
    "ContentRegistry",
    "ContentValidationError",
    "DeterministicRNG",
    "DialogueSession",
    "End",
    "GameContext",
    "GoTo",
    "collect_integrity_warnings",
    "get_available_choices",
    "get_entry_node",
    "get_loot_table_for_enemy",
    "load_content",
    "resolve_entry_point",
    "roll_enemy_loot",
    "roll_loot_table",
    "roll_money_drop",
    "select_choice",
    "select_random_event",
    "validate_dialogue_tree_integrity",
    "validate_route_integrity",
    "validate_town_integrity",
    "validate_world_complete",
    "validate_world_integrity",
    "weighted_pick",
]
