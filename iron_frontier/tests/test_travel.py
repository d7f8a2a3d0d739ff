from __future__ import annotations

import math
from pathlib import Path

import pytest

from iron_frontier.core.conditions import GameContext
from iron_frontier.core.loader import ContentRegistry, load_content, validate_route
from iron_frontier.core.travel import (
    calculate_route_travel_time,
    calculate_travel_time,
    find_route,
    get_connected_towns,
    get_difficulty_modifiers,
    get_landmarks_in_range,
    get_routes_for_town,
    get_time_of_day,
    is_route_passable,
    is_town_unlocked,
    select_random_encounter,
)
from iron_frontier.core.world_models import TimeConfig

CONTENT_DIR = Path(__file__).resolve().parents[1] / "content"


@pytest.fixture(scope="module")
def registry() -> ContentRegistry:
    return load_content(CONTENT_DIR)


@pytest.mark.parametrize(
    ("route_id", "method", "hours"),
    [
        ("dusty_trail", "walk", 8),
        ("dusty_trail", "horse", 4),
        ("dusty_trail", "stagecoach", 6),
        # Rough ground adds 30% after the method speed-up.
        ("iron_road", "horse", 8),
        ("iron_road", "train", 4),
        # Unavailable methods travel at walking pace.
        ("iron_road", "stagecoach", 16),
    ],
)
def test_travel_time_by_method(registry: ContentRegistry, route_id: str, method: str, hours: int):
    assert calculate_travel_time(registry.get_route_by_id(route_id), method) == hours


def test_blocked_route_never_arrives(registry: ContentRegistry):
    assert math.isinf(calculate_travel_time(registry.get_route_by_id("old_mine_road"), "horse"))


def test_find_route_honours_direction(registry: ContentRegistry):
    world = registry.world
    assert find_route(world, "dusty_springs", "iron_gulch").id == "iron_road"
    assert find_route(world, "iron_gulch", "dusty_springs").id == "iron_road"
    assert find_route(world, "dusty_springs", "dusty_springs") is None


def test_one_way_route_is_not_found_backwards(registry: ContentRegistry):
    world = registry.world.model_copy(
        update={"routes": [registry.get_route_by_id("dusty_trail").model_copy(update={"bidirectional": False})]}
    )
    assert find_route(world, "frontiers_edge", "dusty_springs") is not None
    assert find_route(world, "dusty_springs", "frontiers_edge") is None
    assert get_connected_towns(world, "dusty_springs") == []


def test_route_travel_time_between_towns(registry: ContentRegistry):
    world = registry.world
    assert calculate_route_travel_time(world, "dusty_springs", "iron_gulch", "train") == 3
    assert calculate_route_travel_time(world, "iron_gulch", "dusty_springs", "stagecoach") == 12
    assert calculate_route_travel_time(world, "frontiers_edge", "iron_gulch", "horse") == 7
    assert math.isinf(calculate_route_travel_time(world, "frontiers_edge", "atlantis"))


def test_connected_towns_and_routes(registry: ContentRegistry):
    world = registry.world
    assert [town.id for town in get_connected_towns(world, "frontiers_edge")] == ["dusty_springs", "iron_gulch"]
    assert [town.id for town in get_connected_towns(world, "iron_gulch")] == ["frontiers_edge", "dusty_springs"]
    assert [route.id for route in get_routes_for_town(world, "iron_gulch")] == ["iron_road", "old_mine_road"]


def test_route_passability(registry: ContentRegistry):
    assert is_route_passable(registry.get_route_by_id("dusty_trail"))
    assert is_route_passable(registry.get_route_by_id("iron_road"), GameContext())

    old_mine = registry.get_route_by_id("old_mine_road")
    assert not is_route_passable(old_mine, GameContext(game_flags={"ridge_cut_cleared"}))

    cleared = old_mine.model_copy(update={"condition": "rough", "passable": True})
    assert not is_route_passable(cleared, GameContext())
    assert is_route_passable(cleared, GameContext(game_flags={"ridge_cut_cleared"}))


def test_town_unlock_follows_quest_stage(registry: ContentRegistry):
    gulch = registry.get_town_by_id("iron_gulch")
    assert not is_town_unlocked(gulch, GameContext(active_quests=["the_iron_road"]))
    assert not is_town_unlocked(gulch, GameContext(quest_stages={"the_iron_road": "report_to_sheriff"}))
    assert is_town_unlocked(gulch, GameContext(quest_stages={"the_iron_road": "ride_east"}))
    assert is_town_unlocked(registry.get_town_by_id("frontiers_edge"), GameContext())
    assert is_town_unlocked(registry.get_town_by_id("dusty_springs"), GameContext())


@pytest.mark.parametrize(
    ("hour", "period"),
    [(0, "night"), (5, "night"), (6, "morning"), (11, "morning"), (12, "afternoon"), (17, "evening"), (20, "evening"), (21, "night")],
)
def test_time_of_day_boundaries(hour: int, period: str):
    assert get_time_of_day(hour) == period


def test_time_of_day_uses_custom_boundaries():
    config = TimeConfig.model_validate({"dayBoundaries": {"morningStart": 4, "nightStart": 23}})
    assert get_time_of_day(5, config) == "morning"
    assert get_time_of_day(22, config) == "evening"


def test_landmarks_in_range(registry: ContentRegistry):
    route = registry.get_route_by_id("iron_road")
    assert [landmark.id for landmark in get_landmarks_in_range(route, 0.0, 0.5)] == ["iron_road_prospector_camp"]
    assert [landmark.id for landmark in get_landmarks_in_range(route, 1.0, 0.5)] == ["iron_road_overlook"]
    assert [landmark.id for landmark in get_landmarks_in_range(route, 0.3, 0.3)] == ["iron_road_prospector_camp"]


def test_night_encounters_for_a_greenhorn(registry: ContentRegistry):
    route = registry.get_route_by_id("iron_road")
    for value in (0.0, 0.5, 0.99):
        encounter = select_random_encounter(route, "night", 1, set(), lambda: value)
        assert encounter.id == "iron_road_rail_crew"


def test_encounter_weights_and_flags(registry: ContentRegistry):
    route = registry.get_route_by_id("iron_road")
    veteran = {"remnant_awakened"}
    assert select_random_encounter(route, "morning", 5, veteran, lambda: 0.0).id == "iron_road_copperhead_raid"
    assert select_random_encounter(route, "morning", 5, veteran, lambda: 0.99).id == "iron_road_rogue_automaton"
    assert select_random_encounter(route, "morning", 5, set(), lambda: 0.99).id == "iron_road_rail_crew"


def test_encounter_with_nothing_eligible():
    route = validate_route(
        {
            "id": "quiet",
            "name": "Quiet Road",
            "description": "Nothing happens here.",
            "fromTown": "a",
            "toTown": "b",
            "terrain": "plains",
            "length": 2,
            "encounters": [
                {"id": "ghosts", "name": "Ghosts", "type": "event", "weight": 5, "conditions": {"timeOfDay": ["night"]}}
            ],
        }
    )
    assert select_random_encounter(route, "morning", 1, set(), lambda: 0.5) is None


def test_difficulty_presets_are_copies():
    brutal = get_difficulty_modifiers("brutal")
    assert brutal["permadeath"] is True
    assert brutal["xp_multiplier"] == 0.5
    brutal["permadeath"] = False
    assert get_difficulty_modifiers("brutal")["permadeath"] is True
    assert "permadeath" not in get_difficulty_modifiers("easy")
