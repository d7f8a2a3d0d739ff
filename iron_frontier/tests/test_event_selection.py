from __future__ import annotations

from pathlib import Path

import pytest

from iron_frontier.core.conditions import (
    GameContext,
    LocationIn,
    MinGold,
    compile_event_conditions,
    evaluate,
    evaluate_all,
)
from iron_frontier.core.loader import ContentRegistry, load_content, validate_event_effect, validate_random_event
from iron_frontier.core.models import EventConditions
from iron_frontier.core.rng import DeterministicRNG
from iron_frontier.core.selector import (
    MS_PER_HOUR,
    RARITY_WEIGHTS,
    calculate_effect_value,
    check_event_conditions,
    effective_event_weight,
    get_available_choices,
    is_event_eligible,
    record_event_trigger,
    resolve_event_choice,
    select_random_event,
)

CONTENT_DIR = Path(__file__).resolve().parents[1] / "content"


@pytest.fixture(scope="module")
def registry() -> ContentRegistry:
    return load_content(CONTENT_DIR)


def _event(event_id: str, **overrides) -> dict:
    payload = {
        "id": event_id,
        "title": event_id.replace("_", " ").title(),
        "description": "Something happens.",
        "category": "camp",
        "rarity": "common",
        "choices": [{"id": "ok", "text": "Carry on.", "resultText": "You carry on."}],
    }
    payload.update(overrides)
    return payload


def _registry_with_events(*events: dict) -> ContentRegistry:
    return ContentRegistry.build(events=[validate_random_event(event) for event in events])


def test_selected_event_always_satisfies_its_conditions(registry: ContentRegistry):
    contexts = [
        GameContext(time_of_day="morning", player_level=1),
        GameContext(time_of_day="night", player_level=3, player_gold=50, inventory=["rations"]),
        GameContext(time_of_day="afternoon", player_level=5, active_quests=["the_iron_road"], current_terrain="badlands"),
    ]
    for context in contexts:
        for category in ("travel", "town", "camp"):
            eligible = {event.id for event in registry.get_events_by_category(category) if check_event_conditions(event, context)}
            rng = DeterministicRNG.from_seed(f"{category}:{context.time_of_day}")
            for _ in range(30):
                picked = select_random_event(registry, category, context, rng.next_float)
                if picked is None:
                    assert not eligible
                    continue
                assert picked.id in eligible
                assert check_event_conditions(picked, context)


def test_morning_level_one_travel_pool(registry: ContentRegistry):
    context = GameContext(time_of_day="morning", player_level=1)
    eligible = sorted(event.id for event in registry.get_events_by_category("travel") if is_event_eligible(event, context))
    assert eligible == ["travel_broken_wagon", "travel_dust_storm"]


def test_no_eligible_event_returns_none():
    registry = _registry_with_events(_event("night_only", conditions={"timeOfDay": ["night"]}))
    assert select_random_event(registry, "camp", GameContext(time_of_day="morning")) is None
    assert select_random_event(registry, "travel", GameContext(time_of_day="night")) is None


def test_non_repeatable_event_is_not_selected_twice():
    registry = _registry_with_events(_event("once", repeatable=False))
    context = GameContext()
    event = select_random_event(registry, "camp", context, lambda: 0.5)
    assert event is not None and event.id == "once"

    fired = record_event_trigger(context, event)
    assert "once" in fired.triggered_event_ids
    assert "once" not in context.triggered_event_ids
    assert select_random_event(registry, "camp", fired, lambda: 0.5) is None


def test_cooldown_boundary_is_inclusive():
    registry = _registry_with_events(_event("cooling", cooldownHours=24))
    event = registry.get_event_by_id("cooling")
    last_fired = 5 * MS_PER_HOUR

    waiting = GameContext(event_cooldowns={"cooling": last_fired}, current_time=last_fired + 24 * MS_PER_HOUR - 1)
    ready = GameContext(event_cooldowns={"cooling": last_fired}, current_time=last_fired + 24 * MS_PER_HOUR)

    assert not is_event_eligible(event, waiting)
    assert is_event_eligible(event, ready)
    assert select_random_event(registry, "camp", waiting, lambda: 0.0) is None


def test_cooldown_recorded_at_time_zero_still_counts():
    registry = _registry_with_events(_event("dawn_patrol", cooldownHours=2))
    event = registry.get_event_by_id("dawn_patrol")
    fired = record_event_trigger(GameContext(current_time=0), event)
    assert fired.event_cooldowns == {"dawn_patrol": 0}
    assert not is_event_eligible(event, fired)


def test_rarity_and_weight_combine():
    registry = _registry_with_events(
        _event("everyday", rarity="common"),
        _event("once_in_a_lifetime", rarity="legendary"),
    )
    common = registry.get_event_by_id("everyday")
    legendary = registry.get_event_by_id("once_in_a_lifetime")
    assert effective_event_weight(common) == RARITY_WEIGHTS["common"] == 50
    assert effective_event_weight(legendary) == 5

    # Total weight 55: draws up to 50/55 land on the common event.
    assert select_random_event(registry, "camp", GameContext(), lambda: 0.9).id == "everyday"
    assert select_random_event(registry, "camp", GameContext(), lambda: 0.95).id == "once_in_a_lifetime"


def test_per_event_weight_scales_rarity():
    registry = _registry_with_events(_event("boosted", rarity="rare", weight=2.0))
    assert effective_event_weight(registry.get_event_by_id("boosted")) == 30


def test_zero_weight_event_is_never_picked():
    registry = _registry_with_events(_event("muted", weight=0), _event("loud"))
    for value in (0.0, 0.5, 0.999):
        assert select_random_event(registry, "camp", GameContext(), lambda: value).id == "loud"


def test_all_zero_weight_pool_still_fires_first_eligible():
    registry = _registry_with_events(
        _event("hush", weight=0),
        _event("whisper", weight=0),
        _event("daylight_only", weight=0, conditions={"timeOfDay": ["morning"]}),
    )
    rng = DeterministicRNG.from_seed(3)
    assert select_random_event(registry, "camp", GameContext(time_of_day="night"), rng.next_float).id == "hush"
    assert rng.calls == 0

    registry = _registry_with_events(_event("daylight_only", weight=0, conditions={"timeOfDay": ["morning"]}))
    assert select_random_event(registry, "camp", GameContext(time_of_day="night"), lambda: 0.5) is None


def test_choices_gate_on_their_own_conditions(registry: ContentRegistry):
    ambush = registry.get_event_by_id("travel_bandit_ambush")
    broke = [choice.id for choice in get_available_choices(ambush, GameContext(player_gold=5))]
    flush = [choice.id for choice in get_available_choices(ambush, GameContext(player_gold=25))]
    assert broke == ["fight", "talk_down"]
    assert flush == ["fight", "pay_toll", "talk_down"]

    robbery = registry.get_event_by_id("travel_train_robbery")
    stranger = [choice.id for choice in get_available_choices(robbery, GameContext())]
    friend = [choice.id for choice in get_available_choices(robbery, GameContext(faction_reputation={"copperhead": 10}))]
    assert "join_robbers" not in stranger
    assert "join_robbers" in friend


def test_choice_conditions_ignore_level_and_time(registry: ContentRegistry):
    wagon = registry.get_event_by_id("travel_broken_wagon")
    ids = [choice.id for choice in get_available_choices(wagon, GameContext(time_of_day="night", inventory=["rations"]))]
    assert ids == ["help_repair", "give_supplies", "ride_on"]


def test_effect_value_uses_inclusive_range():
    ranged = validate_event_effect({"type": "take_gold", "valueRange": [10, 20]})
    flat = validate_event_effect({"type": "give_gold", "value": 7})
    bare = validate_event_effect({"type": "set_flag", "target": "seen"})

    assert calculate_effect_value(ranged, lambda: 0.0) == 10
    assert calculate_effect_value(ranged, lambda: 0.999) == 20
    assert calculate_effect_value(flat, lambda: 0.5) == 7
    assert calculate_effect_value(bare) == 0


def test_skill_check_choice_needs_a_result(registry: ContentRegistry):
    wagon = registry.get_event_by_id("travel_broken_wagon")
    repair = next(choice for choice in wagon.choices if choice.id == "help_repair")

    with pytest.raises(ValueError, match="skill_passed"):
        resolve_event_choice(repair)

    passed = resolve_event_choice(repair, skill_passed=True)
    failed = resolve_event_choice(repair, skill_passed=False)
    assert passed.success is True
    assert [effect.type for effect in passed.effects] == ["change_reputation", "give_item"]
    assert passed.text.startswith("The wheel holds")
    assert [effect.type for effect in failed.effects] == ["damage"]
    assert failed.text == repair.skill_check.failure_text


def test_chance_effects_are_filtered(registry: ContentRegistry):
    storm = registry.get_event_by_id("travel_dust_storm")
    push = next(choice for choice in storm.choices if choice.id == "push_through")

    unlucky = iter([0.0, 0.7])
    outcome = resolve_event_choice(push, random_fn=lambda: next(unlucky))
    assert [(effect.type, effect.value) for effect in outcome.effects] == [("damage", 5)]

    lucky = iter([0.0, 0.2])
    outcome = resolve_event_choice(push, random_fn=lambda: next(lucky))
    assert [(effect.type, effect.target) for effect in outcome.effects] == [("damage", None), ("take_item", "canteen_refill")]
    assert outcome.success is None


def test_zero_thresholds_are_not_populated():
    predicates = compile_event_conditions(EventConditions(min_gold=0, required_flags=[]))
    assert MinGold(0) not in predicates
    assert evaluate_all(predicates, GameContext(player_gold=0))


def test_unknown_context_location_never_filters():
    assert evaluate(LocationIn(("dusty_springs",)), GameContext())
    assert not evaluate(LocationIn(("dusty_springs",)), GameContext(current_location_id="iron_gulch"))


def test_unknown_predicate_kind_raises():
    class Bogus:
        kind = "bogus"

    with pytest.raises(ValueError, match="Unknown predicate kind 'bogus'"):
        evaluate(Bogus(), GameContext())  # type: ignore[arg-type]


def test_every_populated_condition_must_hold(registry: ContentRegistry):
    robbery = registry.get_event_by_id("travel_train_robbery")
    base = dict(player_level=4, active_quests=["the_iron_road"])
    assert check_event_conditions(robbery, GameContext(**base))
    assert not check_event_conditions(robbery, GameContext(**{**base, "player_level": 3}))
    assert not check_event_conditions(robbery, GameContext(**{**base, "active_quests": []}))
    assert not check_event_conditions(robbery, GameContext(**base, faction_reputation={"ivrc": 51}))
