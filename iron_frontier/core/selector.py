from __future__ import annotations

import logging
import math
import random
from dataclasses import dataclass, replace

from .conditions import GameContext, compile_choice_conditions, compile_event_conditions, evaluate_all
from .loader import ContentRegistry
from .models import EventCategory, EventChoice, EventEffect, EventRarity, RandomEvent
from .rng import RandomFn, weighted_pick

logger = logging.getLogger(__name__)
roll_logger = logging.getLogger("iron_frontier.rolls")

# Separate from LOOT_RARITY_WEIGHTS; the two tables are tuned independently.
RARITY_WEIGHTS: dict[EventRarity, int] = {
    "common": 50,
    "uncommon": 30,
    "rare": 15,
    "legendary": 5,
}

MS_PER_HOUR = 60 * 60 * 1000


@dataclass(slots=True)
class ResolvedEffect:
    type: str
    target: str | None
    value: int | float
    string_value: str | None = None


@dataclass(slots=True)
class ChoiceOutcome:
    text: str
    effects: list[ResolvedEffect]
    success: bool | None = None


def check_event_conditions(event: RandomEvent, context: GameContext) -> bool:
    return evaluate_all(compile_event_conditions(event.conditions), context)


def _cooldown_elapsed(event: RandomEvent, context: GameContext) -> bool:
    last_triggered = context.event_cooldowns.get(event.id)
    if last_triggered is None:
        return True
    return context.current_time - last_triggered >= event.cooldown_hours * MS_PER_HOUR


def is_event_eligible(event: RandomEvent, context: GameContext) -> bool:
    if not check_event_conditions(event, context):
        return False
    if not event.repeatable and event.id in context.triggered_event_ids:
        return False
    return _cooldown_elapsed(event, context)


def effective_event_weight(event: RandomEvent) -> float:
    return RARITY_WEIGHTS[event.rarity] * event.weight


def select_random_event(
    registry: ContentRegistry,
    category: EventCategory,
    context: GameContext,
    random_fn: RandomFn = random.random,
) -> RandomEvent | None:
    eligible = [event for event in registry.get_events_by_category(category) if is_event_eligible(event, context)]
    if not eligible:
        logger.debug("No eligible %s events", category)
        return None

    picked = weighted_pick(eligible, effective_event_weight, random_fn)
    if picked is None:
        # Every eligible event weighs nothing: the first one still fires.
        picked = eligible[0]
    roll_logger.info(
        "event category=%s eligible=%d picked=%s",
        category,
        len(eligible),
        picked.id,
    )
    return picked


def get_available_choices(event: RandomEvent, context: GameContext) -> list[EventChoice]:
    return [choice for choice in event.choices if evaluate_all(compile_choice_conditions(choice.conditions), context)]


def calculate_effect_value(effect: EventEffect, random_fn: RandomFn = random.random) -> int | float:
    if effect.value_range is not None:
        low, high = effect.value_range
        return math.floor(low + random_fn() * (high - low + 1))
    return effect.value if effect.value is not None else 0


def _resolve_effects(effects: list[EventEffect], random_fn: RandomFn) -> list[ResolvedEffect]:
    resolved: list[ResolvedEffect] = []
    for effect in effects:
        if effect.chance is not None and random_fn() >= effect.chance:
            continue
        resolved.append(
            ResolvedEffect(
                type=effect.type,
                target=effect.target,
                value=calculate_effect_value(effect, random_fn),
                string_value=effect.string_value,
            )
        )
    return resolved


def resolve_event_choice(
    choice: EventChoice,
    skill_passed: bool | None = None,
    random_fn: RandomFn = random.random,
) -> ChoiceOutcome:
    """Turn a picked choice into concrete effect values.

    Skill checks are rolled by the caller; pass the result as ``skill_passed``.
    """
    check = choice.skill_check
    if check is None:
        return ChoiceOutcome(text=choice.result_text, effects=_resolve_effects(choice.effects or [], random_fn))

    if skill_passed is None:
        raise ValueError(f"Choice '{choice.id}' has a {check.skill} check; skill_passed is required.")
    branch_effects = check.success_effects if skill_passed else check.failure_effects
    text = check.success_text if skill_passed else check.failure_text
    effects = _resolve_effects(list(choice.effects or []) + list(branch_effects), random_fn)
    return ChoiceOutcome(text=text, effects=effects, success=skill_passed)


def record_event_trigger(context: GameContext, event: RandomEvent) -> GameContext:
    return replace(
        context,
        triggered_event_ids=context.triggered_event_ids | {event.id},
        event_cooldowns={**context.event_cooldowns, event.id: context.current_time},
    )
