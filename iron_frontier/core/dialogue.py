from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Union

from .conditions import GameContext
from .models import DialogueChoice, DialogueCondition, DialogueEffect, DialogueEntryPoint, DialogueNode, DialogueTree

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class End:
    pass


@dataclass(frozen=True, slots=True)
class GoTo:
    node_id: str


Transition = Union[End, GoTo]


def transition_for(next_node_id: str | None) -> Transition:
    return GoTo(next_node_id) if next_node_id else End()


def check_dialogue_condition(
    condition: DialogueCondition,
    context: GameContext,
    default_faction: str | None = None,
) -> bool:
    kind = condition.type
    target = condition.target or ""
    threshold = condition.value or 0

    if kind == "quest_active":
        return target in context.active_quests
    if kind == "quest_complete":
        return target in context.completed_quests
    if kind == "quest_not_started":
        return target not in context.active_quests and target not in context.completed_quests
    if kind == "has_item":
        return target in context.inventory
    if kind == "lacks_item":
        return target not in context.inventory
    if kind == "reputation_gte":
        return context.reputation(condition.target or default_faction or "") >= threshold
    if kind == "reputation_lte":
        return context.reputation(condition.target or default_faction or "") <= threshold
    if kind == "gold_gte":
        return context.player_gold >= threshold
    if kind == "talked_to":
        return target in context.talked_to
    if kind == "not_talked_to":
        return target not in context.talked_to
    if kind == "time_of_day":
        return not condition.string_value or condition.string_value == context.time_of_day
    if kind == "flag_set":
        return target in context.game_flags
    if kind == "flag_not_set":
        return target not in context.game_flags
    if kind == "first_meeting":
        return context.current_npc_id is not None and context.current_npc_id not in context.talked_to
    if kind == "return_visit":
        return context.current_npc_id is not None and context.current_npc_id in context.talked_to

    raise ValueError(f"Unknown dialogue condition '{kind}'.")


def conditions_hold(
    conditions: list[DialogueCondition],
    context: GameContext,
    default_faction: str | None = None,
) -> bool:
    return all(check_dialogue_condition(condition, context, default_faction) for condition in conditions)


def resolve_entry_point(
    tree: DialogueTree,
    context: GameContext,
    default_faction: str | None = None,
) -> DialogueEntryPoint | None:
    """Highest-priority entry point whose conditions hold; the first declared wins ties."""
    best: DialogueEntryPoint | None = None
    for entry in tree.entry_points:
        if not conditions_hold(entry.conditions, context, default_faction):
            continue
        if best is None or entry.priority > best.priority:
            best = entry
    return best


def get_entry_node(
    tree: DialogueTree,
    context: GameContext,
    default_faction: str | None = None,
) -> DialogueNode | None:
    entry = resolve_entry_point(tree, context, default_faction)
    if entry is None:
        return None
    return tree.node_by_id(entry.node_id)


def get_visible_choices(
    node: DialogueNode,
    context: GameContext,
    default_faction: str | None = None,
) -> list[DialogueChoice]:
    return [choice for choice in node.choices if conditions_hold(choice.conditions, context, default_faction)]


@dataclass(slots=True)
class DialogueStep:
    effects: list[DialogueEffect]
    result_text: str | None
    transition: Transition
    success: bool | None = None


def select_choice(
    tree: DialogueTree,
    node: DialogueNode,
    choice: DialogueChoice,
    skill_passed: bool | None = None,
) -> DialogueStep:
    if choice not in node.choices:
        raise ValueError(f"Choice '{choice.text}' does not belong to node '{node.id}' in tree '{tree.id}'.")

    check = choice.skill_check
    if check is None:
        return DialogueStep(
            effects=list(choice.effects),
            result_text=choice.result_text,
            transition=transition_for(choice.next_node_id),
        )

    if skill_passed is None:
        raise ValueError(f"Choice '{choice.text}' has a {check.skill} check; skill_passed is required.")
    if skill_passed:
        branch_effects, text, branch_node = check.success_effects, check.success_text, check.success_node_id
    else:
        branch_effects, text, branch_node = check.failure_effects, check.failure_text, check.failure_node_id
    return DialogueStep(
        effects=list(choice.effects) + list(branch_effects),
        result_text=text,
        transition=transition_for(branch_node or choice.next_node_id),
        success=skill_passed,
    )


@dataclass(slots=True)
class DialogueSession:
    """Walks one conversation, collecting effects for the game layer to apply."""

    tree: DialogueTree
    context: GameContext
    default_faction: str | None = None
    current_node: DialogueNode | None = None
    applied_effects: list[DialogueEffect] = field(default_factory=list)
    transcript: list[str] = field(default_factory=list)

    @property
    def finished(self) -> bool:
        return self.current_node is None

    def start(self) -> DialogueNode | None:
        entry = resolve_entry_point(self.tree, self.context, self.default_faction)
        if entry is None:
            logger.debug("Dialogue '%s' has no matching entry point", self.tree.id)
            self.current_node = None
            return None
        self._enter(GoTo(entry.node_id))
        return self.current_node

    def visible_choices(self) -> list[DialogueChoice]:
        if self.current_node is None:
            return []
        return get_visible_choices(self.current_node, self.context, self.default_faction)

    def advance(self) -> DialogueNode | None:
        """Follow the auto-advance link of a node that offers no choices."""
        node = self._require_node()
        if self.visible_choices():
            raise ValueError(f"Node '{node.id}' is waiting for a choice.")
        self._enter(transition_for(node.next_node_id))
        return self.current_node

    def choose(self, index: int, skill_passed: bool | None = None) -> DialogueStep:
        node = self._require_node()
        choices = self.visible_choices()
        if index < 0 or index >= len(choices):
            raise IndexError(f"Choice index {index} out of range for node '{node.id}'.")
        step = select_choice(self.tree, node, choices[index], skill_passed)
        self.applied_effects.extend(step.effects)
        if step.result_text:
            self.transcript.append(step.result_text)
        self._enter(step.transition)
        return step

    def _require_node(self) -> DialogueNode:
        if self.current_node is None:
            raise ValueError(f"Dialogue '{self.tree.id}' is not in progress.")
        return self.current_node

    def _enter(self, transition: Transition) -> None:
        if isinstance(transition, End):
            self.current_node = None
            return
        node = self.tree.node_by_id(transition.node_id)
        if node is None:
            raise ValueError(f"Dialogue '{self.tree.id}' references unknown node '{transition.node_id}'.")
        self.current_node = node
        self.applied_effects.extend(node.on_enter_effects)
        self.transcript.append(node.text)
