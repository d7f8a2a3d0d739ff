from __future__ import annotations

from pathlib import Path

import pytest

from iron_frontier.core.conditions import GameContext
from iron_frontier.core.dialogue import (
    DialogueSession,
    End,
    GoTo,
    check_dialogue_condition,
    get_entry_node,
    get_visible_choices,
    resolve_entry_point,
    select_choice,
    transition_for,
)
from iron_frontier.core.loader import ContentRegistry, load_content, validate_dialogue_tree
from iron_frontier.core.models import DialogueCondition

CONTENT_DIR = Path(__file__).resolve().parents[1] / "content"


@pytest.fixture(scope="module")
def registry() -> ContentRegistry:
    return load_content(CONTENT_DIR)


def _sheriff_context(**overrides) -> GameContext:
    values = {"current_npc_id": "sheriff_cole"}
    values.update(overrides)
    return GameContext(**values)


def test_first_meeting_outranks_everything(registry: ContentRegistry):
    tree = registry.get_dialogue_tree_by_id("sheriff_cole_main")
    context = _sheriff_context(active_quests=["the_iron_road"])
    assert resolve_entry_point(tree, context).node_id == "first_meeting"


def test_return_visit_falls_back_to_greeting(registry: ContentRegistry):
    tree = registry.get_dialogue_tree_by_id("sheriff_cole_main")
    node = get_entry_node(tree, _sheriff_context(talked_to={"sheriff_cole"}))
    assert node is not None and node.id == "greeting"


def test_quest_state_selects_entry(registry: ContentRegistry):
    tree = registry.get_dialogue_tree_by_id("sheriff_cole_main")
    active = _sheriff_context(talked_to={"sheriff_cole"}, active_quests=["the_iron_road"])
    done = _sheriff_context(talked_to={"sheriff_cole"}, completed_quests=["the_iron_road"])
    assert resolve_entry_point(tree, active).node_id == "quest_update"
    assert resolve_entry_point(tree, done).node_id == "after_quest"


def test_priority_ties_go_to_first_declared(registry: ContentRegistry):
    tree = registry.get_dialogue_tree_by_id("sheriff_cole_main")
    both = _sheriff_context(
        talked_to={"sheriff_cole"},
        active_quests=["the_iron_road"],
        completed_quests=["the_iron_road"],
    )
    assert resolve_entry_point(tree, both).node_id == "quest_update"


def test_no_matching_entry_means_no_conversation(registry: ContentRegistry):
    tree = registry.get_dialogue_tree_by_id("foreman_grady_main")
    context = GameContext(current_npc_id="foreman_grady", game_flags={"evidence_shown"})
    assert resolve_entry_point(tree, context) is None
    assert get_entry_node(tree, context) is None
    assert DialogueSession(tree, context).start() is None


def test_entry_conditions_are_anded(registry: ContentRegistry):
    tree = registry.get_dialogue_tree_by_id("foreman_grady_main")
    flag_only = GameContext(game_flags={"evidence_shown"}, active_quests=[])
    both = GameContext(game_flags={"evidence_shown"}, active_quests=["the_iron_road"])
    assert resolve_entry_point(tree, flag_only) is None
    assert resolve_entry_point(tree, both).node_id == "confrontation"


def test_reputation_condition_uses_npc_faction_by_default(registry: ContentRegistry):
    tree = registry.get_dialogue_tree_by_id("sheriff_cole_main")
    greeting = tree.node_by_id("greeting")
    cold = get_visible_choices(greeting, GameContext(), "townsfolk")
    warm = get_visible_choices(greeting, GameContext(faction_reputation={"townsfolk": 10}), "townsfolk")
    assert [choice.text for choice in cold] == ["Any news?", "Goodbye."]
    assert len(warm) == 3


@pytest.mark.parametrize(
    ("condition", "context", "expected"),
    [
        ({"type": "quest_not_started", "target": "q"}, GameContext(), True),
        ({"type": "quest_not_started", "target": "q"}, GameContext(completed_quests=["q"]), False),
        ({"type": "has_item", "target": "key"}, GameContext(inventory=["key"]), True),
        ({"type": "lacks_item", "target": "key"}, GameContext(inventory=["key"]), False),
        ({"type": "reputation_lte", "target": "ivrc", "value": -10}, GameContext(faction_reputation={"ivrc": -20}), True),
        ({"type": "gold_gte", "value": 10}, GameContext(player_gold=9), False),
        ({"type": "talked_to", "target": "doc_chen"}, GameContext(talked_to={"doc_chen"}), True),
        ({"type": "not_talked_to", "target": "doc_chen"}, GameContext(talked_to={"doc_chen"}), False),
        ({"type": "time_of_day", "stringValue": "evening"}, GameContext(time_of_day="morning"), False),
        ({"type": "time_of_day", "stringValue": "evening"}, GameContext(time_of_day="evening"), True),
        ({"type": "flag_set", "target": "f"}, GameContext(game_flags={"f"}), True),
        ({"type": "flag_not_set", "target": "f"}, GameContext(game_flags={"f"}), False),
        ({"type": "first_meeting"}, GameContext(), False),
        ({"type": "return_visit"}, GameContext(current_npc_id="eli", talked_to={"eli"}), True),
    ],
)
def test_condition_kinds(condition: dict, context: GameContext, expected: bool):
    assert check_dialogue_condition(DialogueCondition.model_validate(condition), context) is expected


def test_transition_sentinels():
    assert transition_for(None) == End()
    assert transition_for("") == End()
    assert transition_for("greeting") == GoTo("greeting")


def test_session_walks_hiring_conversation(registry: ContentRegistry):
    tree = registry.get_dialogue_tree_by_id("sheriff_cole_main")
    session = DialogueSession(tree, _sheriff_context(), default_faction="townsfolk")

    assert session.start().id == "first_meeting"
    step = session.choose(0)
    assert step.transition == GoTo("job_offer")
    session.choose(0)
    assert session.current_node.id == "accepted"
    assert session.visible_choices() == []

    assert session.advance() is None
    assert session.finished
    assert [(effect.type, effect.target) for effect in session.applied_effects] == [
        ("start_quest", "the_iron_road"),
        ("change_reputation", "townsfolk"),
        ("set_flag", "deputized"),
    ]
    assert session.transcript[0] == tree.node_by_id("first_meeting").text


def test_session_skill_check_branches(registry: ContentRegistry):
    tree = registry.get_dialogue_tree_by_id("sheriff_cole_main")
    session = DialogueSession(tree, _sheriff_context())
    session.start()
    session.choose(0)

    with pytest.raises(ValueError, match="skill_passed"):
        session.choose(1)
    assert session.current_node.id == "job_offer"

    failed = session.choose(1, skill_passed=False)
    assert failed.success is False
    assert failed.effects == []
    assert session.current_node.id == "job_offer"

    passed = session.choose(1, skill_passed=True)
    assert [effect.type for effect in passed.effects] == ["give_gold", "start_quest"]
    assert session.current_node.id == "accepted"


def test_skill_check_success_node_falls_back_to_next_node(registry: ContentRegistry):
    tree = registry.get_dialogue_tree_by_id("sheriff_cole_main")
    node = tree.node_by_id("job_offer")
    step = select_choice(tree, node, node.choices[1], skill_passed=True)
    assert step.transition == GoTo("accepted")
    assert step.result_text == "Cole sighs and counts out ten dollars in advance."


def test_choice_ending_conversation(registry: ContentRegistry):
    tree = registry.get_dialogue_tree_by_id("sheriff_cole_main")
    session = DialogueSession(tree, _sheriff_context())
    session.start()
    step = session.choose(1)
    assert isinstance(step.transition, End)
    assert session.finished
    assert session.visible_choices() == []
    with pytest.raises(ValueError, match="not in progress"):
        session.choose(0)


def test_auto_advance_follows_next_node(registry: ContentRegistry):
    tree = registry.get_dialogue_tree_by_id("sheriff_cole_main")
    session = DialogueSession(tree, _sheriff_context(talked_to={"sheriff_cole"}))
    session.start()
    session.choose(0)
    assert session.current_node.id == "news"
    assert session.advance().id == "greeting"

    with pytest.raises(ValueError, match="waiting for a choice"):
        session.advance()


def test_choice_index_out_of_range(registry: ContentRegistry):
    tree = registry.get_dialogue_tree_by_id("doc_chen_main")
    session = DialogueSession(tree, GameContext(current_npc_id="doc_chen"))
    session.start()
    with pytest.raises(IndexError):
        session.choose(7)


def test_foreign_choice_is_rejected(registry: ContentRegistry):
    tree = registry.get_dialogue_tree_by_id("sheriff_cole_main")
    other = tree.node_by_id("greeting").choices[0]
    with pytest.raises(ValueError, match="does not belong"):
        select_choice(tree, tree.node_by_id("first_meeting"), other)


def test_dangling_link_raises_during_walk():
    tree = validate_dialogue_tree(
        {
            "id": "broken",
            "name": "Broken",
            "nodes": [{"id": "start", "text": "Hello.", "choices": [{"text": "Onward.", "nextNodeId": "missing"}]}],
            "entryPoints": [{"nodeId": "start"}],
        }
    )
    session = DialogueSession(tree, GameContext())
    session.start()
    with pytest.raises(ValueError, match="unknown node 'missing'"):
        session.choose(0)
