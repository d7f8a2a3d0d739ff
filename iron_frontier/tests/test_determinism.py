from __future__ import annotations

from pathlib import Path

from iron_frontier.core.conditions import GameContext
from iron_frontier.core.loader import load_content
from iron_frontier.core.loot import roll_loot_table
from iron_frontier.core.rng import DeterministicRNG
from iron_frontier.core.selector import select_random_event


def _snapshot_drops(drops):
    return sorted((drop.item_id, drop.quantity) for drop in drops)


def test_same_seed_reproduces_boss_loot():
    content = load_content(Path(__file__).resolve().parents[1] / "content")

    rng_a = DeterministicRNG.from_seed(777)
    drops_a = [_snapshot_drops(roll_loot_table(content, "boss_final", 10, rng_a.next_float)) for _ in range(5)]

    rng_b = DeterministicRNG.from_seed(777)
    drops_b = [_snapshot_drops(roll_loot_table(content, "boss_final", 10, rng_b.next_float)) for _ in range(5)]

    assert drops_a == drops_b
    assert (rng_a.state, rng_a.calls) == (rng_b.state, rng_b.calls)
    boss_items = {entry.item_id for entry in content.get_loot_table_by_id("boss_final").entries}
    assert all(item_id in boss_items for run in drops_a for item_id, _ in run)


def test_seed_777_generator_output_is_pinned():
    rng = DeterministicRNG.from_seed(777)
    assert rng.state == 0xEAF89DB7
    assert [int(rng.next_float() * 2**32) for _ in range(3)] == [3498976016, 2305361318, 2456795208]


def test_boss_final_golden_drops_for_seed_777():
    content = load_content(Path(__file__).resolve().parents[1] / "content")
    rng = DeterministicRNG.from_seed(777)
    runs = [_snapshot_drops(roll_loot_table(content, "boss_final", 10, rng.next_float)) for _ in range(3)]

    assert runs == [
        [("automaton_plating", 13), ("gold_nugget", 4), ("health_potion_greater", 5), ("mechanical_parts", 16)],
        [("automaton_core", 1), ("health_potion_greater", 8), ("mechanical_parts", 11), ("steam_valve", 9)],
        [
            ("automaton_core", 1),
            ("automaton_plating", 5),
            ("gold_nugget", 5),
            ("mechanical_parts", 13),
            ("steam_valve", 9),
        ],
    ]
    # Three rolls of six draws at three random values per draw.
    assert rng.calls == 54
    assert rng.state == 3639628980


def test_same_seed_reproduces_event_sequence():
    content = load_content(Path(__file__).resolve().parents[1] / "content")
    context = GameContext(time_of_day="evening", player_level=3, player_gold=40)

    def _sequence(seed: int) -> list[str | None]:
        rng = DeterministicRNG.from_seed(seed)
        picks = []
        for _ in range(12):
            event = select_random_event(content, "town", context, rng.next_float)
            picks.append(event.id if event is not None else None)
        return picks

    assert _sequence(4242) == _sequence(4242)


def test_different_seeds_diverge():
    rng_a = DeterministicRNG.from_seed("alpha")
    rng_b = DeterministicRNG.from_seed("beta")
    assert [rng_a.next_float() for _ in range(8)] != [rng_b.next_float() for _ in range(8)]
