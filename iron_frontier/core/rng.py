from __future__ import annotations

import hashlib
import math
from dataclasses import dataclass
from typing import Callable, Generic, Iterable, Sequence, TypeVar

T = TypeVar("T")

RandomFn = Callable[[], float]


def seed_to_uint32(seed: int | str) -> int:
    text = str(seed).encode("utf-8")
    digest = hashlib.sha256(text).hexdigest()
    value = int(digest[:8], 16)
    return value if value != 0 else 0x9E3779B9


def weighted_pick(items: Iterable[T], weight_fn: Callable[[T], float], random_fn: RandomFn) -> T | None:
    """Pick one item with probability proportional to ``weight_fn(item)``.

    Items with a non-positive weight never win. Returns ``None`` when nothing
    carries weight, without consuming a random draw.
    """
    weighted = [(item, weight) for item in items if (weight := float(weight_fn(item))) > 0]
    if not weighted:
        return None

    total_weight = sum(weight for _, weight in weighted)
    roll = random_fn() * total_weight
    for item, weight in weighted:
        roll -= weight
        if roll <= 0:
            return item
    # Float drift can leave a sliver of roll after the last subtraction.
    return weighted[-1][0]


def uniform_int(min_inclusive: int, max_inclusive: int, random_fn: RandomFn) -> int:
    return min_inclusive + math.floor(random_fn() * (max_inclusive - min_inclusive + 1))


@dataclass(slots=True)
class WeightedEntry(Generic[T]):
    value: T
    weight: float


@dataclass(slots=True)
class DeterministicRNG:
    seed: int | str
    state: int
    calls: int = 0

    @classmethod
    def from_seed(cls, seed: int | str) -> "DeterministicRNG":
        return cls(seed=seed, state=seed_to_uint32(seed), calls=0)

    def _next_uint32(self) -> int:
        value = self.state & 0xFFFFFFFF
        value ^= (value << 13) & 0xFFFFFFFF
        value ^= (value >> 17) & 0xFFFFFFFF
        value ^= (value << 5) & 0xFFFFFFFF
        value &= 0xFFFFFFFF
        self.state = value if value != 0 else 0x6D2B79F5
        self.calls += 1
        return self.state

    def next_float(self) -> float:
        return self._next_uint32() / 2**32

    def next_int(self, min_inclusive: int, max_exclusive: int) -> int:
        if max_exclusive <= min_inclusive:
            raise ValueError(
                f"next_int requires max_exclusive ({max_exclusive}) > min_inclusive ({min_inclusive})."
            )
        return uniform_int(min_inclusive, max_exclusive - 1, self.next_float)

    def pick_weighted(self, entries: Sequence[WeightedEntry[T]]) -> T:
        picked = weighted_pick(entries, lambda entry: entry.weight, self.next_float)
        if picked is None:
            raise ValueError("pick_weighted requires at least one positive weight.")
        return picked.value
