"""
Weighted Sampling Primitives

All randomness used by the generator flows through a Sampler instance.
A Sampler owns one random.Random stream and one Faker instance seeded from
it, so a run seeded with the same value (and reference time) reproduces the
same dataset.
"""

import math
import random
import string
import uuid
from bisect import bisect_right
from datetime import datetime, timedelta, timezone
from itertools import accumulate
from typing import Any, Iterable, List, Optional, Sequence, Tuple, TypeVar

from faker import Faker

from ecom_synth.exceptions import InvariantViolation

T = TypeVar("T")

HEX_CHARS = "abcdef0123456789"
ALPHANUMERIC_CHARS = string.ascii_letters + string.digits


class Sampler:
    """
    Explicit pseudo-random source threaded through every generation stage.

    Example:
        sampler = Sampler(seed=42)
        device = sampler.weighted_choice([("mobile", 0.7), ("desktop", 0.3)])
    """

    def __init__(self, seed: Optional[int] = None, reference_time: Optional[datetime] = None):
        self.seed = seed
        self.rng = random.Random(seed)
        self.fake = Faker()
        self.fake.seed_instance(self.rng.getrandbits(64))
        self.now = reference_time or datetime.now(timezone.utc)

    # ------------------------------------------------------------------
    # Uniform draws
    # ------------------------------------------------------------------

    def random(self) -> float:
        return self.rng.random()

    def randint(self, low: int, high: int) -> int:
        """Uniform integer in [low, high] (inclusive)"""
        return self.rng.randint(int(low), int(high))

    def uniform(self, low: float, high: float) -> float:
        """Uniform float in [low, high)"""
        return low + self.rng.random() * (high - low)

    def chance(self, probability: float = 0.5) -> bool:
        return self.rng.random() < probability

    def choice(self, items: Sequence[T]) -> T:
        return self.rng.choice(items)

    def sample(self, items: Sequence[T], k: int) -> List[T]:
        return self.rng.sample(list(items), k)

    # ------------------------------------------------------------------
    # Weighted draws
    # ------------------------------------------------------------------

    def weighted_choice(self, weighted_items: Iterable[Tuple[T, float]]) -> T:
        """
        Pick one item with probability proportional to its weight.

        Args:
            weighted_items: (item, weight) pairs with non-negative weights

        Returns:
            The selected item. Floating-point residue falls back to the last item.

        Raises:
            InvariantViolation: empty table, negative weight, or zero total weight
        """
        pairs = list(weighted_items)
        if not pairs:
            raise InvariantViolation("weighted_choice called with an empty table")
        if any(weight < 0 for _, weight in pairs):
            raise InvariantViolation("weighted_choice requires non-negative weights")

        total = sum(weight for _, weight in pairs)
        if total <= 0:
            raise InvariantViolation("weighted_choice table weights sum to zero")

        remaining = self.rng.random() * total
        for item, weight in pairs:
            remaining -= weight
            if remaining <= 0:
                return item
        return pairs[-1][0]

    def categorical_index(self, probabilities: Sequence[float], default: int = 0) -> int:
        """
        Cumulative-sum scan over a probability vector.

        Returns the first bucket whose running total exceeds a uniform draw,
        or ``default`` when the draw lands beyond the vector's total.
        """
        cumulative = list(accumulate(probabilities))
        index = bisect_right(cumulative, self.rng.random())
        if index >= len(cumulative):
            return default
        return index

    # ------------------------------------------------------------------
    # Dates
    # ------------------------------------------------------------------

    def days_ago(self, days: int) -> datetime:
        return self.now - timedelta(days=days)

    def datetime_between(self, start: datetime, end: datetime) -> datetime:
        """Uniform timestamp in [start, end)"""
        span = (end - start).total_seconds()
        return start + timedelta(seconds=self.rng.random() * span)

    # ------------------------------------------------------------------
    # Identifiers
    # ------------------------------------------------------------------

    def uuid(self) -> str:
        """Random v4 UUID drawn from this sampler's stream"""
        return str(uuid.UUID(int=self.rng.getrandbits(128), version=4))

    def token(self, length: int = 16) -> str:
        """Opaque hash-like customer token"""
        return "".join(self.rng.choice(HEX_CHARS) for _ in range(length))

    def alphanumeric(self, length: int) -> str:
        return "".join(self.rng.choice(ALPHANUMERIC_CHARS) for _ in range(length))

    def digits(self, low: int, high: int) -> str:
        """Numeric platform identifier as a string"""
        return str(self.randint(low, high))

    def maybe_null(self, value: Any, probability: float) -> Any:
        """Replace value with None with the given probability"""
        return None if self.chance(probability) else value


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def round_half_up(value: float) -> int:
    """Nearest integer with .5 rounded up, unlike the built-in round()"""
    return math.floor(value + 0.5)
