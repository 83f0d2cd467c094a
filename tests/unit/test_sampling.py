"""
Unit Tests - Sampling Primitives
"""
import re
from datetime import timedelta

import pytest

from ecom_synth.data.sampling import Sampler, clamp, round_half_up
from ecom_synth.exceptions import InvariantViolation


class TestSamplerDeterminism:
    """Tests for seeded reproducibility"""

    def test_same_seed_same_stream(self, reference_time):
        """Test two samplers with one seed produce identical draws"""
        a = Sampler(seed=7, reference_time=reference_time)
        b = Sampler(seed=7, reference_time=reference_time)

        assert [a.randint(0, 1000) for _ in range(50)] == [b.randint(0, 1000) for _ in range(50)]
        assert a.uuid() == b.uuid()
        assert a.fake.company() == b.fake.company()

    def test_different_seeds_differ(self):
        """Test different seeds diverge"""
        a = Sampler(seed=1)
        b = Sampler(seed=2)

        assert [a.random() for _ in range(10)] != [b.random() for _ in range(10)]

    def test_reference_time_is_used(self, sampler, reference_time):
        """Test relative dates hang off the reference time"""
        assert sampler.now == reference_time
        assert sampler.days_ago(3) == reference_time - timedelta(days=3)


class TestUniformDraws:
    """Tests for uniform draws"""

    def test_randint_is_inclusive(self, sampler):
        """Test both bounds are reachable and nothing falls outside"""
        values = {sampler.randint(1, 3) for _ in range(500)}

        assert values == {1, 2, 3}

    def test_uniform_stays_in_range(self, sampler):
        """Test uniform floats stay within [low, high)"""
        values = [sampler.uniform(0.2, 0.4) for _ in range(1000)]

        assert all(0.2 <= v < 0.4 for v in values)

    def test_chance_extremes(self, sampler):
        """Test chance(0) never and chance(1) always fires"""
        assert not any(sampler.chance(0.0) for _ in range(100))
        assert all(sampler.chance(1.0) for _ in range(100))

    def test_datetime_between(self, sampler):
        """Test timestamps fall inside the window"""
        start = sampler.days_ago(10)
        values = [sampler.datetime_between(start, sampler.now) for _ in range(200)]

        assert all(start <= v <= sampler.now for v in values)


class TestWeightedChoice:
    """Tests for weighted_choice"""

    def test_zero_weight_item_never_chosen(self, sampler):
        """Test zero-weight items are never returned"""
        picks = {sampler.weighted_choice([("a", 1.0), ("b", 0.0), ("c", 2.0)]) for _ in range(500)}

        assert "b" not in picks
        assert picks == {"a", "c"}

    def test_proportions_follow_weights(self, sampler):
        """Test frequencies roughly match the weights"""
        picks = [sampler.weighted_choice([("x", 0.8), ("y", 0.2)]) for _ in range(5000)]
        share = picks.count("x") / len(picks)

        assert 0.75 < share < 0.85

    def test_accepts_generators(self, sampler):
        """Test the table can be any iterable of pairs"""
        result = sampler.weighted_choice((item, 1.0) for item in ["only"])

        assert result == "only"

    @pytest.mark.parametrize("table", [
        [],
        [("a", 0.0), ("b", 0.0)],
        [("a", 1.0), ("b", -0.5)],
    ])
    def test_invalid_tables_raise(self, sampler, table):
        """Test empty, zero-total and negative tables are rejected"""
        with pytest.raises(InvariantViolation):
            sampler.weighted_choice(table)


class TestCategoricalIndex:
    """Tests for cumulative-scan bucket selection"""

    def test_returns_default_past_total(self, sampler):
        """Test draws beyond the summed probabilities return the default"""
        assert all(sampler.categorical_index([0.0, 0.0], default=-1) == -1 for _ in range(50))

    def test_certain_bucket(self, sampler):
        """Test a bucket holding all the mass is always chosen"""
        assert all(sampler.categorical_index([0.0, 1.0, 0.0]) == 1 for _ in range(50))


class TestIdentifiers:
    """Tests for identifier helpers"""

    def test_uuid_is_v4(self, sampler):
        """Test uuid() yields RFC 4122 version 4 strings"""
        pattern = re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-4[0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$")

        assert all(pattern.match(sampler.uuid()) for _ in range(100))

    def test_token_format(self, sampler):
        """Test customer tokens are 16 lowercase hex chars"""
        assert re.fullmatch(r"[a-f0-9]{16}", sampler.token())

    def test_alphanumeric_length(self, sampler):
        """Test alphanumeric() honours the length"""
        assert len(sampler.alphanumeric(11)) == 11

    def test_maybe_null(self, sampler):
        """Test maybe_null at the probability extremes"""
        assert sampler.maybe_null("x", 1.0) is None
        assert sampler.maybe_null("x", 0.0) == "x"


class TestClamp:
    """Tests for clamp"""

    @pytest.mark.parametrize("value,expected", [(-3, 0), (250, 250), (900, 500)])
    def test_clamp(self, value, expected):
        """Test values are pinned to the bounds"""
        assert clamp(value, 0, 500) == expected


class TestRoundHalfUp:
    """Tests for round_half_up"""

    @pytest.mark.parametrize("value,expected", [
        (0.5, 1),
        (1.49, 1),
        (2.5, 3),
        (3.5, 4),
        (-0.5, 0),
        (7.0, 7),
    ])
    def test_halves_round_up(self, value, expected):
        """Test .5 always rounds toward positive infinity"""
        assert round_half_up(value) == expected

    def test_differs_from_builtin_round(self):
        """Test even-rounding of the built-in does not apply"""
        assert round(2.5) == 2
        assert round_half_up(2.5) == 3
