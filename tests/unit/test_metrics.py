"""
Unit Tests - Derived-Metric Calculators
"""
import pytest

from ecom_synth.config.tables import FunnelRates, PerformanceTier, RateRange
from ecom_synth.data.metrics import (
    DEFAULT_PERFORMANCE,
    FUNNEL_CHAIN,
    assign_performance_tier,
    generate_engagement_metrics,
    generate_funnel_metrics,
    percentage,
    safe_ratio,
    sample_rate,
)
from ecom_synth.exceptions import InvariantViolation


class TestFunnelMetrics:
    """Tests for generate_funnel_metrics"""

    def test_stages_are_monotonic(self, sampler):
        """Test each stage is bounded by the previous one"""
        rates = FunnelRates()
        for triggers in range(0, 2000, 37):
            funnel = generate_funnel_metrics(triggers, rates, sampler)
            counts = [funnel[key] for key in FUNNEL_CHAIN]

            assert all(a >= b >= 0 for a, b in zip(counts, counts[1:]))
            assert funnel["total_generations"] == funnel["total_photos_received"]

    def test_zero_triggers(self, sampler):
        """Test an empty funnel reports zero everywhere"""
        funnel = generate_funnel_metrics(0, FunnelRates(), sampler)

        assert funnel["total_purchases"] == 0
        assert funnel["trigger_to_dm_rate"] == 0
        assert funnel["overall_conversion_rate"] == 0

    def test_rates_are_percentages(self, sampler):
        """Test conversion percentages stay within [0, 100]"""
        for triggers in (1, 10, 500, 10_000):
            funnel = generate_funnel_metrics(triggers, FunnelRates(), sampler)
            for key in ("trigger_to_dm_rate", "dm_to_photo_rate", "photo_to_success_rate", "overall_conversion_rate"):
                assert 0 <= funnel[key] <= 100

    def test_negative_triggers_raise(self, sampler):
        """Test a negative trigger count is rejected"""
        with pytest.raises(InvariantViolation):
            generate_funnel_metrics(-1, FunnelRates(), sampler)


class TestSampleRate:
    """Tests for rate sampling"""

    def test_sampled_rates_fall_in_range(self, sampler):
        """Test 10,000 draws land inside the configured range"""
        rate = FunnelRates().engagement_to_dm
        draws = [sample_rate(rate, sampler) for _ in range(10_000)]
        inside = sum(1 for d in draws if rate.min <= d <= rate.max)

        assert inside / len(draws) >= 0.99


class TestEngagementMetrics:
    """Tests for generate_engagement_metrics"""

    def test_components_non_negative(self, sampler):
        """Test every component is clamped at zero"""
        for reach in (0, 1, 5, 100, 10_000):
            metrics = generate_engagement_metrics(reach, sampler)
            for key in ("impressions", "likes", "comments", "shares", "saves"):
                assert metrics[key] >= 0

    def test_impressions_exceed_reach(self, sampler):
        """Test impressions are 1.2x-2.5x reach"""
        for _ in range(200):
            metrics = generate_engagement_metrics(1000, sampler)
            assert 1200 <= metrics["impressions"] <= 2500
            assert metrics["reach"] == 1000

    def test_engagement_rate_is_percentage(self, sampler):
        """Test engagement rate is reported as a 1-15% value"""
        metrics = generate_engagement_metrics(5000, sampler)

        assert 1 <= metrics["engagement_rate"] <= 15


class TestRatios:
    """Tests for ratio helpers"""

    def test_percentage_zero_denominator(self):
        """Test a zero denominator yields 0"""
        assert percentage(5, 0) == 0.0

    def test_percentage_rounding(self):
        """Test percentages round to 2 dp"""
        assert percentage(1, 3) == 33.33

    def test_safe_ratio_floors_denominator(self):
        """Test the denominator is floored at 1"""
        assert safe_ratio(3, 0) == 3.0
        assert safe_ratio(1, 3) == 0.3333


class TestPerformanceTier:
    """Tests for tier assignment"""

    def test_multiplier_within_tier_range(self, sampler, synth_config):
        """Test the multiplier is drawn from the chosen tier's range"""
        tiers = synth_config.post_performance
        for _ in range(500):
            assignment = assign_performance_tier(tiers, sampler)
            tier = tiers[assignment.tier]
            assert tier.multiplier.min <= assignment.multiplier <= tier.multiplier.max

    def test_fallback_when_probabilities_empty(self, sampler):
        """Test a zero-probability table falls back to average x 1.0"""
        tiers = {"never": PerformanceTier(probability=0.0, multiplier=RateRange(min=5, max=6))}

        assert assign_performance_tier(tiers, sampler) == DEFAULT_PERFORMANCE
