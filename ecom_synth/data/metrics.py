"""
Derived-Metric Calculators

Turn a seed quantity (trigger count, reach) and a rate configuration into a
coherent set of derived counts and percentages.
"""

from dataclasses import dataclass
from typing import Any, Dict, Mapping

from ecom_synth.config.tables import FunnelRates, PerformanceTier, RateRange
from ecom_synth.data.sampling import Sampler, round_half_up
from ecom_synth.exceptions import InvariantViolation


# Funnel counters, widest stage first
FUNNEL_CHAIN = [
    "total_triggers",
    "total_dm_conversations",
    "total_photo_requests",
    "total_photos_received",
    "successful_generations",
    "total_purchases",
]


def sample_rate(rate: RateRange, sampler: Sampler) -> float:
    """Draw one conversion rate uniformly within its configured range"""
    return sampler.uniform(rate.min, rate.max)


def percentage(numerator: int, denominator: int) -> float:
    """Ratio as a percentage rounded to 2 dp; 0 when the denominator is 0"""
    if denominator <= 0:
        return 0.0
    return round(numerator / denominator * 100, 2)


def generate_funnel_metrics(
    total_triggers: int,
    rates: FunnelRates,
    sampler: Sampler,
) -> Dict[str, Any]:
    """
    Generate the try-on funnel counter chain for one post/product binding.

    Each stage count is round_half_up(previous stage count * sampled rate), so every
    stage is bounded by the one before it.

    Args:
        total_triggers: Trigger-keyword comments that opened the funnel
        rates: Six stage conversion-rate ranges
        sampler: Random source

    Returns:
        Funnel counts plus trigger->DM, DM->photo, photo->success and
        overall conversion percentages
    """
    if total_triggers < 0:
        raise InvariantViolation(f"total_triggers must be non-negative, got {total_triggers}")

    dm_conversations = round_half_up(total_triggers * sample_rate(rates.engagement_to_dm, sampler))
    photo_requests = round_half_up(dm_conversations * sample_rate(rates.dm_to_photo_request, sampler))
    photos_received = round_half_up(photo_requests * sample_rate(rates.photo_request_to_received, sampler))
    tryons_completed = round_half_up(photos_received * sample_rate(rates.photo_to_tryon, sampler))
    link_clicks = round_half_up(tryons_completed * sample_rate(rates.tryon_to_link_click, sampler))
    purchases = round_half_up(link_clicks * sample_rate(rates.link_click_to_purchase, sampler))

    return {
        "total_triggers": total_triggers,
        "total_dm_conversations": dm_conversations,
        "total_photo_requests": photo_requests,
        "total_photos_received": photos_received,
        "total_generations": photos_received,
        "successful_generations": tryons_completed,
        "total_purchases": purchases,
        "trigger_to_dm_rate": percentage(dm_conversations, total_triggers),
        "dm_to_photo_rate": percentage(photos_received, dm_conversations),
        "photo_to_success_rate": percentage(tryons_completed, photos_received),
        "overall_conversion_rate": percentage(purchases, total_triggers),
    }


def generate_engagement_metrics(reach: int, sampler: Sampler) -> Dict[str, Any]:
    """
    Split a reach value into impressions and engagement components.

    Saves are the remainder after likes, comments and shares, which can go
    negative before clamping; every component is clamped to >= 0.
    """
    impressions = round_half_up(reach * sampler.uniform(1.2, 2.5))
    engagement_rate = sampler.uniform(0.01, 0.15)

    total_engagement = round_half_up(reach * engagement_rate)
    likes = round_half_up(total_engagement * sampler.uniform(0.6, 0.8))
    comments = round_half_up(total_engagement * sampler.uniform(0.05, 0.15))
    shares = round_half_up(total_engagement * sampler.uniform(0.02, 0.08))
    saves = total_engagement - likes - comments - shares

    return {
        "impressions": impressions,
        "reach": reach,
        "likes": max(0, likes),
        "comments": max(0, comments),
        "shares": max(0, shares),
        "saves": max(0, saves),
        "engagement_rate": round(engagement_rate * 100, 2),
    }


def safe_ratio(numerator: float, denominator: float, digits: int = 4) -> float:
    """Ratio with the denominator floored at 1, as used by daily aggregates"""
    return round(numerator / max(denominator, 1), digits)


@dataclass(frozen=True)
class PerformanceAssignment:
    """Tier label and multiplier memoized for one post or product"""
    tier: str
    multiplier: float


DEFAULT_PERFORMANCE = PerformanceAssignment(tier="average", multiplier=1.0)


def assign_performance_tier(
    distribution: Mapping[str, PerformanceTier],
    sampler: Sampler,
) -> PerformanceAssignment:
    """
    Assign a performance tier by cumulative scan over tier probabilities.

    The multiplier is drawn uniformly within the chosen tier's range. A draw
    beyond the summed probabilities falls back to an average tier with a
    multiplier of 1.0.
    """
    tiers = list(distribution.items())
    index = sampler.categorical_index([tier.probability for _, tier in tiers], default=-1)
    if index < 0:
        return DEFAULT_PERFORMANCE
    name, tier = tiers[index]
    return PerformanceAssignment(tier=name, multiplier=sample_rate(tier.multiplier, sampler))
