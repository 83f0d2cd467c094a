"""
Analytics Stages

Derived, ML-facing tables: per-day funnel aggregates, customer profiles with
behavioural segments, and demand forecasts.
"""

from dataclasses import dataclass
from datetime import timedelta
from typing import Callable, Dict, List, Tuple

from ecom_synth.data.metrics import DEFAULT_PERFORMANCE, safe_ratio
from ecom_synth.data.pipeline import Record, Stage, StageContext, StageResult
from ecom_synth.data.sampling import Sampler, round_half_up

# =============================================================================
# DAILY AGGREGATES
# =============================================================================

MONDAY, FRIDAY = 0, 4
WEEKEND_BOOST = (1.4, 1.6)
WEEKDAY_MULTIPLIERS = {MONDAY: 0.85, FRIDAY: 1.15}
PRODUCT_SAMPLE_SHARE = 0.1
HOLIDAY_PROBABILITY = 0.03


def day_multiplier(weekday: int, sampler: Sampler) -> float:
    """Weekend boost times the Monday dip / Friday lift"""
    weekend = sampler.uniform(*WEEKEND_BOOST) if weekday >= 5 else 1.0
    return weekend * WEEKDAY_MULTIPLIERS.get(weekday, 1.0)


def _funnel_rates(impressions: int, dms: int, tryons: int, orders: int) -> Dict[str, float]:
    return {
        "impression_to_dm_rate": safe_ratio(dms, impressions),
        "dm_to_tryon_rate": safe_ratio(tryons, dms),
        "tryon_to_purchase_rate": safe_ratio(orders, tryons),
        "overall_conversion_rate": safe_ratio(orders, impressions),
    }


def generate_daily_aggregates(ctx: StageContext) -> StageResult:
    """
    One workspace-level row per day, plus rows for a fixed-size sample of
    the workspace's products.

    Funnel rates are computed from the base counts, before the day
    multiplier is applied to the reported counts.
    """
    sampler = ctx.sampler
    days = ctx.scale.days_of_history
    weather = ctx.config.weather_conditions
    product_performance = ctx.lookups.table("product_performance")
    rows: List[Record] = []

    for workspace in ctx.collection("workspaces"):
        products = ctx.lookups.children("workspace_products", workspace["id"])
        sample_size = min(len(products), round_half_up(len(products) * PRODUCT_SAMPLE_SHARE))

        for day in range(days):
            metric_date = sampler.days_ago(days - day).date()
            weekday = metric_date.weekday()
            mult = day_multiplier(weekday, sampler)

            impressions = sampler.randint(10_000, 30_000)
            engagements = round_half_up(impressions * sampler.uniform(0.02, 0.05))
            dms = round_half_up(engagements * sampler.uniform(0.02, 0.08))
            tryons = round_half_up(dms * sampler.uniform(0.3, 0.5))
            orders = round_half_up(tryons * sampler.uniform(0.1, 0.25))
            revenue = orders * sampler.randint(3000, 12_000)

            rows.append({
                "id": sampler.uuid(),
                "workspace_id": workspace["id"],
                "product_id": None,
                "metric_date": metric_date,
                "impressions": round_half_up(impressions * mult),
                "post_engagements": round_half_up(engagements * mult),
                "dm_conversations_started": round_half_up(dms * mult),
                "tryons_completed": round_half_up(tryons * mult),
                # purchases spike harder than engagement
                "orders_placed": round_half_up(orders * mult * sampler.uniform(1.2, 1.5)),
                "revenue_cents": round_half_up(revenue * mult * sampler.uniform(1.2, 1.5)),
                "attributed_revenue_cents": round_half_up(revenue * mult * sampler.uniform(0.4, 0.7)),
                **_funnel_rates(impressions, dms, tryons, orders),
                "inventory_start": sampler.randint(500, 5000),
                "inventory_end": sampler.randint(500, 5000),
                "units_sold": round_half_up(orders * sampler.uniform(1.0, 1.5)),
                "day_of_week": weekday,
                "is_weekend": weekday >= 5,
                "is_holiday": sampler.chance(HOLIDAY_PROBABILITY),
                "weather_condition": sampler.choice(weather),
            })

            for product in sampler.sample(products, sample_size):
                performance = product_performance.get(product["id"], DEFAULT_PERFORMANCE).multiplier
                p_impressions = sampler.randint(500, 3000)
                p_engagements = round_half_up(p_impressions * sampler.uniform(0.02, 0.06) * performance)
                p_dms = round_half_up(p_engagements * sampler.uniform(0.02, 0.1))
                p_tryons = round_half_up(p_dms * sampler.uniform(0.25, 0.55))
                p_orders = round_half_up(p_tryons * sampler.uniform(0.08, 0.3))
                price = product["price_cents"]

                rows.append({
                    "id": sampler.uuid(),
                    "workspace_id": workspace["id"],
                    "product_id": product["id"],
                    "metric_date": metric_date,
                    "impressions": round_half_up(p_impressions * mult),
                    "post_engagements": round_half_up(p_engagements * mult),
                    "dm_conversations_started": round_half_up(p_dms * mult),
                    "tryons_completed": round_half_up(p_tryons * mult),
                    "orders_placed": round_half_up(p_orders * mult),
                    "revenue_cents": round_half_up(p_orders * price * mult),
                    "attributed_revenue_cents": round_half_up(p_orders * price * sampler.uniform(0.3, 0.7) * mult),
                    **_funnel_rates(p_impressions, p_dms, p_tryons, p_orders),
                    "inventory_start": sampler.randint(10, 100),
                    "inventory_end": sampler.randint(10, 100),
                    "units_sold": p_orders,
                    "day_of_week": weekday,
                    "is_weekend": weekday >= 5,
                    "is_holiday": sampler.chance(HOLIDAY_PROBABILITY),
                    "weather_condition": sampler.choice(weather),
                })

    return StageResult(collections={"daily_aggregates": rows})


# =============================================================================
# CUSTOMER PROFILES
# =============================================================================

@dataclass(frozen=True)
class SegmentRule:
    """Sampling ranges attached to one classification outcome"""
    segment: str
    churn: Tuple[float, float]
    next_purchase: Tuple[float, float]
    ltv: Callable[[int, Sampler], int]


SEGMENT_RULES: Dict[str, SegmentRule] = {
    "high_value": SegmentRule(
        "high_value", (0.05, 0.15), (0.4, 0.7), lambda revenue, s: round_half_up(revenue * s.uniform(2, 5))
    ),
    "regular": SegmentRule(
        "regular", (0.15, 0.35), (0.2, 0.4), lambda revenue, s: round_half_up(revenue * s.uniform(1.5, 3))
    ),
    "churned": SegmentRule("churned", (0.85, 0.98), (0.01, 0.05), lambda revenue, s: 0),
    "at_risk": SegmentRule("at_risk", (0.5, 0.8), (0.05, 0.15), lambda revenue, s: s.randint(2000, 8000)),
    "engaged": SegmentRule("casual", (0.3, 0.5), (0.1, 0.25), lambda revenue, s: s.randint(5000, 15_000)),
    "browsing": SegmentRule("casual", (0.4, 0.6), (0.05, 0.1), lambda revenue, s: s.randint(1000, 5000)),
}

HIGH_VALUE_PURCHASES = 3
HIGH_VALUE_REVENUE_CENTS = 30_000
CHURNED_AFTER_DAYS = 60
AT_RISK_AFTER_DAYS = 30
TIMES_OF_DAY = ["morning", "afternoon", "evening", "night"]


def classify_customer(total_purchases: int, total_revenue_cents: int, days_inactive: int, total_tryons: int) -> str:
    """
    Behaviour path for a customer; first matching rule wins.

    Returns one of the SEGMENT_RULES keys. "engaged" and "browsing" both
    report the casual segment but sample different ranges.
    """
    if total_purchases >= HIGH_VALUE_PURCHASES or total_revenue_cents > HIGH_VALUE_REVENUE_CENTS:
        return "high_value"
    if total_purchases >= 1:
        return "regular"
    if days_inactive > CHURNED_AFTER_DAYS:
        return "churned"
    if days_inactive > AT_RISK_AFTER_DAYS:
        return "at_risk"
    if total_tryons > 0:
        return "engaged"
    return "browsing"


def generate_customer_profiles(ctx: StageContext) -> StageResult:
    """One profile per distinct conversation customer token"""
    sampler = ctx.sampler
    config = ctx.config
    devices = list(config.devices.distribution.items())
    weekdays = list(config.engagement.daily_weights.items())
    profiles: List[Record] = []

    for customer_id, conversations in ctx.lookups.table("customer_conversations").items():
        total_purchases = sum(1 for c in conversations if c["resulted_in_purchase"])
        total_revenue = sum(c["purchase_amount_cents"] or 0 for c in conversations)
        total_tryons = sum(1 for c in conversations if c["resulted_in_tryon"])
        first_seen = min(c["started_at"] for c in conversations)
        last_seen = max(c["last_message_at"] for c in conversations)
        days_inactive = (sampler.now - last_seen).days

        rule = SEGMENT_RULES[classify_customer(total_purchases, total_revenue, days_inactive, total_tryons)]
        churn = sampler.uniform(*rule.churn)
        next_purchase = sampler.uniform(*rule.next_purchase)

        profiles.append({
            "id": sampler.uuid(),
            "customer_id": customer_id,
            "workspace_id": conversations[0]["workspace_id"],
            "first_seen_at": first_seen,
            "last_seen_at": last_seen,
            "total_sessions": len(conversations),
            "total_dm_conversations": len(conversations),
            "total_tryons": total_tryons,
            "total_purchases": total_purchases,
            "total_revenue_cents": total_revenue,
            "avg_order_value_cents": round_half_up(total_revenue / total_purchases) if total_purchases else 0,
            "preferred_device": sampler.weighted_choice(devices),
            "preferred_time_of_day": sampler.choice(TIMES_OF_DAY),
            "preferred_day_of_week": sampler.weighted_choice(weekdays),
            "predicted_ltv_cents": rule.ltv(total_revenue, sampler),
            "churn_probability": round(churn, 4),
            "next_purchase_probability": round(next_purchase, 4),
            "customer_segment": rule.segment,
            "created_at": sampler.now,
            "updated_at": sampler.now,
        })

    return StageResult(collections={"customer_profiles": profiles})


# =============================================================================
# DEMAND FORECASTS
# =============================================================================

FORECAST_PRODUCTS = 50
FORECAST_HORIZONS = (7, 14, 30)
MODEL_VERSION = "forecast-model-v1"
FEATURES_USED = ["inventory_history", "engagement_metrics", "seasonality", "price"]


def generate_demand_forecasts(ctx: StageContext) -> StageResult:
    """Forecast rows for the first 50 products at each horizon"""
    sampler = ctx.sampler
    forecasts: List[Record] = []

    for product in ctx.collection("products")[:FORECAST_PRODUCTS]:
        for horizon in FORECAST_HORIZONS:
            predicted = sampler.randint(5, 50)
            variance = sampler.uniform(0.1, 0.3)

            forecasts.append({
                "id": sampler.uuid(),
                "product_id": product["id"],
                "variant_id": None,
                "workspace_id": product["workspace_id"],
                "forecast_date": (sampler.now + timedelta(days=horizon)).date(),
                "forecast_horizon_days": horizon,
                "predicted_demand": predicted,
                "confidence_interval_low": round_half_up(predicted * (1 - variance)),
                "confidence_interval_high": round_half_up(predicted * (1 + variance)),
                "prediction_confidence": round(sampler.uniform(0.7, 0.95), 4),
                "actual_demand": None,
                "forecast_error": None,
                "model_version": MODEL_VERSION,
                "features_used": list(FEATURES_USED),
                "generated_at": sampler.now,
            })

    return StageResult(collections={"demand_forecasts": forecasts})


STAGES = [
    Stage(
        name="daily_aggregates",
        produces=("daily_aggregates",),
        func=generate_daily_aggregates,
        requires=("workspaces", "products"),
        uses_lookups=("workspace_products", "product_performance"),
    ),
    Stage(
        name="customer_profiles",
        produces=("customer_profiles",),
        func=generate_customer_profiles,
        requires=("conversations",),
        uses_lookups=("customer_conversations",),
    ),
    Stage(
        name="demand_forecasts",
        produces=("demand_forecasts",),
        func=generate_demand_forecasts,
        requires=("products",),
    ),
]
