"""
Customer Journey Stage

Simulated customer sessions rendered as an event stream. Each session picks
one of a fixed set of funnel paths; how deep it goes depends on seasonality,
day of week, the performance of the post that started it and the device.
"""

from datetime import datetime, timedelta
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from ecom_synth.config.tables import SynthConfig
from ecom_synth.data.metrics import DEFAULT_PERFORMANCE
from ecom_synth.data.pipeline import Record, Stage, StageContext, StageResult
from ecom_synth.data.sampling import Sampler, clamp, round_half_up


class EventType:
    """Journey event type names"""

    # Awareness
    POST_VIEW = "post_view"
    POST_LIKE = "post_like"
    POST_COMMENT = "post_comment"
    POST_SAVE = "post_save"
    POST_SHARE = "post_share"

    # Interest
    DM_STARTED = "dm_started"
    TRIGGER_KEYWORD = "trigger_keyword"
    BOT_GREETING = "bot_greeting"

    # Consideration
    PHOTO_REQUESTED = "photo_requested"
    PHOTO_RECEIVED = "photo_received"
    TRYON_STARTED = "tryon_started"
    TRYON_COMPLETED = "tryon_completed"
    TRYON_FAILED = "tryon_failed"

    # Purchase
    PRODUCT_LINK_CLICKED = "product_link_clicked"
    ADD_TO_CART = "add_to_cart"
    CHECKOUT_STARTED = "checkout_started"
    PURCHASE_COMPLETED = "purchase_completed"

    # Retention
    REVIEW_SUBMITTED = "review_submitted"
    RETURN_INITIATED = "return_initiated"
    REPEAT_VISIT = "repeat_visit"


FUNNEL_STAGES: Dict[str, int] = {
    EventType.POST_VIEW: 1,
    EventType.POST_LIKE: 1,
    EventType.POST_COMMENT: 1,
    EventType.POST_SAVE: 1,
    EventType.POST_SHARE: 1,
    EventType.DM_STARTED: 2,
    EventType.TRIGGER_KEYWORD: 2,
    EventType.BOT_GREETING: 2,
    EventType.PHOTO_REQUESTED: 3,
    EventType.PHOTO_RECEIVED: 3,
    EventType.TRYON_STARTED: 3,
    EventType.TRYON_COMPLETED: 3,
    EventType.TRYON_FAILED: 3,
    EventType.PRODUCT_LINK_CLICKED: 4,
    EventType.ADD_TO_CART: 4,
    EventType.CHECKOUT_STARTED: 4,
    EventType.PURCHASE_COMPLETED: 4,
    EventType.REVIEW_SUBMITTED: 5,
    EventType.RETURN_INITIATED: 5,
    EventType.REPEAT_VISIT: 5,
}

# Ordered shallowest to deepest; index 0 is the view-only bucket
EVENT_SEQUENCES: List[Tuple[str, ...]] = [
    (EventType.POST_VIEW,),
    (EventType.POST_VIEW, EventType.POST_LIKE),
    (EventType.POST_VIEW, EventType.POST_COMMENT),
    (EventType.POST_VIEW, EventType.POST_LIKE, EventType.DM_STARTED),
    (EventType.POST_VIEW, EventType.POST_COMMENT, EventType.TRIGGER_KEYWORD, EventType.DM_STARTED),
    (EventType.POST_VIEW, EventType.DM_STARTED, EventType.PHOTO_REQUESTED),
    (
        EventType.POST_VIEW,
        EventType.DM_STARTED,
        EventType.PHOTO_REQUESTED,
        EventType.PHOTO_RECEIVED,
        EventType.TRYON_COMPLETED,
    ),
    (
        EventType.POST_VIEW,
        EventType.DM_STARTED,
        EventType.PHOTO_RECEIVED,
        EventType.TRYON_COMPLETED,
        EventType.PRODUCT_LINK_CLICKED,
    ),
    (
        EventType.POST_VIEW,
        EventType.DM_STARTED,
        EventType.PHOTO_RECEIVED,
        EventType.TRYON_COMPLETED,
        EventType.PRODUCT_LINK_CLICKED,
        EventType.PURCHASE_COMPLETED,
    ),
]

BASE_SEQUENCE_PROBABILITIES = [0.98, 0.008, 0.004, 0.003, 0.0015, 0.0012, 0.0010, 0.0008, 0.0005]

# Milliseconds until the next event, by the current event's type
EVENT_DELAYS_MS: Dict[str, Tuple[int, int]] = {
    EventType.POST_VIEW: (2_000, 10_000),
    EventType.POST_LIKE: (5_000, 30_000),
    EventType.POST_COMMENT: (10_000, 60_000),
    EventType.DM_STARTED: (60_000, 300_000),
    EventType.TRIGGER_KEYWORD: (30_000, 120_000),
    EventType.PHOTO_REQUESTED: (60_000, 1_800_000),
    EventType.PHOTO_RECEIVED: (5_000, 30_000),
    EventType.TRYON_COMPLETED: (10_000, 60_000),
    EventType.PRODUCT_LINK_CLICKED: (30_000, 300_000),
}
DEFAULT_DELAY_MS = (5_000, 60_000)

MULTIPLIER_BOUNDS = (0.3, 3.0)
PROBABILITY_SHIFT = 0.01
SEASONAL_ATTEMPTS = 10
FALLBACK_HOUR = 12


def funnel_stage(event_type: str) -> int:
    """Funnel stage 1-5 for an event type; unknown types count as awareness"""
    return FUNNEL_STAGES.get(event_type, 1)


def next_event_delay(event_type: str, sampler: Sampler) -> int:
    low, high = EVENT_DELAYS_MS.get(event_type, DEFAULT_DELAY_MS)
    return sampler.randint(low, high)


def adjust_probabilities(base: Sequence[float], multiplier: float) -> List[float]:
    """
    Shift probability mass between the view-only bucket and deeper buckets.

    The multiplier is clamped to [0.3, 3.0]. Above 1, (m - 1) * 0.01 moves
    from bucket 0 to the others in equal parts; at or below 1,
    (1 - m) * 0.01 moves back to bucket 0 with the deeper buckets floored at
    zero. The result is renormalized to sum to 1.

    Args:
        base: Bucket probabilities, view-only first
        multiplier: Combined engagement multiplier for the session

    Returns:
        Adjusted probabilities
    """
    m = clamp(multiplier, *MULTIPLIER_BOUNDS)
    adjusted = np.array(base, dtype=float)
    deeper = len(adjusted) - 1

    if m > 1:
        boost = (m - 1) * PROBABILITY_SHIFT
        adjusted[0] -= boost
        adjusted[1:] += boost / deeper
    else:
        reduction = (1 - m) * PROBABILITY_SHIFT
        adjusted[0] += reduction
        adjusted[1:] = np.maximum(0.0, adjusted[1:] - reduction / deeper)

    return (adjusted / adjusted.sum()).tolist()


def weighted_hour(hourly_weights: Sequence[float], sampler: Sampler) -> int:
    """Hour of day by cumulative scan; noon when the draw runs past the table"""
    index = sampler.categorical_index(hourly_weights, default=-1)
    return FALLBACK_HOUR if index < 0 else index


def seasonal_session_start(config: SynthConfig, days_of_history: int, sampler: Sampler) -> datetime:
    """
    Session start inside the history window, biased toward busy months.

    A candidate day is accepted when a uniform draw falls below its monthly
    weight; after ten rejections an unweighted day is used.
    """
    start = sampler.days_ago(days_of_history)
    monthly = config.seasonality.monthly

    candidate = None
    for _ in range(SEASONAL_ATTEMPTS):
        day = start + timedelta(days=sampler.randint(0, days_of_history - 1))
        if sampler.random() < monthly.get(day.month, 1.0):
            candidate = day
            break
    if candidate is None:
        candidate = start + timedelta(days=sampler.randint(0, days_of_history - 1))

    return candidate.replace(
        hour=weighted_hour(config.engagement.hourly_weights, sampler),
        minute=sampler.randint(0, 59),
        second=sampler.randint(0, 59),
        microsecond=0,
    )


def select_by_performance(records: Sequence[Record], performance, sampler: Sampler) -> Optional[Record]:
    """Record weighted by its tier multiplier; uniform when every weight is zero"""
    if not records:
        return None
    weights = [performance.get(r["id"], DEFAULT_PERFORMANCE).multiplier for r in records]
    if sum(weights) <= 0:
        return sampler.choice(records)
    return sampler.weighted_choice(zip(records, weights))


def generate_customer_journeys(ctx: StageContext) -> StageResult:
    """One simulated session per customer slot, one row per event"""
    sampler = ctx.sampler
    fake = sampler.fake
    config = ctx.config
    scale = ctx.scale
    lookups = ctx.lookups
    post_performance = lookups.table("post_performance")
    product_performance = lookups.table("product_performance")
    products_by_id = lookups.table("products_by_id")
    devices = list(config.devices.distribution.items())
    countries = [(c, c.weight) for c in config.countries]
    events: List[Record] = []

    for workspace in ctx.collection("workspaces"):
        posts = lookups.children("workspace_posts", workspace["id"])
        products = lookups.children("workspace_products", workspace["id"])

        for _ in range(scale.customers_per_workspace):
            session_id = sampler.uuid()
            customer_id = sampler.token(16)
            device = sampler.weighted_choice(devices)
            country = sampler.weighted_choice(countries)

            session_start = seasonal_session_start(config, scale.days_of_history, sampler)
            temporal_mult = (
                config.seasonality.monthly.get(session_start.month, 1.0)
                * config.engagement.daily_weights.get(session_start.weekday(), 1.0)
            )

            post = select_by_performance(posts, post_performance, sampler)
            post_mult = post_performance.get(post["id"], DEFAULT_PERFORMANCE).multiplier if post else 1.0
            if post and post["product_id"]:
                product = products_by_id.get(post["product_id"])
            else:
                product = select_by_performance(products, product_performance, sampler)

            conversation = next(
                (c for c in lookups.children("customer_conversations", customer_id)
                 if c["workspace_id"] == workspace["id"]),
                None,
            )

            device_mult = config.devices.conversion_multiplier.get(device, 1.0)
            probabilities = adjust_probabilities(
                BASE_SEQUENCE_PROBABILITIES,
                temporal_mult * post_mult * device_mult * country.conversion_mult,
            )
            sequence = EVENT_SEQUENCES[sampler.categorical_index(probabilities, default=0)]

            event_time = session_start
            last = len(sequence) - 1
            for index, event_type in enumerate(sequence):
                # the closing event has no successor to wait for
                delay_ms = next_event_delay(event_type, sampler) if index < last else 0
                events.append({
                    "id": sampler.uuid(),
                    "session_id": session_id,
                    "customer_id": customer_id,
                    "workspace_id": workspace["id"],
                    "event_type": event_type,
                    "event_timestamp": event_time,
                    "source_platform": "instagram",
                    "device_type": device,
                    "geo_country": country.code,
                    "geo_region": sampler.maybe_null(fake.state(), config.output.null_probability),
                    "post_id": post["id"] if post else None,
                    "product_id": product["id"] if product else None,
                    "conversation_id": conversation["id"] if conversation else None,
                    "funnel_stage": funnel_stage(event_type),
                    "converted_to_next_stage": index < last,
                    "time_to_next_event_seconds": round_half_up(delay_ms / 1000),
                    "session_event_number": index + 1,
                    "is_session_first_event": index == 0,
                    "is_session_last_event": index == last,
                })
                event_time = event_time + timedelta(milliseconds=delay_ms)

    return StageResult(collections={"customer_journeys": events})


STAGES = [
    Stage(
        name="customer_journeys",
        produces=("customer_journeys",),
        func=generate_customer_journeys,
        requires=("workspaces", "social_posts", "products", "conversations"),
        uses_lookups=(
            "workspace_posts",
            "workspace_products",
            "products_by_id",
            "post_performance",
            "product_performance",
            "customer_conversations",
        ),
    ),
]
