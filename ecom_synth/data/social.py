"""
Social Stages

Instagram posts, their daily engagement metrics, and garment bindings: the
post/product pairs that carry the DM try-on conversion funnel.
"""

import math
from datetime import timedelta

from ecom_synth.data.metrics import assign_performance_tier, generate_engagement_metrics, generate_funnel_metrics, sample_rate
from ecom_synth.data.pipeline import Stage, StageContext, StageResult
from ecom_synth.data.sampling import round_half_up

MEDIA_TYPES = [("IMAGE", 0.60), ("VIDEO", 0.25), ("CAROUSEL", 0.15)]
HASHTAGS = ["#fashion", "#style", "#ootd", "#shopping", "#tryon", "#newcollection"]

PRODUCT_LINK_PROBABILITY = 0.7
MAX_METRIC_DAYS = 30
REACH_DECAY = 0.1


def generate_social_posts(ctx: StageContext) -> StageResult:
    """Posts per workspace; most link to one of the workspace's products"""
    sampler = ctx.sampler
    fake = sampler.fake
    scale = ctx.scale
    result = StageResult(collections={"social_posts": []})
    history_start = sampler.days_ago(scale.days_of_history)

    for workspace in ctx.collection("workspaces"):
        account = ctx.lookups.require("workspace_accounts", workspace["id"])
        products = ctx.lookups.children("workspace_products", workspace["id"])
        result.lookups.ensure("workspace_posts", workspace["id"])

        for _ in range(scale.posts_per_workspace):
            posted_at = sampler.datetime_between(history_start, sampler.now)
            linked_product = (
                sampler.choice(products)
                if products and sampler.chance(PRODUCT_LINK_PROBABILITY)
                else None
            )
            hashtags = sampler.sample(HASHTAGS, sampler.randint(3, 6))

            post = {
                "id": sampler.uuid(),
                "workspace_id": workspace["id"],
                "account_id": account["id"],
                "platform_post_id": f"{sampler.randint(10_000_000, 99_999_999)}{sampler.randint(10_000_000, 99_999_999)}",
                "media_type": sampler.weighted_choice(MEDIA_TYPES),
                "caption": f"{fake.paragraph()} {' '.join(hashtags)}",
                "permalink": f"https://www.instagram.com/p/{sampler.alphanumeric(11)}/",
                "product_id": linked_product["id"] if linked_product else None,
                "posted_at": posted_at,
                "created_at": posted_at,
            }

            result.collections["social_posts"].append(post)
            result.lookups.append("workspace_posts", workspace["id"], post)
            result.lookups.put(
                "post_performance",
                post["id"],
                assign_performance_tier(ctx.config.post_performance, sampler),
            )

    return result


def generate_post_metrics(ctx: StageContext) -> StageResult:
    """
    Daily metrics from posting day up to 30 days.

    Base reach decays geometrically with post age: exp(-0.1 * day).
    """
    sampler = ctx.sampler
    hours = list(enumerate(ctx.config.engagement.hourly_weights))
    result = StageResult(collections={"post_metrics": []})

    for post in ctx.collection("social_posts"):
        posted_at = post["posted_at"]
        days_since_post = (sampler.now - posted_at).days
        total_impressions = 0

        for day in range(min(days_since_post, MAX_METRIC_DAYS)):
            metric_time = posted_at + timedelta(days=day)
            base_reach = sampler.randint(100, 10_000) * math.exp(-day * REACH_DECAY)
            metrics = generate_engagement_metrics(round_half_up(base_reach), sampler)
            total_impressions += metrics["impressions"]

            result.collections["post_metrics"].append({
                "id": sampler.uuid(),
                "post_id": post["id"],
                "account_id": post["account_id"],
                "metric_date": metric_time.date(),
                "metric_hour": sampler.weighted_choice(hours),
                **metrics,
                "created_at": metric_time,
            })

        result.lookups.put("post_impressions", post["id"], total_impressions)

    return result


def generate_garment_bindings(ctx: StageContext) -> StageResult:
    """
    Funnel record for every post that links a product.

    Triggers are a small sampled share of the post's lifetime impressions;
    the rest of the chain comes from the funnel calculator.
    """
    sampler = ctx.sampler
    rates = ctx.config.funnel_rates
    result = StageResult(collections={"garment_bindings": []})

    for post in ctx.collection("social_posts"):
        if post["product_id"] is None:
            continue

        product = ctx.lookups.require("products_by_id", post["product_id"])
        total_impressions = ctx.lookups.require("post_impressions", post["id"])
        total_triggers = round_half_up(total_impressions * sample_rate(rates.impression_to_trigger, sampler))
        funnel = generate_funnel_metrics(total_triggers, rates, sampler)

        binding = {
            "id": sampler.uuid(),
            "post_id": post["id"],
            "product_id": product["id"],
            "workspace_id": post["workspace_id"],
            "account_id": post["account_id"],
            "garment_name": product["title"],
            "is_active": True,
            **funnel,
            "total_revenue_cents": funnel["total_purchases"] * product["price_cents"],
            "avg_response_time_ms": sampler.randint(500, 3000),
            "avg_generation_time_ms": sampler.randint(10_000, 25_000),
            "last_used_at": (
                sampler.datetime_between(sampler.days_ago(7), sampler.now)
                if funnel["total_triggers"] > 0
                else None
            ),
            "created_at": post["created_at"],
            "updated_at": sampler.now,
        }

        result.collections["garment_bindings"].append(binding)
        result.lookups.put("post_bindings", post["id"], binding)
        result.lookups.append("workspace_bindings", post["workspace_id"], binding)

    return result


STAGES = [
    Stage(
        name="social_posts",
        produces=("social_posts",),
        func=generate_social_posts,
        requires=("workspaces", "products"),
        uses_lookups=("workspace_accounts", "workspace_products"),
        builds_lookups=("workspace_posts", "post_performance"),
    ),
    Stage(
        name="post_metrics",
        produces=("post_metrics",),
        func=generate_post_metrics,
        requires=("social_posts",),
        builds_lookups=("post_impressions",),
    ),
    Stage(
        name="garment_bindings",
        produces=("garment_bindings",),
        func=generate_garment_bindings,
        requires=("social_posts", "post_metrics", "products"),
        uses_lookups=("products_by_id", "post_impressions"),
        builds_lookups=("post_bindings", "workspace_bindings"),
    ),
]
