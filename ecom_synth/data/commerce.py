"""
Commerce Stages

DM conversations between customers and the try-on bot, and the orders that
may be attributed to them.
"""

from ecom_synth.data.pipeline import Stage, StageContext, StageResult
from ecom_synth.data.sampling import round_half_up

TRYON_STATES = frozenset({"processing_tryon", "result_sent", "completed"})
PURCHASE_PROBABILITY = 0.15
FALLBACK_PURCHASE_CENTS = 5000

FINANCIAL_STATUSES = ["paid", "paid", "paid", "pending", "refunded"]
FULFILLMENT_STATUSES = ["fulfilled", "fulfilled", "partial", None]
ATTRIBUTION_CONFIDENCE = ["high", "medium", "low"]


def generate_conversations(ctx: StageContext) -> StageResult:
    """
    Conversations per workspace with a uniformly sampled lifecycle state.

    Only states at or past processing_tryon count as a try-on, and only
    try-on conversations can end in a purchase.
    """
    sampler = ctx.sampler
    scale = ctx.scale
    states = ctx.config.conversation_states
    result = StageResult(collections={"conversations": []})
    history_start = sampler.days_ago(scale.days_of_history)

    for workspace in ctx.collection("workspaces"):
        account = ctx.lookups.require("workspace_accounts", workspace["id"])
        bindings = ctx.lookups.children("workspace_bindings", workspace["id"])
        result.lookups.ensure("workspace_purchase_conversations", workspace["id"])

        for _ in range(scale.conversations_per_workspace):
            customer_id = sampler.token(16)
            started_at = sampler.datetime_between(history_start, sampler.now)
            message_count = sampler.randint(2, 15)
            state = sampler.choice(states)

            resulted_in_tryon = state in TRYON_STATES
            resulted_in_purchase = resulted_in_tryon and sampler.chance(PURCHASE_PROBABILITY)
            binding = sampler.choice(bindings) if bindings else None

            purchase_amount = None
            if resulted_in_purchase:
                purchase_amount = (
                    ctx.lookups.require("products_by_id", binding["product_id"])["price_cents"]
                    if binding
                    else FALLBACK_PURCHASE_CENTS
                )

            conversation = {
                "id": sampler.uuid(),
                "workspace_id": workspace["id"],
                "account_id": account["id"],
                "participant_id": customer_id,
                "conversation_state": state,
                "category": "tryon" if resulted_in_tryon else "general",
                "started_at": started_at,
                "last_message_at": sampler.datetime_between(started_at, sampler.now),
                "message_count": message_count,
                "bot_messages": round_half_up(message_count * 0.4),
                "user_messages": round_half_up(message_count * 0.6),
                "resulted_in_tryon": resulted_in_tryon,
                "resulted_in_purchase": resulted_in_purchase,
                "purchase_amount_cents": purchase_amount,
                "created_at": started_at,
            }

            result.collections["conversations"].append(conversation)
            result.lookups.append("customer_conversations", customer_id, conversation)
            result.lookups.put("conversation_bindings", conversation["id"], binding)
            if resulted_in_purchase:
                result.lookups.append("workspace_purchase_conversations", workspace["id"], conversation)

    return result


def generate_orders(ctx: StageContext) -> StageResult:
    """
    Orders per workspace.

    Order i is attributed to the workspace's i-th purchasing conversation
    when there is one, and sells the product that conversation discussed.
    """
    sampler = ctx.sampler
    scale = ctx.scale
    pricing = ctx.config.pricing
    result = StageResult(collections={"orders": []})
    history_start = sampler.days_ago(scale.days_of_history)

    for workspace in ctx.collection("workspaces"):
        account = ctx.lookups.require("workspace_accounts", workspace["id"])
        products = ctx.lookups.children("workspace_products", workspace["id"])
        purchases = ctx.lookups.children("workspace_purchase_conversations", workspace["id"])

        for i in range(scale.orders_per_workspace):
            conversation = purchases[i] if i < len(purchases) else None
            binding = ctx.lookups.require("conversation_bindings", conversation["id"]) if conversation else None

            if binding is not None:
                product = ctx.lookups.require("products_by_id", binding["product_id"])
            else:
                product = sampler.choice(products)

            item_count = sampler.randint(1, 4)
            subtotal = product["price_cents"] * item_count
            tax = round_half_up(subtotal * pricing.tax_rate)
            shipping = (
                0
                if sampler.chance(pricing.free_shipping_probability)
                else sampler.randint(int(pricing.shipping_cents.min), int(pricing.shipping_cents.max))
            )
            discount = (
                round_half_up(subtotal * sampler.uniform(pricing.discount_range.min, pricing.discount_range.max))
                if sampler.chance(pricing.discount_probability)
                else 0
            )
            ordered_at = sampler.datetime_between(history_start, sampler.now)

            result.collections["orders"].append({
                "id": sampler.uuid(),
                "workspace_id": workspace["id"],
                "account_id": account["id"],
                "shopify_order_id": sampler.digits(1_000_000, 9_999_999),
                "order_number": 1000 + i,
                "customer_id": conversation["participant_id"] if conversation else sampler.token(16),
                "total_price_cents": subtotal + tax + shipping - discount,
                "subtotal_cents": subtotal,
                "tax_cents": tax,
                "shipping_cents": shipping,
                "discount_cents": discount,
                "line_items_count": item_count,
                "financial_status": sampler.choice(FINANCIAL_STATUSES),
                "fulfillment_status": sampler.choice(FULFILLMENT_STATUSES),
                "attributed_to_tryon": conversation is not None,
                "attribution_confidence": sampler.choice(ATTRIBUTION_CONFIDENCE) if conversation else None,
                "conversation_id": conversation["id"] if conversation else None,
                "binding_id": binding["id"] if binding else None,
                "product_id": product["id"],
                "ordered_at": ordered_at,
                "created_at": ordered_at,
            })

    return result


STAGES = [
    Stage(
        name="conversations",
        produces=("conversations",),
        func=generate_conversations,
        requires=("workspaces", "garment_bindings"),
        uses_lookups=("workspace_accounts", "workspace_bindings", "products_by_id"),
        builds_lookups=(
            "customer_conversations",
            "workspace_purchase_conversations",
            "conversation_bindings",
        ),
    ),
    Stage(
        name="orders",
        produces=("orders",),
        func=generate_orders,
        requires=("workspaces", "conversations", "products", "garment_bindings"),
        uses_lookups=(
            "workspace_accounts",
            "workspace_products",
            "products_by_id",
            "workspace_purchase_conversations",
            "conversation_bindings",
        ),
    ),
]
