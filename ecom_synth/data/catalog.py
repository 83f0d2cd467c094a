"""
Catalog Stages

Workspaces and their connected accounts, the product catalog, size/color
variants and the per-variant inventory ledger.
"""

from datetime import timedelta
from typing import List

from faker.utils.text import slugify

from ecom_synth.config.tables import Category, PricingRules
from ecom_synth.data.metrics import assign_performance_tier
from ecom_synth.data.pipeline import Record, Stage, StageContext, StageResult
from ecom_synth.data.sampling import Sampler, clamp, round_half_up


# Attempted stock movement per change source
CHANGE_AMOUNTS = {
    "sale": lambda s: -s.randint(1, 5),
    "restock": lambda s: s.randint(10, 50),
    "adjustment": lambda s: s.randint(-3, 3),
    "return": lambda s: s.randint(1, 2),
}

CHANGE_REASONS = {
    "sale": ["Customer order", "Wholesale order", "Flash sale"],
    "restock": ["Regular restock", "Supplier delivery", "Transfer from warehouse"],
    "adjustment": ["Inventory count", "Damaged goods", "Quality issue"],
    "return": ["Customer return", "Exchange", "Defective item"],
}

PRODUCT_TAGS = ["trending", "new", "bestseller", "sale", "limited"]
SKU_SUFFIXES = ["A", "B", "C", "D", "E"]


def generate_price(category: Category, pricing: PricingRules, sampler: Sampler) -> int:
    """Category average price +/- 50%, in cents, held to the store price band"""
    price = round_half_up(category.avg_price * sampler.uniform(0.5, 1.5))
    return int(clamp(price, pricing.product_min, pricing.product_max))


def generate_sku(category_name: str, index: int, sampler: Sampler) -> str:
    return f"{category_name[:3].upper()}-{index:04d}-{sampler.choice(SKU_SUFFIXES)}"


# =============================================================================
# WORKSPACES & ACCOUNTS
# =============================================================================

def generate_workspaces(ctx: StageContext) -> StageResult:
    """One workspace per tenant, each with exactly one Instagram account"""
    sampler = ctx.sampler
    fake = sampler.fake
    result = StageResult(collections={"workspaces": [], "accounts": []})

    for _ in range(ctx.scale.workspaces):
        created_at = sampler.days_ago(sampler.randint(30, 365))
        workspace = {
            "id": sampler.uuid(),
            "name": fake.company(),
            "slug": slugify(fake.company()).lower(),
            "created_at": created_at,
            "updated_at": sampler.now,
        }
        account = {
            "id": sampler.uuid(),
            "workspace_id": workspace["id"],
            "platform": "instagram",
            "platform_account_id": sampler.digits(10_000_000_000, 99_999_999_999),
            "platform_username": f"@{fake.user_name().lower()}",
            "status": "active",
            "created_at": created_at,
        }

        result.collections["workspaces"].append(workspace)
        result.collections["accounts"].append(account)
        result.lookups.put("workspace_accounts", workspace["id"], account)

    return result


# =============================================================================
# PRODUCTS
# =============================================================================

def generate_products(ctx: StageContext) -> StageResult:
    """Products per workspace with a memoized performance tier each"""
    sampler = ctx.sampler
    fake = sampler.fake
    config = ctx.config
    scale = ctx.scale
    result = StageResult(collections={"products": []})
    history_start = sampler.days_ago(scale.days_of_history)

    for workspace in ctx.collection("workspaces"):
        account = ctx.lookups.require("workspace_accounts", workspace["id"])
        result.lookups.ensure("workspace_products", workspace["id"])

        for _ in range(scale.products_per_workspace):
            category = sampler.weighted_choice((c, c.weight) for c in config.categories)
            price = generate_price(category, config.pricing, sampler)
            cost_cents = round_half_up(price * sampler.uniform(config.pricing.cost_margin.min, config.pricing.cost_margin.max))
            compare_at_price = (
                round_half_up(price * sampler.uniform(config.pricing.compare_at_markup.min, config.pricing.compare_at_markup.max))
                if sampler.chance(config.pricing.compare_at_probability)
                else None
            )
            total_inventory = sampler.randint(config.inventory.initial_stock.min, config.inventory.initial_stock.max)

            product = {
                "id": sampler.uuid(),
                "workspace_id": workspace["id"],
                "account_id": account["id"],
                "shopify_product_id": sampler.digits(1_000_000_000, 9_999_999_999),
                # "Dresses" -> "Dress"
                "title": f"{sampler.choice(config.product_adjectives)} {category.name[:-1]}",
                "description": fake.sentence(nb_words=15),
                "vendor": fake.company(),
                "product_type": category.name,
                "tags": [
                    category.name.lower(),
                    sampler.choice(config.materials),
                    sampler.choice(PRODUCT_TAGS),
                ],
                "price_cents": price,
                "compare_at_price_cents": compare_at_price,
                "cost_cents": cost_cents,
                "total_inventory": total_inventory,
                "has_variants_in_stock": total_inventory > 0,
                "lowest_stock_level": sampler.randint(0, min(10, total_inventory)),
                "variants_count": scale.variants_per_product,
                "status": "active" if sampler.chance(0.95) else "draft",
                "created_at": sampler.datetime_between(history_start, sampler.now),
                "updated_at": sampler.now,
            }

            result.collections["products"].append(product)
            result.lookups.append("workspace_products", workspace["id"], product)
            result.lookups.put("products_by_id", product["id"], product)
            result.lookups.put(
                "product_performance",
                product["id"],
                assign_performance_tier(config.product_performance, sampler),
            )

    return result


# =============================================================================
# VARIANTS
# =============================================================================

def generate_product_variants(ctx: StageContext) -> StageResult:
    """
    Size/color variants for every product.

    Variant stock is the product total split evenly plus a small jitter, so
    the variant sum only approximates the product's total_inventory.
    """
    sampler = ctx.sampler
    config = ctx.config
    variants_per_product = ctx.scale.variants_per_product
    max_stock = config.inventory.max_stock
    sizes = [(size, config.inventory.size_distribution.get(size, 0.15)) for size in config.sizes]
    result = StageResult(collections={"product_variants": []})

    for product in ctx.collection("products"):
        colors = sampler.sample(config.colors, min(len(config.colors), sampler.randint(2, 4)))
        inventory_per_variant = round_half_up(product["total_inventory"] / variants_per_product)

        for i in range(variants_per_product):
            size = sampler.weighted_choice(sizes)
            color = sampler.choice(colors)
            variant = {
                "id": sampler.uuid(),
                "product_id": product["id"],
                "shopify_variant_id": sampler.digits(10_000_000_000, 99_999_999_999),
                "title": f"{size} / {color}",
                "sku": generate_sku(product["product_type"], i, sampler),
                "size": size,
                "color": color,
                "price_cents": product["price_cents"] + sampler.randint(-500, 500),
                "inventory_quantity": int(clamp(inventory_per_variant + sampler.randint(-5, 5), 0, max_stock)),
                "available": inventory_per_variant > 0,
                "created_at": product["created_at"],
                "updated_at": sampler.now,
            }
            result.collections["product_variants"].append(variant)

    return result


# =============================================================================
# INVENTORY LEDGER
# =============================================================================

def generate_inventory_history(ctx: StageContext) -> StageResult:
    """
    Daily stock movements per variant.

    Starting and running stock are clamped to [0, max_stock]; a ledger
    entry is emitted only when an attempted change moved the clamped value.
    """
    sampler = ctx.sampler
    days = ctx.scale.days_of_history
    max_stock = ctx.config.inventory.max_stock
    sources = list(CHANGE_AMOUNTS)
    start_date = sampler.days_ago(days)
    history: List[Record] = []

    for variant in ctx.collection("product_variants"):
        current_stock = int(clamp(variant["inventory_quantity"] + sampler.randint(20, 100), 0, max_stock))

        for day in range(days):
            for _ in range(sampler.randint(0, 3)):
                source = sampler.choice(sources)
                attempted = CHANGE_AMOUNTS[source](sampler)

                previous_quantity = current_stock
                current_stock = int(clamp(current_stock + attempted, 0, max_stock))
                if previous_quantity == current_stock:
                    continue

                recorded_at = (start_date + timedelta(days=day)).replace(
                    hour=sampler.randint(8, 20),
                    minute=sampler.randint(0, 59),
                )
                history.append({
                    "id": sampler.uuid(),
                    "variant_id": variant["id"],
                    "product_id": variant["product_id"],
                    "previous_quantity": previous_quantity,
                    "new_quantity": current_stock,
                    "change_amount": current_stock - previous_quantity,
                    "change_source": source,
                    "change_reason": sampler.choice(CHANGE_REASONS[source]),
                    "recorded_at": recorded_at,
                })

    return StageResult(collections={"inventory_history": history})


STAGES = [
    Stage(
        name="workspaces",
        produces=("workspaces", "accounts"),
        func=generate_workspaces,
        builds_lookups=("workspace_accounts",),
    ),
    Stage(
        name="products",
        produces=("products",),
        func=generate_products,
        requires=("workspaces",),
        uses_lookups=("workspace_accounts",),
        builds_lookups=("workspace_products", "products_by_id", "product_performance"),
    ),
    Stage(
        name="product_variants",
        produces=("product_variants",),
        func=generate_product_variants,
        requires=("products",),
    ),
    Stage(
        name="inventory_history",
        produces=("inventory_history",),
        func=generate_inventory_history,
        requires=("product_variants",),
    ),
]
