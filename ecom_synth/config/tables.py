"""
Static Generation Tables

Immutable configuration consumed by the generation pipeline: scale presets,
funnel conversion-rate ranges, seasonal / hourly / daily weight tables,
device, geography and category tables, and performance tiers.

Rates are research-backed benchmarks for fashion social selling
(Rival IQ, Dynamic Yield, Napolify, Sprout Social, Adobe holiday reports).
Every model is frozen; malformed tables fail validation at load time and
surface as ConfigurationError.
"""

from functools import lru_cache
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from ecom_synth.exceptions import ConfigurationError


class FrozenModel(BaseModel):
    """Base for all static tables"""

    model_config = ConfigDict(frozen=True, extra="forbid")


class RateRange(FrozenModel):
    """Inclusive [min, max] range for uniform sampling"""

    min: float
    max: float

    @model_validator(mode="after")
    def check_order(self) -> "RateRange":
        if self.min > self.max:
            raise ValueError(f"range min {self.min} is greater than max {self.max}")
        return self


class ConversionRate(RateRange):
    """Stage conversion rate, a probability in [0, 1]"""

    @model_validator(mode="after")
    def check_probability(self) -> "ConversionRate":
        if self.min < 0 or self.max > 1:
            raise ValueError(f"conversion rate [{self.min}, {self.max}] must lie within [0, 1]")
        return self


class ScaleProfile(FrozenModel):
    """Cardinalities for one generation run"""

    name: str
    description: str = ""
    workspaces: int = Field(ge=1)
    products_per_workspace: int = Field(ge=1)
    variants_per_product: int = Field(ge=1)
    posts_per_workspace: int = Field(ge=0)
    conversations_per_workspace: int = Field(ge=0)
    orders_per_workspace: int = Field(ge=0)
    days_of_history: int = Field(ge=1)
    customers_per_workspace: int = Field(ge=0)

    @property
    def total_products(self) -> int:
        return self.workspaces * self.products_per_workspace


class FunnelRates(FrozenModel):
    """The six sequential stage rates of the DM try-on funnel"""

    engagement_to_dm: ConversionRate = ConversionRate(min=0.02, max=0.08)
    dm_to_photo_request: ConversionRate = ConversionRate(min=0.60, max=0.85)
    photo_request_to_received: ConversionRate = ConversionRate(min=0.35, max=0.55)
    photo_to_tryon: ConversionRate = ConversionRate(min=0.80, max=0.95)
    tryon_to_link_click: ConversionRate = ConversionRate(min=0.40, max=0.65)
    link_click_to_purchase: ConversionRate = ConversionRate(min=0.15, max=0.30)

    # Share of summed post impressions that fire a trigger keyword
    impression_to_trigger: ConversionRate = ConversionRate(min=0.001, max=0.01)


class Seasonality(FrozenModel):
    """Monthly demand multipliers (1 = January)"""

    monthly: Dict[int, float] = {
        1: 0.85,
        2: 0.75,
        3: 0.78,
        4: 0.92,
        5: 0.98,
        6: 0.95,
        7: 0.88,
        8: 0.92,
        9: 1.07,
        10: 0.84,
        11: 1.29,
        12: 1.15,
    }

    @field_validator("monthly")
    @classmethod
    def validate_months(cls, v: Dict[int, float]) -> Dict[int, float]:
        if set(v) != set(range(1, 13)):
            raise ValueError("monthly table must define months 1-12")
        if any(w < 0 for w in v.values()):
            raise ValueError("monthly weights must be non-negative")
        return v


class EngagementPatterns(FrozenModel):
    """Time-of-day and day-of-week engagement weights"""

    # Peaks at 7-9 AM, 11 AM-1 PM and 5-9 PM
    hourly_weights: List[float] = [
        0.008, 0.005, 0.004, 0.004, 0.006, 0.015,
        0.025, 0.055, 0.070, 0.065, 0.055, 0.075,
        0.080, 0.070, 0.050, 0.045, 0.050, 0.065,
        0.075, 0.080, 0.075, 0.055, 0.035, 0.018,
    ]

    # Keyed by date.weekday(): 0 = Monday
    daily_weights: Dict[int, float] = {
        0: 0.95,
        1: 1.15,
        2: 1.20,
        3: 1.15,
        4: 1.00,
        5: 0.80,
        6: 0.85,
    }

    @field_validator("hourly_weights")
    @classmethod
    def validate_hours(cls, v: List[float]) -> List[float]:
        if len(v) != 24:
            raise ValueError(f"hourly_weights needs 24 buckets, got {len(v)}")
        if any(w < 0 for w in v):
            raise ValueError("hourly weights must be non-negative")
        return v

    @field_validator("daily_weights")
    @classmethod
    def validate_days(cls, v: Dict[int, float]) -> Dict[int, float]:
        if set(v) != set(range(7)):
            raise ValueError("daily_weights must define weekdays 0-6")
        return v


class DevicePatterns(FrozenModel):
    """Traffic share and relative conversion per device"""

    distribution: Dict[str, float] = {"mobile": 0.70, "desktop": 0.28, "tablet": 0.02}
    conversion_multiplier: Dict[str, float] = {"mobile": 0.85, "desktop": 1.70, "tablet": 1.00}

    @model_validator(mode="after")
    def check_devices(self) -> "DevicePatterns":
        if any(w < 0 for w in self.distribution.values()):
            raise ValueError("device weights must be non-negative")
        missing = set(self.distribution) - set(self.conversion_multiplier)
        if missing:
            raise ValueError(f"no conversion multiplier for devices: {sorted(missing)}")
        return self


class PerformanceTier(FrozenModel):
    """Probability bucket with a multiplier range"""

    probability: float = Field(ge=0, le=1)
    multiplier: RateRange


class PricingRules(FrozenModel):
    """Fashion price points, all in cents"""

    product_min: int = 1999
    product_max: int = 29999
    cost_margin: RateRange = RateRange(min=0.30, max=0.60)
    compare_at_probability: float = 0.15
    compare_at_markup: RateRange = RateRange(min=1.2, max=1.5)
    tax_rate: float = 0.08
    free_shipping_probability: float = 0.7
    shipping_cents: RateRange = RateRange(min=500, max=1500)
    discount_probability: float = 0.2
    discount_range: RateRange = RateRange(min=0.10, max=0.30)

    @model_validator(mode="after")
    def check_price_band(self) -> "PricingRules":
        if not 0 < self.product_min <= self.product_max:
            raise ValueError(f"price band {self.product_min}..{self.product_max} is empty")
        return self


class InventoryRules(FrozenModel):
    """Stock levels and size curve"""

    initial_stock: RateRange = RateRange(min=10, max=500)
    max_stock: int = 500
    size_distribution: Dict[str, float] = {
        "XS": 0.08,
        "S": 0.18,
        "M": 0.30,
        "L": 0.26,
        "XL": 0.13,
        "XXL": 0.05,
    }


class Country(FrozenModel):
    code: str
    weight: float = Field(ge=0)
    conversion_mult: float = 1.0


class Category(FrozenModel):
    name: str
    weight: float = Field(ge=0)
    avg_price: int = Field(gt=0)


class OutputOptions(FrozenModel):
    """Formatting toggles applied while building records"""

    null_probability: float = Field(default=0.02, ge=0, le=1)


DEFAULT_SCALES: Dict[str, ScaleProfile] = {
    "small": ScaleProfile(
        name="Small",
        description="Quick test dataset (~4,000 records)",
        workspaces=2,
        products_per_workspace=10,
        variants_per_product=3,
        posts_per_workspace=20,
        conversations_per_workspace=50,
        orders_per_workspace=30,
        days_of_history=30,
        customers_per_workspace=200,
    ),
    "medium": ScaleProfile(
        name="Medium",
        description="Development dataset (~50,000 records)",
        workspaces=5,
        products_per_workspace=50,
        variants_per_product=4,
        posts_per_workspace=100,
        conversations_per_workspace=500,
        orders_per_workspace=200,
        days_of_history=90,
        customers_per_workspace=1000,
    ),
    "large": ScaleProfile(
        name="Large",
        description="Production-like dataset (~300,000 records)",
        workspaces=10,
        products_per_workspace=200,
        variants_per_product=5,
        posts_per_workspace=500,
        conversations_per_workspace=2000,
        orders_per_workspace=1000,
        days_of_history=180,
        customers_per_workspace=5000,
    ),
    "planning": ScaleProfile(
        name="Planning Optimized",
        description="Full year of history for planning and forecasting models",
        workspaces=3,
        products_per_workspace=100,
        variants_per_product=6,
        posts_per_workspace=200,
        conversations_per_workspace=1000,
        orders_per_workspace=500,
        days_of_history=365,
        customers_per_workspace=2000,
    ),
}

POST_TIERS: Dict[str, PerformanceTier] = {
    "viral": PerformanceTier(probability=0.03, multiplier=RateRange(min=5, max=15)),
    "highPerforming": PerformanceTier(probability=0.12, multiplier=RateRange(min=2, max=5)),
    "average": PerformanceTier(probability=0.50, multiplier=RateRange(min=0.7, max=1.5)),
    "underperforming": PerformanceTier(probability=0.25, multiplier=RateRange(min=0.3, max=0.7)),
    "flop": PerformanceTier(probability=0.10, multiplier=RateRange(min=0.05, max=0.3)),
}

PRODUCT_TIERS: Dict[str, PerformanceTier] = {
    "bestseller": PerformanceTier(probability=0.05, multiplier=RateRange(min=3, max=8)),
    "popular": PerformanceTier(probability=0.15, multiplier=RateRange(min=1.5, max=3)),
    "average": PerformanceTier(probability=0.50, multiplier=RateRange(min=0.5, max=1.5)),
    "slowMover": PerformanceTier(probability=0.20, multiplier=RateRange(min=0.2, max=0.5)),
    "deadStock": PerformanceTier(probability=0.10, multiplier=RateRange(min=0, max=0.2)),
}

CONVERSATION_STATES: List[str] = [
    "initial",
    "greeting_sent",
    "awaiting_response",
    "photo_requested",
    "awaiting_photo",
    "processing_tryon",
    "result_sent",
    "completed",
    "abandoned",
]


class SynthConfig(FrozenModel):
    """
    Complete static configuration for one generator.

    Built once and shared read-only by every stage. Use
    ``SynthConfig.from_dict`` to load overrides; validation errors are
    re-raised as ConfigurationError.
    """

    scales: Dict[str, ScaleProfile] = DEFAULT_SCALES
    funnel_rates: FunnelRates = FunnelRates()
    seasonality: Seasonality = Seasonality()
    engagement: EngagementPatterns = EngagementPatterns()
    devices: DevicePatterns = DevicePatterns()
    post_performance: Dict[str, PerformanceTier] = POST_TIERS
    product_performance: Dict[str, PerformanceTier] = PRODUCT_TIERS
    pricing: PricingRules = PricingRules()
    inventory: InventoryRules = InventoryRules()
    countries: List[Country] = [
        Country(code="US", weight=0.55, conversion_mult=1.0),
        Country(code="CA", weight=0.08, conversion_mult=0.95),
        Country(code="GB", weight=0.12, conversion_mult=0.90),
        Country(code="AU", weight=0.06, conversion_mult=0.85),
        Country(code="DE", weight=0.07, conversion_mult=0.88),
        Country(code="FR", weight=0.05, conversion_mult=0.85),
        Country(code="OTHER", weight=0.07, conversion_mult=0.70),
    ]
    categories: List[Category] = [
        Category(name="Dresses", weight=0.18, avg_price=8999),
        Category(name="Tops", weight=0.25, avg_price=4999),
        Category(name="Pants", weight=0.14, avg_price=6999),
        Category(name="Outerwear", weight=0.10, avg_price=14999),
        Category(name="Activewear", weight=0.12, avg_price=5999),
        Category(name="Swimwear", weight=0.05, avg_price=7999),
        Category(name="Accessories", weight=0.10, avg_price=3999),
        Category(name="Shoes", weight=0.06, avg_price=9999),
    ]
    sizes: List[str] = ["XS", "S", "M", "L", "XL", "XXL"]
    colors: List[str] = [
        "Black", "White", "Navy", "Gray", "Beige",
        "Red", "Pink", "Blue", "Green", "Brown",
    ]
    product_adjectives: List[str] = [
        "Classic", "Relaxed", "Tailored", "Oversized", "Cropped",
        "Vintage", "Essential", "Luxe", "Everyday", "Signature",
    ]
    materials: List[str] = ["cotton", "linen", "silk", "wool", "denim", "leather", "polyester"]
    conversation_states: List[str] = CONVERSATION_STATES
    weather_conditions: List[str] = ["sunny", "cloudy", "rainy", "snowy", "hot", "cold"]
    output: OutputOptions = OutputOptions()
    random_seed: Optional[int] = None

    @field_validator("scales", "post_performance", "product_performance")
    @classmethod
    def validate_not_empty(cls, v: Dict[str, Any]) -> Dict[str, Any]:
        if not v:
            raise ValueError("table must not be empty")
        return v

    @field_validator("countries", "categories", "sizes", "colors", "conversation_states")
    @classmethod
    def validate_list_not_empty(cls, v: List[Any]) -> List[Any]:
        if not v:
            raise ValueError("table must not be empty")
        return v

    @model_validator(mode="after")
    def check_weight_totals(self) -> "SynthConfig":
        for table_name, weights in (
            ("countries", [c.weight for c in self.countries]),
            ("categories", [c.weight for c in self.categories]),
            ("devices.distribution", list(self.devices.distribution.values())),
            ("engagement.hourly_weights", self.engagement.hourly_weights),
        ):
            if sum(weights) <= 0:
                raise ValueError(f"{table_name} weights sum to zero")
        for table_name, tiers in (
            ("post_performance", self.post_performance),
            ("product_performance", self.product_performance),
        ):
            total = sum(t.probability for t in tiers.values())
            if total > 1.0 + 1e-9:
                raise ValueError(f"{table_name} probabilities sum to {total:.3f} (> 1)")
        return self

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SynthConfig":
        """Build a config from plain data, raising ConfigurationError on bad tables"""
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid generator configuration: {e}") from e

    def get_scale(self, name: str) -> ScaleProfile:
        """Resolve a scale preset by name"""
        try:
            return self.scales[name]
        except KeyError:
            raise ConfigurationError(
                f"Unknown scale '{name}'. Available: {', '.join(self.scales)}"
            ) from None


@lru_cache()
def get_synth_config() -> SynthConfig:
    """
    Get the cached default generation tables.

    Returns:
        SynthConfig: Default static configuration
    """
    return SynthConfig()
