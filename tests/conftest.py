"""
Test Suite Configuration
"""
from datetime import datetime, timezone

import pytest
import polars as pl

from ecom_synth.config import Settings, ScaleProfile, SynthConfig, get_synth_config
from ecom_synth.data import Sampler, generate

REFERENCE_TIME = datetime(2026, 6, 15, 12, 0, tzinfo=timezone.utc)
SEED = 42


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """Create test settings"""
    return Settings(app_env="testing")


@pytest.fixture(scope="session")
def synth_config() -> SynthConfig:
    """Default generation tables"""
    return get_synth_config()


@pytest.fixture(scope="session")
def reference_time() -> datetime:
    """Fixed 'now' for every generated dataset"""
    return REFERENCE_TIME


@pytest.fixture
def sampler() -> Sampler:
    """Seeded sampler pinned to a fixed reference time"""
    return Sampler(seed=SEED, reference_time=REFERENCE_TIME)


@pytest.fixture(scope="session")
def tiny_scale() -> ScaleProfile:
    """Scale small enough for repeated full runs"""
    return ScaleProfile(
        name="Tiny",
        workspaces=2,
        products_per_workspace=4,
        variants_per_product=2,
        posts_per_workspace=6,
        conversations_per_workspace=12,
        orders_per_workspace=8,
        days_of_history=10,
        customers_per_workspace=25,
    )


@pytest.fixture(scope="session")
def small_dataset():
    """Seeded small-scale dataset shared across the session"""
    return generate("small", seed=SEED, reference_time=REFERENCE_TIME)


@pytest.fixture
def sample_orders_df() -> pl.DataFrame:
    """Create sample orders DataFrame for testing"""
    return pl.DataFrame({
        "id": ["ord-1", "ord-2", "ord-3"],
        "workspace_id": ["ws-1", "ws-1", "ws-2"],
        "order_number": [1000, 1001, 1000],
        "customer_id": ["a1b2c3d4e5f60718", "a1b2c3d4e5f60718", "ffeeddccbbaa9988"],
        "subtotal_cents": [10000, 5000, 2500],
        "tax_cents": [800, 400, 200],
        "shipping_cents": [0, 500, 0],
        "discount_cents": [1000, 0, 0],
        "total_price_cents": [9800, 5900, 2700],
        "line_items_count": [2, 1, 1],
        "financial_status": ["paid", "pending", "refunded"],
    })
