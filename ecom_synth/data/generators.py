"""
Synthetic Data Generator

Builds the complete social-selling funnel dataset:
- Workspaces, accounts, products, variants and the inventory ledger
- Instagram posts, daily post metrics and garment bindings
- DM conversations and orders
- Customer journey events
- Daily aggregates, customer profiles and demand forecasts
"""

import time
from datetime import datetime
from typing import Dict, List, Optional, Union

import structlog

from ecom_synth.config.logging import run_context
from ecom_synth.config.tables import ScaleProfile, SynthConfig, get_synth_config
from ecom_synth.data import analytics, catalog, commerce, journeys, social
from ecom_synth.data.pipeline import Pipeline, Record, Stage, StageResult, run_pipeline
from ecom_synth.data.sampling import Sampler

logger = structlog.get_logger(__name__)

Dataset = Dict[str, List[Record]]


def default_stages() -> List[Stage]:
    """Every generation stage, in declaration order"""
    return [
        *catalog.STAGES,
        *social.STAGES,
        *commerce.STAGES,
        *journeys.STAGES,
        *analytics.STAGES,
    ]


# =============================================================================
# MAIN GENERATOR
# =============================================================================

class DataGenerator:
    """
    Main data generator orchestrator.

    Example:
        generator = DataGenerator(scale="small", seed=42)
        data = generator.generate_all()
        print(generator.summary())
    """

    def __init__(
        self,
        scale: Union[str, ScaleProfile] = "medium",
        config: Optional[SynthConfig] = None,
        seed: Optional[int] = None,
        reference_time: Optional[datetime] = None,
    ):
        self.config = config or get_synth_config()
        self.scale = scale if isinstance(scale, ScaleProfile) else self.config.get_scale(scale)
        self.seed = seed if seed is not None else self.config.random_seed
        self.reference_time = reference_time
        self.pipeline = Pipeline(default_stages())
        self.data: Dataset = {}

    @property
    def table_order(self) -> List[str]:
        """Collection names in dependency order"""
        return self.pipeline.collection_names

    def generate_all(self) -> Dataset:
        """Generate the complete dataset in one forward pass"""
        sampler = Sampler(seed=self.seed, reference_time=self.reference_time)
        with run_context(seed=self.seed, scale=self.scale.name):
            logger.info("Starting data generation", stages=len(self.pipeline.order))
            started = time.perf_counter()

            data = run_pipeline(
                self.pipeline,
                self.config,
                self.scale,
                sampler,
                on_stage_complete=self._log_stage,
            )
            self.data = {name: data[name] for name in self.table_order}

            logger.info(
                "Data generation complete",
                total_records=sum(len(rows) for rows in self.data.values()),
                duration_seconds=round(time.perf_counter() - started, 2),
            )
        return self.data

    @staticmethod
    def _log_stage(stage: Stage, result: StageResult) -> None:
        logger.info(
            "Stage complete",
            stage=stage.name,
            records={name: len(rows) for name, rows in result.collections.items()},
        )

    def summary(self) -> Dict[str, int]:
        """Row count per collection of the last run"""
        return {name: len(rows) for name, rows in self.data.items()}


def generate(
    scale: Union[str, ScaleProfile] = "medium",
    *,
    config: Optional[SynthConfig] = None,
    seed: Optional[int] = None,
    reference_time: Optional[datetime] = None,
) -> Dataset:
    """Generate a dataset without keeping the generator around"""
    return DataGenerator(scale, config=config, seed=seed, reference_time=reference_time).generate_all()
