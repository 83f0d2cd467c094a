"""
Data Validation Module

Rule-based quality checks over generated collections.

Features:
- Null and uniqueness checks
- Range, enum and pattern checks
- Referential integrity between collections
- Business rules (funnel monotonicity, order totals, inventory ledger,
  session ordering)
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

import polars as pl
import structlog

from ecom_synth.config.tables import SynthConfig, get_synth_config
from ecom_synth.data.frames import to_frames
from ecom_synth.data.journeys import FUNNEL_STAGES
from ecom_synth.data.metrics import FUNNEL_CHAIN
from ecom_synth.data.pipeline import Record

logger = structlog.get_logger(__name__)


class ValidationSeverity(str, Enum):
    """Severity levels for validation failures"""
    ERROR = "error"  # Critical - dataset is unusable
    WARNING = "warning"  # Reported, dataset still usable
    INFO = "info"


class ValidationStatus(str, Enum):
    """Overall validation status"""
    PASSED = "passed"
    FAILED = "failed"
    PARTIAL = "partial"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class ValidationCheck:
    """Single validation check result"""
    name: str
    passed: bool
    severity: ValidationSeverity
    message: str
    details: Optional[Dict[str, Any]] = None
    failed_rows: int = 0
    total_rows: int = 0


@dataclass
class ValidationResult:
    """Complete validation suite result"""
    status: ValidationStatus
    total_checks: int
    passed_checks: int
    failed_checks: int
    warning_count: int
    checks: List[ValidationCheck] = field(default_factory=list)
    started_at: datetime = field(default_factory=_utcnow)
    completed_at: Optional[datetime] = None

    @property
    def success_rate(self) -> float:
        """Percentage of passed checks"""
        if self.total_checks == 0:
            return 100.0
        return (self.passed_checks / self.total_checks) * 100

    @property
    def failures(self) -> List[ValidationCheck]:
        return [c for c in self.checks if not c.passed]


class DataValidator:
    """
    Data validator with a chainable check suite.

    Example:
        validator = DataValidator(name="orders")
        validator.add_not_null_check("id")
        validator.add_range_check("total_price_cents", min_value=0)
        result = validator.validate(df)
    """

    def __init__(self, name: str = "dataset", strict_mode: bool = False):
        self.name = name
        self.strict_mode = strict_mode  # Fail on any warning
        self._checks: List[Callable[[pl.DataFrame], ValidationCheck]] = []

    def reset(self) -> None:
        self._checks = []

    @property
    def check_count(self) -> int:
        return len(self._checks)

    @staticmethod
    def _missing(name: str, column: str, severity: ValidationSeverity) -> ValidationCheck:
        return ValidationCheck(
            name=name,
            passed=False,
            severity=severity,
            message=f"Column '{column}' not found",
        )

    def add_not_null_check(
        self,
        column: str,
        severity: ValidationSeverity = ValidationSeverity.ERROR,
    ) -> "DataValidator":
        """Add check for null values in column"""
        def check(df: pl.DataFrame) -> ValidationCheck:
            name = f"not_null_{column}"
            if column not in df.columns:
                return self._missing(name, column, severity)

            null_count = df[column].null_count()
            total = len(df)
            passed = null_count == 0

            return ValidationCheck(
                name=name,
                passed=passed,
                severity=severity,
                message=f"Column '{column}' has {null_count} null values" if not passed else f"Column '{column}' has no null values",
                details={"null_count": null_count, "null_percentage": (null_count / total) * 100 if total > 0 else 0},
                failed_rows=null_count,
                total_rows=total,
            )

        self._checks.append(check)
        return self

    def add_unique_check(
        self,
        columns,
        severity: ValidationSeverity = ValidationSeverity.ERROR,
    ) -> "DataValidator":
        """Add uniqueness check over one column or a composite key"""
        keys = [columns] if isinstance(columns, str) else list(columns)
        label = "_".join(keys)

        def check(df: pl.DataFrame) -> ValidationCheck:
            name = f"unique_{label}"
            missing = [c for c in keys if c not in df.columns]
            if missing:
                return self._missing(name, missing[0], severity)

            total = len(df)
            unique_count = df.select(keys).unique().height
            duplicate_count = total - unique_count
            passed = duplicate_count == 0

            return ValidationCheck(
                name=name,
                passed=passed,
                severity=severity,
                message=f"Key ({', '.join(keys)}) has {duplicate_count} duplicate values" if not passed else f"Key ({', '.join(keys)}) values are unique",
                details={"unique_count": unique_count, "duplicate_count": duplicate_count},
                failed_rows=duplicate_count,
                total_rows=total,
            )

        self._checks.append(check)
        return self

    def add_range_check(
        self,
        column: str,
        min_value: Optional[float] = None,
        max_value: Optional[float] = None,
        severity: ValidationSeverity = ValidationSeverity.ERROR,
    ) -> "DataValidator":
        """Add check for values within specified range (nulls are ignored)"""
        def check(df: pl.DataFrame) -> ValidationCheck:
            name = f"range_{column}"
            if column not in df.columns:
                return self._missing(name, column, severity)

            conditions = []
            if min_value is not None:
                conditions.append(pl.col(column) < min_value)
            if max_value is not None:
                conditions.append(pl.col(column) > max_value)

            if not conditions:
                return ValidationCheck(
                    name=name,
                    passed=True,
                    severity=severity,
                    message="No range specified",
                )

            combined = conditions[0]
            for cond in conditions[1:]:
                combined = combined | cond

            out_of_range = df.filter(combined).height
            total = len(df)
            passed = out_of_range == 0

            return ValidationCheck(
                name=name,
                passed=passed,
                severity=severity,
                message=f"Column '{column}' has {out_of_range} values outside range [{min_value}, {max_value}]" if not passed else "All values in range",
                details={"min": min_value, "max": max_value, "out_of_range_count": out_of_range},
                failed_rows=out_of_range,
                total_rows=total,
            )

        self._checks.append(check)
        return self

    def add_positive_check(
        self,
        column: str,
        allow_zero: bool = True,
        severity: ValidationSeverity = ValidationSeverity.ERROR,
    ) -> "DataValidator":
        """Add check for positive values"""
        min_val = 0 if allow_zero else 0.0001
        return self.add_range_check(column, min_value=min_val, severity=severity)

    def add_pattern_check(
        self,
        column: str,
        pattern: str,
        severity: ValidationSeverity = ValidationSeverity.ERROR,
    ) -> "DataValidator":
        """Add regex pattern check"""
        def check(df: pl.DataFrame) -> ValidationCheck:
            name = f"pattern_{column}"
            if column not in df.columns:
                return self._missing(name, column, severity)

            non_null = df.filter(pl.col(column).is_not_null())
            non_matching = non_null.filter(~pl.col(column).cast(pl.String).str.contains(pattern)).height
            passed = non_matching == 0

            return ValidationCheck(
                name=name,
                passed=passed,
                severity=severity,
                message=f"Column '{column}' has {non_matching} values not matching pattern" if not passed else "All values match pattern",
                details={"pattern": pattern, "non_matching_count": non_matching},
                failed_rows=non_matching,
                total_rows=non_null.height,
            )

        self._checks.append(check)
        return self

    def add_enum_check(
        self,
        column: str,
        allowed_values: List[Any],
        severity: ValidationSeverity = ValidationSeverity.ERROR,
    ) -> "DataValidator":
        """Add check for values in allowed set"""
        def check(df: pl.DataFrame) -> ValidationCheck:
            name = f"enum_{column}"
            if column not in df.columns:
                return self._missing(name, column, severity)

            values = df[column].drop_nulls().to_list()
            invalid = sum(1 for v in values if v not in allowed_values)
            passed = invalid == 0

            return ValidationCheck(
                name=name,
                passed=passed,
                severity=severity,
                message=f"Column '{column}' has {invalid} invalid values" if not passed else "All values are valid",
                details={"allowed_values": list(allowed_values), "invalid_count": invalid},
                failed_rows=invalid,
                total_rows=len(df),
            )

        self._checks.append(check)
        return self

    def add_custom_check(
        self,
        name: str,
        check_func: Callable[[pl.DataFrame], int],
        message_on_fail: str,
        severity: ValidationSeverity = ValidationSeverity.ERROR,
    ) -> "DataValidator":
        """
        Add custom validation check.

        ``check_func`` returns the number of offending rows; 0 passes.
        """
        def check(df: pl.DataFrame) -> ValidationCheck:
            try:
                failed = int(check_func(df))
            except (pl.exceptions.PolarsError, KeyError, TypeError, ValueError) as e:
                return ValidationCheck(
                    name=name,
                    passed=False,
                    severity=severity,
                    message=f"Check failed with error: {e}",
                    total_rows=len(df),
                )
            return ValidationCheck(
                name=name,
                passed=failed == 0,
                severity=severity,
                message="Check passed" if failed == 0 else f"{message_on_fail} ({failed} rows)",
                failed_rows=failed,
                total_rows=len(df),
            )

        self._checks.append(check)
        return self

    def add_referential_integrity_check(
        self,
        column: str,
        reference_df: pl.DataFrame,
        reference_column: str = "id",
        severity: ValidationSeverity = ValidationSeverity.ERROR,
    ) -> "DataValidator":
        """Add referential integrity check; null references are allowed"""
        def check(df: pl.DataFrame) -> ValidationCheck:
            name = f"ref_integrity_{column}"
            if column not in df.columns:
                return self._missing(name, column, severity)

            ref_values = (
                set(reference_df[reference_column].to_list())
                if reference_column in reference_df.columns
                else set()
            )
            orphans = sum(1 for v in df[column].drop_nulls().to_list() if v not in ref_values)
            total = len(df)
            passed = orphans == 0

            return ValidationCheck(
                name=name,
                passed=passed,
                severity=severity,
                message=f"Column '{column}' has {orphans} orphan records" if not passed else "Referential integrity maintained",
                details={"orphan_count": orphans},
                failed_rows=orphans,
                total_rows=total,
            )

        self._checks.append(check)
        return self

    def validate(self, df: pl.DataFrame) -> ValidationResult:
        """
        Run all validation checks on DataFrame.

        Args:
            df: DataFrame to validate

        Returns:
            ValidationResult with all check results
        """
        started_at = _utcnow()
        results = []

        logger.debug("Running validation checks", collection=self.name, checks=len(self._checks), rows=len(df))

        for check_func in self._checks:
            result = check_func(df)
            results.append(result)

            if not result.passed:
                logger.warning(
                    f"Validation failed: {result.name}",
                    collection=self.name,
                    message=result.message,
                    severity=result.severity.value,
                )

        passed_checks = sum(1 for r in results if r.passed)
        failed_checks = sum(1 for r in results if not r.passed and r.severity == ValidationSeverity.ERROR)
        warning_count = sum(1 for r in results if not r.passed and r.severity == ValidationSeverity.WARNING)

        if failed_checks > 0:
            status = ValidationStatus.FAILED
        elif warning_count > 0 and self.strict_mode:
            status = ValidationStatus.FAILED
        elif warning_count > 0:
            status = ValidationStatus.PARTIAL
        else:
            status = ValidationStatus.PASSED

        return ValidationResult(
            status=status,
            total_checks=len(results),
            passed_checks=passed_checks,
            failed_checks=failed_checks,
            warning_count=warning_count,
            checks=results,
            started_at=started_at,
            completed_at=_utcnow(),
        )


# =============================================================================
# BUSINESS RULES
# =============================================================================

CONVERSION_RATE_COLUMNS = [
    "trigger_to_dm_rate",
    "dm_to_photo_rate",
    "photo_to_success_rate",
    "overall_conversion_rate",
]


def funnel_violations(df: pl.DataFrame) -> int:
    """Bindings where a later funnel stage exceeds the stage before it"""
    broken = pl.lit(False)
    for upper, lower in zip(FUNNEL_CHAIN, FUNNEL_CHAIN[1:]):
        broken = broken | (pl.col(lower) > pl.col(upper))
    return df.filter(broken).height


def order_total_violations(df: pl.DataFrame) -> int:
    expected = (
        pl.col("subtotal_cents") + pl.col("tax_cents") + pl.col("shipping_cents") - pl.col("discount_cents")
    )
    return df.filter(pl.col("total_price_cents") != expected).height


def ledger_violations(df: pl.DataFrame) -> int:
    """Ledger rows whose change does not match the quantities, or is zero"""
    return df.filter(
        (pl.col("change_amount") != pl.col("new_quantity") - pl.col("previous_quantity"))
        | (pl.col("change_amount") == 0)
    ).height


def session_boundary_violations(df: pl.DataFrame) -> int:
    """Sessions without exactly one first and one last event"""
    counts = df.group_by("session_id").agg(
        pl.col("is_session_first_event").sum().alias("firsts"),
        pl.col("is_session_last_event").sum().alias("lasts"),
    )
    return counts.filter((pl.col("firsts") != 1) | (pl.col("lasts") != 1)).height


def session_order_violations(df: pl.DataFrame) -> int:
    """Events earlier than the previous event of the same session"""
    ordered = df.sort(["session_id", "session_event_number"]).with_columns(
        pl.col("event_timestamp").diff().over("session_id").alias("gap")
    )
    return ordered.filter(pl.col("gap") < pl.duration(milliseconds=0)).height


def variant_stock_drift(products: pl.DataFrame, tolerance_per_variant: int = 6) -> Callable[[pl.DataFrame], int]:
    """
    Products whose variant stock sum drifts from total_inventory by more
    than the per-variant jitter allows.
    """
    def check(variants: pl.DataFrame) -> int:
        sums = variants.group_by("product_id").agg(
            pl.col("inventory_quantity").sum().alias("variant_stock"),
            pl.len().alias("variant_count"),
        )
        joined = sums.join(
            products.select(pl.col("id").alias("product_id"), "total_inventory"),
            on="product_id",
            how="inner",
        )
        drift = (pl.col("variant_stock") - pl.col("total_inventory")).abs()
        return joined.filter(drift > pl.col("variant_count") * tolerance_per_variant).height

    return check


# =============================================================================
# COLLECTION VALIDATORS
# =============================================================================

Frames = Mapping[str, pl.DataFrame]


def _frame(frames: Frames, name: str) -> pl.DataFrame:
    return frames.get(name, pl.DataFrame())


def create_workspaces_validator(frames: Frames, config: SynthConfig) -> DataValidator:
    return (
        DataValidator("workspaces")
        .add_not_null_check("id")
        .add_unique_check("id")
        .add_not_null_check("name")
        .add_unique_check("slug", severity=ValidationSeverity.WARNING)
    )


def create_accounts_validator(frames: Frames, config: SynthConfig) -> DataValidator:
    return (
        DataValidator("accounts")
        .add_unique_check("id")
        .add_unique_check("workspace_id")
        .add_referential_integrity_check("workspace_id", _frame(frames, "workspaces"))
        .add_pattern_check("platform_username", r"^@")
    )


def create_products_validator(frames: Frames, config: SynthConfig) -> DataValidator:
    return (
        DataValidator("products")
        .add_unique_check("id")
        .add_not_null_check("title")
        .add_referential_integrity_check("workspace_id", _frame(frames, "workspaces"))
        .add_referential_integrity_check("account_id", _frame(frames, "accounts"))
        .add_positive_check("price_cents", allow_zero=False)
        .add_range_check("total_inventory", min_value=0, max_value=config.inventory.max_stock)
        .add_enum_check("product_type", [c.name for c in config.categories])
        .add_custom_check(
            "compare_at_above_price",
            lambda df: df.filter(pl.col("compare_at_price_cents") < pl.col("price_cents")).height,
            "Compare-at price below selling price",
            severity=ValidationSeverity.WARNING,
        )
    )


def create_product_variants_validator(frames: Frames, config: SynthConfig) -> DataValidator:
    products = _frame(frames, "products")
    return (
        DataValidator("product_variants")
        .add_unique_check("id")
        .add_referential_integrity_check("product_id", products)
        .add_range_check("inventory_quantity", min_value=0, max_value=config.inventory.max_stock)
        .add_enum_check("size", list(config.sizes))
        .add_pattern_check("sku", r"^[A-Z]{3}-\d{4}-[A-E]$")
        .add_custom_check(
            "variant_stock_matches_product",
            variant_stock_drift(products),
            "Variant stock drifts from product total_inventory",
            severity=ValidationSeverity.WARNING,
        )
    )


def create_inventory_history_validator(frames: Frames, config: SynthConfig) -> DataValidator:
    max_stock = config.inventory.max_stock
    return (
        DataValidator("inventory_history")
        .add_unique_check("id")
        .add_referential_integrity_check("variant_id", _frame(frames, "product_variants"))
        .add_referential_integrity_check("product_id", _frame(frames, "products"))
        .add_range_check("previous_quantity", min_value=0, max_value=max_stock)
        .add_range_check("new_quantity", min_value=0, max_value=max_stock)
        .add_enum_check("change_source", ["sale", "restock", "adjustment", "return"])
        .add_custom_check("ledger_consistency", ledger_violations, "Ledger change does not match quantities")
    )


def create_social_posts_validator(frames: Frames, config: SynthConfig) -> DataValidator:
    return (
        DataValidator("social_posts")
        .add_unique_check("id")
        .add_referential_integrity_check("workspace_id", _frame(frames, "workspaces"))
        .add_referential_integrity_check("account_id", _frame(frames, "accounts"))
        .add_referential_integrity_check("product_id", _frame(frames, "products"))
        .add_enum_check("media_type", ["IMAGE", "VIDEO", "CAROUSEL"])
        .add_pattern_check("permalink", r"^https://www\.instagram\.com/p/[A-Za-z0-9]{11}/$")
    )


def create_post_metrics_validator(frames: Frames, config: SynthConfig) -> DataValidator:
    validator = (
        DataValidator("post_metrics")
        .add_unique_check("id")
        .add_referential_integrity_check("post_id", _frame(frames, "social_posts"))
        .add_range_check("metric_hour", min_value=0, max_value=23)
        .add_range_check("engagement_rate", min_value=0, max_value=100)
    )
    for column in ("impressions", "reach", "likes", "comments", "shares", "saves"):
        validator.add_positive_check(column)
    return validator


def create_garment_bindings_validator(frames: Frames, config: SynthConfig) -> DataValidator:
    validator = (
        DataValidator("garment_bindings")
        .add_unique_check("id")
        .add_unique_check("post_id")
        .add_referential_integrity_check("post_id", _frame(frames, "social_posts"))
        .add_referential_integrity_check("product_id", _frame(frames, "products"))
        .add_positive_check("total_triggers")
        .add_custom_check("funnel_monotonic", funnel_violations, "Funnel stage exceeds its predecessor")
    )
    for column in CONVERSION_RATE_COLUMNS:
        validator.add_range_check(column, min_value=0, max_value=100)
    return validator


def create_conversations_validator(frames: Frames, config: SynthConfig) -> DataValidator:
    return (
        DataValidator("conversations")
        .add_unique_check("id")
        .add_referential_integrity_check("workspace_id", _frame(frames, "workspaces"))
        .add_referential_integrity_check("account_id", _frame(frames, "accounts"))
        .add_enum_check("conversation_state", list(config.conversation_states))
        .add_pattern_check("participant_id", r"^[a-f0-9]{16}$")
        .add_custom_check(
            "purchase_implies_tryon",
            lambda df: df.filter(pl.col("resulted_in_purchase") & ~pl.col("resulted_in_tryon")).height,
            "Purchase recorded without a try-on",
        )
        .add_custom_check(
            "completed_has_tryon",
            lambda df: df.filter(
                (pl.col("conversation_state") == "completed") & ~pl.col("resulted_in_tryon")
            ).height,
            "Completed conversation without a try-on",
        )
    )


def create_orders_validator(frames: Frames, config: SynthConfig) -> DataValidator:
    return (
        DataValidator("orders")
        .add_not_null_check("id")
        .add_unique_check("id")
        .add_not_null_check("customer_id")
        .add_unique_check(["workspace_id", "order_number"])
        .add_referential_integrity_check("workspace_id", _frame(frames, "workspaces"))
        .add_referential_integrity_check("conversation_id", _frame(frames, "conversations"))
        .add_referential_integrity_check("binding_id", _frame(frames, "garment_bindings"))
        .add_referential_integrity_check("product_id", _frame(frames, "products"))
        .add_positive_check("total_price_cents")
        .add_positive_check("line_items_count", allow_zero=False)
        .add_range_check("discount_cents", min_value=0)
        .add_enum_check("financial_status", ["paid", "pending", "refunded"])
        .add_custom_check("order_total_identity", order_total_violations, "Order total does not add up")
    )


def create_customer_journeys_validator(frames: Frames, config: SynthConfig) -> DataValidator:
    return (
        DataValidator("customer_journeys")
        .add_unique_check("id")
        .add_referential_integrity_check("workspace_id", _frame(frames, "workspaces"))
        .add_referential_integrity_check("post_id", _frame(frames, "social_posts"))
        .add_referential_integrity_check("product_id", _frame(frames, "products"))
        .add_referential_integrity_check("conversation_id", _frame(frames, "conversations"))
        .add_enum_check("event_type", list(FUNNEL_STAGES))
        .add_enum_check("device_type", list(config.devices.distribution))
        .add_range_check("funnel_stage", min_value=1, max_value=5)
        .add_custom_check("session_boundaries", session_boundary_violations, "Session lacks a single first/last event")
        .add_custom_check("session_time_order", session_order_violations, "Session events out of time order")
    )


def create_daily_aggregates_validator(frames: Frames, config: SynthConfig) -> DataValidator:
    return (
        DataValidator("daily_aggregates")
        .add_unique_check("id")
        .add_unique_check(["workspace_id", "product_id", "metric_date"])
        .add_referential_integrity_check("workspace_id", _frame(frames, "workspaces"))
        .add_referential_integrity_check("product_id", _frame(frames, "products"))
        .add_range_check("day_of_week", min_value=0, max_value=6)
        .add_positive_check("impressions")
        .add_positive_check("revenue_cents")
        .add_enum_check("weather_condition", list(config.weather_conditions))
        .add_custom_check(
            "weekend_flag",
            lambda df: df.filter(pl.col("is_weekend") != (pl.col("day_of_week") >= 5)).height,
            "is_weekend disagrees with day_of_week",
        )
    )


def create_customer_profiles_validator(frames: Frames, config: SynthConfig) -> DataValidator:
    return (
        DataValidator("customer_profiles")
        .add_unique_check("id")
        .add_unique_check("customer_id")
        .add_referential_integrity_check("workspace_id", _frame(frames, "workspaces"))
        .add_enum_check("customer_segment", ["high_value", "regular", "churned", "at_risk", "casual"])
        .add_range_check("churn_probability", min_value=0, max_value=1)
        .add_range_check("next_purchase_probability", min_value=0, max_value=1)
        .add_range_check("preferred_day_of_week", min_value=0, max_value=6)
        .add_positive_check("predicted_ltv_cents")
    )


def create_demand_forecasts_validator(frames: Frames, config: SynthConfig) -> DataValidator:
    return (
        DataValidator("demand_forecasts")
        .add_unique_check("id")
        .add_unique_check(["product_id", "forecast_horizon_days"])
        .add_referential_integrity_check("product_id", _frame(frames, "products"))
        .add_enum_check("forecast_horizon_days", [7, 14, 30])
        .add_range_check("prediction_confidence", min_value=0, max_value=1)
        .add_custom_check(
            "confidence_interval_brackets_prediction",
            lambda df: df.filter(
                (pl.col("confidence_interval_low") > pl.col("predicted_demand"))
                | (pl.col("confidence_interval_high") < pl.col("predicted_demand"))
            ).height,
            "Prediction outside its confidence interval",
        )
        .add_custom_check(
            "actuals_unset",
            lambda df: df.height - df["actual_demand"].null_count(),
            "actual_demand populated before the forecast date",
        )
    )


VALIDATOR_FACTORIES: Dict[str, Callable[[Frames, SynthConfig], DataValidator]] = {
    "workspaces": create_workspaces_validator,
    "accounts": create_accounts_validator,
    "products": create_products_validator,
    "product_variants": create_product_variants_validator,
    "inventory_history": create_inventory_history_validator,
    "social_posts": create_social_posts_validator,
    "post_metrics": create_post_metrics_validator,
    "garment_bindings": create_garment_bindings_validator,
    "conversations": create_conversations_validator,
    "orders": create_orders_validator,
    "customer_journeys": create_customer_journeys_validator,
    "daily_aggregates": create_daily_aggregates_validator,
    "customer_profiles": create_customer_profiles_validator,
    "demand_forecasts": create_demand_forecasts_validator,
}


# =============================================================================
# DATASET REPORT
# =============================================================================

@dataclass
class DatasetValidationReport:
    """Validation results for every collection of one dataset"""
    results: Dict[str, ValidationResult] = field(default_factory=dict)
    skipped: List[str] = field(default_factory=list)

    @property
    def status(self) -> ValidationStatus:
        statuses = {r.status for r in self.results.values()}
        if ValidationStatus.FAILED in statuses:
            return ValidationStatus.FAILED
        if ValidationStatus.PARTIAL in statuses:
            return ValidationStatus.PARTIAL
        return ValidationStatus.PASSED

    @property
    def passed(self) -> bool:
        """True unless an error-severity check failed"""
        return self.status != ValidationStatus.FAILED

    @property
    def failed_collections(self) -> List[str]:
        return [name for name, r in self.results.items() if r.status == ValidationStatus.FAILED]

    def summary(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "collections": {
                name: {
                    "status": r.status.value,
                    "checks": r.total_checks,
                    "failed": r.failed_checks,
                    "warnings": r.warning_count,
                }
                for name, r in self.results.items()
            },
            "skipped": list(self.skipped),
        }


def validate_dataset(
    data: Mapping[str, Sequence[Record]],
    config: Optional[SynthConfig] = None,
    strict_mode: bool = False,
) -> DatasetValidationReport:
    """
    Validate every known collection of a generated dataset.

    Empty collections are skipped; collections with no validator are
    ignored.
    """
    config = config or get_synth_config()
    frames = to_frames({name: list(rows) for name, rows in data.items()})
    report = DatasetValidationReport()

    for name, factory in VALIDATOR_FACTORIES.items():
        df = frames.get(name)
        if df is None or df.is_empty():
            report.skipped.append(name)
            continue
        validator = factory(frames, config)
        validator.strict_mode = strict_mode
        report.results[name] = validator.validate(df)

    logger.info(
        f"Validation complete: {report.status.value}",
        collections=len(report.results),
        skipped=len(report.skipped),
        failed=report.failed_collections,
    )
    return report
