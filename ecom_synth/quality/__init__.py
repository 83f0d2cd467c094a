"""
Data Quality Module
"""
from .validators import (
    DatasetValidationReport,
    DataValidator,
    ValidationResult,
    ValidationSeverity,
    ValidationStatus,
    validate_dataset,
)

__all__ = [
    "DatasetValidationReport",
    "DataValidator",
    "ValidationResult",
    "ValidationSeverity",
    "ValidationStatus",
    "validate_dataset",
]
