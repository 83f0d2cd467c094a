"""
ecom-synth
Export Module
"""
from .writers import DatasetExporter, ExportFormat, resolve_formats

__all__ = ["DatasetExporter", "ExportFormat", "resolve_formats"]
