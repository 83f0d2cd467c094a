"""
Record -> DataFrame conversion shared by validation and export.
"""

from typing import Dict, List, Mapping

import polars as pl

from ecom_synth.data.pipeline import Record


def to_frame(rows: List[Record]) -> pl.DataFrame:
    """
    Build a DataFrame from plain records.

    The schema is inferred over every row because optional columns are
    often null for long stretches.
    """
    if not rows:
        return pl.DataFrame()
    return pl.DataFrame(rows, infer_schema_length=None)


def to_frames(data: Mapping[str, List[Record]]) -> Dict[str, pl.DataFrame]:
    return {name: to_frame(rows) for name, rows in data.items()}
