"""
Dataset Exporters

Write generated collections to CSV, JSON, Parquet and PostgreSQL scripts,
one subdirectory per format.
"""

import json
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Union

import polars as pl
import structlog

from ecom_synth.data.frames import to_frame
from ecom_synth.data.pipeline import Record
from ecom_synth.export import sql

logger = structlog.get_logger(__name__)


class ExportFormat(str, Enum):
    """Supported output formats"""
    CSV = "csv"
    JSON = "json"
    PARQUET = "parquet"
    SQL = "sql"
    ALL = "all"


def resolve_formats(formats: Iterable[Union[str, ExportFormat]]) -> List[ExportFormat]:
    """Expand ``all`` and drop duplicates, keeping first-seen order"""
    resolved: List[ExportFormat] = []
    for fmt in formats:
        fmt = ExportFormat(fmt)
        expanded = [f for f in ExportFormat if f is not ExportFormat.ALL] if fmt is ExportFormat.ALL else [fmt]
        for f in expanded:
            if f not in resolved:
                resolved.append(f)
    return resolved


def _strings_for_null_columns(df: pl.DataFrame) -> pl.DataFrame:
    null_columns = [name for name, dtype in df.schema.items() if dtype == pl.Null]
    if not null_columns:
        return df
    return df.with_columns(pl.col(name).cast(pl.String) for name in null_columns)


def _json_encode_lists(rows: Sequence[Record]) -> List[Record]:
    return [
        {key: json.dumps(value) if isinstance(value, (list, tuple)) else value for key, value in row.items()}
        for row in rows
    ]


class DatasetExporter:
    """
    Writes a generated dataset to disk.

    Example:
        exporter = DatasetExporter("./data")
        exporter.export(data, ["csv", "sql"])
    """

    def __init__(self, output_dir: Union[str, Path], table_order: Optional[Sequence[str]] = None):
        self.output_dir = Path(output_dir)
        self.table_order = list(table_order) if table_order else None

    def _ordered(self, data: Mapping[str, Sequence[Record]]) -> List[str]:
        names = [n for n in (self.table_order or []) if n in data]
        names += [n for n in data if n not in names]
        return [n for n in names if data[n]]

    def _directory(self, fmt: ExportFormat) -> Path:
        path = self.output_dir / fmt.value
        path.mkdir(parents=True, exist_ok=True)
        return path

    def _frame(self, rows: Sequence[Record]) -> pl.DataFrame:
        return _strings_for_null_columns(to_frame(list(rows)))

    def export(
        self,
        data: Mapping[str, Sequence[Record]],
        formats: Iterable[Union[str, ExportFormat]] = (ExportFormat.ALL,),
    ) -> Dict[ExportFormat, List[Path]]:
        """Export every non-empty collection in each requested format"""
        writers = {
            ExportFormat.CSV: self.write_csv,
            ExportFormat.JSON: self.write_json,
            ExportFormat.PARQUET: self.write_parquet,
            ExportFormat.SQL: self.write_sql,
        }
        return {fmt: writers[fmt](data) for fmt in resolve_formats(formats)}

    def write_csv(self, data: Mapping[str, Sequence[Record]]) -> List[Path]:
        """CSV per table; list values are JSON-encoded"""
        directory = self._directory(ExportFormat.CSV)
        written = []
        for name in self._ordered(data):
            path = directory / f"{name}.csv"
            self._frame(_json_encode_lists(data[name])).write_csv(path)
            logger.info("Wrote file", format="csv", table=name, records=len(data[name]), path=str(path))
            written.append(path)
        return written

    def write_json(self, data: Mapping[str, Sequence[Record]]) -> List[Path]:
        """Row-oriented JSON array per table"""
        directory = self._directory(ExportFormat.JSON)
        written = []
        for name in self._ordered(data):
            path = directory / f"{name}.json"
            self._frame(data[name]).write_json(path)
            logger.info("Wrote file", format="json", table=name, records=len(data[name]), path=str(path))
            written.append(path)
        return written

    def write_parquet(self, data: Mapping[str, Sequence[Record]]) -> List[Path]:
        directory = self._directory(ExportFormat.PARQUET)
        written = []
        for name in self._ordered(data):
            path = directory / f"{name}.parquet"
            self._frame(data[name]).write_parquet(path)
            logger.info("Wrote file", format="parquet", table=name, records=len(data[name]), path=str(path))
            written.append(path)
        return written

    def write_sql(self, data: Mapping[str, Sequence[Record]]) -> List[Path]:
        """
        One script per table plus all_data.sql.

        The combined script follows dependency order and runs in a single
        transaction.
        """
        directory = self._directory(ExportFormat.SQL)
        generated_at = datetime.now(timezone.utc)
        frames = [(name, self._frame(data[name])) for name in self._ordered(data)]
        written = []

        for name, df in frames:
            path = directory / f"{name}.sql"
            path.write_text(sql.table_script(name, df, generated_at), encoding="utf-8")
            logger.info("Wrote file", format="sql", table=name, records=df.height, path=str(path))
            written.append(path)

        combined = directory / "all_data.sql"
        combined.write_text(sql.combined_script(frames, generated_at), encoding="utf-8")
        logger.info("Wrote file", format="sql", table="all_data", tables=len(frames), path=str(combined))
        written.append(combined)
        return written
