"""
PostgreSQL Script Writer

CREATE TABLE statements inferred from polars dtypes plus batched INSERTs.
"""

from datetime import date, datetime
from typing import Any, Iterable, List

import polars as pl

BATCH_SIZE = 100


def postgres_type(dtype: pl.DataType) -> str:
    """Map a polars dtype onto a PostgreSQL column type"""
    if isinstance(dtype, pl.Datetime):
        return "TIMESTAMPTZ" if dtype.time_zone else "TIMESTAMP"
    if isinstance(dtype, pl.List):
        return f"{postgres_type(dtype.inner)}[]"
    if dtype == pl.Date:
        return "DATE"
    if dtype == pl.Boolean:
        return "BOOLEAN"
    if dtype in (pl.Int8, pl.Int16, pl.Int32, pl.UInt8, pl.UInt16):
        return "INTEGER"
    if dtype in (pl.Int64, pl.UInt32, pl.UInt64):
        return "BIGINT"
    if dtype in (pl.Float32, pl.Float64):
        return "DOUBLE PRECISION"
    return "TEXT"


def sql_literal(value: Any) -> str:
    """Render one Python value as a PostgreSQL literal"""
    if value is None:
        return "NULL"
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, (int, float)):
        return repr(value)
    if isinstance(value, (datetime, date)):
        return f"'{value.isoformat()}'"
    if isinstance(value, (list, tuple)):
        if not value:
            return "ARRAY[]::TEXT[]"
        return f"ARRAY[{', '.join(sql_literal(v) for v in value)}]"
    escaped = str(value).replace("'", "''")
    return f"'{escaped}'"


def create_table_statement(table: str, df: pl.DataFrame) -> str:
    columns = []
    for name, dtype in df.schema.items():
        definition = f"  {name} {postgres_type(dtype)}"
        if name == "id":
            definition += " PRIMARY KEY"
        columns.append(definition)
    return f"CREATE TABLE IF NOT EXISTS {table} (\n" + ",\n".join(columns) + "\n);"


def insert_statements(table: str, df: pl.DataFrame, batch_size: int = BATCH_SIZE) -> Iterable[str]:
    """INSERT statements of at most ``batch_size`` rows each"""
    column_list = ", ".join(df.columns)
    for offset in range(0, df.height, batch_size):
        batch = df.slice(offset, batch_size)
        rows = [
            "  (" + ", ".join(sql_literal(v) for v in row) + ")"
            for row in batch.iter_rows()
        ]
        yield f"INSERT INTO {table} ({column_list})\nVALUES\n" + ",\n".join(rows) + ";"


def table_script(table: str, df: pl.DataFrame, generated_at: datetime) -> str:
    parts: List[str] = [
        "-- Generated by ecom-synth",
        f"-- Table: {table}",
        f"-- Records: {df.height}",
        f"-- Generated at: {generated_at.isoformat()}",
        "",
        create_table_statement(table, df),
        "",
    ]
    for statement in insert_statements(table, df):
        parts.extend([statement, ""])
    return "\n".join(parts)


def combined_script(tables: Iterable[tuple], generated_at: datetime) -> str:
    """Every (name, frame) pair in order inside a single transaction"""
    parts: List[str] = [
        "-- ecom-synth - Complete Dataset",
        f"-- Generated at: {generated_at.isoformat()}",
        "",
        "BEGIN;",
        "",
    ]
    for table, df in tables:
        parts.append(f"-- {table} ({df.height} records)")
        parts.append(create_table_statement(table, df))
        parts.append("")
        for statement in insert_statements(table, df):
            parts.extend([statement, ""])
    parts.extend(["COMMIT;", ""])
    return "\n".join(parts)
