"""
Unit Tests - Dataset Export
"""
import json
from datetime import date, datetime, timezone

import pytest
import polars as pl

from ecom_synth.export import DatasetExporter, ExportFormat, resolve_formats
from ecom_synth.export.sql import (
    combined_script,
    create_table_statement,
    insert_statements,
    postgres_type,
    sql_literal,
)

GENERATED_AT = datetime(2026, 6, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def mini_dataset():
    """Two small tables and one empty collection"""
    created = datetime(2026, 6, 1, 9, 30, tzinfo=timezone.utc)
    return {
        "workspaces": [
            {"id": "ws-1", "name": "O'Neil Apparel", "created_at": created},
            {"id": "ws-2", "name": "Northwind", "created_at": created},
        ],
        "products": [
            {
                "id": "p-1",
                "workspace_id": "ws-1",
                "tags": ["dresses", "linen", "new"],
                "price_cents": 7999,
                "compare_at_price_cents": None,
            },
        ],
        "orders": [],
    }


class TestResolveFormats:
    """Tests for format selection"""

    def test_all_expands(self):
        """Test 'all' expands to every concrete format"""
        assert resolve_formats(["all"]) == [
            ExportFormat.CSV,
            ExportFormat.JSON,
            ExportFormat.PARQUET,
            ExportFormat.SQL,
        ]

    def test_duplicates_dropped(self):
        """Test repeated formats are written once"""
        assert resolve_formats(["sql", "csv", "sql", "all"])[:2] == [ExportFormat.SQL, ExportFormat.CSV]
        assert len(resolve_formats(["sql", "csv", "sql", "all"])) == 4

    def test_unknown_format_raises(self):
        """Test an unknown format name is rejected"""
        with pytest.raises(ValueError):
            resolve_formats(["xml"])


class TestSqlRendering:
    """Tests for SQL literals and statements"""

    @pytest.mark.parametrize("value,expected", [
        (None, "NULL"),
        (True, "TRUE"),
        (False, "FALSE"),
        (42, "42"),
        (0.25, "0.25"),
        ("O'Neil", "'O''Neil'"),
        (date(2026, 6, 15), "'2026-06-15'"),
        (["a", "b"], "ARRAY['a', 'b']"),
        ([], "ARRAY[]::TEXT[]"),
    ])
    def test_sql_literal(self, value, expected):
        """Test Python values render as PostgreSQL literals"""
        assert sql_literal(value) == expected

    def test_timestamp_literal_keeps_offset(self):
        """Test aware timestamps keep their UTC offset"""
        assert sql_literal(GENERATED_AT) == "'2026-06-15T12:00:00+00:00'"

    @pytest.mark.parametrize("dtype,expected", [
        (pl.Int64, "BIGINT"),
        (pl.Int32, "INTEGER"),
        (pl.Float64, "DOUBLE PRECISION"),
        (pl.Boolean, "BOOLEAN"),
        (pl.Date, "DATE"),
        (pl.String, "TEXT"),
        (pl.Datetime("us", "UTC"), "TIMESTAMPTZ"),
        (pl.Datetime("us"), "TIMESTAMP"),
        (pl.List(pl.String), "TEXT[]"),
    ])
    def test_postgres_type(self, dtype, expected):
        """Test polars dtypes map onto PostgreSQL types"""
        assert postgres_type(dtype) == expected

    def test_create_table_has_primary_key(self):
        """Test the id column becomes the primary key"""
        df = pl.DataFrame({"id": ["a"], "count": [1]})

        statement = create_table_statement("things", df)

        assert statement.startswith("CREATE TABLE IF NOT EXISTS things (")
        assert "id TEXT PRIMARY KEY" in statement
        assert "count BIGINT" in statement

    def test_inserts_are_batched(self):
        """Test rows are split into INSERTs of at most 100 rows"""
        df = pl.DataFrame({"id": [str(i) for i in range(250)]})

        statements = list(insert_statements("things", df))

        assert len(statements) == 3
        assert statements[-1].count("\n  (") == 50

    def test_combined_script_is_one_transaction(self):
        """Test the combined script wraps every table in BEGIN/COMMIT"""
        tables = [("a", pl.DataFrame({"id": ["1"]})), ("b", pl.DataFrame({"id": ["2"]}))]

        script = combined_script(tables, GENERATED_AT)

        assert script.index("BEGIN;") < script.index("CREATE TABLE IF NOT EXISTS a") < script.index("CREATE TABLE IF NOT EXISTS b")
        assert script.rstrip().endswith("COMMIT;")


class TestDatasetExporter:
    """Tests for DatasetExporter"""

    def test_all_formats_written(self, tmp_path, mini_dataset):
        """Test one file per non-empty table in each format directory"""
        written = DatasetExporter(tmp_path).export(mini_dataset, ["all"])

        assert set(written) == {ExportFormat.CSV, ExportFormat.JSON, ExportFormat.PARQUET, ExportFormat.SQL}
        for fmt in ("csv", "json", "parquet", "sql"):
            assert (tmp_path / fmt / f"workspaces.{fmt}").exists()
            assert (tmp_path / fmt / f"products.{fmt}").exists()
            assert not (tmp_path / fmt / f"orders.{fmt}").exists()
        assert (tmp_path / "sql" / "all_data.sql").exists()

    def test_csv_encodes_lists_as_json(self, tmp_path, mini_dataset):
        """Test list columns survive CSV as JSON text"""
        DatasetExporter(tmp_path).export(mini_dataset, ["csv"])

        df = pl.read_csv(tmp_path / "csv" / "products.csv")

        assert json.loads(df["tags"][0]) == ["dresses", "linen", "new"]

    def test_json_is_row_oriented(self, tmp_path, mini_dataset):
        """Test JSON output is an array of row objects"""
        DatasetExporter(tmp_path).export(mini_dataset, ["json"])

        rows = json.loads((tmp_path / "json" / "workspaces.json").read_text())

        assert [r["id"] for r in rows] == ["ws-1", "ws-2"]

    def test_parquet_round_trips_counts(self, tmp_path, small_dataset):
        """Test Parquet files hold every generated row"""
        DatasetExporter(tmp_path).export(small_dataset, [ExportFormat.PARQUET])

        for name, rows in small_dataset.items():
            if rows:
                assert pl.read_parquet(tmp_path / "parquet" / f"{name}.parquet").height == len(rows)

    def test_all_null_column_is_written(self, tmp_path, mini_dataset):
        """Test a column that is null everywhere is written as text"""
        DatasetExporter(tmp_path).export(mini_dataset, ["parquet"])

        df = pl.read_parquet(tmp_path / "parquet" / "products.parquet")

        assert df.schema["compare_at_price_cents"] == pl.String
        assert df["compare_at_price_cents"][0] is None

    def test_sql_follows_table_order(self, tmp_path, mini_dataset):
        """Test the combined script respects the given table order"""
        exporter = DatasetExporter(tmp_path, table_order=["products", "workspaces"])

        exporter.export(mini_dataset, ["sql"])
        script = (tmp_path / "sql" / "all_data.sql").read_text()

        assert script.index("-- products") < script.index("-- workspaces")
        assert "'O''Neil Apparel'" in script
        assert "ARRAY['dresses', 'linen', 'new']" in script
        assert "orders" not in script
