"""
DuckDB load stage for the cleaned CER tables.

This module provides functions for:
- Writing Polars DataFrames to schema-qualified DuckDB tables
- Creating unique and standard indexes on the written tables
- Listing row counts per table
"""

import logging

import duckdb
import polars as pl

logger = logging.getLogger(__name__)

DEFAULT_SCHEMA = "transformed_data"


def write_table(
    con: duckdb.DuckDBPyConnection,
    df: pl.DataFrame,
    table_name: str,
    schema: str = DEFAULT_SCHEMA,
) -> str:
    """
    Create or replace a DuckDB table from a Polars DataFrame.

    Args:
        con: DuckDB connection
        df: Data to write
        table_name: Unqualified table name
        schema: Target schema (created if missing)

    Returns:
        Fully qualified table name

    Example:
        >>> con = duckdb.connect("data/cer.duckdb")
        >>> write_table(con, cer_df, "cer_consumption")
        'transformed_data.cer_consumption'
    """
    qualified_name = f"{schema}.{table_name}"
    try:
        con.execute(f"CREATE SCHEMA IF NOT EXISTS {schema}")
        con.register("_cer_frame", df)
        con.execute(f"CREATE OR REPLACE TABLE {qualified_name} AS SELECT * FROM _cer_frame")
        con.unregister("_cer_frame")
        logger.info(f"Wrote {len(df):,} rows to {qualified_name}")
        return qualified_name

    except Exception as e:
        logger.error(f"Failed to write {qualified_name}: {e}")
        raise


def create_standard_indexes(
    con: duckdb.DuckDBPyConnection,
    table_name: str,
    unique_cols: list[str] | None = None,
    index_cols: list[str] | None = None,
) -> None:
    """
    Create unique and standard indexes on a table.

    Each entry in unique_cols / index_cols may be a single column name or
    a comma-separated list for a composite index (e.g. "id, date_cer").

    Args:
        con: DuckDB connection
        table_name: Fully qualified table name
        unique_cols: Columns to create unique indexes on
        index_cols: Columns to create standard indexes on

    Example:
        >>> create_standard_indexes(
        ...     con,
        ...     "transformed_data.cer_consumption",
        ...     unique_cols=["id, date_cer"],
        ...     index_cols=["date_cer"]
        ... )
    """
    if "." in table_name:
        _, index_prefix = table_name.split(".", 1)
    else:
        index_prefix = table_name

    def index_name(cols: str) -> str:
        return f"{index_prefix}_{'_'.join(c.strip() for c in cols.split(','))}_idx"

    for cols in unique_cols or []:
        name = index_name(cols)
        try:
            con.execute(f"CREATE UNIQUE INDEX IF NOT EXISTS {name} ON {table_name} ({cols});")
            logger.info(f"Created unique index {name} on {table_name}")
        except Exception as e:
            logger.warning(f"Could not create unique index on {cols}: {e}")

    for cols in index_cols or []:
        name = index_name(cols)
        try:
            con.execute(f"CREATE INDEX IF NOT EXISTS {name} ON {table_name} ({cols});")
            logger.info(f"Created index {name} on {table_name}")
        except Exception as e:
            logger.warning(f"Could not create index on {cols}: {e}")


def table_row_counts(
    con: duckdb.DuckDBPyConnection, schema: str = DEFAULT_SCHEMA
) -> list[tuple[str, int]]:
    """Return (table name, row count) for every table in a schema."""
    tables = con.execute(
        "SELECT table_name FROM information_schema.tables "
        "WHERE table_schema = ? ORDER BY table_name",
        [schema],
    ).fetchall()

    return [
        (table, con.execute(f"SELECT COUNT(*) FROM {schema}.{table}").fetchone()[0])
        for (table,) in tables
    ]
