"""
Loaders module for writing the cleaned CER tables to DuckDB.

This module contains functions for:
- Table creation from Polars DataFrames
- Index creation
- Row count summaries
"""

from .duckdb_loader import (
    DEFAULT_SCHEMA,
    create_standard_indexes,
    table_row_counts,
    write_table,
)

__all__ = [
    "DEFAULT_SCHEMA",
    "create_standard_indexes",
    "table_row_counts",
    "write_table",
]
