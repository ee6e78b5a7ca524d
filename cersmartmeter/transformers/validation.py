"""Column checks shared by the transformers."""

import polars as pl

from cersmartmeter.exceptions import SchemaMismatch


def require_columns(df: pl.DataFrame, required_cols: list[str], table: str) -> None:
    """
    Raise SchemaMismatch if any required column is absent.

    Args:
        df: DataFrame to check
        required_cols: Column names that must be present
        table: Table name used in the error message

    Raises:
        SchemaMismatch: If columns are missing
    """
    missing_cols = [col for col in required_cols if col not in df.columns]
    if missing_cols:
        raise SchemaMismatch(
            f"{table}: missing required columns: {missing_cols}. Available: {df.columns}"
        )
