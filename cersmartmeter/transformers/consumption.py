"""
Consumption (meter reading) transformations.

Readings are kW averaged over a half-hour interval, so the energy for the
interval is kW * 0.5.
"""

import logging

import polars as pl

from cersmartmeter.config import KWH_PER_KW_INTERVAL
from cersmartmeter.transformers.validation import require_columns

logger = logging.getLogger(__name__)

CONSUMPTION_COLUMNS = ["id", "date_cer", "kw"]


def add_kwh(df: pl.DataFrame) -> pl.DataFrame:
    """Add a kwh column derived from the half-hourly kw reading."""
    return df.with_columns((pl.col("kw") * KWH_PER_KW_INTERVAL).alias("kwh"))


def transform_consumption(raw_consumption_df: pl.DataFrame) -> pl.DataFrame:
    """
    Validate consumption readings and derive kWh.

    Args:
        raw_consumption_df: Readings with id, date_cer and kw columns

    Returns:
        DataFrame with id, date_cer, kw and kwh, sorted by (id, date_cer)

    Raises:
        SchemaMismatch: If required columns are missing
    """
    try:
        require_columns(raw_consumption_df, CONSUMPTION_COLUMNS, "consumption")

        consumption_df = add_kwh(
            raw_consumption_df.select(CONSUMPTION_COLUMNS).cast(
                {"id": pl.Int64, "date_cer": pl.Int64, "kw": pl.Float64}
            )
        ).sort(["id", "date_cer"])

        logger.info(
            f"Transformed {len(consumption_df):,} consumption readings "
            f"for {consumption_df['id'].n_unique():,} households"
        )
        return consumption_df

    except Exception as e:
        logger.error(f"Error transforming consumption data: {e}")
        raise
