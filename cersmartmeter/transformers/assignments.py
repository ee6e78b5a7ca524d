"""
Household allocation transformations.

The allocation extract maps each meter id to a customer code
(1 = residential, 2 = SME, 3 = other) and, for residential households,
a tariff group (A-E) and a stimulus group (1-4, E = control).
"""

import logging

import polars as pl

from cersmartmeter.exceptions import SchemaMismatch

logger = logging.getLogger(__name__)

RESIDENTIAL_CODE = 1

# Accepted header spellings, compared lower-cased and stripped
COLUMN_CANDIDATES = {
    "id": ["id"],
    "code": ["code"],
    "tariff": [
        "residential - tariff allocation",
        "residential tariff allocation",
        "tariff",
    ],
    "stimulus": [
        "residential - stimulus allocation",
        "residential stimulus allocation",
        "stimulus",
    ],
}


def _is_integer_column(series: pl.Series) -> bool:
    cast = series.cast(pl.Int64, strict=False)
    return cast.null_count() == series.null_count()


def resolve_assignment_columns(raw_assign_df: pl.DataFrame) -> dict[str, str]:
    """
    Map source column names to id, code, tariff and stimulus.

    Header names are tried first. If any of the four cannot be found the
    first four columns are used by position, provided id and code hold
    integers.

    Args:
        raw_assign_df: Raw allocation extract

    Returns:
        Dictionary mapping source column names to standard names

    Raises:
        SchemaMismatch: If the extract has fewer than four columns, or the
            positional id/code columns are not integers
    """
    lookup = {col.strip().lower(): col for col in raw_assign_df.columns}
    rename_dict: dict[str, str] = {}
    for target, candidates in COLUMN_CANDIDATES.items():
        for candidate in candidates:
            if candidate in lookup:
                rename_dict[lookup[candidate]] = target
                break

    if len(rename_dict) == len(COLUMN_CANDIDATES):
        return rename_dict

    if raw_assign_df.width < len(COLUMN_CANDIDATES):
        raise SchemaMismatch(
            f"Allocation extract needs at least 4 columns, found {raw_assign_df.width}: "
            f"{raw_assign_df.columns}"
        )

    positional = dict(zip(raw_assign_df.columns[:4], COLUMN_CANDIDATES, strict=True))
    for source, target in positional.items():
        if target in ("id", "code") and not _is_integer_column(raw_assign_df[source]):
            raise SchemaMismatch(
                f"Positional column {source!r} used as {target!r} is not integer"
            )

    logger.warning(
        f"Allocation headers not recognised, using first four columns: {list(positional)}"
    )
    return positional


def transform_assignments(raw_assign_df: pl.DataFrame) -> pl.DataFrame:
    """
    Clean the household allocation extract.

    This function:
    1. Resolves id, code, tariff and stimulus columns
    2. Upper-cases the stray lowercase "b" tariff
    3. Keeps residential households only (code == 1)
    4. Builds tar_stim = tariff + stimulus (null if either is missing)

    Args:
        raw_assign_df: Raw allocation extract

    Returns:
        DataFrame with id and tar_stim, one row per household

    Raises:
        SchemaMismatch: If the columns cannot be resolved
    """
    try:
        rename_dict = resolve_assignment_columns(raw_assign_df)

        assign_df = (
            raw_assign_df.select(pl.col(list(rename_dict))).rename(rename_dict)
            .with_columns(
                pl.col("id").cast(pl.Int64),
                pl.col("code").cast(pl.Int64, strict=False),
                pl.col("tariff").cast(pl.Utf8).str.strip_chars(),
                pl.col("stimulus").cast(pl.Utf8).str.strip_chars(),
            )
            .with_columns(
                pl.when(pl.col("tariff") == "b")
                .then(pl.lit("B"))
                .otherwise(pl.col("tariff"))
                .alias("tariff")
            )
            .filter(pl.col("code") == RESIDENTIAL_CODE)
            .with_columns(
                pl.concat_str([pl.col("tariff"), pl.col("stimulus")]).alias("tar_stim")
            )
        )

        n_rows = len(assign_df)
        assign_df = assign_df.unique(subset=["id"], keep="first", maintain_order=True)
        if len(assign_df) < n_rows:
            logger.warning(f"Dropped {n_rows - len(assign_df)} duplicate household ids")

        assign_df = assign_df.select(["id", "tar_stim"]).sort("id")
        logger.info(f"Transformed allocations: {len(assign_df):,} residential households")
        return assign_df

    except Exception as e:
        logger.error(f"Error transforming allocation data: {e}")
        raise
