"""
Pre-trial survey transformations.

The survey extract is produced outside this package (gen_survey_data.py).
Its column names carry a stray ".0" from numeric question codes, e.g.
"Question 300.0", which is removed before lower-casing.

Home age is asked twice: as a number of years (n_home_age) and as an
approximate band (f_approx_home_age: 1-2 = up to 10 years, 3 = 11-30,
4+ = over 30). The two are collapsed into three 0/1 dummies.
"""

import logging

import polars as pl

from cersmartmeter.transformers.validation import require_columns

logger = logging.getLogger(__name__)

HOME_AGE_DUMMIES = ["d_home_age_10orless", "d_home_age_11to30", "d_home_age_31ormore"]


def clean_survey_name(colnm: str) -> str:
    """
    Remove the first ".0" from a column name and lower-case it.

    Example:
        >>> clean_survey_name("Question 300.0")
        'question 300'
    """
    return colnm.replace(".0", "", 1).lower()


def get_survey_rename_dict(columns: list[str]) -> dict[str, str]:
    """
    Build a rename mapping of cleaned survey column names.

    Names that collide after cleaning keep the first occurrence as is and
    get numeric suffixes (_1, _2, ...) on later ones.
    """
    counts: dict[str, int] = {}
    new: list[str] = []
    for colnm in columns:
        cleaned = clean_survey_name(colnm)
        if cleaned in counts:
            counts[cleaned] += 1
            cleaned = f"{cleaned}_{counts[cleaned]}"
        else:
            counts[cleaned] = 0
        new.append(cleaned)

    return dict(zip(columns, new, strict=True))


def home_age_bucket() -> pl.Expr:
    """
    Home age band: 1 (<= 10 years), 2 (11-30), 3 (>= 31) or null.

    The numeric answer decides when present, otherwise the approximate
    band. Neither answer gives null.
    """
    years = pl.col("n_home_age").cast(pl.Float64, strict=False)
    band = pl.col("f_approx_home_age").cast(pl.Float64, strict=False)

    return (
        pl.when(years.is_not_null())
        .then(pl.when(years <= 10).then(1).when(years <= 30).then(2).otherwise(3))
        .when(band.is_not_null())
        .then(pl.when(band < 3).then(1).when(band == 3).then(2).otherwise(3))
        .otherwise(None)
    )


def add_home_age_dummies(survey_df: pl.DataFrame) -> pl.DataFrame:
    """Add the three mutually exclusive home age dummies (0/1, never null)."""
    bucket = home_age_bucket()
    return survey_df.with_columns(
        [
            (bucket == level).fill_null(False).cast(pl.Int8).alias(name)
            for level, name in enumerate(HOME_AGE_DUMMIES, start=1)
        ]
    )


def transform_survey(raw_survey_df: pl.DataFrame) -> pl.DataFrame:
    """
    Clean survey column names and derive home age dummies.

    Args:
        raw_survey_df: Raw survey extract

    Returns:
        Survey DataFrame with cleaned names plus the home age dummies

    Raises:
        SchemaMismatch: If id, n_home_age or f_approx_home_age is missing
    """
    try:
        survey_df = raw_survey_df.rename(get_survey_rename_dict(raw_survey_df.columns))
        require_columns(survey_df, ["id", "n_home_age", "f_approx_home_age"], "survey")

        survey_df = add_home_age_dummies(
            survey_df.with_columns(pl.col("id").cast(pl.Int64))
        )

        n_resolved = survey_df.select(pl.sum_horizontal(HOME_AGE_DUMMIES).sum()).item()
        logger.info(
            f"Transformed survey: {len(survey_df):,} households, "
            f"{n_resolved:,} with a home age"
        )
        return survey_df

    except Exception as e:
        logger.error(f"Error transforming survey data: {e}")
        raise
