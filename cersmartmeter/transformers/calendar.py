"""
Half-hour calendar (DST correction table) transformations.

The CER trial codes each reading by day_cer (days since 1 Jan 2009) and
hour_cer (half-hour slot 1-48). The DST correction extract maps every
(day_cer, hour_cer) pair to a local calendar date and clock time. This
module turns that extract into the interval dictionary used for joins:

- date_cer = day_cer * 100 + hour_cer
- week, day of week, weekday flag and a week-of-study index
- peak flag for weekday slots 35-38
- dst flag for the clock-change days
- minutes relabelled so each interval is named by its closing minute
"""

import logging
from collections.abc import Iterable

import polars as pl

from cersmartmeter.config import DST_DAY_CODES, PEAK_HOUR_CODES, STUDY_START_DAY
from cersmartmeter.transformers.validation import require_columns

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ["day_cer", "hour_cer", "date", "year", "month", "day", "hour", "minute"]

CALENDAR_COLUMNS = [
    "date_cer",
    "day_cer",
    "hour_cer",
    "date",
    "year",
    "month",
    "day",
    "hour",
    "minute",
    "timezone",
    "week",
    "dow",
    "weekday",
    "week_of_study",
    "peak",
    "dst",
]


def derive_week_table(ts_df: pl.DataFrame) -> pl.DataFrame:
    """
    Build one row per calendar date with week and day-of-week fields.

    week is the ISO week number and dow the ISO day of week
    (Monday=1 ... Sunday=7). weekday is 0 on Saturday and Sunday.
    week_of_study numbers the distinct (ISO year, week) pairs 1, 2, ...
    in the order they first occur.

    Args:
        ts_df: Calendar rows with a Date column named 'date'

    Returns:
        DataFrame with date, week, dow, weekday and week_of_study
    """
    weeks_df = (
        ts_df.select("date")
        .unique()
        .sort("date")
        .with_columns(
            pl.col("date").dt.iso_year().alias("iso_year"),
            pl.col("date").dt.week().cast(pl.Int64).alias("week"),
            pl.col("date").dt.weekday().cast(pl.Int64).alias("dow"),
        )
        .with_columns((pl.col("dow") < 6).cast(pl.Int8).alias("weekday"))
    )

    week_index_df = (
        weeks_df.group_by(["iso_year", "week"])
        .agg(pl.col("date").min().alias("first_date"))
        .sort("first_date")
        .with_row_index("week_of_study", offset=1)
        .with_columns(pl.col("week_of_study").cast(pl.Int64))
        .drop("first_date")
    )

    return weeks_df.join(week_index_df, on=["iso_year", "week"], how="left").drop(
        "iso_year"
    )


def relabel_interval_minutes(ts_df: pl.DataFrame) -> pl.DataFrame:
    """
    Name each half-hour interval by its closing minute.

    minute 30 becomes 29 (same hour); minute 0 becomes 59 of the previous
    hour. The hour is decremented without rolling the date back, so the
    interval reported at 00:00 is labelled hour -1, minute 59.

    Example:
        >>> df = pl.DataFrame({"hour": [7, 8], "minute": [30, 0]})
        >>> relabel_interval_minutes(df).rows()
        [(7, 29), (7, 59)]
    """
    return ts_df.with_columns(
        pl.when(pl.col("minute") == 0)
        .then(pl.col("hour") - 1)
        .otherwise(pl.col("hour"))
        .alias("hour"),
        pl.when(pl.col("minute") == 30)
        .then(pl.lit(29))
        .when(pl.col("minute") == 0)
        .then(pl.lit(59))
        .otherwise(pl.col("minute"))
        .cast(pl.Int64)
        .alias("minute"),
    )


def transform_calendar(raw_ts_df: pl.DataFrame) -> pl.DataFrame:
    """
    Transform the DST correction extract into the half-hour calendar.

    This function:
    1. Drops the ts housekeeping column and days before the study start
    2. Computes date_cer
    3. Adds week, dow, weekday and week_of_study per date
    4. Flags peak (weekday slots 35-38) and dst (clock-change days)
    5. Relabels minutes to the closing minute of each interval

    A tz column, if present, is kept as 'timezone'.

    Args:
        raw_ts_df: Raw DST correction extract

    Returns:
        Calendar DataFrame sorted by date_cer

    Raises:
        SchemaMismatch: If required columns are missing
    """
    try:
        require_columns(raw_ts_df, REQUIRED_COLUMNS, "calendar")

        if "ts" in raw_ts_df.columns:
            ts_df = raw_ts_df.select(pl.exclude("ts"))
        else:
            ts_df = raw_ts_df
        if "tz" in ts_df.columns and "timezone" not in ts_df.columns:
            ts_df = ts_df.rename({"tz": "timezone"})

        int_cols = ["day_cer", "hour_cer", "year", "month", "day", "hour", "minute"]
        ts_df = ts_df.with_columns([pl.col(col).cast(pl.Int64) for col in int_cols])

        if ts_df["date"].dtype == pl.Utf8:
            ts_df = ts_df.with_columns(
                pl.col("date").str.strptime(pl.Date, "%Y-%m-%d", strict=False)
            )
        elif ts_df["date"].dtype != pl.Date:
            ts_df = ts_df.with_columns(pl.col("date").cast(pl.Date))

        ts_df = ts_df.filter(pl.col("day_cer") > STUDY_START_DAY).with_columns(
            (pl.col("day_cer") * 100 + pl.col("hour_cer")).alias("date_cer")
        )

        ts_df = ts_df.join(derive_week_table(ts_df), on="date", how="left")

        ts_df = ts_df.with_columns(
            (pl.col("hour_cer").is_in(PEAK_HOUR_CODES) & (pl.col("weekday") == 1))
            .cast(pl.Int8)
            .alias("peak"),
            pl.col("day_cer").is_in(DST_DAY_CODES).cast(pl.Int8).alias("dst"),
        )

        ts_df = relabel_interval_minutes(ts_df)

        ordered = [col for col in CALENDAR_COLUMNS if col in ts_df.columns]
        extra = [col for col in ts_df.columns if col not in ordered]
        calendar_df = ts_df.select(ordered + extra).sort("date_cer")

        n_dupes = calendar_df.height - calendar_df["date_cer"].n_unique()
        if n_dupes:
            logger.warning(f"Calendar has {n_dupes} duplicated date_cer values")

        logger.info(
            f"Transformed calendar: {len(calendar_df):,} intervals, "
            f"{calendar_df['week_of_study'].max()} study weeks"
        )
        return calendar_df

    except Exception as e:
        logger.error(f"Error transforming calendar data: {e}")
        raise


def filter_calendar(
    calendar_df: pl.DataFrame,
    years: Iterable[int] | None = None,
    months: Iterable[int] | None = None,
    hours: Iterable[int] | None = None,
) -> pl.DataFrame:
    """
    Restrict the calendar to given years, months and (relabelled) hours.

    Each filter is optional; None leaves that dimension unrestricted.
    """
    filters = {"year": years, "month": months, "hour": hours}
    for col, values in filters.items():
        if values is not None:
            calendar_df = calendar_df.filter(pl.col(col).is_in(list(values)))

    logger.info(f"Calendar restricted to {len(calendar_df):,} intervals")
    return calendar_df
