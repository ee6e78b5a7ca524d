"""
Hourly weather transformations.

Raw station files carry one observation per row, stamped in UTC
("Date (utc)", e.g. "01-jan-2009 00:00"). This module:

1. Converts timestamps to local time and derives year/month/day/hour and
   the local timezone abbreviation (GMT / IST for Dublin)
2. Averages temp, dewpt and rhum per local hour
3. Min-max scales each measure over the loaded set
4. Attaches each calendar interval (date_cer) to the hourly reading that
   closes it (see align_weather_to_calendar)
"""

import logging

import polars as pl

from cersmartmeter.config import LOCAL_TIMEZONE, TIMEZONE_ABBREVIATIONS, WEATHER_MEASURES
from cersmartmeter.transformers.validation import require_columns

logger = logging.getLogger(__name__)

HOUR_KEYS = ["year", "month", "day", "hour", "timezone"]
SCALED_MEASURES = [f"{measure}_scaled" for measure in WEATHER_MEASURES]
READING_KEYS = ["reading_year", "reading_month", "reading_day", "reading_hour"]

WEATHER_COLUMNS = [
    "date_cer",
    "year",
    "month",
    "day",
    "hour",
    "timezone",
    *WEATHER_MEASURES,
    *SCALED_MEASURES,
]


def _to_float(col: str, dtype: pl.DataType) -> pl.Expr:
    if dtype == pl.Utf8:
        return pl.col(col).str.strip_chars().cast(pl.Float64, strict=False)
    return pl.col(col).cast(pl.Float64, strict=False)


def aggregate_weather(
    raw_weather_df: pl.DataFrame,
    timezone: str = LOCAL_TIMEZONE,
    abbreviations: dict[int, str] | None = None,
) -> pl.DataFrame:
    """
    Convert UTC observations to local time and average them per hour.

    Args:
        raw_weather_df: Stacked station files with 'Date (utc)' (or 'date')
            and temp, dewpt, rhum columns
        timezone: IANA zone used for local time
        abbreviations: UTC offset in minutes -> timezone label
            (defaults to GMT/IST)

    Returns:
        DataFrame keyed by year, month, day, hour, timezone with mean
        temp, dewpt and rhum

    Raises:
        SchemaMismatch: If the date column or a measure is missing
    """
    abbreviations = abbreviations or TIMEZONE_ABBREVIATIONS

    weather_df = raw_weather_df
    if "Date (utc)" in weather_df.columns:
        weather_df = weather_df.rename({"Date (utc)": "date"})
    require_columns(weather_df, ["date", *WEATHER_MEASURES], "weather")

    utc = (
        pl.col("date")
        .str.strip_chars()
        .str.strptime(pl.Datetime("us"), "%d-%b-%Y %H:%M", strict=False)
        .dt.replace_time_zone("UTC")
    )
    weather_df = weather_df.with_columns(
        utc.alias("utc"),
        utc.dt.convert_time_zone(timezone).alias("local"),
        *[_to_float(m, weather_df[m].dtype).alias(m) for m in WEATHER_MEASURES],
    )

    n_bad = weather_df["utc"].null_count()
    if n_bad:
        logger.warning(f"Dropped {n_bad} weather rows with unparseable dates")
        weather_df = weather_df.filter(pl.col("utc").is_not_null())

    offset_minutes = (
        pl.col("local").dt.replace_time_zone(None) - pl.col("utc").dt.replace_time_zone(None)
    ).dt.total_minutes()

    hourly_df = (
        weather_df.with_columns(
            pl.col("local").dt.year().cast(pl.Int64).alias("year"),
            pl.col("local").dt.month().cast(pl.Int64).alias("month"),
            pl.col("local").dt.day().cast(pl.Int64).alias("day"),
            pl.col("local").dt.hour().cast(pl.Int64).alias("hour"),
            offset_minutes.replace_strict(
                abbreviations, default=None, return_dtype=pl.Utf8
            ).alias("timezone"),
        )
        .group_by(HOUR_KEYS)
        .agg([pl.col(m).mean() for m in WEATHER_MEASURES])
        .sort(HOUR_KEYS)
    )

    logger.info(
        f"Aggregated {len(weather_df):,} weather observations to {len(hourly_df):,} hours"
    )
    return hourly_df


def scale_weather(
    hourly_df: pl.DataFrame, measures: list[str] | None = None
) -> pl.DataFrame:
    """
    Min-max scale each measure to [0, 1] over the rows given.

    The bounds come from the frame itself, so scaling a subset gives
    different values than scaling the full set. A constant measure
    scales to null.

    Example:
        >>> scale_weather(pl.DataFrame({"temp": [0.0, 5.0, 10.0]}), ["temp"])["temp_scaled"].to_list()
        [0.0, 0.5, 1.0]
    """
    measures = measures or WEATHER_MEASURES
    scaled = []
    for m in measures:
        low = pl.col(m).min()
        span = pl.col(m).max() - low
        scaled.append(
            pl.when(span > 0)
            .then((pl.col(m) - low) / span)
            .otherwise(None)
            .alias(f"{m}_scaled")
        )
    return hourly_df.with_columns(scaled)


def closing_hour() -> pl.Expr:
    """
    Local datetime of the hourly reading that closes each interval.

    h:29 closes within hour h; (h-1):59 closes on the hour h. The sum is
    taken on datetimes so that hour -1 and hour 24 roll onto the right
    calendar day.
    """
    base = pl.datetime(pl.col("year"), pl.col("month"), pl.col("day"))
    offset = pl.col("hour") + (pl.col("minute") == 59).cast(pl.Int64)
    return base + pl.duration(hours=offset)


def align_weather_to_calendar(
    scaled_df: pl.DataFrame, calendar_df: pl.DataFrame
) -> pl.DataFrame:
    """
    Attach each calendar interval to the weather hour that closes it.

    The interval labelled h:29 takes the reading of hour h and the
    interval labelled (h-1):59 takes the reading of hour h, so the
    midnight reading closes the hour -1 interval of its own day. Matching
    is by key (and timezone when the calendar has it), never by row
    position: an interval whose closing hour has no reading is dropped
    and its neighbours are unaffected.

    Args:
        scaled_df: Hourly weather with scaled measures
        calendar_df: Output of transform_calendar

    Returns:
        DataFrame with WEATHER_COLUMNS sorted by date_cer, one row per
        interval with a reading
    """
    tz_keys = []
    if "timezone" in calendar_df.columns:
        tz_keys.append("timezone")
    else:
        logger.warning("Calendar has no timezone column; joining weather on local hour only")

    closing = closing_hour()
    calendar_keys = calendar_df.select(
        "date_cer",
        "year",
        "month",
        "day",
        "hour",
        *tz_keys,
        closing.dt.year().cast(pl.Int64).alias("reading_year"),
        closing.dt.month().cast(pl.Int64).alias("reading_month"),
        closing.dt.day().cast(pl.Int64).alias("reading_day"),
        closing.dt.hour().cast(pl.Int64).alias("reading_hour"),
    )
    readings_df = scaled_df.rename(dict(zip(["year", "month", "day", "hour"], READING_KEYS)))

    aligned_df = calendar_keys.join(
        readings_df, on=[*READING_KEYS, *tz_keys], how="inner"
    ).sort("date_cer")

    n_missing = calendar_df.height - aligned_df.height
    if n_missing:
        logger.info(f"{n_missing:,} calendar intervals have no weather reading")

    return aligned_df.select(WEATHER_COLUMNS)


def transform_weather(
    raw_weather_df: pl.DataFrame,
    calendar_df: pl.DataFrame,
    timezone: str = LOCAL_TIMEZONE,
) -> pl.DataFrame:
    """
    Full weather transformation: aggregate, scale, align to the calendar.

    Args:
        raw_weather_df: Stacked raw station files
        calendar_df: Output of transform_calendar
        timezone: IANA zone used for local time

    Returns:
        DataFrame with WEATHER_COLUMNS

    Raises:
        SchemaMismatch: If the date column or a measure is missing
    """
    try:
        hourly_df = aggregate_weather(raw_weather_df, timezone=timezone)
        weather_df = align_weather_to_calendar(scale_weather(hourly_df), calendar_df)

        logger.info(f"Transformed weather: {len(weather_df):,} intervals")
        return weather_df

    except Exception as e:
        logger.error(f"Error transforming weather data: {e}")
        raise
