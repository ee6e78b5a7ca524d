"""
Load and merge the CER smart meter data into one table.

Public entry points:
- load_consumption(), load_assignments(), load_calendar(),
  load_weather(), load_survey(): read + transform one source
- get_cer(): consumption readings, optionally restricted to some
  years/months/hours and merged with allocation, calendar, weather and
  survey data

Folder layout expected under cer_dir:
    data/     File*.txt, SME*.csv, dst*.csv, cer_pretrial*.csv
    weather/  hly*.csv
"""

import logging
from collections.abc import Iterable
from pathlib import Path

import polars as pl

from cersmartmeter.config import (
    ASSIGNMENT_PATTERN,
    CALENDAR_PATTERN,
    DEFAULT_CONFIG,
    LOCAL_TIMEZONE,
    SURVEY_PATTERN,
)
from cersmartmeter.pipelines.cache import TableCache
from cersmartmeter.pipelines.report import RowLossReport
from cersmartmeter.sources.cer_files import (
    read_consumption,
    read_csv_sources,
    read_weather_files,
)
from cersmartmeter.transformers.assignments import transform_assignments
from cersmartmeter.transformers.calendar import filter_calendar, transform_calendar
from cersmartmeter.transformers.consumption import transform_consumption
from cersmartmeter.transformers.survey import transform_survey
from cersmartmeter.transformers.weather import transform_weather

logger = logging.getLogger(__name__)

SURVEY_HINT = (
    "cer_pretrial_survey_redux.csv does not exist. "
    "Run 'gen_survey_data.py' to generate it"
)


def load_consumption(
    data_dir: str | Path,
    fallback_path: str | Path | None = None,
    date_cer_keep: Iterable[int] | None = None,
) -> pl.DataFrame:
    """Read consumption readings and add kWh (id, date_cer, kw, kwh)."""
    logger.info("Importing consumption data...")
    return transform_consumption(read_consumption(data_dir, fallback_path, date_cer_keep))


def load_assignments(data_dir: str | Path) -> pl.DataFrame:
    """Read the allocation extract and return residential id, tar_stim."""
    return transform_assignments(read_csv_sources(data_dir, ASSIGNMENT_PATTERN))


def load_calendar(data_dir: str | Path) -> pl.DataFrame:
    """Read the DST correction extract and return the half-hour calendar."""
    return transform_calendar(read_csv_sources(data_dir, CALENDAR_PATTERN))


def load_weather(
    weather_dir: str | Path,
    calendar: pl.DataFrame,
    timezone: str = LOCAL_TIMEZONE,
) -> pl.DataFrame:
    """Read weather station files and align them to the calendar."""
    return transform_weather(read_weather_files(weather_dir), calendar, timezone=timezone)


def load_survey(data_dir: str | Path) -> pl.DataFrame:
    """Read the pre-trial survey extract and add home age dummies."""
    return transform_survey(read_csv_sources(data_dir, SURVEY_PATTERN, hint=SURVEY_HINT))


def join_with_report(
    left: pl.DataFrame,
    right: pl.DataFrame,
    on: list[str] | str,
    how: str,
    step: str,
    report: RowLossReport,
) -> pl.DataFrame:
    """Join two frames and record the row count change in report."""
    joined = left.join(right, on=on, how=how)
    report.record(step, len(left), len(joined))
    return joined


def get_cer(
    cer_dir: str | Path = DEFAULT_CONFIG["cer_dir"],
    only_kwh: bool = True,
    years: Iterable[int] | None = None,
    months: Iterable[int] | None = None,
    hours: Iterable[int] | None = None,
    cache: TableCache | None = None,
    report: RowLossReport | None = None,
    fallback_path: str | Path | None = None,
    timezone: str = LOCAL_TIMEZONE,
) -> pl.DataFrame:
    """
    Import and return a cleaned table of CER smart meter data.

    The full table can need several GB of memory; restricting years,
    months or hours keeps only matching intervals while reading.

    Args:
        cer_dir: Folder holding the data/ and weather/ subfolders
        only_kwh: If True return only id, date_cer, kw, kwh; otherwise
            merge allocation, calendar, weather and survey data
        years: Calendar years to keep
        months: Calendar months to keep
        hours: Hours (as relabelled in the calendar) to keep
        cache: Tables reused across calls; a fresh one is used if None
        report: Row-loss report filled in by each join step
        fallback_path: Gzip consumption extract used when data/ is absent
        timezone: Local timezone of the calendar

    Returns:
        DataFrame sorted by (id, date_cer)

    Raises:
        MissingDataSource: If a required source is absent
        SchemaMismatch: If a source has unexpected columns
        JoinKeyMismatch: If report is strict and a join dropped rows

    Example:
        >>> # 2009 data, kwh only (much smaller but still large)
        >>> df = get_cer("~/Dropbox/ISSDA_CER_Smart_Metering_Data", only_kwh=True, years=[2009])
    """
    cer_path = Path(cer_dir).expanduser()
    data_dir = cer_path / "data"
    weather_dir = cer_path / "weather"
    cache = cache if cache is not None else TableCache()
    report = report if report is not None else RowLossReport()

    years = None if years is None else list(years)
    months = None if months is None else list(months)
    hours = None if hours is None else list(hours)
    restricted = any(values is not None for values in (years, months, hours))

    calendar = None
    date_cer_keep = None
    if restricted or not only_kwh:
        logger.info("Importing time data...")
        calendar = cache.get_or_load("calendar", lambda: load_calendar(data_dir))

    if restricted:
        logger.info("Reducing data size...")
        calendar = filter_calendar(calendar, years=years, months=months, hours=hours)
        date_cer_keep = calendar["date_cer"].unique()

    cer_df = load_consumption(data_dir, fallback_path, date_cer_keep=date_cer_keep)

    if not only_kwh:
        logger.info("Merging assignment and time data...")
        assignments = cache.get_or_load("assignments", lambda: load_assignments(data_dir))
        cer_df = join_with_report(cer_df, assignments, "id", "inner", "merge assignments", report)
        cer_df = join_with_report(cer_df, calendar, "date_cer", "inner", "merge calendar", report)

        logger.info("Merging weather and survey data...")
        full_calendar = cache.get("calendar")
        weather = cache.get_or_load(
            "weather", lambda: load_weather(weather_dir, full_calendar, timezone=timezone)
        )
        if years is not None:
            weather = weather.filter(pl.col("year").is_in(years))

        weather_keys = ["date_cer", "year", "month", "day", "hour"]
        if "timezone" in cer_df.columns:
            weather_keys.append("timezone")
        cer_df = join_with_report(cer_df, weather, weather_keys, "inner", "merge weather", report)

        survey = cache.get_or_load("survey", lambda: load_survey(data_dir))
        cer_df = join_with_report(cer_df, survey, "id", "left", "merge survey", report)

    cer_df = cer_df.sort(["id", "date_cer"])
    logger.info(f"...done. {len(cer_df):,} rows, {len(cer_df.columns)} columns")
    return cer_df
