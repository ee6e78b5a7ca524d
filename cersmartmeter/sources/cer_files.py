"""
Readers for the CER smart meter flat files.

Each reader discovers files by name pattern, reads them with Polars and
stacks them. No cleaning happens here beyond naming and typing the
headerless consumption columns; see the transformers package for that.

Sources:
- Consumption: space-delimited File*.txt, or the bundled cer_kwh.csv.gz fallback
- Assignments, calendar (DST correction) and survey extracts: CSV in <cer_dir>/data
- Weather station files: CSV in <cer_dir>/weather
"""

import logging
import re
from collections.abc import Iterable
from pathlib import Path

import polars as pl

from cersmartmeter.config import (
    CONSUMPTION_PATTERN,
    FALLBACK_CONSUMPTION_FILE,
    NA_VALUES,
    WEATHER_GLOB,
)
from cersmartmeter.exceptions import MissingDataSource, SchemaMismatch

logger = logging.getLogger(__name__)

CONSUMPTION_SCHEMA = {"id": pl.Int64, "date_cer": pl.Int64, "kw": pl.Float64}


def list_source_files(directory: str | Path, pattern: str) -> list[Path]:
    """
    List files in a directory whose name matches a regex pattern.

    Args:
        directory: Directory to search (not recursive)
        pattern: Regular expression applied to the file name

    Returns:
        Sorted list of matching file paths (empty if the directory is missing)
    """
    directory = Path(directory)
    if not directory.is_dir():
        return []

    regex = re.compile(pattern)
    return sorted(
        path for path in directory.iterdir() if path.is_file() and regex.search(path.name)
    )


def _scan_raw_consumption_file(path: Path) -> pl.LazyFrame:
    # all text, then cast: whole-number kw values early in a file must not type it as integer
    lf = pl.scan_csv(path, separator=" ", has_header=False, infer_schema=False)
    names = lf.collect_schema().names()
    if len(names) != len(CONSUMPTION_SCHEMA):
        raise SchemaMismatch(
            f"{path.name}: expected {len(CONSUMPTION_SCHEMA)} columns "
            f"(id, date_cer, kw), found {len(names)}"
        )
    return lf.rename(dict(zip(names, CONSUMPTION_SCHEMA, strict=True))).cast(
        CONSUMPTION_SCHEMA
    )


def read_fallback_consumption(fallback_path: str | Path) -> pl.DataFrame:
    """
    Read the bundled gzip consumption extract.

    Args:
        fallback_path: Path to a gzip-compressed CSV with id, date_cer, kw columns

    Returns:
        DataFrame with id, date_cer and kw columns

    Raises:
        SchemaMismatch: If any of the three columns is missing
    """
    df = pl.read_csv(fallback_path, null_values=NA_VALUES, infer_schema=False)

    missing_cols = [col for col in CONSUMPTION_SCHEMA if col not in df.columns]
    if missing_cols:
        raise SchemaMismatch(
            f"Missing required columns: {missing_cols}. Available: {df.columns}"
        )

    return df.select(list(CONSUMPTION_SCHEMA)).cast(CONSUMPTION_SCHEMA)


def read_consumption(
    data_dir: str | Path,
    fallback_path: str | Path | None = None,
    date_cer_keep: Iterable[int] | None = None,
) -> pl.DataFrame:
    """
    Read household half-hourly kW readings.

    Uses the per-household File*.txt files when data_dir exists, otherwise
    the bundled gzip extract.

    Args:
        data_dir: Directory holding the File*.txt meter files
        fallback_path: Gzip extract used when data_dir is absent
            (defaults to the copy shipped in cersmartmeter/extdata)
        date_cer_keep: Optional interval codes to keep; raw files are
            scanned lazily so other rows are never materialised

    Returns:
        DataFrame with id, date_cer and kw columns

    Raises:
        MissingDataSource: If neither the raw files nor the fallback exist
        SchemaMismatch: If a file does not have the three expected columns
    """
    data_dir = Path(data_dir)
    fallback_path = Path(fallback_path) if fallback_path else FALLBACK_CONSUMPTION_FILE
    keep = None if date_cer_keep is None else list(date_cer_keep)

    if data_dir.is_dir():
        files = list_source_files(data_dir, CONSUMPTION_PATTERN)
        if not files:
            raise MissingDataSource(
                f"No consumption files matching {CONSUMPTION_PATTERN} in {data_dir}"
            )

        logger.info(f"Reading {len(files)} consumption files from {data_dir}")
        lf = pl.concat([_scan_raw_consumption_file(path) for path in files])
        if keep is not None:
            lf = lf.filter(pl.col("date_cer").is_in(keep))
        return lf.collect()

    if fallback_path.is_file():
        logger.warning(f"{data_dir} not found, using bundled extract {fallback_path}")
        df = read_fallback_consumption(fallback_path)
        if keep is not None:
            df = df.filter(pl.col("date_cer").is_in(keep))
        return df

    raise MissingDataSource("No CER residential consumption data source")


def read_csv_sources(
    directory: str | Path,
    pattern: str,
    hint: str | None = None,
) -> pl.DataFrame:
    """
    Read and stack every comma-delimited file matching a pattern.

    Files with differing columns are stacked diagonally (missing columns
    become null).

    Args:
        directory: Directory to search
        pattern: Regular expression applied to file names
        hint: Extra text appended to the error message when nothing matches

    Returns:
        Stacked DataFrame

    Raises:
        MissingDataSource: If no file matches
    """
    files = list_source_files(directory, pattern)
    if not files:
        message = f"No files matching {pattern} in {directory}"
        if hint:
            message = f"{message}. {hint}"
        raise MissingDataSource(message)

    frames = [
        pl.read_csv(path, null_values=NA_VALUES, infer_schema_length=10000)
        for path in files
    ]
    logger.info(f"Read {len(files)} file(s) matching {pattern} from {directory}")
    return pl.concat(frames, how="diagonal_relaxed")


def read_weather_files(weather_dir: str | Path, glob: str = WEATHER_GLOB) -> pl.DataFrame:
    """
    Read and stack hourly weather station files.

    All columns are read as strings; the weather transformer parses dates
    and measures.

    Args:
        weather_dir: Directory holding the station files
        glob: File name glob (default matches Met Eireann hly*.csv names)

    Returns:
        Stacked DataFrame of raw observations

    Raises:
        MissingDataSource: If no file matches
    """
    weather_dir = Path(weather_dir)
    files = sorted(path for path in weather_dir.glob(glob) if path.is_file())
    if not files:
        raise MissingDataSource(f"No weather files matching {glob} in {weather_dir}")

    frames = [pl.read_csv(path, infer_schema_length=0) for path in files]
    logger.info(f"Read {len(files)} weather file(s) from {weather_dir}")
    return pl.concat(frames, how="diagonal_relaxed")
