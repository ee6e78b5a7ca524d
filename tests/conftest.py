"""
Pytest configuration and fixtures for the CER smart meter tests.

Provides reusable fixtures for:
- Sample Polars DataFrames for each source table
- An in-memory DuckDB connection
- A small CER data folder written to tmp_path
"""

from datetime import date, timedelta

import duckdb
import polars as pl
import pytest

# CER day 1 is 1 January 2009
CER_DAY_ONE = date(2009, 1, 1)


def raw_calendar_rows(day_cers: list[int], slots: list[int], tz: str = "IST") -> list[dict]:
    """
    Rows of a DST correction extract.

    Clock times are the start of each half-hour slot: slot 1 is 00:00,
    slot 2 is 00:30, ... slot 48 is 23:30.
    """
    rows = []
    for day_cer in day_cers:
        day = CER_DAY_ONE + timedelta(days=day_cer - 1)
        for slot in slots:
            hour, half = divmod(slot - 1, 2)
            minute = 30 if half else 0
            rows.append(
                {
                    "ts": f"{day.isoformat()} {hour:02d}:{minute:02d}:00",
                    "day_cer": day_cer,
                    "hour_cer": slot,
                    "date": day.isoformat(),
                    "year": day.year,
                    "month": day.month,
                    "day": day.day,
                    "hour": hour,
                    "minute": minute,
                    "tz": tz,
                }
            )
    return rows


@pytest.fixture
def sample_raw_calendar_df() -> pl.DataFrame:
    """
    DST extract for four days.

    - 194: day before the study start (dropped)
    - 195: Tuesday 14 July 2009
    - 199: Saturday 18 July 2009
    - 201: Monday 20 July 2009 (next ISO week)
    """
    return pl.DataFrame(raw_calendar_rows([194, 195, 199, 201], list(range(1, 49))))


@pytest.fixture
def sample_consumption_df() -> pl.DataFrame:
    return pl.DataFrame(
        {
            "id": [1001, 1000, 1000],
            "date_cer": [19502, 19503, 19502],
            "kw": [0.25, 2.0, 1.3],
        }
    )


@pytest.fixture
def sample_assign_df() -> pl.DataFrame:
    """
    Allocation extract with the original header names.

    Mimics 'SME and Residential allocations.csv'.
    """
    return pl.DataFrame(
        {
            "ID": [1000, 1001, 1002, 1003, 1004],
            "Code": [1, 1, 2, 3, 1],
            "Residential - Tariff allocation": ["A", "b", None, None, "E"],
            "Residential - stimulus allocation": ["1", "2", None, None, "E"],
            "SME allocation": [None, None, "C", None, None],
        }
    )


@pytest.fixture
def sample_raw_weather_df() -> pl.DataFrame:
    """
    Hourly observations in UTC, read as strings.

    13-jul-2009 23:00 UTC is 00:00 IST on 14 July.
    """
    return pl.DataFrame(
        {
            "Date (utc)": [
                "13-jul-2009 23:00",
                "14-jul-2009 00:00",
                "14-jul-2009 01:00",
                "14-jul-2009 02:00",
            ],
            "temp": ["10.0", "11.0", "12.0", "14.0"],
            "dewpt": ["8.0", "8.5", " ", "9.0"],
            "rhum": ["80", "82", "84", "90"],
        }
    )


@pytest.fixture
def sample_survey_df() -> pl.DataFrame:
    """Survey extract with raw column names and home age answers."""
    return pl.DataFrame(
        {
            "ID": [1, 2, 3, 4, 5, 6, 7, 8, 9, 10, 11],
            "N_HOME_AGE": [5, 20, 45, None, None, None, None, 5, 30, 31, 10],
            "F_APPROX_HOME_AGE": [None, None, None, 1, 3, 4, None, 4, None, None, None],
            "Question 300.0": [1, 2, 1, 2, 1, 2, 1, 2, 1, 2, 1],
        }
    )


@pytest.fixture
def in_memory_duckdb() -> duckdb.DuckDBPyConnection:
    """
    In-memory DuckDB connection for testing.

    Automatically closes connection after test completes.
    """
    con = duckdb.connect(":memory:")
    yield con
    con.close()


@pytest.fixture
def cer_dir(tmp_path):
    """
    A small CER folder on disk.

    data/
        File1.txt       households 1000 (A1), 1001 (B2), 1002 (SME);
                        slots 1-6 of day 195 plus slot 1 of day 366 (2010)
        SME and Residential allocations.csv
        dst_correction.csv
        cer_pretrial_survey_redux.csv   household 1000 only
    weather/
        hly532.csv      local hours 00:00-03:00 on 14 July 2009
    """
    data_dir = tmp_path / "data"
    weather_dir = tmp_path / "weather"
    data_dir.mkdir()
    weather_dir.mkdir()

    lines = []
    for household in (1000, 1001, 1002):
        for date_cer in [19501, 19502, 19503, 19504, 19505, 19506, 36601]:
            lines.append(f"{household} {date_cer} 1.5")
    (data_dir / "File1.txt").write_text("\n".join(lines) + "\n")

    (data_dir / "SME and Residential allocations.csv").write_text(
        "ID,Code,Residential - Tariff allocation,Residential - stimulus allocation,SME allocation\n"
        "1000,1,A,1,\n"
        "1001,1,b,2,\n"
        "1002,2,,,C\n"
    )

    calendar = pl.DataFrame(
        raw_calendar_rows([195], list(range(1, 7)), tz="IST")
        + raw_calendar_rows([366], [1], tz="GMT")
    )
    calendar.write_csv(data_dir / "dst_correction.csv")

    (data_dir / "cer_pretrial_survey_redux.csv").write_text(
        "ID,N_HOME_AGE,F_APPROX_HOME_AGE,Question 300.0\n1000,12,.,1\n"
    )

    (weather_dir / "hly532.csv").write_text(
        "Date (utc),temp,dewpt,rhum\n"
        "13-jul-2009 23:00,10.0,8.0,80\n"
        "14-jul-2009 00:00,11.0,8.5,82\n"
        "14-jul-2009 01:00,12.0,9.0,84\n"
        "14-jul-2009 02:00,14.0,9.5,90\n"
    )

    return tmp_path
