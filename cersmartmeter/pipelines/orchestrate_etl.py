"""
Orchestrate the CER pipeline: Extract + Transform (get_cer) → Load (DuckDB)

This pipeline:
1. EXTRACT/TRANSFORM: Reads the CER flat files and builds the cleaned tables
2. LOAD: Writes the merged table, its component tables and the row-loss
   report to DuckDB

Usage:
    python -m cersmartmeter.pipelines.orchestrate_etl [--full] [--config config.yml]
"""

import logging
import sys
from pathlib import Path

import duckdb

from cersmartmeter.config import DEFAULT_CONFIG, load_config
from cersmartmeter.loaders.duckdb_loader import (
    create_standard_indexes,
    table_row_counts,
    write_table,
)
from cersmartmeter.pipelines.cache import TableCache
from cersmartmeter.pipelines.get_cer import get_cer
from cersmartmeter.pipelines.report import RowLossReport

logger = logging.getLogger(__name__)

COMPONENT_TABLES = {
    "assignments": "cer_assignments",
    "calendar": "cer_calendar",
    "weather": "cer_weather",
    "survey": "cer_survey",
}


def run_cer_etl(
    config_path: str | Path | None = None,
    cer_dir: str | Path | None = None,
    db_path: str | Path | None = None,
    only_kwh: bool | None = None,
    years: list[int] | None = None,
    months: list[int] | None = None,
    hours: list[int] | None = None,
) -> list[tuple[str, int]]:
    """
    Run the complete pipeline and persist the result.

    Arguments left as None are taken from the config file (if given) and
    then from DEFAULT_CONFIG.

    Args:
        config_path: YAML config file with a 'cer' section
        cer_dir: Folder holding data/ and weather/
        db_path: DuckDB database file
        only_kwh: If False, merge allocation, calendar, weather and survey data
        years: Calendar years to keep
        months: Calendar months to keep
        hours: Hours to keep

    Returns:
        (table name, row count) for every table written
    """
    settings = load_config(config_path) if config_path else dict(DEFAULT_CONFIG)
    overrides = {
        "cer_dir": cer_dir,
        "db_path": db_path,
        "only_kwh": only_kwh,
        "years": years,
        "months": months,
        "hours": hours,
    }
    settings.update({key: value for key, value in overrides.items() if value is not None})

    print("=" * 80)
    print("CER SMART METER ETL")
    print(f"Source: {settings['cer_dir']}")
    print(f"Mode: {'kWh only' if settings['only_kwh'] else 'full merge'}")
    print("=" * 80)

    # ==========================================================================
    # STAGE 1: EXTRACT + TRANSFORM
    # ==========================================================================
    print("\n" + "=" * 80)
    print("STAGE 1: EXTRACT + TRANSFORM")
    print("=" * 80)

    cache = TableCache()
    report = RowLossReport()
    cer_df = get_cer(
        settings["cer_dir"],
        only_kwh=settings["only_kwh"],
        years=settings["years"],
        months=settings["months"],
        hours=settings["hours"],
        cache=cache,
        report=report,
        timezone=settings["timezone"],
    )
    print(f"[OK] CER table: {len(cer_df):,} rows, {len(cer_df.columns)} columns")

    # ==========================================================================
    # STAGE 2: LOAD
    # ==========================================================================
    print("\n" + "=" * 80)
    print("STAGE 2: LOAD (DuckDB)")
    print("=" * 80)

    db_file = Path(settings["db_path"])
    db_file.parent.mkdir(parents=True, exist_ok=True)

    con = duckdb.connect(str(db_file))
    try:
        table_name = write_table(con, cer_df, "cer_consumption")
        create_standard_indexes(
            con, table_name, unique_cols=["id, date_cer"], index_cols=["date_cer"]
        )
        print(f"[OK] {table_name}")

        for name, target in COMPONENT_TABLES.items():
            if name in cache:
                print(f"[OK] {write_table(con, cache.get(name), target)}")

        write_table(con, report.to_frame(), "row_loss_report")
        if report.total_dropped:
            logger.warning(f"Joins dropped {report.total_dropped:,} rows in total")

        counts = table_row_counts(con)
    finally:
        con.close()

    print("\n" + "=" * 80)
    print("ETL PIPELINE COMPLETE")
    print("=" * 80)
    print(f"\nDatabase: {db_file}")
    print("\nTransformed tables:")
    for table, row_count in counts:
        print(f"  - {table}: {row_count:,} rows")

    return counts


if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
        handlers=[
            logging.StreamHandler(),
            logging.FileHandler("etl.log"),
        ],
    )

    # Use --full to merge allocation, calendar, weather and survey data
    # Use --config <path> to read settings from a YAML file
    config_arg = None
    if "--config" in sys.argv:
        config_arg = sys.argv[sys.argv.index("--config") + 1]

    run_cer_etl(
        config_path=config_arg,
        only_kwh=False if "--full" in sys.argv else None,
    )
