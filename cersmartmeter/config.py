"""
Configuration and fixed constants for the CER smart meter pipeline.

File-name patterns, study constants and the YAML config loader used by
the runnable pipeline in pipelines/orchestrate_etl.py.
"""

import logging
from pathlib import Path

import yaml

logger = logging.getLogger(__name__)

# Source file patterns (regexes are matched against file names, not paths)
CONSUMPTION_PATTERN = r"^File.*txt$"
ASSIGNMENT_PATTERN = r"^SME.*csv$"
CALENDAR_PATTERN = r"^dst.*csv$"
SURVEY_PATTERN = r"cer_pretrial.*\.csv"
WEATHER_GLOB = "hl*"

FALLBACK_CONSUMPTION_FILE = Path(__file__).parent / "extdata" / "cer_kwh.csv.gz"

NA_VALUES = ["NA", "", "."]

# kW readings cover a half hour
KWH_PER_KW_INTERVAL = 0.5

STUDY_START_DAY = 194
PEAK_HOUR_CODES = [35, 36, 37, 38]
DST_DAY_CODES = [298, 452, 669]

LOCAL_TIMEZONE = "Europe/Dublin"
# UTC offset in minutes -> abbreviation used by the calendar extract
TIMEZONE_ABBREVIATIONS = {0: "GMT", 60: "IST"}

WEATHER_MEASURES = ["temp", "dewpt", "rhum"]

DEFAULT_CONFIG = {
    "cer_dir": "~/Dropbox/ISSDA_CER_Smart_Metering_Data",
    "db_path": "data/cer.duckdb",
    "only_kwh": True,
    "years": None,
    "months": None,
    "hours": None,
    "timezone": LOCAL_TIMEZONE,
}


def load_config(config_path: str | Path) -> dict:
    """
    Read the pipeline settings from a YAML config file.

    Values under the ``cer`` key override DEFAULT_CONFIG.

    Args:
        config_path: Path to the YAML file

    Returns:
        Settings dictionary

    Raises:
        FileNotFoundError: If the config file does not exist
    """
    try:
        with open(config_path) as config_file:
            raw = yaml.safe_load(config_file) or {}
    except FileNotFoundError:
        logger.error(f"Config file not found: {config_path}")
        raise

    settings = dict(DEFAULT_CONFIG)
    settings.update(raw.get("cer") or {})
    return settings
