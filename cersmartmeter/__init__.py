"""
Cleaned, merged tables of the ISSDA CER Smart Metering Trial data.

Reads household half-hourly meter readings, tariff allocations, the DST
correction calendar, hourly weather and the pre-trial survey, and joins
them into one Polars DataFrame. See get_cer().
"""

from cersmartmeter.config import load_config
from cersmartmeter.exceptions import (
    CerDataError,
    JoinKeyMismatch,
    MissingDataSource,
    SchemaMismatch,
)
from cersmartmeter.pipelines import (
    RowLossReport,
    TableCache,
    get_cer,
    load_assignments,
    load_calendar,
    load_consumption,
    load_survey,
    load_weather,
)

__version__ = "0.1.0"

__all__ = [
    "CerDataError",
    "JoinKeyMismatch",
    "MissingDataSource",
    "RowLossReport",
    "SchemaMismatch",
    "TableCache",
    "get_cer",
    "load_assignments",
    "load_calendar",
    "load_config",
    "load_consumption",
    "load_survey",
    "load_weather",
]
