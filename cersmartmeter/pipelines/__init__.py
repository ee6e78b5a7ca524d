"""
Pipelines that compose the CER readers and transformers.
"""

from .cache import TableCache
from .get_cer import (
    get_cer,
    load_assignments,
    load_calendar,
    load_consumption,
    load_survey,
    load_weather,
)
from .report import RowLossReport

__all__ = [
    "RowLossReport",
    "TableCache",
    "get_cer",
    "load_assignments",
    "load_calendar",
    "load_consumption",
    "load_survey",
    "load_weather",
]
