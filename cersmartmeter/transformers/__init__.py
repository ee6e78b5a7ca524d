"""
Transformers package for the CER smart meter data.

Polars transformations for each source table:
- Consumption readings (kW -> kWh)
- Household allocations (tariff/stimulus groups)
- Half-hour calendar (DST correction, peak and week flags)
- Hourly weather (local time, scaling, interval alignment)
- Pre-trial survey (column names, home age dummies)
"""

from .assignments import transform_assignments
from .calendar import filter_calendar, transform_calendar
from .consumption import transform_consumption
from .survey import transform_survey
from .weather import transform_weather

__all__ = [
    "filter_calendar",
    "transform_assignments",
    "transform_calendar",
    "transform_consumption",
    "transform_survey",
    "transform_weather",
]
