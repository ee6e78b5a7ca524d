"""
File readers for the CER smart meter data folder.
"""

from .cer_files import (
    list_source_files,
    read_consumption,
    read_csv_sources,
    read_fallback_consumption,
    read_weather_files,
)

__all__ = [
    "list_source_files",
    "read_consumption",
    "read_csv_sources",
    "read_fallback_consumption",
    "read_weather_files",
]
