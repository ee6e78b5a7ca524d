"""Caller-owned cache of loaded tables, shared between get_cer calls."""

import logging
from collections.abc import Callable

import polars as pl

logger = logging.getLogger(__name__)


class TableCache:
    """
    Hold previously loaded tables by name.

    Pass the same instance to several get_cer calls to avoid re-reading
    the allocation, calendar, weather and survey files: a call for 2009
    followed by a call for 2010 with the same cache reads the calendar
    only once.
    """

    def __init__(self, tables: dict[str, pl.DataFrame] | None = None):
        self._tables: dict[str, pl.DataFrame] = dict(tables or {})

    def __contains__(self, name: str) -> bool:
        return name in self._tables

    def get(self, name: str) -> pl.DataFrame | None:
        return self._tables.get(name)

    def put(self, name: str, df: pl.DataFrame) -> None:
        self._tables[name] = df

    def get_or_load(self, name: str, loader: Callable[[], pl.DataFrame]) -> pl.DataFrame:
        """Return the cached table, or call loader and cache its result."""
        if name in self._tables:
            logger.info(f"Using cached {name} table")
            return self._tables[name]

        df = loader()
        self._tables[name] = df
        return df

    def clear(self) -> None:
        self._tables.clear()

    def names(self) -> list[str]:
        return list(self._tables)
