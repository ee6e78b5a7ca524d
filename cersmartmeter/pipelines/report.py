"""Row-count bookkeeping for the joins in get_cer."""

import logging

import polars as pl

from cersmartmeter.exceptions import JoinKeyMismatch

logger = logging.getLogger(__name__)

REPORT_SCHEMA = {
    "step": pl.Utf8,
    "rows_before": pl.Int64,
    "rows_after": pl.Int64,
    "rows_dropped": pl.Int64,
}


class RowLossReport:
    """
    Record how many rows each join step kept.

    Inner joins drop rows whose keys do not match; a left join can add
    rows when the right table has duplicate keys. Both are logged as
    warnings. With strict=True either raises JoinKeyMismatch instead.
    """

    def __init__(self, strict: bool = False):
        self.strict = strict
        self.entries: list[dict] = []

    def record(self, step: str, rows_before: int, rows_after: int) -> int:
        """
        Add an entry for a step and return the number of rows dropped.

        A negative result means the step added rows.

        Raises:
            JoinKeyMismatch: If strict and the row count changed
        """
        dropped = rows_before - rows_after
        self.entries.append(
            {
                "step": step,
                "rows_before": rows_before,
                "rows_after": rows_after,
                "rows_dropped": dropped,
            }
        )

        if dropped == 0:
            logger.info(f"{step}: kept all {rows_after:,} rows")
            return dropped

        if dropped > 0:
            message = f"{step}: dropped {dropped:,} of {rows_before:,} rows"
        else:
            message = f"{step}: row count grew from {rows_before:,} to {rows_after:,}"

        if self.strict:
            raise JoinKeyMismatch(message)
        logger.warning(message)
        return dropped

    @property
    def total_dropped(self) -> int:
        return sum(max(entry["rows_dropped"], 0) for entry in self.entries)

    def to_frame(self) -> pl.DataFrame:
        return pl.DataFrame(self.entries, schema=REPORT_SCHEMA)
