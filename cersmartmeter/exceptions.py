"""Exception types raised by the CER loaders and pipeline."""


class CerDataError(Exception):
    """Base class for CER data errors."""


class MissingDataSource(CerDataError, FileNotFoundError):
    """A required input file or directory is absent."""


class SchemaMismatch(CerDataError, ValueError):
    """An input table does not have the expected columns."""


class JoinKeyMismatch(CerDataError):
    """A join changed the row count and the caller asked for strict joins."""
