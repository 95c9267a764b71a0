"""
import_engine.errors - Loader exception hierarchy.

Row-level kinds (recovered locally: the row is rolled back, the file
continues):
    StructuralInputError   malformed identifier / field, missing column
    ReferentialError       required parent row does not exist
    ConstraintViolation    storage rejected a write

File / run-level kinds (surfaced to the caller):
    StreamError            source stream failed mid-read
    ConfigurationError     settings or connections unavailable at startup

Every exception carries optional structured context (row ordinal,
natural key, free-form details) for logging and reporting.
"""

from __future__ import annotations

from typing import Optional


class LoaderError(Exception):
    """Base exception for all loader errors."""

    def __init__(
        self,
        message: str,
        *,
        row: Optional[int] = None,
        key: Optional[str] = None,
        details: Optional[dict] = None,
    ) -> None:
        self.row = row
        self.key = key
        self.details = details or {}
        super().__init__(message)

    @property
    def kind(self) -> str:
        return type(self).__name__


class StructuralInputError(LoaderError):
    pass


class ReferentialError(LoaderError):
    pass


class ConstraintViolation(LoaderError):
    pass


class StreamError(LoaderError):
    pass


class ConfigurationError(LoaderError):
    pass


ROW_ERROR_KINDS = (StructuralInputError, ReferentialError, ConstraintViolation)


class RowError(Exception):
    """
    Raised inside an importer when a row cannot be imported.
    Converted to a rejected RowOutcome by RowProcessor.process().
    """

    def __init__(self, reason: str, kind: type[LoaderError] = StructuralInputError) -> None:
        if kind not in ROW_ERROR_KINDS:
            raise TypeError(f"{kind.__name__} is not a row-level error kind")
        self.kind = kind
        super().__init__(reason)
