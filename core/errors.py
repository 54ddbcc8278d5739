"""Exceptions raised by ingestion and session flows."""

from __future__ import annotations


class DashboardError(Exception):
    """Base exception for failures the UI surfaces as a blocking alert."""


class UploadReadError(DashboardError):
    """Raised when the uploaded file cannot be read or decoded."""


class CsvParseError(DashboardError):
    """Raised when the CSV text is structurally invalid."""

    def __init__(self, message: str, *, errors: list[str] | None = None) -> None:
        super().__init__(message)
        self.errors = list(errors or [])


class StateImportError(DashboardError):
    """Raised when a session snapshot cannot be restored."""


class MappingError(DashboardError, ValueError):
    """Raised when a manual column override is not valid."""

    def __init__(self, message: str, *, field: str | None = None, header: str | None = None) -> None:
        super().__init__(message)
        self.field = field
        self.header = header
