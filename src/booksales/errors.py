"""Exceptions raised across the booksales pipeline."""
from __future__ import annotations


class BookSalesError(Exception):
    """Base class for pipeline errors."""


class FileDecodeError(BookSalesError, ValueError):
    """A source file could not be decoded into rows."""


class MissingColumnsError(FileDecodeError):
    """A decoded file has no Identifier or Quantity column after normalization."""

    def __init__(self, file_name: str, missing: list[str], headers: list[str]):
        self.file_name = file_name
        self.missing = missing
        self.headers = headers
        super().__init__(f"{file_name}: missing canonical columns {missing} (headers: {headers})")


class SourceEnumerationError(BookSalesError):
    """The file source could not list the requested folder."""


class MetadataLookupError(BookSalesError):
    """The catalog lookup failed or returned an unexpected shape."""


class PipelineError(BookSalesError, RuntimeError):
    """End-to-end failure surfaced to the caller of run_pipeline."""
