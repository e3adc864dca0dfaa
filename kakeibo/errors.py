"""
Error taxonomy for the Excel import pipeline.

Row-level problems (blank cells, non-numeric amounts, bad dates) are
recovered locally by skipping the row; everything raised from here up
aborts the current Analyze or Execute phase.
"""


class ExcelImportError(Exception):
    """Base class for import pipeline failures."""


class InvalidUpload(ExcelImportError):
    """No file was uploaded, or the upload is not a readable workbook."""


class InvalidDate(ExcelImportError, ValueError):
    """A date cell could not be parsed into a calendar date."""


class SessionNotFound(ExcelImportError):
    """The import token does not resolve to a stored workbook."""


class StorageError(ExcelImportError):
    """A delete or insert against the transactions table failed."""


class StreamError(ExcelImportError):
    """The caller went away while progress events were being emitted."""
