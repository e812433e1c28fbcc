# services/importer/exceptions.py
"""
Errors that escape the importer.

Item- and field-level problems (a media download failing, a selector that
matches nothing) are logged and absorbed; only the failures below reach the
caller.
"""


class ImporterError(Exception):
    """Base class for importer failures surfaced to callers."""


class RecordCreationError(ImporterError):
    """Raised when the content store refuses to create the final record."""

    def __init__(self, content_type: str, reason: str = ""):
        message = f"Could not create '{content_type}' record"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.content_type = content_type


class DocumentFetchError(ImporterError):
    """Raised when the input document cannot be downloaded after retries."""

    def __init__(self, url: str, reason: str = ""):
        super().__init__(f"Failed to fetch document {url}: {reason}" if reason else f"Failed to fetch document {url}")
        self.url = url
