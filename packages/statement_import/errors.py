"""Exceptions raised by the statement import pipeline."""


class StatementImportError(Exception):
    """Base error for the statement import package."""


class UnsupportedFormatError(StatementImportError):
    """File extension is not one of the accepted statement formats."""


class ExtractionError(StatementImportError):
    """Text could not be extracted from the uploaded document."""

    def __init__(self, message: str, details: str = ""):
        super().__init__(message)
        self.details = details


class InvalidTransitionError(StatementImportError):
    """A candidate transaction or import batch was moved to an illegal state."""
