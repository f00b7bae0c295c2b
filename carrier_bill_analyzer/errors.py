class AnalyzerError(Exception):
    """Base class for errors surfaced to the user."""

class ExtractionError(AnalyzerError):
    """The extraction service failed or returned an unusable payload."""

class ValidationError(AnalyzerError):
    """Manual entry was submitted without the required fields."""

class InvalidTransition(AnalyzerError):
    """A session operation was attempted from a state that does not allow it."""
