# ============================================================================
# FILE: errors.py
# Exception taxonomy shared by the services
# ============================================================================

from typing import Optional


class PicoZotError(Exception):
    """Base class for all add-on errors."""


class ConfigurationError(PicoZotError):
    """The configuration is missing something an operation needs."""


class NotInitialized(ConfigurationError):
    """No API key is configured for the text generation client."""


class RemoteAPIError(PicoZotError):
    """The text generation endpoint answered with a non-success status."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code

    def __str__(self) -> str:
        return f"AI API error: {self.message}"


class ExtractionError(PicoZotError):
    """The model output could not be turned into a PICO record."""


class NoCitations(PicoZotError):
    """A review was requested but no citation metadata could be resolved."""


class ContentUnavailable(PicoZotError):
    """An item has no analysable text. Batch runs treat this as a skip."""
