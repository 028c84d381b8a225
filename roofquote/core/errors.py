"""
Error taxonomy for RoofQuote.

Every failure raised by a client or workflow step derives from RoofQuoteError
and carries a message fit for display. The orchestrating shell catches these
at the operation boundary and turns them into its error banner.
"""

from typing import Optional


class RoofQuoteError(Exception):
    """Base class for all RoofQuote failures."""

    default_message = "Something went wrong"

    def __init__(self, message: Optional[str] = None, *, cause: Optional[BaseException] = None):
        super().__init__(message or self.default_message)
        self.cause = cause

    @property
    def user_message(self) -> str:
        return str(self)


class ConfigurationError(RoofQuoteError):
    """A required credential or setting is missing."""

    default_message = "Service is not configured"


class TransportFailure(RoofQuoteError):
    """Network failure or a non-success status from a remote service."""

    default_message = "Service unavailable"


class InvalidResponseError(RoofQuoteError):
    """A remote payload was malformed or missing required fields."""

    default_message = "Invalid response from service"


class OutOfRangeError(InvalidResponseError):
    """A measurement was present but outside its allowed range."""

    default_message = "Invalid measurement values"


class PlaceNotFoundError(RoofQuoteError):
    """The provider has no place for the given identifier."""

    default_message = "Place details not found"


class BusinessRuleRejection(RoofQuoteError):
    """Input was well-formed but not acceptable to the workflow."""


class IncompleteAddressError(BusinessRuleRejection):
    """A resolved place lacks a street number or route."""

    default_message = "Please enter a complete street address"


class ResourceNotReadyError(RoofQuoteError):
    """The map viewport or coordinates are not available yet."""

    default_message = "Map is not ready for capture"


class CaptureError(RoofQuoteError):
    """A single frame could not be captured; the whole session is aborted."""

    default_message = "Failed to capture images"
