"""Core models, configuration and errors."""

from .config import Settings, get_settings
from .errors import (
    RoofQuoteError,
    ConfigurationError,
    TransportFailure,
    InvalidResponseError,
    OutOfRangeError,
    PlaceNotFoundError,
    BusinessRuleRejection,
    IncompleteAddressError,
    ResourceNotReadyError,
    CaptureError,
)
from .models import (
    CAPTURE_ANGLES,
    AddressCandidate,
    AddressComponent,
    StructuredAddress,
    Coordinates,
    ResolvedPlace,
    CaptureStatus,
    CapturedFrame,
    CaptureSession,
    RoofMeasurements,
    CostEstimate,
)

__all__ = [
    "Settings",
    "get_settings",
    # Errors
    "RoofQuoteError",
    "ConfigurationError",
    "TransportFailure",
    "InvalidResponseError",
    "OutOfRangeError",
    "PlaceNotFoundError",
    "BusinessRuleRejection",
    "IncompleteAddressError",
    "ResourceNotReadyError",
    "CaptureError",
    # Models
    "CAPTURE_ANGLES",
    "AddressCandidate",
    "AddressComponent",
    "StructuredAddress",
    "Coordinates",
    "ResolvedPlace",
    "CaptureStatus",
    "CapturedFrame",
    "CaptureSession",
    "RoofMeasurements",
    "CostEstimate",
]
