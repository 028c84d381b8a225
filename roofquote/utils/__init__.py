"""Utility modules."""

from .logging_config import (
    get_logger,
    setup_logging,
    RoofQuoteFormatter,
    FileFormatter,
    ContextAdapter,
)
from .validation import (
    validate_search_text,
    validate_coordinates,
    validate_heading,
    validate_image_base64,
    ValidationError,
)
from .debounce import Debouncer

__all__ = [
    # Logging
    "get_logger",
    "setup_logging",
    "RoofQuoteFormatter",
    "FileFormatter",
    "ContextAdapter",
    # Validation
    "validate_search_text",
    "validate_coordinates",
    "validate_heading",
    "validate_image_base64",
    "ValidationError",
    # Async helpers
    "Debouncer",
]
