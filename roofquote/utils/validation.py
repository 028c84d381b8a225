"""
Input validation utilities for RoofQuote.

Usage:
    from roofquote.utils.validation import (
        validate_search_text,
        validate_coordinates,
        ValidationError,
    )

    text = validate_search_text("123 Main")
    lat, lng = validate_coordinates(37.7749, -122.4194)
"""

import base64
import binascii
import logging
import math
from typing import List, Optional, Tuple

logger = logging.getLogger(__name__)


class ValidationError(ValueError):
    """Raised when input validation fails."""

    def __init__(self, message: str, field: str = "", suggestions: Optional[List[str]] = None):
        super().__init__(message)
        self.field = field
        self.suggestions = suggestions or []


def validate_search_text(text: str, min_length: int = 3) -> str:
    """
    Normalize autocomplete input.

    Returns:
        The text with runs of whitespace collapsed

    Raises:
        ValidationError: If the text is shorter than min_length
    """
    cleaned = " ".join((text or "").split())
    if len(cleaned) < min_length:
        raise ValidationError(
            f"Search text too short: '{cleaned}'",
            field="input",
            suggestions=[f"Type at least {min_length} characters"],
        )
    return cleaned


def validate_coordinates(latitude: float, longitude: float) -> Tuple[float, float]:
    """
    Validate geographic coordinates.

    Raises:
        ValidationError: If coordinates are not finite or out of range
    """
    try:
        lat = float(latitude)
        lng = float(longitude)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Coordinates must be numeric: {e}", field="coordinates")

    if not (math.isfinite(lat) and math.isfinite(lng)):
        raise ValidationError("Coordinates must be finite", field="coordinates")
    if not -90 <= lat <= 90:
        raise ValidationError(f"Latitude {lat} out of range [-90, 90]", field="latitude")
    if not -180 <= lng <= 180:
        raise ValidationError(f"Longitude {lng} out of range [-180, 180]", field="longitude")

    return lat, lng


def validate_heading(heading: float) -> int:
    """Normalize a compass heading to 0-359 degrees."""
    try:
        value = float(heading)
    except (TypeError, ValueError):
        raise ValidationError(f"Heading must be numeric, got {heading!r}", field="heading")
    if not math.isfinite(value):
        raise ValidationError("Heading must be finite", field="heading")
    return int(round(value)) % 360


def validate_image_base64(payload: str) -> str:
    """
    Check that an image payload is non-empty base64.

    Accepts either a bare payload or a data URL and returns the bare payload.
    """
    if not payload:
        raise ValidationError("Image payload is empty", field="image")

    if payload.startswith("data:"):
        _, _, payload = payload.partition(",")
        if not payload:
            raise ValidationError("Data URL carries no image data", field="image")

    try:
        base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValidationError(f"Image payload is not valid base64: {e}", field="image")

    return payload
