"""
Roof Analyzer - estimate roof measurements from one satellite frame.

Sends a single image with a fixed instruction to the vision model and
parses a strict JSON object:

    {"area_sq_ft": ..., "perimeter_ft": ..., "pitch_degrees": ...,
     "confidence_level": ...}

Any missing, non-numeric or out-of-range field is a failure. Values are
never defaulted to zero.
"""

from __future__ import annotations

import logging
import math
from typing import Any, Dict, Optional

from ..ai.llm_client import VisionClient
from ..core.errors import InvalidResponseError
from ..core.models import RoofMeasurements
from ..utils.validation import ValidationError, validate_image_base64

logger = logging.getLogger(__name__)

ROOF_MEASUREMENT_PROMPT = (
    "You are a roof measurement expert. Analyze this satellite image of a roof "
    "and provide measurements in a JSON format with the following fields:\n\n"
    "- area_sq_ft: number (roof area in square feet)\n"
    "- perimeter_ft: number (roof perimeter in feet)\n"
    "- pitch_degrees: number (roof pitch in degrees)\n"
    "- confidence_level: number (between 0 and 1)\n\n"
    "The measurements should be realistic for a residential roof. "
    "Return ONLY a JSON object with these exact field names."
)

REQUIRED_FIELDS = ("area_sq_ft", "perimeter_ft", "pitch_degrees", "confidence_level")


def _numeric_field(data: Dict[str, Any], name: str) -> float:
    value = data.get(name)
    if value is None:
        raise InvalidResponseError(f"Invalid measurements in response: missing '{name}'")
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidResponseError(f"Invalid measurements in response: '{name}' is not a number")
    if not math.isfinite(value):
        raise InvalidResponseError(f"Invalid measurements in response: '{name}' is not finite")
    return float(value)


def parse_measurements(data: Optional[Dict[str, Any]]) -> RoofMeasurements:
    """
    Validate a decoded model answer.

    Raises:
        InvalidResponseError: No JSON object, or a field missing / non-numeric
        OutOfRangeError: A field outside its allowed range
    """
    if not isinstance(data, dict):
        raise InvalidResponseError("Vision response did not contain a JSON object")

    values = {name: _numeric_field(data, name) for name in REQUIRED_FIELDS}

    return RoofMeasurements(
        area_sq_ft=values["area_sq_ft"],
        perimeter_ft=values["perimeter_ft"],
        pitch_degrees=values["pitch_degrees"],
        confidence=values["confidence_level"],
    )


class RoofAnalyzer:
    """
    Analyze a roof from one base64-encoded satellite frame.

    Usage:
        analyzer = RoofAnalyzer(VisionClient(api_key="..."))
        measurements = analyzer.analyze(frame.base64_payload)
    """

    def __init__(self, client: VisionClient, prompt: str = ROOF_MEASUREMENT_PROMPT):
        self.client = client
        self.prompt = prompt

    def analyze(self, image_base64: str) -> RoofMeasurements:
        """
        Estimate roof measurements.

        Raises:
            TransportFailure: Vision service unreachable or errored
            InvalidResponseError: Malformed answer or bad image payload
            OutOfRangeError: Answer present but out of range
        """
        try:
            payload = validate_image_base64(image_base64)
        except ValidationError as e:
            raise InvalidResponseError(f"Cannot analyze image: {e}", cause=e)

        logger.info("Starting roof analysis...")
        response = self.client.analyze_image_base64(
            payload,
            prompt=self.prompt,
            detail="high",
            temperature=0,
            json_mode=True,
        )

        measurements = parse_measurements(response.as_json())
        logger.info(
            f"Roof analysis: {measurements.area_sq_ft:.0f} sq ft, "
            f"{measurements.perimeter_ft:.0f} ft, {measurements.pitch_degrees:.0f}°, "
            f"confidence {measurements.confidence:.0%}"
        )
        return measurements
