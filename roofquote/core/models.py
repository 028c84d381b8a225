"""
Domain models for the address → capture → analysis → cost workflow.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from .errors import OutOfRangeError

CAPTURE_ANGLES: Tuple[int, ...] = (0, 60, 120, 180, 240, 300)
SQ_FT_PER_SQUARE = 100.0


@dataclass(frozen=True)
class AddressCandidate:
    """Ranked, unresolved autocomplete match."""
    description: str
    id: str
    main_text: str = ""
    secondary_text: str = ""
    place_types: Tuple[str, ...] = ()

    @classmethod
    def from_prediction(cls, prediction: Dict[str, Any]) -> "AddressCandidate":
        formatting = prediction.get("structured_formatting") or {}
        return cls(
            description=prediction.get("description", ""),
            id=prediction.get("place_id", ""),
            main_text=formatting.get("main_text", ""),
            secondary_text=formatting.get("secondary_text", ""),
            place_types=tuple(prediction.get("types") or ()),
        )


@dataclass(frozen=True)
class AddressComponent:
    long_name: str
    short_name: str
    types: Tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AddressComponent":
        return cls(
            long_name=data.get("long_name", ""),
            short_name=data.get("short_name", ""),
            types=tuple(data.get("types") or ()),
        )


@dataclass(frozen=True)
class StructuredAddress:
    street_number: str = ""
    route: str = ""
    city: str = ""
    state: str = ""
    zip_code: str = ""

    @classmethod
    def from_components(cls, components: List[AddressComponent]) -> "StructuredAddress":
        values = {}
        for component in components:
            if "street_number" in component.types:
                values["street_number"] = component.long_name
            if "route" in component.types:
                values["route"] = component.long_name
            if "locality" in component.types:
                values["city"] = component.long_name
            if "administrative_area_level_1" in component.types:
                values["state"] = component.short_name
            if "postal_code" in component.types:
                values["zip_code"] = component.long_name
        return cls(**values)


@dataclass(frozen=True)
class Coordinates:
    lat: float
    lng: float


@dataclass(frozen=True)
class ResolvedPlace:
    """Fully resolved address with coordinates."""
    id: str
    formatted_address: str
    coordinates: Coordinates
    address_components: Tuple[AddressComponent, ...] = ()
    place_types: Tuple[str, ...] = ()
    structured_address: StructuredAddress = field(default_factory=StructuredAddress)

    def has_component(self, component_type: str) -> bool:
        return any(component_type in c.types for c in self.address_components)

    @property
    def is_complete(self) -> bool:
        """A street address needs both a street number and a route."""
        return self.has_component("street_number") and self.has_component("route")


class CaptureStatus(Enum):
    PENDING = "pending"
    CAPTURING = "capturing"
    ANALYZING = "analyzing"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True)
class CapturedFrame:
    """One rendered view, stored as a data URL."""
    heading: int
    data_url: str

    @property
    def base64_payload(self) -> str:
        _, _, payload = self.data_url.partition(",")
        return payload or self.data_url


@dataclass
class CaptureSession:
    address: str
    coordinates: Coordinates
    angles: Tuple[int, ...] = CAPTURE_ANGLES
    images: List[CapturedFrame] = field(default_factory=list)
    status: CaptureStatus = CaptureStatus.PENDING
    error: Optional[str] = None

    @property
    def is_active(self) -> bool:
        return self.status in (CaptureStatus.CAPTURING, CaptureStatus.ANALYZING)

    @property
    def captured_count(self) -> int:
        return len(self.images)

    @property
    def first_image(self) -> Optional[CapturedFrame]:
        return self.images[0] if self.images else None

    def fail(self, message: str) -> None:
        self.status = CaptureStatus.FAILED
        self.error = message


@dataclass(frozen=True)
class RoofMeasurements:
    area_sq_ft: float
    perimeter_ft: float
    pitch_degrees: float
    confidence: float

    def __post_init__(self):
        if self.area_sq_ft <= 0:
            raise OutOfRangeError(f"Roof area must be positive, got {self.area_sq_ft}")
        if self.perimeter_ft <= 0:
            raise OutOfRangeError(f"Roof perimeter must be positive, got {self.perimeter_ft}")
        if self.pitch_degrees < 0:
            raise OutOfRangeError(f"Roof pitch cannot be negative, got {self.pitch_degrees}")
        if not 0 <= self.confidence <= 1:
            raise OutOfRangeError(f"Confidence must be between 0 and 1, got {self.confidence}")

    @property
    def total_squares(self) -> float:
        return self.area_sq_ft / SQ_FT_PER_SQUARE

    def to_dict(self) -> Dict[str, float]:
        return {
            "area_sq_ft": self.area_sq_ft,
            "perimeter_ft": self.perimeter_ft,
            "pitch_degrees": self.pitch_degrees,
            "confidence_level": self.confidence,
        }


@dataclass(frozen=True)
class CostEstimate:
    area_sq_ft: float
    price_per_square: float
    total_squares: float
    total_cost: float
