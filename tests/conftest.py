"""
Pytest configuration and fixtures for RoofQuote tests.

Provides reusable test fixtures for:
- Settings with test credentials and no settle delay
- Google Places payloads (complete street address, locality only)
- Fake places client, viewport and analyzer for the shell
- Mock HTTP responses for the requests-based clients
"""

import base64
import logging
import shutil
import tempfile
from pathlib import Path
from typing import Dict, List, Optional
from unittest.mock import MagicMock

import pytest

from roofquote.capture.viewport import MapViewport
from roofquote.core.config import Settings
from roofquote.core.errors import PlaceNotFoundError
from roofquote.core.models import Coordinates, RoofMeasurements
from roofquote.geo.address_resolver import AddressResolver
from roofquote.orchestrator.shell import RoofQuoteShell


# =============================================================================
# LOGGING
# =============================================================================

@pytest.fixture(autouse=True)
def restore_logging():
    """Undo setup_logging() calls made by a test (CLI commands make them)."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


# =============================================================================
# PATH FIXTURES
# =============================================================================

@pytest.fixture
def temp_dir():
    """Temporary directory for test outputs, cleaned up after test."""
    tmp = tempfile.mkdtemp(prefix="roofquote_test_")
    yield Path(tmp)
    shutil.rmtree(tmp, ignore_errors=True)


# =============================================================================
# SETTINGS FIXTURES
# =============================================================================

@pytest.fixture
def settings() -> Settings:
    """Settings with test keys; captures without waiting between headings."""
    return Settings(
        _env_file=None,
        google_maps_api_key="test-maps-key",
        openai_api_key="test-openai-key",
        settle_delay=0,
        debounce_ms=300,
    )


# =============================================================================
# GOOGLE PLACES PAYLOADS
# =============================================================================

@pytest.fixture
def sample_predictions() -> List[Dict]:
    """Autocomplete predictions for '123 Test'."""
    return [
        {
            "description": "123 Test St, San Francisco, CA, USA",
            "place_id": "place-123",
            "structured_formatting": {
                "main_text": "123 Test St",
                "secondary_text": "San Francisco, CA, USA",
            },
            "types": ["street_address", "geocode"],
        },
        {
            "description": "123 Test Ave, Oakland, CA, USA",
            "place_id": "place-456",
            "structured_formatting": {
                "main_text": "123 Test Ave",
                "secondary_text": "Oakland, CA, USA",
            },
            "types": ["street_address", "geocode"],
        },
    ]


@pytest.fixture
def complete_place() -> Dict:
    """Place details for a full street address."""
    return {
        "place_id": "place-123",
        "formatted_address": "123 Test St, San Francisco, CA 94103, USA",
        "name": "123 Test St",
        "types": ["street_address"],
        "geometry": {"location": {"lat": 37.7749, "lng": -122.4194}},
        "address_components": [
            {"long_name": "123", "short_name": "123", "types": ["street_number"]},
            {"long_name": "Test Street", "short_name": "Test St", "types": ["route"]},
            {"long_name": "San Francisco", "short_name": "SF", "types": ["locality", "political"]},
            {
                "long_name": "California",
                "short_name": "CA",
                "types": ["administrative_area_level_1", "political"],
            },
            {"long_name": "94103", "short_name": "94103", "types": ["postal_code"]},
        ],
    }


@pytest.fixture
def locality_place() -> Dict:
    """Place details for a city with no street number or route."""
    return {
        "place_id": "place-sf",
        "formatted_address": "San Francisco, CA, USA",
        "name": "San Francisco",
        "types": ["locality", "political"],
        "geometry": {"location": {"lat": 37.7749, "lng": -122.4194}},
        "address_components": [
            {"long_name": "San Francisco", "short_name": "SF", "types": ["locality", "political"]},
            {
                "long_name": "California",
                "short_name": "CA",
                "types": ["administrative_area_level_1", "political"],
            },
        ],
    }


# =============================================================================
# FAKE CLIENTS
# =============================================================================

class FakePlacesClient:
    """In-memory stand-in for PlacesClient."""

    def __init__(self, predictions: Optional[List[Dict]] = None, places: Optional[Dict[str, Dict]] = None):
        self.predictions = predictions or []
        self.places = places or {}
        self.autocomplete_calls: List[str] = []
        self.details_calls: List[str] = []
        self.autocomplete_error: Optional[Exception] = None

    def autocomplete(self, text: str) -> List[Dict]:
        self.autocomplete_calls.append(text)
        if self.autocomplete_error is not None:
            raise self.autocomplete_error
        return list(self.predictions)

    def details(self, place_id: str) -> Dict:
        self.details_calls.append(place_id)
        if place_id not in self.places:
            raise PlaceNotFoundError(f"Place details not found for {place_id}")
        return self.places[place_id]


def frame_data_url(heading: int) -> str:
    payload = base64.b64encode(f"frame-{heading}".encode()).decode("ascii")
    return f"data:image/jpeg;base64,{payload}"


class FakeViewport(MapViewport):
    """Viewport that renders a labelled payload per heading."""

    def __init__(self, fail_at: Optional[int] = None):
        self.fail_at = fail_at
        self.headings: List[int] = []
        self.mount_calls: List[Coordinates] = []
        self.unmount_calls = 0
        self.heading: Optional[int] = None
        self._coordinates: Optional[Coordinates] = None

    @property
    def is_ready(self) -> bool:
        return self._coordinates is not None

    @property
    def coordinates(self) -> Optional[Coordinates]:
        return self._coordinates

    def mount(self, coordinates: Coordinates) -> None:
        self.mount_calls.append(coordinates)
        self._coordinates = coordinates

    def unmount(self) -> None:
        self.unmount_calls += 1
        self._coordinates = None

    def set_heading(self, heading: int) -> None:
        self.heading = heading
        self.headings.append(heading)

    def snapshot(self) -> str:
        if self.heading == self.fail_at:
            raise RuntimeError("WebGL context lost")
        return frame_data_url(self.heading)


class FakeAnalyzer:
    """Returns fixed measurements, or raises the configured error."""

    def __init__(self, measurements: Optional[RoofMeasurements] = None, error: Optional[Exception] = None):
        self.measurements = measurements
        self.error = error
        self.payloads: List[str] = []

    def analyze(self, image_base64: str) -> RoofMeasurements:
        self.payloads.append(image_base64)
        if self.error is not None:
            raise self.error
        return self.measurements


@pytest.fixture
def roof_measurements() -> RoofMeasurements:
    return RoofMeasurements(area_sq_ft=1000, perimeter_ft=130, pitch_degrees=30, confidence=0.85)


@pytest.fixture
def places_client(sample_predictions, complete_place, locality_place) -> FakePlacesClient:
    return FakePlacesClient(
        predictions=sample_predictions,
        places={
            complete_place["place_id"]: complete_place,
            locality_place["place_id"]: locality_place,
        },
    )


@pytest.fixture
def resolver(places_client) -> AddressResolver:
    return AddressResolver(places_client)


@pytest.fixture
def viewport() -> FakeViewport:
    return FakeViewport()


@pytest.fixture
def analyzer(roof_measurements) -> FakeAnalyzer:
    return FakeAnalyzer(measurements=roof_measurements)


@pytest.fixture
def shell(resolver, viewport, analyzer, settings) -> RoofQuoteShell:
    """Shell wired to fakes; no network, no settle delay."""
    return RoofQuoteShell(resolver, viewport, analyzer, settings=settings)


# =============================================================================
# HTTP FIXTURES
# =============================================================================

def make_response(json_data=None, status_code: int = 200, content: bytes = b"", text: str = ""):
    """Mock requests.Response."""
    response = MagicMock()
    response.status_code = status_code
    response.ok = 200 <= status_code < 400
    response.content = content
    response.text = text
    if isinstance(json_data, Exception):
        response.json.side_effect = json_data
    else:
        response.json.return_value = json_data
    return response


@pytest.fixture
def http_session() -> MagicMock:
    """Mock requests.Session; set .get / .post return values per test."""
    return MagicMock()


@pytest.fixture
def response_factory():
    """Factory for mock requests.Response objects."""
    return make_response


@pytest.fixture
def failing_viewport() -> FakeViewport:
    """Viewport whose snapshot fails at heading 120."""
    return FakeViewport(fail_at=120)
