"""
Satellite Image Fetcher

Fetches the satellite basemap around a building from the Google Maps Static
API. The capture viewport rotates this raster to emulate camera headings.
"""

import logging
import math
from dataclasses import dataclass
from io import BytesIO
from typing import Optional, Tuple

import requests
from PIL import Image, UnidentifiedImageError

from ..core.config import Settings
from ..core.errors import InvalidResponseError, TransportFailure

logger = logging.getLogger(__name__)


@dataclass
class SatelliteImage:
    """Satellite image with metadata."""
    image: Image.Image
    center_lat: float
    center_lng: float
    zoom: int
    size: Tuple[int, int]
    meters_per_pixel: float


class SatelliteFetcher:
    """Fetch satellite imagery from Google Maps Static API."""

    STATIC_MAP_URL = "https://maps.googleapis.com/maps/api/staticmap"

    # Earth's circumference at equator
    EARTH_CIRCUMFERENCE_M = 40075016.686

    # Static Maps caps the requested size at 640x640 before scaling
    MAX_SIZE = 640

    def __init__(
        self,
        api_key: str,
        timeout: float = 30.0,
        session: Optional[requests.Session] = None,
    ):
        self.api_key = api_key
        self.timeout = timeout
        self._session = session or requests.Session()

    @classmethod
    def from_settings(cls, settings: Settings, session: Optional[requests.Session] = None) -> "SatelliteFetcher":
        return cls(api_key=settings.require_google_maps_key(), session=session)

    def fetch_satellite_image(
        self,
        lat: float,
        lng: float,
        zoom: int = 20,
        size: Tuple[int, int] = (640, 640),
        scale: int = 2,
    ) -> SatelliteImage:
        """
        Fetch satellite image centered on coordinates.

        Args:
            lat, lng: Center coordinates
            zoom: Zoom level (1-21, 19-20 recommended for buildings)
            size: Image size in pixels (max 640x640)
            scale: Image scale (1 or 2, 2 for higher resolution)

        Returns:
            SatelliteImage with image and metadata

        Raises:
            TransportFailure: Network error or non-200 response
            InvalidResponseError: Body is not a decodable image
        """
        width = min(size[0], self.MAX_SIZE)
        height = min(size[1], self.MAX_SIZE)
        params = {
            "center": f"{lat},{lng}",
            "zoom": zoom,
            "size": f"{width}x{height}",
            "scale": scale,
            "maptype": "satellite",
            "format": "png",
            "key": self.api_key,
        }

        try:
            response = self._session.get(self.STATIC_MAP_URL, params=params, timeout=self.timeout)
        except requests.RequestException as e:
            logger.error(f"Satellite fetch error: {e}", extra={"error_type": type(e).__name__})
            raise TransportFailure(f"Satellite fetch error: {e}", cause=e)

        if response.status_code != 200:
            logger.error(f"Satellite fetch failed: {response.status_code}")
            raise TransportFailure(f"Satellite fetch failed with status {response.status_code}")

        try:
            img = Image.open(BytesIO(response.content))
            img.load()
        except (UnidentifiedImageError, OSError) as e:
            raise InvalidResponseError("Satellite response is not an image", cause=e)

        logger.debug(f"Satellite image {img.width}x{img.height} at zoom {zoom}")

        return SatelliteImage(
            image=img.convert("RGB"),
            center_lat=lat,
            center_lng=lng,
            zoom=zoom,
            size=(img.width, img.height),
            meters_per_pixel=self._meters_per_pixel(lat, zoom, scale),
        )

    def _meters_per_pixel(self, lat: float, zoom: int, scale: int = 1) -> float:
        """Calculate meters per pixel at given latitude and zoom."""
        return (
            self.EARTH_CIRCUMFERENCE_M * math.cos(math.radians(lat))
            / (256 * (2 ** zoom) * scale)
        )

    def close(self) -> None:
        self._session.close()
