"""
Map viewports - the single rendering surface the capture loop drives.

A viewport is mounted at a location, pointed at a compass heading and asked
for a snapshot of what it currently shows. SatelliteViewport renders headings
by rotating one satellite basemap fetched at mount time.
"""

import base64
import logging
import math
from abc import ABC, abstractmethod
from io import BytesIO
from typing import Optional

from PIL import Image

from ..core.config import Settings
from ..core.errors import CaptureError, ResourceNotReadyError
from ..core.models import Coordinates
from ..ingest.satellite_fetcher import SatelliteFetcher
from ..utils.validation import validate_heading

logger = logging.getLogger(__name__)


class MapViewport(ABC):
    """Interface for a heading-controllable map surface."""

    @property
    @abstractmethod
    def is_ready(self) -> bool:
        """Mounted and initialised at a location."""

    @property
    @abstractmethod
    def coordinates(self) -> Optional[Coordinates]:
        """Location the viewport is centred on, if mounted."""

    @abstractmethod
    def mount(self, coordinates: Coordinates) -> None:
        """Initialise the surface centred on coordinates."""

    @abstractmethod
    def set_heading(self, heading: int) -> None:
        """Rotate the camera to a compass heading."""

    @abstractmethod
    def snapshot(self) -> str:
        """Render the current view to a data URL."""

    def unmount(self) -> None:
        """Release the surface."""


class SatelliteViewport(MapViewport):
    """
    Satellite basemap viewport backed by Google Static Maps.

    Usage:
        viewport = SatelliteViewport(SatelliteFetcher(api_key="..."))
        viewport.mount(Coordinates(37.7749, -122.4194))
        viewport.set_heading(60)
        data_url = viewport.snapshot()
    """

    def __init__(
        self,
        fetcher: SatelliteFetcher,
        zoom: int = 20,
        tilt: int = 45,
        view_size: int = 640,
        jpeg_quality: int = 85,
    ):
        self.fetcher = fetcher
        self.zoom = zoom
        self.tilt = tilt
        self.view_size = view_size
        self.jpeg_quality = jpeg_quality
        self.heading = 0
        self._basemap: Optional[Image.Image] = None
        self._coordinates: Optional[Coordinates] = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "SatelliteViewport":
        return cls(
            SatelliteFetcher.from_settings(settings),
            zoom=settings.map_zoom,
            tilt=settings.map_tilt,
            view_size=settings.view_size,
            jpeg_quality=settings.jpeg_quality,
        )

    @property
    def is_ready(self) -> bool:
        return self._basemap is not None and self._coordinates is not None

    @property
    def coordinates(self) -> Optional[Coordinates]:
        return self._coordinates

    def mount(self, coordinates: Coordinates) -> None:
        satellite = self.fetcher.fetch_satellite_image(
            coordinates.lat,
            coordinates.lng,
            zoom=self.zoom,
            size=(self.view_size, self.view_size),
        )
        self._basemap = satellite.image
        self._coordinates = coordinates
        self.heading = 0
        logger.info(
            f"Viewport mounted at ({coordinates.lat:.5f}, {coordinates.lng:.5f}), "
            f"zoom={self.zoom}, {satellite.meters_per_pixel:.3f} m/px"
        )

    def unmount(self) -> None:
        self._basemap = None
        self._coordinates = None

    def set_heading(self, heading: int) -> None:
        if not self.is_ready:
            raise ResourceNotReadyError("Viewport not initialized")
        self.heading = validate_heading(heading)

    def snapshot(self) -> str:
        if self._basemap is None:
            raise ResourceNotReadyError("Rendering surface not mounted")

        try:
            frame = self._render(self._basemap, self.heading)
            buffer = BytesIO()
            frame.save(buffer, format="JPEG", quality=self.jpeg_quality)
        except (OSError, ValueError) as e:
            raise CaptureError(f"Snapshot at {self.heading}° failed: {e}", cause=e)

        encoded = base64.b64encode(buffer.getvalue()).decode("ascii")
        return f"data:image/jpeg;base64,{encoded}"

    def _render(self, basemap: Image.Image, heading: int) -> Image.Image:
        # Heading is clockwise from north, so the ground turns counter-clockwise
        rotated = basemap.rotate(heading, resample=Image.Resampling.BICUBIC, expand=False)

        # Largest centred square free of the blank corners rotation leaves behind
        side = int(min(rotated.width, rotated.height) / math.sqrt(2))
        left = (rotated.width - side) // 2
        top = (rotated.height - side) // 2
        view = rotated.crop((left, top, left + side, top + side))

        return view.resize((self.view_size, self.view_size), Image.Resampling.LANCZOS)
