"""Viewport and multi-heading capture."""

from .viewport import MapViewport, SatelliteViewport
from .capture_loop import ImageCaptureLoop

__all__ = ["MapViewport", "SatelliteViewport", "ImageCaptureLoop"]
