"""Clients for the external map services."""

from .places_client import PlacesClient
from .satellite_fetcher import SatelliteFetcher, SatelliteImage

__all__ = ["PlacesClient", "SatelliteFetcher", "SatelliteImage"]
