"""
Google Places client.

Thin wrapper over the Places Autocomplete and Place Details web services.
Returns the provider payloads as dicts; turning them into domain objects is
the resolver's job.

Usage:
    client = PlacesClient(api_key="...")
    predictions = client.autocomplete("123 Main")
    place = client.details(predictions[0]["place_id"])
"""

import logging
from typing import Any, Dict, List, Optional

import requests

from ..core.config import Settings
from ..core.errors import InvalidResponseError, PlaceNotFoundError, TransportFailure

logger = logging.getLogger(__name__)

DETAIL_FIELDS = [
    "address_components",
    "geometry",
    "formatted_address",
    "types",
    "name",
    "place_id",
]

OK_STATUSES = {"OK", "ZERO_RESULTS"}
NOT_FOUND_STATUSES = {"NOT_FOUND", "INVALID_REQUEST"}


class PlacesClient:
    """Google Places web service client (autocomplete + details)."""

    BASE_URL = "https://maps.googleapis.com/maps/api/place"

    def __init__(
        self,
        api_key: str,
        country: str = "us",
        timeout: float = 10.0,
        session: Optional[requests.Session] = None,
    ):
        self.api_key = api_key
        self.country = country
        self.timeout = timeout
        self._session = session or requests.Session()

    @classmethod
    def from_settings(cls, settings: Settings, session: Optional[requests.Session] = None) -> "PlacesClient":
        return cls(
            api_key=settings.require_google_maps_key(),
            country=settings.country,
            timeout=settings.places_timeout,
            session=session,
        )

    def _get(self, endpoint: str, params: Dict[str, Any]) -> Dict[str, Any]:
        url = f"{self.BASE_URL}/{endpoint}/json"
        params = {**params, "key": self.api_key}

        try:
            response = self._session.get(url, params=params, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            logger.error(
                f"Places {endpoint} request failed: {e}",
                extra={"error_type": type(e).__name__},
            )
            raise TransportFailure(f"Places {endpoint} request failed: {e}", cause=e)

        try:
            data = response.json()
        except ValueError as e:
            raise InvalidResponseError(f"Places {endpoint} returned non-JSON body", cause=e)

        if not isinstance(data, dict):
            raise InvalidResponseError(f"Places {endpoint} returned unexpected payload")
        return data

    def autocomplete(self, text: str) -> List[Dict[str, Any]]:
        """
        Fetch address predictions for partial input.

        Args:
            text: Free-text input

        Returns:
            Ranked list of prediction dicts

        Raises:
            TransportFailure: Network error or non-OK status
        """
        data = self._get(
            "autocomplete",
            {
                "input": text,
                "types": "address",
                "components": f"country:{self.country}",
            },
        )

        status = data.get("status", "UNKNOWN_ERROR")
        if status not in OK_STATUSES:
            message = data.get("error_message") or status
            logger.error(f"Autocomplete rejected: {message}")
            raise TransportFailure(f"Failed to fetch address suggestions: {message}")

        predictions = data.get("predictions") or []
        logger.debug(f"Autocomplete '{text}' -> {len(predictions)} predictions")
        return predictions

    def details(self, place_id: str) -> Dict[str, Any]:
        """
        Fetch place details for a prediction.

        Raises:
            PlaceNotFoundError: Unknown place ID
            TransportFailure: Network error or non-OK status
            InvalidResponseError: Result missing place_id or geometry
        """
        data = self._get(
            "details",
            {"place_id": place_id, "fields": ",".join(DETAIL_FIELDS)},
        )

        status = data.get("status", "UNKNOWN_ERROR")
        if status in NOT_FOUND_STATUSES or (status == "OK" and not data.get("result")):
            raise PlaceNotFoundError(f"Place details not found for {place_id}")
        if status != "OK":
            message = data.get("error_message") or status
            logger.error(f"Place details rejected: {message}", extra={"place_id": place_id})
            raise TransportFailure(f"Failed to fetch place details: {message}")

        result = data["result"]
        if not result.get("place_id") or not result.get("geometry"):
            raise InvalidResponseError("Missing required place details")
        return result

    def close(self) -> None:
        self._session.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
