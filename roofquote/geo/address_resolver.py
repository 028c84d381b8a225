"""
Address Resolver for RoofQuote

Turns partial input into ranked address candidates and a chosen candidate
into a ResolvedPlace with coordinates.

Only complete street addresses are accepted: a place must carry both a
street_number and a route component, otherwise IncompleteAddressError is
raised. That is a business-rule rejection, distinct from transport errors.

Usage:
    resolver = AddressResolver(PlacesClient(api_key="..."))

    candidates = resolver.search("123 Main")
    place = resolver.resolve_details(candidates[0].id)
"""

import logging
from typing import List

from ..core.errors import IncompleteAddressError, InvalidResponseError
from ..core.models import (
    AddressCandidate,
    AddressComponent,
    Coordinates,
    ResolvedPlace,
    StructuredAddress,
)
from ..ingest.places_client import PlacesClient
from ..utils.validation import ValidationError, validate_coordinates, validate_search_text

logger = logging.getLogger(__name__)


class AddressResolver:
    """Search and resolve street addresses through a places client."""

    def __init__(self, client: PlacesClient, min_query_length: int = 3):
        self.client = client
        self.min_query_length = min_query_length

    def search(self, text: str) -> List[AddressCandidate]:
        """
        Find address candidates for partial input.

        Input shorter than min_query_length returns no candidates without
        calling the provider.

        Raises:
            TransportFailure: Provider unreachable or rejected the request
        """
        try:
            query = validate_search_text(text, self.min_query_length)
        except ValidationError:
            return []

        predictions = self.client.autocomplete(query)
        candidates = [
            AddressCandidate.from_prediction(p)
            for p in predictions
            if p.get("place_id")
        ]
        logger.info(f"Found {len(candidates)} candidates for '{query}'")
        return candidates

    def resolve_details(self, candidate_id: str) -> ResolvedPlace:
        """
        Resolve a candidate to a complete street address.

        Raises:
            IncompleteAddressError: Place lacks street number or route
            PlaceNotFoundError: Provider has no such place
            TransportFailure: Provider unreachable or rejected the request
            InvalidResponseError: Payload missing coordinates
        """
        result = self.client.details(candidate_id)
        place = self._to_place(result)

        if not place.is_complete:
            logger.warning(
                f"Rejected incomplete address: {place.formatted_address}",
                extra={"place_id": place.id},
            )
            raise IncompleteAddressError()

        logger.info(
            f"Resolved '{place.formatted_address}' → "
            f"({place.coordinates.lat:.5f}, {place.coordinates.lng:.5f})",
            extra={"place_id": place.id},
        )
        return place

    @staticmethod
    def _to_place(result: dict) -> ResolvedPlace:
        location = (result.get("geometry") or {}).get("location") or {}
        try:
            lat, lng = validate_coordinates(location.get("lat"), location.get("lng"))
        except ValidationError as e:
            raise InvalidResponseError(f"Place has no usable location: {e}", cause=e)

        components = tuple(
            AddressComponent.from_dict(c) for c in result.get("address_components") or []
        )

        return ResolvedPlace(
            id=result["place_id"],
            formatted_address=result.get("formatted_address") or "",
            coordinates=Coordinates(lat=lat, lng=lng),
            address_components=components,
            place_types=tuple(result.get("types") or ()),
            structured_address=StructuredAddress.from_components(components),
        )
