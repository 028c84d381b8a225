"""
RoofQuote REST API - FastAPI Application.

Server-side counterparts of the workflow steps, for a browser front end.

Endpoints:
    GET  /                        - API info and health check
    GET  /places/autocomplete     - Address predictions for partial input
    GET  /places/{place_id}       - Resolve a prediction to a street address
    POST /analyze                 - Roof measurements from one base64 image
    POST /estimate                - Cost for an area and price per square

Usage:
    uvicorn roofquote.api.main:app --reload --port 8000
"""

import asyncio
import logging
from functools import lru_cache
from typing import Dict, Iterator, List

from fastapi import Depends, FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from .. import __version__
from ..ai.llm_client import VisionClient
from ..analysis.roof_analyzer import RoofAnalyzer
from ..core.config import Settings
from ..core.errors import (
    BusinessRuleRejection,
    ConfigurationError,
    InvalidResponseError,
    PlaceNotFoundError,
    RoofQuoteError,
    TransportFailure,
)
from ..geo.address_resolver import AddressResolver
from ..ingest.places_client import PlacesClient
from ..roi.calculator import (
    DEFAULT_PRICE_PER_SQUARE,
    MAX_PRICE_PER_SQUARE,
    MIN_PRICE_PER_SQUARE,
    estimate_cost,
)
from ..utils.validation import ValidationError, validate_image_base64

logger = logging.getLogger(__name__)


# =============================================================================
# PYDANTIC MODELS
# =============================================================================

class PredictionModel(BaseModel):
    description: str
    place_id: str
    main_text: str = ""
    secondary_text: str = ""
    types: List[str] = []


class PredictionsResponse(BaseModel):
    predictions: List[PredictionModel]
    status: str = "OK"


class StructuredAddressModel(BaseModel):
    street_number: str = ""
    route: str = ""
    city: str = ""
    state: str = ""
    zip_code: str = ""


class PlaceResponse(BaseModel):
    place_id: str
    formatted_address: str
    lat: float
    lng: float
    types: List[str] = []
    structured_address: StructuredAddressModel


class AnalyzeRequest(BaseModel):
    """One base64-encoded JPEG (bare payload or data URL)."""
    image_base64: str = Field(..., min_length=1)


class MeasurementsResponse(BaseModel):
    area_sq_ft: float
    perimeter_ft: float
    pitch_degrees: float
    confidence_level: float


class EstimateRequest(BaseModel):
    area_sq_ft: float = Field(..., gt=0, description="Roof area in square feet")
    price_per_square: float = Field(
        DEFAULT_PRICE_PER_SQUARE,
        ge=MIN_PRICE_PER_SQUARE,
        le=MAX_PRICE_PER_SQUARE,
        description="USD per roofing square (100 sq ft)",
    )


class EstimateResponse(BaseModel):
    area_sq_ft: float
    price_per_square: float
    total_squares: float
    total_cost: float


# =============================================================================
# DEPENDENCIES
# =============================================================================

@lru_cache
def get_settings() -> Settings:
    return Settings()


def get_resolver(settings: Settings = Depends(get_settings)) -> Iterator[AddressResolver]:
    try:
        client = PlacesClient.from_settings(settings)
    except ConfigurationError as e:
        raise HTTPException(status_code=503, detail=e.user_message)
    try:
        yield AddressResolver(client, min_query_length=settings.min_query_length)
    finally:
        client.close()


def get_analyzer(settings: Settings = Depends(get_settings)) -> Iterator[RoofAnalyzer]:
    try:
        client = VisionClient.from_settings(settings)
    except ConfigurationError as e:
        raise HTTPException(status_code=503, detail=e.user_message)
    try:
        yield RoofAnalyzer(client)
    finally:
        client.close()


def to_http_error(error: RoofQuoteError) -> HTTPException:
    """Map the error taxonomy onto HTTP status codes."""
    if isinstance(error, ConfigurationError):
        status = 503
    elif isinstance(error, PlaceNotFoundError):
        status = 404
    elif isinstance(error, BusinessRuleRejection):
        status = 422
    elif isinstance(error, (TransportFailure, InvalidResponseError)):
        status = 502
    else:
        status = 500
    return HTTPException(status_code=status, detail=error.user_message)


# =============================================================================
# FASTAPI APPLICATION
# =============================================================================

app = FastAPI(
    title="RoofQuote API",
    description="Roof measurement and replacement cost estimates from an address",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/", tags=["General"])
async def root() -> Dict:
    """API info and health check."""
    return {
        "name": "RoofQuote API",
        "version": __version__,
        "status": "healthy",
        "endpoints": {
            "autocomplete": "GET /places/autocomplete?input=...",
            "place_details": "GET /places/{place_id}",
            "analyze": "POST /analyze",
            "estimate": "POST /estimate",
        },
        "documentation": "/docs",
    }


@app.get("/places/autocomplete", response_model=PredictionsResponse, tags=["Places"])
async def autocomplete(
    input: str = Query(..., description="Partial address"),
    resolver: AddressResolver = Depends(get_resolver),
):
    """Address predictions; input shorter than the minimum returns none."""
    try:
        candidates = await asyncio.to_thread(resolver.search, input)
    except RoofQuoteError as e:
        logger.error(f"Autocomplete failed: {e}")
        raise to_http_error(e)

    status = "OK" if candidates else "ZERO_RESULTS"
    return PredictionsResponse(
        predictions=[
            PredictionModel(
                description=c.description,
                place_id=c.id,
                main_text=c.main_text,
                secondary_text=c.secondary_text,
                types=list(c.place_types),
            )
            for c in candidates
        ],
        status=status,
    )


@app.get("/places/{place_id}", response_model=PlaceResponse, tags=["Places"])
async def place_details(place_id: str, resolver: AddressResolver = Depends(get_resolver)):
    """Resolve a place; incomplete street addresses are rejected with 422."""
    try:
        place = await asyncio.to_thread(resolver.resolve_details, place_id)
    except RoofQuoteError as e:
        raise to_http_error(e)

    sa = place.structured_address
    return PlaceResponse(
        place_id=place.id,
        formatted_address=place.formatted_address,
        lat=place.coordinates.lat,
        lng=place.coordinates.lng,
        types=list(place.place_types),
        structured_address=StructuredAddressModel(
            street_number=sa.street_number,
            route=sa.route,
            city=sa.city,
            state=sa.state,
            zip_code=sa.zip_code,
        ),
    )


@app.post("/analyze", response_model=MeasurementsResponse, tags=["Analysis"])
async def analyze(request: AnalyzeRequest, analyzer: RoofAnalyzer = Depends(get_analyzer)):
    """Roof measurements for one image."""
    try:
        image_base64 = validate_image_base64(request.image_base64)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    try:
        measurements = await asyncio.to_thread(analyzer.analyze, image_base64)
    except RoofQuoteError as e:
        logger.error(f"Roof analysis failed: {e}", extra={"error_type": type(e).__name__})
        raise to_http_error(e)

    return MeasurementsResponse(**measurements.to_dict())


@app.post("/estimate", response_model=EstimateResponse, tags=["Cost"])
async def estimate(request: EstimateRequest):
    """Cost for a roof area at a price per square."""
    result = estimate_cost(request.area_sq_ft, request.price_per_square)
    return EstimateResponse(
        area_sq_ft=result.area_sq_ft,
        price_per_square=result.price_per_square,
        total_squares=result.total_squares,
        total_cost=result.total_cost,
    )


def run_server(host: str = "0.0.0.0", port: int = 8000, reload: bool = False) -> None:
    """Run the API server with uvicorn."""
    import uvicorn
    uvicorn.run("roofquote.api.main:app", host=host, port=port, reload=reload)
