"""
RoofQuoteShell - the orchestrating state machine.

Sequences one user session:

    input ──debounce──▶ search ──▶ select ──▶ resolve details
          ──▶ open capture (mount viewport) ──▶ capture 6 headings
          ──▶ analyze first frame ──▶ measurements + cost

All transient state lives in ShellState and is rendered by the pure
roofquote.reporting.view.render function. Every failure is caught at the
operation that produced it and stored as state.error; nothing is retried.

Clients are passed in so tests can substitute fakes:

    shell = RoofQuoteShell(resolver, viewport, analyzer, settings=Settings())
    shell.on_input("123 Main")
    await shell.flush()
    await shell.select(shell.state.candidates[0])
    await shell.open_capture()
    await shell.capture()
    shell.set_price(450)
"""

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from ..analysis.roof_analyzer import RoofAnalyzer
from ..capture.capture_loop import FrameCallback, ImageCaptureLoop
from ..capture.viewport import MapViewport
from ..core.config import Settings
from ..core.errors import BusinessRuleRejection, RoofQuoteError
from ..core.models import (
    AddressCandidate,
    CaptureSession,
    CaptureStatus,
    CostEstimate,
    ResolvedPlace,
    RoofMeasurements,
)
from ..geo.address_resolver import AddressResolver
from ..roi.calculator import CostCalculator, PriceRange, clamp_price
from ..utils.debounce import Debouncer

logger = logging.getLogger(__name__)


class PredictionsStatus(Enum):
    IDLE = "idle"
    LOADING = "loading"
    LOADED = "loaded"
    ERROR = "error"


@dataclass
class ShellState:
    """Everything the view needs, owned by one shell."""
    input_text: str = ""
    predictions_status: PredictionsStatus = PredictionsStatus.IDLE
    candidates: List[AddressCandidate] = field(default_factory=list)
    predictions_for: Optional[str] = None
    selected_place: Optional[ResolvedPlace] = None
    capture_visible: bool = False
    viewport_ready: bool = False
    session: Optional[CaptureSession] = None
    measurements: Optional[RoofMeasurements] = None
    error: Optional[str] = None
    price_per_square: float = 425
    price_range: PriceRange = field(default_factory=PriceRange)


class RoofQuoteShell:
    """Orchestrates resolver, capture loop, analyzer and cost calculator."""

    def __init__(
        self,
        resolver: AddressResolver,
        viewport: MapViewport,
        analyzer: RoofAnalyzer,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or Settings()
        self.resolver = resolver
        self.viewport = viewport
        self.analyzer = analyzer

        price_range = PriceRange(
            minimum=self.settings.min_price_per_square,
            maximum=self.settings.max_price_per_square,
            step=self.settings.price_step,
            default=self.settings.default_price_per_square,
        )
        self.calculator = CostCalculator(price_range)
        self.state = ShellState(
            price_per_square=price_range.clamp(price_range.default),
            price_range=price_range,
        )

        self._capture_loop = ImageCaptureLoop(viewport, settle_delay=self.settings.settle_delay)
        self._debouncer = Debouncer(self.settings.debounce_seconds, self._fetch_predictions)
        self._generation = 0
        self._capture_task: Optional[asyncio.Task] = None

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "RoofQuoteShell":
        """
        Build a shell wired to the real Google and vision clients.

        Raises:
            ConfigurationError: A required API key is missing
        """
        from ..ai.llm_client import VisionClient
        from ..capture.viewport import SatelliteViewport
        from ..ingest.places_client import PlacesClient

        settings = settings or Settings()
        resolver = AddressResolver(
            PlacesClient.from_settings(settings),
            min_query_length=settings.min_query_length,
        )
        viewport = SatelliteViewport.from_settings(settings)
        analyzer = RoofAnalyzer(VisionClient.from_settings(settings))
        return cls(resolver, viewport, analyzer, settings=settings)

    # ------------------------------------------------------------------
    # Address search
    # ------------------------------------------------------------------

    def on_input(self, text: str) -> None:
        """
        Record new input and (re)arm the debounced search.

        Must be called from inside a running event loop. Any search already
        in flight for older input will have its result discarded.
        """
        state = self.state
        state.input_text = text
        self._generation += 1

        if text != state.predictions_for:
            state.candidates = []
            state.predictions_for = None

        if len(text.strip()) < self.settings.min_query_length:
            self._debouncer.cancel()
            state.predictions_status = PredictionsStatus.IDLE
            return

        self._debouncer.call(text, self._generation)

    async def flush(self) -> None:
        """Wait for any pending or in-flight search to settle."""
        await self._debouncer.flush()

    async def _fetch_predictions(self, text: str, generation: int) -> None:
        if generation != self._generation:
            return

        state = self.state
        state.predictions_status = PredictionsStatus.LOADING
        state.error = None

        try:
            candidates = await asyncio.to_thread(self.resolver.search, text)
        except RoofQuoteError as e:
            if generation != self._generation:
                return
            logger.error(f"Error fetching place predictions: {e}")
            state.candidates = []
            state.predictions_status = PredictionsStatus.ERROR
            state.error = e.user_message
            return

        if generation != self._generation:
            logger.debug(f"Discarding stale predictions for '{text}'")
            return

        state.candidates = candidates
        state.predictions_for = text
        state.predictions_status = PredictionsStatus.LOADED

    # ------------------------------------------------------------------
    # Place selection
    # ------------------------------------------------------------------

    async def select(self, candidate: AddressCandidate) -> bool:
        """
        Resolve a candidate and make it the active place.

        Returns:
            True if the place was accepted
        """
        state = self.state
        state.error = None

        if state.session is not None and state.session.is_active:
            state.error = "Finish or close the current capture before choosing another address"
            return False

        try:
            place = await asyncio.to_thread(self.resolver.resolve_details, candidate.id)
        except BusinessRuleRejection as e:
            state.error = e.user_message
            return False
        except RoofQuoteError as e:
            state.error = f"Error fetching address details: {e}"
            return False

        previous = state.selected_place
        if previous is None or previous.id != place.id:
            self._reset_capture()

        # Selecting fills the input without starting another search
        self._generation += 1
        self._debouncer.cancel()
        state.selected_place = place
        state.input_text = place.formatted_address
        state.candidates = []
        state.predictions_for = None
        state.predictions_status = PredictionsStatus.IDLE

        logger.info("Place selected", extra={"address": place.formatted_address, "place_id": place.id})
        return True

    # ------------------------------------------------------------------
    # Capture and analysis
    # ------------------------------------------------------------------

    async def open_capture(self) -> bool:
        """Show the capture view and mount the viewport at the selected place."""
        state = self.state
        place = state.selected_place
        if place is None:
            state.error = "Select an address before capturing"
            return False

        state.capture_visible = True
        if self.viewport.is_ready and self.viewport.coordinates == place.coordinates:
            state.viewport_ready = True
            return True

        try:
            await asyncio.to_thread(self.viewport.mount, place.coordinates)
        except RoofQuoteError as e:
            state.viewport_ready = False
            state.error = f"Failed to load map: {e}"
            return False

        state.viewport_ready = self.viewport.is_ready
        return state.viewport_ready

    def close_capture(self) -> None:
        """Hide the capture view; the only way to drop an active session."""
        self._reset_capture()

    def _reset_capture(self) -> None:
        task = self._capture_task
        if task is not None and not task.done():
            task.cancel()

        state = self.state
        state.capture_visible = False
        state.viewport_ready = False
        state.session = None
        state.measurements = None
        self.viewport.unmount()

    async def capture(self, on_frame: Optional[FrameCallback] = None) -> bool:
        """
        Capture all headings and analyze the first frame.

        Returns:
            True when measurements are available
        """
        state = self.state
        place = state.selected_place

        if place is None:
            state.error = "Select an address before capturing"
            return False

        busy = state.session is not None and state.session.is_active
        previous = self._capture_task
        if not busy and previous is not None and not previous.done():
            # A closed session's loop must release the viewport first
            await asyncio.wait([previous])

        if state.session is not None and state.session.is_active:
            state.error = "A capture is already in progress"
            return False
        if not state.capture_visible or not self.viewport.is_ready:
            state.error = "Map is not ready for capture"
            return False

        session = CaptureSession(
            address=place.formatted_address,
            coordinates=place.coordinates,
            angles=tuple(self.settings.capture_angles),
        )
        session.status = CaptureStatus.CAPTURING
        state.session = session
        state.measurements = None
        state.error = None

        task = asyncio.ensure_future(self._capture_loop.run(session, on_frame=on_frame))
        self._capture_task = task
        try:
            await task
        except asyncio.CancelledError:
            if session.is_active:
                session.fail("Capture cancelled")
            if state.session is session:
                raise
            logger.info("Capture cancelled by close", extra={"address": session.address})
            return False
        except RoofQuoteError as e:
            if state.session is session:
                state.error = f"Failed to capture or analyze images: {e}"
            return False

        if state.session is not session:
            logger.info("Capture finished after the session was closed; discarding")
            return False

        try:
            measurements = await asyncio.to_thread(
                self.analyzer.analyze, session.first_image.base64_payload
            )
        except Exception as e:
            # Frames stay visible; only the analysis is reported as failed
            message = f"Failed to capture or analyze images: {e}"
            logger.error(message, extra={"address": session.address, "error_type": type(e).__name__})
            session.fail(message)
            if state.session is session:
                state.error = message
            return False

        if state.session is not session:
            return False

        session.status = CaptureStatus.DONE
        state.measurements = measurements
        return True

    # ------------------------------------------------------------------
    # Cost
    # ------------------------------------------------------------------

    def set_price(self, price_per_square: float) -> Optional[CostEstimate]:
        """Move the price slider; never touches the measured area."""
        self.state.price_per_square = clamp_price(price_per_square, self.state.price_range)
        return self.cost_estimate

    @property
    def cost_estimate(self) -> Optional[CostEstimate]:
        measurements = self.state.measurements
        if measurements is None:
            return None
        return self.calculator.estimate(measurements.area_sq_ft, self.state.price_per_square)

    def view(self):
        """Render the current state."""
        from ..reporting.view import render
        return render(self.state)
