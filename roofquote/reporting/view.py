"""
Pure view model for the shell state.

render(state) maps a ShellState to a ShellView without side effects. Any
front end (the rich CLI, a web page) only has to draw the ShellView.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, List, Optional

from ..core.models import CAPTURE_ANGLES, CaptureStatus
from ..roi.calculator import CostCalculator

if TYPE_CHECKING:
    from ..orchestrator.shell import ShellState


@dataclass(frozen=True)
class PredictionItem:
    id: str
    description: str


@dataclass(frozen=True)
class FrameView:
    heading: int
    label: str
    data_url: str


@dataclass(frozen=True)
class CaptureView:
    title: str
    button_label: str
    button_enabled: bool
    progress_text: str
    status: str
    frames: List[FrameView] = field(default_factory=list)


@dataclass(frozen=True)
class MeasurementCard:
    title: str
    value: str


@dataclass(frozen=True)
class CostPanel:
    price_per_square: float
    price_label: str
    price_min: float
    price_max: float
    squares_text: str
    area_text: str
    total_text: str


@dataclass(frozen=True)
class ShellView:
    input_text: str
    placeholder: str = "Enter an address..."
    loading: bool = False
    error: Optional[str] = None
    predictions: List[PredictionItem] = field(default_factory=list)
    show_find_button: bool = False
    capture: Optional[CaptureView] = None
    measurements: List[MeasurementCard] = field(default_factory=list)
    cost: Optional[CostPanel] = None


def format_number(value: float) -> str:
    """Thousands separators, decimals only when needed."""
    if float(value).is_integer():
        return f"{value:,.0f}"
    return f"{value:,.2f}".rstrip("0").rstrip(".")


def format_money(value: float) -> str:
    if float(value).is_integer():
        return f"${value:,.0f}"
    return f"${value:,.2f}"


def _capture_view(state: ShellState) -> CaptureView:
    session = state.session
    angles = session.angles if session is not None else CAPTURE_ANGLES
    frames = []
    captured = 0
    busy = False
    status = "idle"

    if session is not None:
        captured = session.captured_count
        busy = session.is_active
        status = session.status.value
        frames = [
            FrameView(heading=f.heading, label=f"{f.heading}°", data_url=f.data_url)
            for f in session.images
        ]

    address = state.selected_place.formatted_address if state.selected_place else ""
    return CaptureView(
        title=f"Roof Capture for {address}",
        button_label="Analyzing Roof..." if busy else "Capture Roof Images",
        button_enabled=state.viewport_ready and not busy,
        progress_text=f"{captured} of {len(angles)} angles captured",
        status=status,
        frames=frames,
    )


def render(state: ShellState) -> ShellView:
    """Build the view for a shell state."""
    predictions: List[PredictionItem] = []
    # Predictions are only shown for the exact input they answer
    if state.predictions_for is not None and state.predictions_for == state.input_text:
        predictions = [PredictionItem(id=c.id, description=c.description) for c in state.candidates]

    capture = _capture_view(state) if state.capture_visible and state.selected_place else None

    measurements: List[MeasurementCard] = []
    cost: Optional[CostPanel] = None
    session_done = state.session is not None and state.session.status == CaptureStatus.DONE

    if state.measurements is not None and session_done:
        m = state.measurements
        measurements = [
            MeasurementCard("Roof Area", f"{format_number(m.area_sq_ft)} sq ft"),
            MeasurementCard("Perimeter", f"{format_number(m.perimeter_ft)} ft"),
            MeasurementCard("Roof Pitch", f"{format_number(m.pitch_degrees)}°"),
            MeasurementCard("Confidence", f"{m.confidence * 100:.1f}%"),
        ]

        price_range = state.price_range
        estimate = CostCalculator(price_range).estimate(m.area_sq_ft, state.price_per_square)
        cost = CostPanel(
            price_per_square=estimate.price_per_square,
            price_label=format_money(estimate.price_per_square),
            price_min=price_range.minimum,
            price_max=price_range.maximum,
            squares_text=f"{estimate.total_squares:.1f} Squares",
            area_text=f"{format_number(estimate.area_sq_ft)} sq ft",
            total_text=format_money(estimate.total_cost),
        )

    return ShellView(
        input_text=state.input_text,
        loading=state.predictions_status.value == "loading",
        error=state.error,
        predictions=predictions,
        show_find_button=state.selected_place is not None and not state.capture_visible,
        capture=capture,
        measurements=measurements,
        cost=cost,
    )
