"""
Tests for the pure view model.
"""

from roofquote.core.models import (
    AddressCandidate,
    CapturedFrame,
    CaptureSession,
    CaptureStatus,
    Coordinates,
    ResolvedPlace,
    RoofMeasurements,
)
from roofquote.orchestrator.shell import PredictionsStatus, ShellState
from roofquote.reporting.view import format_money, format_number, render

PLACE = ResolvedPlace(
    id="place-123",
    formatted_address="123 Test St, San Francisco, CA 94103, USA",
    coordinates=Coordinates(37.7749, -122.4194),
)


def frames(count):
    return [CapturedFrame(heading=h, data_url="data:image/jpeg;base64,QQ==") for h in (0, 60, 120, 180, 240, 300)[:count]]


class TestFormatting:
    """Tests for number and money formatting."""

    def test_format_number(self):
        assert format_number(1000) == "1,000"
        assert format_number(1234.5) == "1,234.5"
        assert format_number(30.0) == "30"

    def test_format_money(self):
        assert format_money(4250) == "$4,250"
        assert format_money(4250.5) == "$4,250.50"
        assert format_money(425) == "$425"


class TestPredictions:
    """Tests for the predictions list."""

    def test_empty_state(self):
        view = render(ShellState())
        assert view.input_text == ""
        assert view.predictions == []
        assert view.capture is None
        assert view.cost is None
        assert not view.loading
        assert not view.show_find_button

    def test_predictions_for_current_input(self):
        state = ShellState(
            input_text="123 Test",
            predictions_for="123 Test",
            candidates=[AddressCandidate(description="123 Test St", id="a")],
        )
        assert [p.id for p in render(state).predictions] == ["a"]

    def test_predictions_for_older_input_hidden(self):
        state = ShellState(
            input_text="123 Tes",
            predictions_for="123 Test",
            candidates=[AddressCandidate(description="123 Test St", id="a")],
        )
        assert render(state).predictions == []

    def test_loading(self):
        state = ShellState(input_text="123 Test", predictions_status=PredictionsStatus.LOADING)
        assert render(state).loading


class TestCaptureView:
    """Tests for the capture panel."""

    def test_hidden_until_opened(self):
        state = ShellState(selected_place=PLACE)
        view = render(state)
        assert view.capture is None
        assert view.show_find_button

    def test_ready(self):
        state = ShellState(selected_place=PLACE, capture_visible=True, viewport_ready=True)
        capture = render(state).capture

        assert capture.title == "Roof Capture for 123 Test St, San Francisco, CA 94103, USA"
        assert capture.button_label == "Capture Roof Images"
        assert capture.button_enabled
        assert capture.progress_text == "0 of 6 angles captured"
        assert capture.status == "idle"

    def test_map_not_ready(self):
        state = ShellState(selected_place=PLACE, capture_visible=True, viewport_ready=False)
        assert not render(state).capture.button_enabled

    def test_in_progress(self):
        session = CaptureSession(address=PLACE.formatted_address, coordinates=PLACE.coordinates)
        session.status = CaptureStatus.CAPTURING
        session.images.extend(frames(2))
        state = ShellState(selected_place=PLACE, capture_visible=True, viewport_ready=True, session=session)

        capture = render(state).capture
        assert capture.button_label == "Analyzing Roof..."
        assert not capture.button_enabled
        assert capture.progress_text == "2 of 6 angles captured"
        assert [f.label for f in capture.frames] == ["0°", "60°"]


class TestResults:
    """Tests for measurement cards and the cost panel."""

    def _done_state(self, **kwargs):
        session = CaptureSession(address=PLACE.formatted_address, coordinates=PLACE.coordinates)
        session.images.extend(frames(6))
        session.status = CaptureStatus.DONE
        return ShellState(
            selected_place=PLACE,
            capture_visible=True,
            viewport_ready=True,
            session=session,
            measurements=RoofMeasurements(1000, 130, 30, 0.85),
            **kwargs,
        )

    def test_cards(self):
        view = render(self._done_state())
        assert [(c.title, c.value) for c in view.measurements] == [
            ("Roof Area", "1,000 sq ft"),
            ("Perimeter", "130 ft"),
            ("Roof Pitch", "30°"),
            ("Confidence", "85.0%"),
        ]

    def test_cost_panel(self):
        cost = render(self._done_state()).cost
        assert cost.price_label == "$425"
        assert cost.price_min == 350
        assert cost.price_max == 5000
        assert cost.squares_text == "10.0 Squares"
        assert cost.area_text == "1,000 sq ft"
        assert cost.total_text == "$4,250"

    def test_cost_follows_price(self):
        cost = render(self._done_state(price_per_square=600)).cost
        assert cost.total_text == "$6,000"

    def test_no_results_unless_done(self):
        state = self._done_state()
        state.session.fail("Failed to capture or analyze images: boom")
        view = render(state)
        assert view.measurements == []
        assert view.cost is None

    def test_error_passed_through(self):
        state = ShellState(error="Please enter a complete street address")
        assert render(state).error == "Please enter a complete street address"
