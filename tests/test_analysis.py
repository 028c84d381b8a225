"""
Tests for the vision client and the roof analyzer.

HTTP is mocked at the requests.Session level.
"""

import base64
import json
from unittest.mock import MagicMock

import pytest
import requests

from roofquote.ai.llm_client import LLMResponse, VisionClient
from roofquote.analysis.roof_analyzer import (
    ROOF_MEASUREMENT_PROMPT,
    RoofAnalyzer,
    parse_measurements,
)
from roofquote.core.errors import (
    ConfigurationError,
    InvalidResponseError,
    OutOfRangeError,
    TransportFailure,
)

IMAGE_B64 = base64.b64encode(b"fake-jpeg-bytes").decode("ascii")

GOOD_ANSWER = {
    "area_sq_ft": 1000,
    "perimeter_ft": 130,
    "pitch_degrees": 30,
    "confidence_level": 0.85,
}


def completion(content: str, prompt_tokens: int = 900, completion_tokens: int = 40) -> dict:
    return {
        "model": "gpt-4o-mini",
        "choices": [{"message": {"role": "assistant", "content": content}}],
        "usage": {"prompt_tokens": prompt_tokens, "completion_tokens": completion_tokens},
    }


@pytest.fixture
def vision_client(http_session):
    return VisionClient(api_key="test-openai-key", session=http_session)


# =============================================================================
# LLM RESPONSE PARSING
# =============================================================================

class TestLLMResponse:
    """Tests for JSON extraction from model output."""

    def _response(self, content):
        return LLMResponse(content=content, model="m", raw={})

    def test_plain_json(self):
        assert self._response(json.dumps(GOOD_ANSWER)).as_json() == GOOD_ANSWER

    def test_code_fence(self):
        content = "```json\n" + json.dumps(GOOD_ANSWER) + "\n```"
        assert self._response(content).as_json() == GOOD_ANSWER

    def test_surrounding_prose(self):
        content = "Here are the measurements: " + json.dumps(GOOD_ANSWER) + " Hope this helps."
        assert self._response(content).as_json() == GOOD_ANSWER

    def test_no_json(self):
        assert self._response("I cannot see a roof in this image.").as_json() is None

    def test_broken_json(self):
        assert self._response('{"area_sq_ft": 1000,').as_json() is None


# =============================================================================
# VISION CLIENT
# =============================================================================

class TestVisionClient:
    """Tests for the chat completions request."""

    def test_request_payload(self, vision_client, http_session, response_factory):
        http_session.post.return_value = response_factory(completion(json.dumps(GOOD_ANSWER)))

        vision_client.analyze_image_base64(IMAGE_B64, prompt="Measure", detail="high", json_mode=True)

        call = http_session.post.call_args
        assert call.args[0] == "https://api.openai.com/v1/chat/completions"
        assert call.kwargs["headers"]["Authorization"] == "Bearer test-openai-key"

        payload = call.kwargs["json"]
        assert payload["model"] == "gpt-4o-mini"
        assert payload["temperature"] == 0
        assert payload["max_tokens"] == 300
        assert payload["response_format"] == {"type": "json_object"}

        text, image = payload["messages"][0]["content"]
        assert text == {"type": "text", "text": "Measure"}
        assert image["image_url"]["url"] == f"data:image/jpeg;base64,{IMAGE_B64}"
        assert image["image_url"]["detail"] == "high"

    def test_no_json_mode_by_default(self, vision_client, http_session, response_factory):
        http_session.post.return_value = response_factory(completion("hello"))
        vision_client.analyze_image_base64(IMAGE_B64, prompt="Describe")
        assert "response_format" not in http_session.post.call_args.kwargs["json"]

    def test_tracks_usage(self, vision_client, http_session, response_factory):
        http_session.post.return_value = response_factory(completion("{}", 100, 20))

        vision_client.analyze_image_base64(IMAGE_B64, prompt="x")
        vision_client.analyze_image_base64(IMAGE_B64, prompt="x")

        assert vision_client.total_tokens == 240
        assert vision_client.call_count == 2
        vision_client.reset_usage_tracking()
        assert vision_client.total_tokens == 0

    def test_null_usage_counts(self, vision_client, http_session, response_factory):
        """Test null token counts from the provider count as zero."""
        answer = completion("{}")
        answer["usage"] = {"prompt_tokens": None, "completion_tokens": 12}
        http_session.post.return_value = response_factory(answer)

        response = vision_client.analyze_image_base64(IMAGE_B64, prompt="x")

        assert response.prompt_tokens == 0
        assert response.completion_tokens == 12
        assert vision_client.total_tokens == 12

    def test_single_attempt_on_error_status(self, vision_client, http_session, response_factory):
        """Test a failed call is reported, not retried."""
        http_session.post.return_value = response_factory({"error": "overloaded"}, status_code=500, text="overloaded")

        with pytest.raises(TransportFailure) as exc_info:
            vision_client.analyze_image_base64(IMAGE_B64, prompt="x")

        assert "500" in str(exc_info.value)
        assert http_session.post.call_count == 1

    def test_timeout(self, vision_client, http_session):
        http_session.post.side_effect = requests.Timeout("read timed out")

        with pytest.raises(TransportFailure):
            vision_client.analyze_image_base64(IMAGE_B64, prompt="x")
        assert http_session.post.call_count == 1

    def test_connection_error(self, vision_client, http_session):
        http_session.post.side_effect = requests.ConnectionError("refused")

        with pytest.raises(TransportFailure):
            vision_client.analyze_image_base64(IMAGE_B64, prompt="x")

    def test_missing_choices(self, vision_client, http_session, response_factory):
        http_session.post.return_value = response_factory({"id": "x"})

        with pytest.raises(InvalidResponseError):
            vision_client.analyze_image_base64(IMAGE_B64, prompt="x")

    def test_empty_content(self, vision_client, http_session, response_factory):
        http_session.post.return_value = response_factory(completion(""))

        with pytest.raises(InvalidResponseError):
            vision_client.analyze_image_base64(IMAGE_B64, prompt="x")

    def test_from_settings(self, settings):
        client = VisionClient.from_settings(settings)
        assert client.api_key == "test-openai-key"
        assert client.model == "gpt-4o-mini"
        assert client.max_tokens == 300

    def test_from_settings_without_key(self, settings):
        settings.openai_api_key = None
        with pytest.raises(ConfigurationError):
            VisionClient.from_settings(settings)


# =============================================================================
# ROOF ANALYZER
# =============================================================================

class TestParseMeasurements:
    """Tests for strict measurement parsing."""

    def test_valid(self):
        m = parse_measurements(GOOD_ANSWER)
        assert (m.area_sq_ft, m.perimeter_ft, m.pitch_degrees, m.confidence) == (1000, 130, 30, 0.85)

    def test_not_a_dict(self):
        with pytest.raises(InvalidResponseError):
            parse_measurements(None)

    @pytest.mark.parametrize("field", ["area_sq_ft", "perimeter_ft", "pitch_degrees", "confidence_level"])
    def test_missing_field(self, field):
        """Test a missing field is a failure, never a zero."""
        data = dict(GOOD_ANSWER)
        del data[field]
        with pytest.raises(InvalidResponseError) as exc_info:
            parse_measurements(data)
        assert field in str(exc_info.value)

    @pytest.mark.parametrize("value", ["1000", True, None, float("inf")])
    def test_non_numeric_area(self, value):
        data = dict(GOOD_ANSWER, area_sq_ft=value)
        with pytest.raises(InvalidResponseError):
            parse_measurements(data)

    def test_confidence_out_of_range(self):
        with pytest.raises(OutOfRangeError):
            parse_measurements(dict(GOOD_ANSWER, confidence_level=1.5))

    def test_negative_area(self):
        with pytest.raises(OutOfRangeError):
            parse_measurements(dict(GOOD_ANSWER, area_sq_ft=-5))


class TestRoofAnalyzer:
    """Tests for the analyzer against a mocked client."""

    def _client(self, content: str):
        client = MagicMock(spec=VisionClient)
        client.analyze_image_base64.return_value = LLMResponse(content=content, model="gpt-4o-mini", raw={})
        return client

    def test_analyze(self):
        client = self._client(json.dumps(GOOD_ANSWER))
        measurements = RoofAnalyzer(client).analyze(IMAGE_B64)

        assert measurements.area_sq_ft == 1000
        assert measurements.confidence == 0.85
        client.analyze_image_base64.assert_called_once_with(
            IMAGE_B64,
            prompt=ROOF_MEASUREMENT_PROMPT,
            detail="high",
            temperature=0,
            json_mode=True,
        )

    def test_accepts_data_url(self):
        client = self._client(json.dumps(GOOD_ANSWER))
        RoofAnalyzer(client).analyze(f"data:image/jpeg;base64,{IMAGE_B64}")
        assert client.analyze_image_base64.call_args.args[0] == IMAGE_B64

    def test_prose_answer(self):
        client = self._client("Sorry, I can't measure this roof.")
        with pytest.raises(InvalidResponseError):
            RoofAnalyzer(client).analyze(IMAGE_B64)

    def test_out_of_range_answer(self):
        client = self._client(json.dumps(dict(GOOD_ANSWER, confidence_level=2)))
        with pytest.raises(OutOfRangeError):
            RoofAnalyzer(client).analyze(IMAGE_B64)

    def test_bad_image_not_sent(self):
        client = self._client(json.dumps(GOOD_ANSWER))
        with pytest.raises(InvalidResponseError):
            RoofAnalyzer(client).analyze("")
        client.analyze_image_base64.assert_not_called()

    def test_transport_failure_propagates(self):
        client = MagicMock(spec=VisionClient)
        client.analyze_image_base64.side_effect = TransportFailure("Vision service returned status 503")
        with pytest.raises(TransportFailure):
            RoofAnalyzer(client).analyze(IMAGE_B64)

    def test_prompt_names_fields(self):
        for field in ("area_sq_ft", "perimeter_ft", "pitch_degrees", "confidence_level"):
            assert field in ROOF_MEASUREMENT_PROMPT
