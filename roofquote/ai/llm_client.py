"""
Vision LLM Client - OpenAI-compatible chat completions over requests.

Every vision call in RoofQuote goes through this client. Requests are made
once; there is no automatic retry, a failed call is reported to the caller
and the user re-triggers the workflow.

Usage:
    from roofquote.ai.llm_client import VisionClient

    client = VisionClient(api_key="sk-...")

    response = client.analyze_image_base64(
        image_base64,
        prompt="Describe this roof",
        json_mode=True,
    )
    data = response.as_json()

    print(f"Tokens used: {client.total_tokens}")
"""

import json
import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import requests
from requests.adapters import HTTPAdapter

from ..core.config import Settings
from ..core.errors import InvalidResponseError, TransportFailure

logger = logging.getLogger(__name__)


@dataclass
class LLMResponse:
    """Response from LLM call."""
    content: str
    model: str
    raw: Dict[str, Any]
    prompt_tokens: int = 0
    completion_tokens: int = 0

    def as_json(self) -> Optional[Dict]:
        """Parse content as a JSON object if possible."""
        text = self.content.strip()

        # Handle markdown code blocks
        if text.startswith("```"):
            lines = text.split("\n")
            text = "\n".join(lines[1:-1] if lines[-1].strip() == "```" else lines[1:])

        first_brace = text.find("{")
        last_brace = text.rfind("}")
        if first_brace == -1 or last_brace == -1:
            return None
        text = text[first_brace:last_brace + 1]

        try:
            parsed = json.loads(text)
        except json.JSONDecodeError:
            return None
        return parsed if isinstance(parsed, dict) else None


@dataclass
class UsageTracker:
    """Thread-safe token accumulator."""
    _tokens: int = 0
    _call_count: int = 0
    _lock: threading.Lock = field(default_factory=threading.Lock)

    def add(self, tokens: int) -> None:
        with self._lock:
            self._tokens += tokens
            self._call_count += 1

    @property
    def total(self) -> int:
        with self._lock:
            return self._tokens

    @property
    def call_count(self) -> int:
        with self._lock:
            return self._call_count

    def reset(self) -> None:
        with self._lock:
            self._tokens = 0
            self._call_count = 0


class VisionClient:
    """
    Client for an OpenAI-compatible chat completions endpoint.

    Features:
    - Connection pooling via requests.Session
    - Deterministic defaults (temperature 0, bounded output)
    - Forced JSON response mode for structured answers
    - Thread-safe token tracking
    """

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o-mini",
        base_url: str = "https://api.openai.com/v1",
        max_tokens: int = 300,
        timeout: float = 90.0,
        connect_timeout: float = 10.0,
        session: Optional[requests.Session] = None,
    ):
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.max_tokens = max_tokens
        self.timeout = timeout
        self.connect_timeout = connect_timeout
        self._usage = UsageTracker()

        if session is None:
            session = requests.Session()
            adapter = HTTPAdapter(pool_connections=4, pool_maxsize=8, max_retries=0)
            session.mount("https://", adapter)
            session.mount("http://", adapter)
        self._session = session

    @classmethod
    def from_settings(cls, settings: Settings, session: Optional[requests.Session] = None) -> "VisionClient":
        return cls(
            api_key=settings.require_openai_key(),
            model=settings.vision_model,
            base_url=settings.openai_base_url,
            max_tokens=settings.vision_max_tokens,
            timeout=settings.vision_timeout,
            connect_timeout=settings.vision_connect_timeout,
            session=session,
        )

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/chat/completions"

    def _make_request(
        self,
        messages: List[Dict],
        temperature: float = 0,
        json_mode: bool = False,
    ) -> LLMResponse:
        """
        Post a chat completion request.

        Raises:
            TransportFailure: Network error or non-success status
            InvalidResponseError: Body lacks a message content
        """
        payload: Dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "max_tokens": self.max_tokens,
            "temperature": temperature,
        }
        if json_mode:
            payload["response_format"] = {"type": "json_object"}

        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

        try:
            response = self._session.post(
                self.endpoint,
                headers=headers,
                json=payload,
                timeout=(self.connect_timeout, self.timeout),
            )
        except requests.Timeout as e:
            logger.warning(f"Vision request timed out: {e}")
            raise TransportFailure("Vision service timed out", cause=e)
        except requests.RequestException as e:
            logger.warning(f"Vision request failed: {e}", extra={"error_type": type(e).__name__})
            raise TransportFailure(f"Vision service unreachable: {e}", cause=e)

        if not response.ok:
            logger.error(f"Vision API error: {response.status_code} - {response.text[:200]}")
            raise TransportFailure(f"Vision service returned status {response.status_code}")

        try:
            result = response.json()
            content = result["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise InvalidResponseError("Invalid response from vision service", cause=e)

        if not content:
            raise InvalidResponseError("Vision service returned an empty message")

        usage = result.get("usage") or {}
        prompt_tokens = usage.get("prompt_tokens") or 0
        completion_tokens = usage.get("completion_tokens") or 0
        self._usage.add(prompt_tokens + completion_tokens)

        model = result.get("model", self.model)
        logger.info(
            f"Vision response: model={model}, tokens={prompt_tokens + completion_tokens}, "
            f"total={self.total_tokens}"
        )

        return LLMResponse(
            content=content,
            model=model,
            raw=result,
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
        )

    @property
    def total_tokens(self) -> int:
        """Total tokens across all API calls."""
        return self._usage.total

    @property
    def call_count(self) -> int:
        """Number of successful API calls made."""
        return self._usage.call_count

    def reset_usage_tracking(self) -> None:
        self._usage.reset()

    def analyze_image_base64(
        self,
        image_base64: str,
        prompt: str,
        mime_type: str = "image/jpeg",
        detail: str = "high",
        temperature: float = 0,
        json_mode: bool = False,
    ) -> LLMResponse:
        """
        Analyze a single base64-encoded image.

        Args:
            image_base64: Bare base64 payload (no data: prefix)
            prompt: Analysis instructions
            mime_type: Image MIME type
            detail: Vision detail level (low/high/auto)
            temperature: Sampling temperature
            json_mode: Force a JSON object response

        Returns:
            LLMResponse
        """
        content = [
            {"type": "text", "text": prompt},
            {
                "type": "image_url",
                "image_url": {
                    "url": f"data:{mime_type};base64,{image_base64}",
                    "detail": detail,
                },
            },
        ]

        messages = [{"role": "user", "content": content}]

        return self._make_request(messages, temperature=temperature, json_mode=json_mode)

    def close(self) -> None:
        """Close the session (cleanup)."""
        self._session.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
