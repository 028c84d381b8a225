"""Vision model client."""

from .llm_client import VisionClient, LLMResponse

__all__ = ["VisionClient", "LLMResponse"]
