"""
Configuration management for RoofQuote.
"""

from typing import Tuple

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import ConfigurationError


class Settings(BaseSettings):
    """
    Application settings.

    Can be configured via environment variables or .env file.
    """

    model_config = SettingsConfigDict(
        env_prefix="ROOFQUOTE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # API Keys (required by the clients that use them)
    google_maps_api_key: str | None = Field(default=None, description="Google Maps / Places API key")
    openai_api_key: str | None = Field(default=None, description="OpenAI-compatible vision API key")

    # Address search
    country: str = Field(default="us", description="ISO country code autocomplete is restricted to")
    min_query_length: int = Field(default=3, ge=1, description="Shortest input that triggers autocomplete")
    debounce_ms: int = Field(default=300, ge=300, description="Input quiescence before autocomplete fires")
    places_timeout: float = Field(default=10.0, description="Places request timeout (seconds)")

    # Capture
    capture_angles: Tuple[int, ...] = Field(default=(0, 60, 120, 180, 240, 300))
    settle_delay: float = Field(default=1.0, ge=0, description="Wait after each heading change (seconds)")
    map_zoom: int = Field(default=20, ge=1, le=21)
    map_tilt: int = Field(default=45, ge=0, le=90)
    view_size: int = Field(default=640, description="Square view size in pixels")
    jpeg_quality: int = Field(default=85, ge=1, le=95)

    # Vision model
    openai_base_url: str = Field(default="https://api.openai.com/v1")
    vision_model: str = Field(default="gpt-4o-mini")
    vision_max_tokens: int = Field(default=300)
    vision_timeout: float = Field(default=90.0)
    vision_connect_timeout: float = Field(default=10.0)

    # Pricing (USD per roofing square)
    default_price_per_square: int = Field(default=425)
    min_price_per_square: int = Field(default=350)
    max_price_per_square: int = Field(default=5000)
    price_step: int = Field(default=5)

    @property
    def debounce_seconds(self) -> float:
        return self.debounce_ms / 1000.0

    def require_google_maps_key(self) -> str:
        """Return the Places key or fail loudly."""
        if not self.google_maps_api_key:
            raise ConfigurationError(
                "Google Maps API key is not configured. Set ROOFQUOTE_GOOGLE_MAPS_API_KEY."
            )
        return self.google_maps_api_key

    def require_openai_key(self) -> str:
        """Return the vision key or fail loudly."""
        if not self.openai_api_key:
            raise ConfigurationError(
                "OpenAI API key is not configured. Set ROOFQUOTE_OPENAI_API_KEY."
            )
        return self.openai_api_key


def get_settings() -> Settings:
    """Build settings from the current environment."""
    return Settings()
