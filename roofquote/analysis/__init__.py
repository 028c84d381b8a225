"""Roof measurement analysis."""

from .roof_analyzer import RoofAnalyzer, parse_measurements, ROOF_MEASUREMENT_PROMPT

__all__ = ["RoofAnalyzer", "parse_measurements", "ROOF_MEASUREMENT_PROMPT"]
