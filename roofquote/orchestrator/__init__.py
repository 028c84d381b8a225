"""Workflow orchestration."""

from .shell import RoofQuoteShell, ShellState, PredictionsStatus

__all__ = ["RoofQuoteShell", "ShellState", "PredictionsStatus"]
