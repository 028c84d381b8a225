"""View models for the shell."""

from .view import render, ShellView, CaptureView, CostPanel, MeasurementCard, PredictionItem, FrameView

__all__ = ["render", "ShellView", "CaptureView", "CostPanel", "MeasurementCard", "PredictionItem", "FrameView"]
