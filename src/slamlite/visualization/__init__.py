"""Rerun-based debug visualization."""

from .rerun_visualizer import RerunVisualizer

__all__ = ["RerunVisualizer"]
