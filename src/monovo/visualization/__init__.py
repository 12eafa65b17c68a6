"""Visualization of pipeline results."""

from .rerun_visualizer import RerunVisualizer

__all__ = ["RerunVisualizer"]
