"""Shift coverage and scheduling engine."""

from roster_engine.engine import SchedulingEngine

__version__ = "1.0.0"

__all__ = ["SchedulingEngine", "__version__"]
