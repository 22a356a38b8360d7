"""Planner models and loader exports."""

from .loader import load_planner, load_planners
from .models import Planner, TimeBlock

__all__ = [
    "Planner",
    "TimeBlock",
    "load_planner",
    "load_planners",
]
