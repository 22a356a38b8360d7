"""Session time awareness and work-schedule tracking."""

__version__ = "0.1.0"

__all__ = ["__version__"]
