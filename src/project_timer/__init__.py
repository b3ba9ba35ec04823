"""Project Timer: editor activity time tracking and productivity analytics."""

__version__ = "0.2.0"

__all__ = ["__version__"]
