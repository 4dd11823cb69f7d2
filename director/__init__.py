"""Director: natural-language command orchestration for the video editor."""

__version__ = "0.4.0"
