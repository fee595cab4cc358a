"""subtitle-ai — contextual LLM subtitle translation."""

__version__ = "0.1.0"
