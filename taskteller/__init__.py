"""TaskTeller - natural-language task capture."""

__version__ = "0.1.0"
