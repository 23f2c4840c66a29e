"""Story / series pages → EPUB."""

__version__ = "0.5.0"
