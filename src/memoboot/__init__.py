"""memoboot: database bootstrapper for the Smart Memo API."""

__version__ = "0.1.0"
