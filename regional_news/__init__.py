"""Regional news ingest core."""

__version__ = "0.1.0"
