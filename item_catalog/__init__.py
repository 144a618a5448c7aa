"""Item catalogue: JSON-file backed REST API and an async browsing client."""

__version__ = "1.0.0"
