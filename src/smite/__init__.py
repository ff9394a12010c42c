"""smite - dependency-aware batch scheduling and cached code search."""

__version__ = "0.1.0"
