"""NewsTracker: query compiler and paged client for a news/event search service."""

__version__ = "0.1.0"
