"""Search service layer for NewsTracker."""

from __future__ import annotations

from typing import TYPE_CHECKING

from NewsTracker.services.search import NewsSearchService, SearchOutcome

if TYPE_CHECKING:
    from NewsTracker.config import AppConfig


def create_search_service(config: AppConfig) -> NewsSearchService:
    """Create a search service with a configured API client.

    Args:
        config: Application configuration.

    Returns:
        Configured NewsSearchService instance.

    Raises:
        ValueError: If the API key environment variable is not set.
    """
    from NewsTracker.sources.eventregistry.client import EventRegistryApiClient

    if not config.api.api_key:
        raise ValueError(
            f"{config.api.api_key_env} environment variable not set. "
            "Set it in your .env file or shell environment."
        )
    client = EventRegistryApiClient(
        api_key=config.api.api_key,
        host=config.api.host,
        min_delay_between_requests=config.api.min_delay_between_requests,
        repeat_failed_request_count=config.api.repeat_failed_request_count,
        timeout=config.api.timeout,
        verbose_output=config.api.verbose_output,
    )
    return NewsSearchService(
        client=client,
        max_items=config.search.max_items,
        batch_size=config.search.batch_size,
        sort_by=config.search.sort_by,
        sort_by_asc=config.search.sort_by_asc,
        return_info=config.search.return_info,
    )


__all__ = [
    "NewsSearchService",
    "SearchOutcome",
    "create_search_service",
]
