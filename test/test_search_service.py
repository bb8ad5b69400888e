"""Tests for the search service and its factory."""

from __future__ import annotations

import os
import sys
import unittest
from pathlib import Path
from typing import Any, Sequence
from unittest.mock import patch

REPO_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_ROOT / "src"))

from NewsTracker.config import parse_config_dict
from NewsTracker.core.errors import FatalDispatchError
from NewsTracker.core.models import QueryResponse, ResultSection
from NewsTracker.core.query import QueryArticles, QueryEvents, QuerySpec
from NewsTracker.core.results import RequestEventsInfo
from NewsTracker.services import create_search_service
from NewsTracker.services.search import NewsSearchService
from NewsTracker.sources.eventregistry.client import EventRegistryApiClient


class _StubClient:
    def __init__(self, *, pages: int = 2, per_page: int = 3, fail_on_page: int | None = None) -> None:
        self.pages = pages
        self.per_page = per_page
        self.fail_on_page = fail_on_page
        self.requests: list[Any] = []
        self.closed = False

    def exec_query(self, query: Any, *, results: Sequence[Any] | None = None) -> QueryResponse:
        assert results is not None
        request = results[0]
        self.requests.append(request)
        if request.page == self.fail_on_page:
            raise FatalDispatchError("HTTP 500", attempts=3, status_code=500)
        items = [{"uri": f"{request.page}-{i}"} for i in range(self.per_page)] if request.page <= self.pages else []
        section = ResultSection(
            name=request.result_type,
            results=items,
            total_results=self.pages * self.per_page,
            page=request.page,
            pages=self.pages,
        )
        return QueryResponse(sections={request.result_type: section})

    def close(self) -> None:
        self.closed = True


class _FailingCloseClient(_StubClient):
    def close(self) -> None:
        raise RuntimeError("close failed")


class TestNewsSearchService(unittest.TestCase):
    def test_collects_all_pages(self) -> None:
        client = _StubClient(pages=2, per_page=3)
        service = NewsSearchService(client=client, batch_size=3)

        outcome = service.run(QuerySpec(name="ev", builder=QueryArticles(keywords="EV")))

        self.assertTrue(outcome.ok)
        self.assertEqual(len(outcome.items), 6)
        self.assertEqual(outcome.pages, 2)
        self.assertEqual(outcome.total_results, 6)

    def test_respects_max_items_and_sort(self) -> None:
        client = _StubClient(pages=5, per_page=3)
        service = NewsSearchService(client=client, batch_size=3, max_items=4, sort_by="date", sort_by_asc=True)

        outcome = service.run(QuerySpec(name=None, builder=QueryArticles(keywords="EV")))

        self.assertEqual(len(outcome.items), 4)
        self.assertEqual(client.requests[0].sort_by, "date")
        self.assertTrue(client.requests[0].sort_by_asc)

    def test_events_query_uses_event_listing(self) -> None:
        client = _StubClient(pages=1)
        NewsSearchService(client=client).run(QuerySpec(name="e", builder=QueryEvents(keywords="EV")))
        self.assertIsInstance(client.requests[0], RequestEventsInfo)

    def test_page_failure_keeps_collected_items(self) -> None:
        client = _StubClient(pages=3, per_page=3, fail_on_page=2)
        outcome = NewsSearchService(client=client, batch_size=3).run(
            QuerySpec(name="ev", builder=QueryArticles(keywords="EV"))
        )
        self.assertFalse(outcome.ok)
        self.assertEqual(len(outcome.items), 3)
        self.assertEqual(outcome.pages, 2)
        assert outcome.error is not None
        self.assertEqual(outcome.error.page, 2)

    def test_close_isolates_failures(self) -> None:
        client = _StubClient()
        NewsSearchService(client=client).close()
        self.assertTrue(client.closed)

        with self.assertLogs("NewsTracker", level="WARNING"):
            NewsSearchService(client=_FailingCloseClient()).close()


class TestCreateSearchService(unittest.TestCase):
    _RAW = {
        "log": {"level": "INFO", "to_file": False, "dir": "log"},
        "api": {
            "host": "https://eventregistry.org",
            "api_key_env": "NEWS_TRACKER_TEST_KEY",
            "min_delay_between_requests": 0.25,
            "repeat_failed_request_count": 4,
            "timeout": 15,
        },
        "search": {"max_items": 20, "batch_size": 10},
        "queries": [{"NAME": "q", "keywords": "Tesla"}],
        "output": {"base_dir": "output", "formats": ["console"]},
    }

    def test_missing_api_key(self) -> None:
        with patch.dict(os.environ, {}, clear=True):
            cfg = parse_config_dict(self._RAW)
        with self.assertRaisesRegex(ValueError, "NEWS_TRACKER_TEST_KEY"):
            create_search_service(cfg)

    def test_builds_configured_client(self) -> None:
        with patch.dict(os.environ, {"NEWS_TRACKER_TEST_KEY": "k-123"}, clear=False):
            cfg = parse_config_dict(self._RAW)
        service = create_search_service(cfg)
        try:
            client = service.client
            assert isinstance(client, EventRegistryApiClient)
            self.assertEqual(client.api_key, "k-123")
            self.assertEqual(client.repeat_failed_request_count, 4)
            self.assertEqual(client.timeout, 15.0)
            self.assertEqual(service.max_items, 20)
            self.assertEqual(service.batch_size, 10)
        finally:
            service.close()


if __name__ == "__main__":
    unittest.main()
