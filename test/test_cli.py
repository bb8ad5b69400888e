"""Tests for the click CLI commands."""

from __future__ import annotations

import json
import logging
import sys
import unittest
from pathlib import Path
from typing import Any, Sequence
from unittest.mock import patch

from click.testing import CliRunner

REPO_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_ROOT / "src"))

from NewsTracker.cli import cli
from NewsTracker.core.errors import FatalDispatchError
from NewsTracker.core.models import QueryResponse, ResultSection

_CONFIG_YAML = """
log:
  level: INFO
  to_file: false
  dir: log

api:
  host: https://eventregistry.org
  api_key_env: NEWS_TRACKER_TEST_KEY
  min_delay_between_requests: 0
  repeat_failed_request_count: 0
  timeout: 5

search:
  max_items: 10
  batch_size: 10
  sort_by: date

queries:
  - NAME: ev
    TYPE: articles
    keywords: electric vehicle
    ignore_lang: [deu, fra]

output:
  base_dir: out
  formats: [{formats}]
"""

_ARTICLES = [
    {"uri": "a1", "title": "EV sales climb", "url": "https://news.example/a1", "date": "2024-05-01", "lang": "eng",
     "source": {"title": "News Example"}},
    {"uri": "a2", "title": "Battery plant opens", "date": "2024-05-02", "lang": "eng"},
]


class _FakeApiClient:
    fail = False

    def __init__(self, **kwargs: Any) -> None:
        self.kwargs = kwargs
        self.closed = False

    def exec_query(self, query: Any, *, results: Sequence[Any] | None = None) -> QueryResponse:
        if self.fail:
            raise FatalDispatchError("HTTP 503", attempts=1, status_code=503)
        request = results[0] if results else query.requested_results[0]
        section = ResultSection(
            name=request.result_type,
            results=_ARTICLES,
            total_results=len(_ARTICLES),
            page=1,
            pages=1,
        )
        return QueryResponse(sections={request.result_type: section})

    def close(self) -> None:
        self.closed = True


def _make_runner() -> CliRunner:
    """Create CliRunner with best-effort stderr capture."""
    try:
        return CliRunner(mix_stderr=True)
    except TypeError:
        # Newer Click versions don't support mix_stderr.
        return CliRunner()


class TestCli(unittest.TestCase):
    def setUp(self) -> None:
        self.runner = _make_runner()
        _FakeApiClient.fail = False

    def tearDown(self) -> None:
        logging.getLogger("NewsTracker").handlers.clear()

    def _write_config(self, formats: str = "console") -> str:
        Path("config.yml").write_text(_CONFIG_YAML.format(formats=formats), encoding="utf-8")
        return "config.yml"

    def test_compile_prints_request_bodies(self) -> None:
        with self.runner.isolated_filesystem():
            result = self.runner.invoke(cli, ["--config", self._write_config(), "compile"], catch_exceptions=False)

        self.assertEqual(result.exit_code, 0, result.output)
        compiled = json.loads(result.output)
        self.assertEqual(compiled[0]["name"], "ev")
        self.assertEqual(compiled[0]["path"], "/api/v1/article/getArticles")
        self.assertEqual(
            compiled[0]["payload"]["query"],
            {
                "$query": {
                    "$and": [
                        {"keyword": "electric vehicle"},
                        {"$not": {"$or": [{"lang": "deu"}, {"lang": "fra"}]}},
                    ]
                }
            },
        )
        self.assertEqual(compiled[0]["payload"]["resultType"], "articles")

    def test_search_writes_console_output(self) -> None:
        with patch("NewsTracker.sources.eventregistry.client.EventRegistryApiClient", _FakeApiClient):
            with self.runner.isolated_filesystem():
                result = self.runner.invoke(
                    cli,
                    ["--config", self._write_config(), "search"],
                    env={"NEWS_TRACKER_TEST_KEY": "k"},
                    catch_exceptions=False,
                )

        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("Fetched 2 articles", result.output)
        self.assertIn("EV sales climb", result.output)
        self.assertIn("News Example", result.output)

    def test_search_writes_json_file(self) -> None:
        with patch("NewsTracker.sources.eventregistry.client.EventRegistryApiClient", _FakeApiClient):
            with self.runner.isolated_filesystem():
                result = self.runner.invoke(
                    cli,
                    ["--config", self._write_config("json"), "search"],
                    env={"NEWS_TRACKER_TEST_KEY": "k"},
                    catch_exceptions=False,
                )
                files = list(Path("out/json").glob("search_*.json"))
                payload = json.loads(files[0].read_text(encoding="utf-8")) if files else None

        self.assertEqual(result.exit_code, 0, result.output)
        self.assertEqual(len(files), 1)
        assert payload is not None
        self.assertEqual(payload[0]["name"], "ev")
        self.assertEqual([item["uri"] for item in payload[0]["items"]], ["a1", "a2"])
        self.assertIsNone(payload[0]["error"])

    def test_page_failure_is_reported_without_abort(self) -> None:
        _FakeApiClient.fail = True
        with patch("NewsTracker.sources.eventregistry.client.EventRegistryApiClient", _FakeApiClient):
            with self.runner.isolated_filesystem():
                result = self.runner.invoke(
                    cli,
                    ["--config", self._write_config(), "search"],
                    env={"NEWS_TRACKER_TEST_KEY": "k"},
                )

        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("Incomplete results", result.output)

    def test_missing_api_key_aborts(self) -> None:
        with self.runner.isolated_filesystem():
            result = self.runner.invoke(
                cli,
                ["--config", self._write_config(), "search"],
                env={"NEWS_TRACKER_TEST_KEY": ""},
            )

        self.assertEqual(result.exit_code, 1)
        self.assertIn("Search failed", result.output)

    def test_invalid_config_is_a_usage_error(self) -> None:
        with self.runner.isolated_filesystem():
            Path("config.yml").write_text(
                _CONFIG_YAML.format(formats="console").replace("keywords: electric vehicle", "author: someone"),
                encoding="utf-8",
            )
            result = self.runner.invoke(cli, ["--config", "config.yml", "compile"])

        self.assertEqual(result.exit_code, 2)
        self.assertIn("queries[0]", result.output)


if __name__ == "__main__":
    unittest.main()
