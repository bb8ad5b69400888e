"""Tests for layered config parsing and validation."""

import os
import sys
import unittest
from copy import deepcopy
from datetime import date
from pathlib import Path
from unittest.mock import patch

REPO_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_ROOT / "src"))

from NewsTracker.config import merge_config_dicts, parse_config_dict
from NewsTracker.core.query import QueryArticles, QueryEvents


def _base_raw_config() -> dict:
    return {
        "log": {"level": "info", "to_file": True, "dir": "log"},
        "api": {
            "host": "https://eventregistry.org",
            "api_key_env": "NEWS_TRACKER_TEST_KEY",
            "min_delay_between_requests": 0.5,
            "repeat_failed_request_count": 2,
            "timeout": 30,
            "verbose_output": False,
        },
        "search": {
            "max_items": 50,
            "batch_size": 100,
            "sort_by": "rel",
            "sort_by_asc": False,
            "return_info": {"articleBodyLen": 300},
        },
        "queries": [{"NAME": "q1", "TYPE": "articles", "keywords": "Tesla"}],
        "output": {"base_dir": "output", "formats": ["console", "JSON"]},
    }


class TestConfigLayering(unittest.TestCase):
    def test_parse_success_nested_access(self) -> None:
        cfg = parse_config_dict(_base_raw_config())
        self.assertEqual(cfg.runtime.level, "INFO")
        self.assertEqual(cfg.api.repeat_failed_request_count, 2)
        self.assertEqual(cfg.search.max_items, 50)
        self.assertEqual(cfg.search.return_info, {"articleBodyLen": 300})
        self.assertEqual(cfg.output.formats, ("console", "json"))
        spec = cfg.search.queries[0]
        self.assertEqual(spec.name, "q1")
        self.assertEqual(spec.kind, "articles")
        self.assertIsInstance(spec.builder, QueryArticles)
        self.assertEqual(spec.builder.compile(), {"$query": {"keyword": "Tesla"}})

    def test_api_key_read_from_env(self) -> None:
        with patch.dict(os.environ, {"NEWS_TRACKER_TEST_KEY": " test-key "}, clear=False):
            cfg = parse_config_dict(_base_raw_config())
        self.assertEqual(cfg.api.api_key, "test-key")
        self.assertNotIn("test-key", repr(cfg.api))

    def test_type_errors_contain_key(self) -> None:
        raw = _base_raw_config()
        raw["api"]["timeout"] = "30"
        with self.assertRaisesRegex(TypeError, "api\\.timeout"):
            parse_config_dict(raw)

        raw = _base_raw_config()
        raw["search"]["return_info"] = ["articleBodyLen"]
        with self.assertRaisesRegex(TypeError, "search\\.return_info"):
            parse_config_dict(raw)

    def test_value_errors_contain_key(self) -> None:
        cases = [
            (("output", "formats"), ["console", "markdown"], "output\\.formats"),
            (("search", "max_items"), 0, "search\\.max_items"),
            (("search", "batch_size"), -5, "search\\.batch_size"),
            (("api", "host"), "eventregistry.org", "api\\.host"),
            (("api", "repeat_failed_request_count"), -1, "api\\.repeat_failed_request_count"),
            (("log", "level"), "LOUD", "log\\.level"),
        ]
        for (section, key), value, pattern in cases:
            with self.subTest(key=f"{section}.{key}"):
                raw = _base_raw_config()
                raw[section][key] = value
                with self.assertRaisesRegex(ValueError, pattern):
                    parse_config_dict(raw)

    def test_missing_section(self) -> None:
        raw = _base_raw_config()
        del raw["api"]
        with self.assertRaisesRegex(ValueError, "Missing required config: api"):
            parse_config_dict(raw)

    def test_queries_empty_error(self) -> None:
        raw = _base_raw_config()
        raw["queries"] = []
        with self.assertRaisesRegex(ValueError, "queries"):
            parse_config_dict(raw)

    def test_duplicate_query_names(self) -> None:
        raw = _base_raw_config()
        raw["queries"].append({"NAME": "q1", "lang": "eng"})
        with self.assertRaisesRegex(ValueError, "duplicate NAME"):
            parse_config_dict(raw)

    def test_flat_query_wrappers_and_ignore_fields(self) -> None:
        raw = _base_raw_config()
        raw["queries"] = [
            {
                "NAME": "ev",
                "keywords": {"OR": ["Tesla", "Rivian"]},
                "keywords_loc": "title",
                "ignore_lang": ["deu"],
                "date_start": date(2024, 1, 1),
                "is_duplicate_filter": "skipDuplicates",
            }
        ]
        cfg = parse_config_dict(raw)
        self.assertEqual(
            cfg.search.queries[0].builder.compile(),
            {
                "$query": {
                    "$and": [
                        {
                            "$or": [
                                {"keyword": "Tesla", "keywordLoc": "title"},
                                {"keyword": "Rivian", "keywordLoc": "title"},
                            ]
                        },
                        {"dateStart": "2024-01-01"},
                        {"$not": {"lang": "deu"}},
                    ]
                },
                "$filter": {"isDuplicate": "skipDuplicates"},
            },
        )

    def test_event_query(self) -> None:
        raw = _base_raw_config()
        raw["queries"] = [{"NAME": "big", "TYPE": "Events", "concept_uri": ["C1", "C2"], "min_articles_in_event": 20}]
        spec = parse_config_dict(raw).search.queries[0]
        self.assertIsInstance(spec.builder, QueryEvents)
        self.assertEqual(
            spec.builder.compile(),
            {"$query": {"$and": [{"$and": [{"conceptUri": "C1"}, {"conceptUri": "C2"}]}, {"minArticlesInEvent": 20}]}},
        )

    def test_complex_query(self) -> None:
        raw = _base_raw_config()
        raw["queries"] = [
            {"NAME": "text", "COMPLEX": '{"$query": {"$or": [{"lang": "eng"}, {"lang": "deu"}]}}'},
            {"NAME": "map", "TYPE": "events", "COMPLEX": {"$query": {"$not": {"keyword": "sports"}}}},
        ]
        specs = parse_config_dict(raw).search.queries
        self.assertEqual(specs[0].builder.compile(), {"$query": {"$or": [{"lang": "eng"}, {"lang": "deu"}]}})
        self.assertEqual(specs[1].builder.compile(), {"$query": {"$not": {"keyword": "sports"}}})

    def test_invalid_queries_report_their_key(self) -> None:
        cases = [
            ({"NAME": "x", "TYPE": "papers", "keywords": "a"}, ValueError, "queries\\[0\\]\\.TYPE"),
            ({"NAME": "x", "author": "a"}, ValueError, "queries\\[0\\]"),
            ({"NAME": "x", "keywords": {"XOR": ["a"]}}, ValueError, "queries\\[0\\]\\.keywords"),
            ({"NAME": "x", "keywords": {"AND": []}}, ValueError, "queries\\[0\\]\\.keywords\\.AND"),
            ({"NAME": "x", "keywords": [["a"]]}, TypeError, "queries\\[0\\]\\.keywords\\[0\\]"),
            ({"NAME": "x", "date_end": "someday"}, ValueError, "queries\\[0\\]"),
            ({"NAME": "x"}, ValueError, "at least one field"),
            ({"NAME": "x", "COMPLEX": "{oops"}, ValueError, "queries\\[0\\]"),
            ({"NAME": "x", "COMPLEX": ["lang"]}, TypeError, "queries\\[0\\]\\.COMPLEX"),
            ({"NAME": "x", "lang": "eng", "COMPLEX": {"$query": {"lang": "eng"}}}, ValueError, "COMPLEX"),
            ("keywords: Tesla", TypeError, "queries\\[0\\]"),
        ]
        for query, error_type, pattern in cases:
            with self.subTest(query=query):
                raw = _base_raw_config()
                raw["queries"] = [query]
                with self.assertRaisesRegex(error_type, pattern):
                    parse_config_dict(raw)

    def test_merge_config_dicts(self) -> None:
        base = deepcopy(_base_raw_config())
        merged = merge_config_dicts(base, {"api": {"timeout": 5}, "queries": [{"NAME": "o", "lang": "eng"}]})
        self.assertEqual(merged["api"]["timeout"], 5)
        self.assertEqual(merged["api"]["host"], "https://eventregistry.org")
        self.assertEqual(merged["queries"], [{"NAME": "o", "lang": "eng"}])
        self.assertEqual(base["api"]["timeout"], 30)


if __name__ == "__main__":
    unittest.main()
