"""Tests for field value coercion and the condition vocabulary."""

from __future__ import annotations

import sys
import unittest
from datetime import date, datetime
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_ROOT / "src"))

from NewsTracker.core.coercion import Absent, QueryItems, Scalar, ValueList, Wrapped, classify, coerce_field
from NewsTracker.core.combinators import And, Condition, Or
from NewsTracker.core.conditions import FIELDS_BY_PARAM, CombineMode, condition, format_date
from NewsTracker.core.errors import InvalidDateError, InvalidExpressionError


def _field(param: str):
    return FIELDS_BY_PARAM[param]


class TestClassify(unittest.TestCase):
    def test_variants(self) -> None:
        self.assertIsInstance(classify(None), Absent)
        self.assertIsInstance(classify("   "), Absent)
        self.assertIsInstance(classify([]), Absent)
        self.assertEqual(classify("Tesla"), Scalar("Tesla"))
        self.assertEqual(classify(("a", "b")), ValueList(("a", "b")))
        self.assertIsInstance(classify(QueryItems.OR(["a"])), Wrapped)

    def test_node_as_value_rejected(self) -> None:
        with self.assertRaises(InvalidExpressionError):
            classify(condition("lang", "eng"))

    def test_empty_wrapper_rejected(self) -> None:
        with self.assertRaises(InvalidExpressionError):
            QueryItems.AND([])

    def test_wrapper_keeps_single_string_whole(self) -> None:
        self.assertEqual(QueryItems.OR("electric vehicle").values, ("electric vehicle",))


class TestCoerceField(unittest.TestCase):
    def test_absent_value_is_omitted(self) -> None:
        self.assertIsNone(coerce_field(_field("keywords"), None))
        self.assertIsNone(coerce_field(_field("keywords"), ""))

    def test_scalar_string_is_one_condition(self) -> None:
        self.assertEqual(coerce_field(_field("keywords"), "electric vehicle"), Condition("keyword", "electric vehicle"))

    def test_per_field_default_modes(self) -> None:
        self.assertIsInstance(coerce_field(_field("keywords"), ["a", "b"]), And)
        self.assertIsInstance(coerce_field(_field("concept_uri"), ["c1", "c2"]), And)
        for param in ("category_uri", "source_uri", "source_location_uri", "source_group_uri", "location_uri", "lang"):
            with self.subTest(param=param):
                self.assertIsInstance(coerce_field(_field(param), ["x", "y"]), Or)

    def test_default_mode_override(self) -> None:
        node = coerce_field(_field("keywords"), ["a", "b"], default_mode=CombineMode.ANY)
        self.assertEqual(node, Or((Condition("keyword", "a"), Condition("keyword", "b"))))

    def test_wrapper_overrides_default(self) -> None:
        self.assertIsInstance(coerce_field(_field("keywords"), QueryItems.OR(["a", "b"])), Or)
        self.assertIsInstance(coerce_field(_field("lang"), QueryItems.AND(["eng", "deu"])), And)

    def test_one_element_list_collapses(self) -> None:
        self.assertEqual(coerce_field(_field("lang"), ["eng"]), Condition("lang", "eng"))

    def test_single_valued_field_rejects_several_values(self) -> None:
        with self.assertRaises(InvalidExpressionError):
            coerce_field(_field("date_start"), ["2024-01-01", "2024-02-01"])
        self.assertEqual(coerce_field(_field("date_start"), ["2024-01-01"]), Condition("dateStart", "2024-01-01"))

    def test_modifiers_attach_to_every_condition(self) -> None:
        node = coerce_field(_field("keywords"), ["a", "b"], modifiers={"keywordLoc": "title"})
        assert isinstance(node, And)
        for child in node.children:
            self.assertEqual(child.serialize()["keywordLoc"], "title")

    def test_invalid_modifier_values(self) -> None:
        with self.assertRaises(InvalidExpressionError):
            coerce_field(_field("keywords"), "a", modifiers={"keywordLoc": "footer"})
        with self.assertRaises(InvalidExpressionError):
            coerce_field(_field("lang"), "eng", modifiers={"keywordLoc": "title"})
        with self.assertRaises(InvalidExpressionError):
            coerce_field(_field("category_uri"), "dmoz/Business", modifiers={"categoryIncludeSub": "yes"})

    def test_count_values(self) -> None:
        self.assertEqual(coerce_field(_field("min_articles_in_event"), 10), Condition("minArticlesInEvent", 10))
        for bad in ("10", True, -1, 2.5):
            with self.subTest(value=bad):
                with self.assertRaises(InvalidExpressionError):
                    coerce_field(_field("min_articles_in_event"), bad)

    def test_token_values_must_be_strings(self) -> None:
        with self.assertRaises(InvalidExpressionError):
            coerce_field(_field("lang"), 42)


class TestDates(unittest.TestCase):
    def test_accepted_forms(self) -> None:
        self.assertEqual(format_date(date(2024, 1, 5)), "2024-01-05")
        self.assertEqual(format_date(datetime(2024, 1, 5, 23, 59)), "2024-01-05")
        self.assertEqual(format_date("2024-01-05"), "2024-01-05")
        self.assertEqual(format_date(" 2024-01-05T08:00:00+02:00 "), "2024-01-05")
        self.assertEqual(format_date("20240105"), "2024-01-05")

    def test_invalid_dates(self) -> None:
        for bad in ("yesterday", "2024-02-30", "", 20240105, "2024", "2024-03", "2024W01", "2024-W01-1", "2024-005", "2024005"):
            with self.subTest(value=bad):
                with self.assertRaises(InvalidDateError):
                    format_date(bad)

    def test_invalid_date_error_is_value_error(self) -> None:
        with self.assertRaises(ValueError):
            coerce_field(_field("date_end"), "not a date")

    def test_partial_date_is_not_widened(self) -> None:
        with self.assertRaises(InvalidDateError):
            coerce_field(_field("date_end"), "2024")


class TestConditionHelper(unittest.TestCase):
    def test_known_field(self) -> None:
        self.assertEqual(condition("keyword", "Tesla", keywordLoc="body").serialize(), {"keyword": "Tesla", "keywordLoc": "body"})

    def test_unknown_field(self) -> None:
        with self.assertRaisesRegex(InvalidExpressionError, "Unknown query field"):
            condition("author", "x")


if __name__ == "__main__":
    unittest.main()
