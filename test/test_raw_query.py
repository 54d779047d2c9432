"""Tests for raw query tuples and their JSON string form."""

import sys
import unittest
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_ROOT / "src"))

from QueryHelper.core.models import QueryFilter
from QueryHelper.services.query import QueryHelper


_RAW_QUERIES = [
    ["foo"],
    ["bar", "name"],
    [["a", "b"], "tag", "="],
    [None, "status", "!="],
    ["2023-05", "created_at", ">t"],
    [3, "count", ">="],
]


class TestRawQueries(unittest.TestCase):
    def test_round_trip_preserves_order_and_shape(self) -> None:
        helper = QueryHelper().set_filters_as_raw_query(_RAW_QUERIES)
        self.assertEqual(helper.raw_queries, _RAW_QUERIES)

    def test_filters_from_tuples(self) -> None:
        helper = QueryHelper().set_filters_as_raw_query([["foo"], ["bar", "name"], [["a"], "tag", "$"]])
        self.assertEqual(
            helper.filters,
            [
                QueryFilter(v="foo"),
                QueryFilter(k="name", v="bar"),
                QueryFilter(k="tag", v=("a",), o="$"),
            ],
        )

    def test_datetime_operator_is_not_expanded(self) -> None:
        helper = QueryHelper().set_filters_as_raw_query([["this_month", "created_at", "=t"]])
        self.assertEqual(helper.raw_queries, [["this_month", "created_at", "=t"]])

    def test_empty_operator_serializes_as_two_tuple(self) -> None:
        helper = QueryHelper().set_filters([{"k": "name", "v": "bar", "o": ""}])
        self.assertEqual(helper.raw_queries, [["bar", "name"]])

    def test_set_filters_replaces_previous_list(self) -> None:
        helper = QueryHelper().set_filters_as_raw_query([["a"], ["b"]])
        helper.set_filters_as_raw_query([["c"]])
        self.assertEqual(helper.raw_queries, [["c"]])


class TestRawQueryStrings(unittest.TestCase):
    def test_encoding(self) -> None:
        helper = QueryHelper().set_filters_as_raw_query([["foo"], [["a", "b"], "tag", "="]])
        self.assertEqual(helper.raw_query_strings, ['["foo"]', '[["a","b"],"tag","="]'])
        self.assertEqual(helper.raw_query_string, '[["foo"],[["a","b"],"tag","="]]')

    def test_non_ascii_is_kept(self) -> None:
        helper = QueryHelper().set_filters_as_raw_query([["서버", "name"]])
        self.assertEqual(helper.raw_query_strings, ['["서버","name"]'])

    def test_decode_single_string(self) -> None:
        helper = QueryHelper().set_filters_as_raw_query_string('["foo","name","="]')
        self.assertEqual(helper.filters, [QueryFilter(k="name", v="foo", o="=")])

    def test_decode_list_skips_empty_entries(self) -> None:
        helper = QueryHelper().set_filters_as_raw_query_string([None, "", '["x"]'])
        self.assertEqual(helper.filters, [QueryFilter(v="x")])

    def test_decode_none_clears_filters(self) -> None:
        helper = QueryHelper().set_filters_as_raw_query([["a"]]).set_filters_as_raw_query_string(None)
        self.assertEqual(helper.filters, [])

    def test_malformed_entry_is_dropped_and_logged(self) -> None:
        with self.assertLogs("QueryHelper", level="ERROR") as captured:
            helper = QueryHelper().set_filters_as_raw_query_string(["not-json", '["ok",1]'])
        self.assertEqual(helper.filters, [QueryFilter(k="1", v="ok")])
        self.assertTrue(any("not-json" in line for line in captured.output))

    def test_deeply_nested_entry_is_dropped(self) -> None:
        nested = "[" * 100000 + "]" * 100000
        with self.assertLogs("QueryHelper", level="ERROR"):
            helper = QueryHelper().set_filters_as_raw_query_string([nested, '["ok","k"]'])
        self.assertEqual(helper.filters, [QueryFilter(k="k", v="ok")])

    def test_non_tuple_shapes_are_dropped(self) -> None:
        with self.assertLogs("QueryHelper", level="ERROR") as captured:
            helper = QueryHelper().set_filters_as_raw_query_string(
                ['{"a":1}', "[]", '["v","k",5]', '["v",["k"]]', '[1,2,3,4]', '"text"', '["kept","k","="]']
            )
        self.assertEqual(helper.filters, [QueryFilter(k="k", v="kept", o="=")])
        self.assertEqual(len(captured.output), 6)

    def test_malformed_single_string_yields_empty_list(self) -> None:
        with self.assertLogs("QueryHelper", level="ERROR"):
            helper = QueryHelper().set_filters_as_raw_query_string("[broken")
        self.assertEqual(helper.filters, [])

    def test_string_round_trip(self) -> None:
        encoded = QueryHelper().set_filters_as_raw_query(_RAW_QUERIES).raw_query_strings
        helper = QueryHelper().set_filters_as_raw_query_string(encoded)
        self.assertEqual(helper.raw_queries, _RAW_QUERIES)


if __name__ == "__main__":
    unittest.main()
