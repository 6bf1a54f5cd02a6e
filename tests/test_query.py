from urllib.parse import quote_plus

import pytest

from microws.query import get_decoded_query_value


def test_finds_each_key():
    query = "?a=1&b=2&c=3"
    assert get_decoded_query_value("a", query) == "1"
    assert get_decoded_query_value("b", query) == "2"
    assert get_decoded_query_value("c", query) == "3"


def test_missing_key_is_none():
    assert get_decoded_query_value("z", "?a=1&b=2") is None


def test_empty_key_is_none():
    assert get_decoded_query_value("", "?=1") is None


def test_empty_query_is_none():
    assert get_decoded_query_value("a", "") is None
    assert get_decoded_query_value("a", "?") is None


def test_empty_value_is_empty_string():
    assert get_decoded_query_value("a", "?a=&b=2") == ""


def test_plus_and_percent_decoding():
    assert get_decoded_query_value("hello", "?hello=wor+ld%21") == "wor ld!"


def test_lowercase_hex_escape():
    assert get_decoded_query_value("k", "?k=%2f") == get_decoded_query_value("k", "?k=%2F")


def test_truncated_escape_is_none():
    assert get_decoded_query_value("a", "?a=%4") is None
    assert get_decoded_query_value("a", "?a=x%") is None


def test_statement_without_equals_with_same_first_char_is_invalid():
    assert get_decoded_query_value("a", "?abc&a=1") is None


def test_statement_without_equals_with_other_first_char_is_skipped():
    assert get_decoded_query_value("b", "?abc&b=1") == "1"


def test_prefix_key_does_not_match():
    assert get_decoded_query_value("ab", "?a=1&ab=2") == "2"
    assert get_decoded_query_value("a", "?ab=2") is None


def test_value_may_contain_equals():
    assert get_decoded_query_value("a", "?a=b=c") == "b=c"


@pytest.mark.parametrize("value", ["plain", "with space", "a&b=c", "100%", "ünïcode", "+-*/"])
def test_round_trip_with_quote_plus(value):
    assert get_decoded_query_value("k", "?x=1&k=" + quote_plus(value)) == value