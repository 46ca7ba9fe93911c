from __future__ import annotations

import pytest

from csv_tokenizer.config import ParserConfig
from csv_tokenizer.constants import NULL_CHARACTER
from csv_tokenizer.renderer import needs_quotes, render_line, render_value
from csv_tokenizer.rfc4180 import Rfc4180Tokenizer
from csv_tokenizer.tokenizer import CsvTokenizer


def test_plain_values_are_not_quoted():
    assert CsvTokenizer().render(["a", "b", "c"]) == "a,b,c"


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("b,c", '"b,c"'),
        ('say "hi"', '"say ""hi"""'),
        ("line1\nline2", '"line1\nline2"'),
        ("a\\b", '"a\\\\b"'),
    ],
)
def test_general_mode_quotes_special_values(value, expected):
    assert CsvTokenizer().render([value]) == expected


def test_rfc4180_mode_treats_backslash_as_data():
    assert Rfc4180Tokenizer().render(["a\\b", 'x"y']) == 'a\\b,"x""y"'


def test_disabled_escape_is_not_doubled():
    tokenizer = CsvTokenizer(escape_char=NULL_CHARACTER)

    assert tokenizer.render(["a\\b"]) == "a\\b"


def test_custom_separator_triggers_quoting():
    tokenizer = CsvTokenizer(separator=";")

    assert tokenizer.render(["a,b", "c;d"]) == 'a,b;"c;d"'


@pytest.mark.parametrize(
    ("indicator", "expected"),
    [
        ("neither", ",a"),
        ("empty_separators", ",a"),
        ("empty_quotes", '"",a'),
        ("both", '"",a'),
    ],
)
def test_null_values_follow_policy(indicator, expected):
    tokenizer = CsvTokenizer(null_field_indicator=indicator)

    assert tokenizer.render([None, "a"]) == expected


def test_empty_string_is_never_quoted():
    tokenizer = CsvTokenizer(null_field_indicator="both")

    assert tokenizer.render(["", "a"]) == ",a"


def test_needs_quotes_helpers():
    config = ParserConfig()

    assert needs_quotes("a,b", config)
    assert not needs_quotes("ab", config)
    assert needs_quotes("a\\b", config)
    assert not needs_quotes("a\\b", config, escape_aware=False)
    assert not needs_quotes(None, config)


def test_render_value_and_line():
    config = ParserConfig(quote_char="'")

    assert render_value("it's", config) == "'it''s'"
    assert render_line(["a", None, "b,c"], config) == "a,,'b,c'"
    assert render_line([], config) == ""
