from __future__ import annotations

from hypothesis import given
from hypothesis import strategies as st

from csv_tokenizer.models import NullFieldIndicator
from csv_tokenizer.reader import CsvReader
from csv_tokenizer.rfc4180 import Rfc4180Tokenizer
from csv_tokenizer.tokenizer import CsvTokenizer

field_text = st.text(alphabet='ab ,"\\\t;x=', max_size=12)
records = st.lists(field_text, min_size=1, max_size=8)
multiline_text = st.text(alphabet='ab ,"\\\n', max_size=12)


@given(records)
def test_general_render_then_tokenize_is_identity(fields):
    tokenizer = CsvTokenizer()

    assert tokenizer.tokenize(tokenizer.render(fields)) == fields


@given(records)
def test_rfc4180_render_then_tokenize_is_identity(fields):
    tokenizer = Rfc4180Tokenizer()

    assert tokenizer.tokenize(tokenizer.render(fields)) == fields


@given(st.lists(st.lists(multiline_text, min_size=1, max_size=5), min_size=1, max_size=5))
def test_reader_reassembles_fields_spanning_lines(rows):
    tokenizer = CsvTokenizer()
    document = "".join(tokenizer.render(row) + "\n" for row in rows)

    assert CsvReader(document).read_all() == rows


@given(records)
def test_rendering_is_stable_after_one_round(fields):
    """Property: render(tokenize(render(x))) == render(x)."""
    for tokenizer in (CsvTokenizer(), Rfc4180Tokenizer()):
        line = tokenizer.render(fields)
        assert tokenizer.render(tokenizer.tokenize(line)) == line


@given(st.lists(st.one_of(st.none(), field_text), min_size=1, max_size=8))
def test_null_values_survive_with_both_policy(fields):
    tokenizer = CsvTokenizer(null_field_indicator=NullFieldIndicator.BOTH)
    expected = [None if field == "" else field for field in fields]

    assert tokenizer.tokenize(tokenizer.render(fields)) == expected


@given(st.sampled_from(list(NullFieldIndicator)), st.booleans())
def test_null_policy_is_total(indicator, from_quoted_field):
    result = indicator.converts_empty(from_quoted_field)

    assert isinstance(result, bool)
    if indicator is NullFieldIndicator.BOTH:
        assert result
    if indicator is NullFieldIndicator.NEITHER:
        assert not result


@given(st.text(alphabet='ab,"\\ ', max_size=30))
def test_tokenizing_is_deterministic(line):
    first = _tokenize_or_error(CsvTokenizer(), line)
    second = _tokenize_or_error(CsvTokenizer(), line)

    assert first == second
    assert Rfc4180Tokenizer().tokenize(line) == Rfc4180Tokenizer().tokenize(line)


@given(st.text(alphabet='ab,"\\ ', max_size=30))
def test_rfc4180_always_returns_at_least_one_field(line):
    tokens = Rfc4180Tokenizer().tokenize(line)

    assert len(tokens) >= 1


def _tokenize_or_error(tokenizer, line):
    try:
        return tokenizer.tokenize(line)
    except ValueError as error:
        return type(error), str(error)
