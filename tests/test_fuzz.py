from __future__ import annotations

import os

import pytest
from csv_tokenizer.exceptions import ParseError
from csv_tokenizer.reader import CsvReader
from csv_tokenizer.rfc4180 import Rfc4180Tokenizer
from csv_tokenizer.tokenizer import CsvTokenizer

atheris = pytest.importorskip("atheris")


def test_tokenizers_with_fuzzed_lines():
    data = os.urandom(4096)
    provider = atheris.FuzzedDataProvider(data)
    tokenized = 0

    for _ in range(128):
        if provider.remaining_bytes() == 0:
            break
        line = provider.ConsumeUnicodeNoSurrogates(64).replace("\n", "")
        multiline = provider.ConsumeBool()

        try:
            fields = CsvTokenizer().tokenize(line, multiline=multiline)
        except ParseError:
            assert not multiline
        else:
            assert isinstance(fields, list)
        assert isinstance(Rfc4180Tokenizer().tokenize(line, multiline=multiline), list)
        tokenized += 1

    assert tokenized  # ensure we exercised the loop


def test_render_round_trip_with_fuzzed_fields():
    data = os.urandom(4096)
    provider = atheris.FuzzedDataProvider(data)
    tokenizer = CsvTokenizer()

    while provider.remaining_bytes() > 0:
        count = provider.ConsumeIntInRange(1, 8)
        fields = [
            provider.ConsumeUnicodeNoSurrogates(16).replace("\n", "").replace("\r", "")
            for _ in range(count)
        ]
        assert tokenizer.tokenize(tokenizer.render(fields)) == fields


def test_reader_with_fuzzed_document():
    data = os.urandom(2048)
    provider = atheris.FuzzedDataProvider(data)
    document = provider.ConsumeUnicodeNoSurrogates(1024)

    try:
        records = CsvReader(document).read_all()
    except ParseError:
        return
    assert all(isinstance(record, list) for record in records)
