"""Writing records as CSV lines."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import TextIO

from .constants import NEWLINE
from .models import LineTokenizer
from .tokenizer import CsvTokenizer


class CsvWriter:
    """Write records to a text stream using a tokenizer's renderer.

    Args:
        stream: Destination text stream.
        tokenizer: Tokenizer whose dialect and null policy drive rendering.
            Defaults to a general-mode `CsvTokenizer`.
        line_end: Terminator written after each record.

    Examples:
        buffer = io.StringIO()
        CsvWriter(buffer).write_next(["a", "b,c"])
        buffer.getvalue()  # 'a,"b,c"\\n'
    """

    def __init__(
        self, stream: TextIO, tokenizer: LineTokenizer | None = None, line_end: str = NEWLINE
    ):
        self.stream = stream
        self.tokenizer = tokenizer if tokenizer is not None else CsvTokenizer()
        self.line_end = line_end
        self.lines_written = 0

    def __enter__(self) -> CsvWriter:
        return self

    def __exit__(self, *exc_info) -> None:
        self.flush()

    def write_next(self, fields: Sequence[str | None]) -> None:
        self.stream.write(self.tokenizer.render(fields) + self.line_end)
        self.lines_written += 1

    def write_all(self, records: Iterable[Sequence[str | None]]) -> None:
        for fields in records:
            self.write_next(fields)

    def flush(self) -> None:
        self.stream.flush()
