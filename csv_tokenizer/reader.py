"""Record reader assembling multi-line CSV records from physical lines."""

from __future__ import annotations

import io
import logging
from collections.abc import Iterable, Iterator
from dataclasses import replace

from .config import CsvConfig, validate_config
from .exceptions import HeaderMismatchError, MultilineLimitExceededError, UnterminatedQuoteError
from .models import LineTokenizer, Record
from .tokenizer import create_tokenizer

logger = logging.getLogger(__name__)

_UNSET = object()


def iter_physical_lines(source: Iterable[str], keep_cr: bool = False) -> Iterator[str]:
    """Yield lines from `source` with their terminators removed.

    Args:
        source: Text stream or iterable of lines, with or without terminators.
        keep_cr: Keep a carriage return preceding the newline as line data.

    Yields:
        str: Each physical line without ``\\n`` (and without ``\\r`` unless
            `keep_cr` is set).

    Examples:
        list(iter_physical_lines(["a,b\\r\\n", "c"]))  # ["a,b", "c"]
    """
    for raw_line in source:
        line = raw_line[:-1] if raw_line.endswith("\n") else raw_line
        if not keep_cr and line.endswith("\r"):
            line = line[:-1]
        yield line


class CsvReader:
    """Read logical CSV records from a text source.

    Feeds physical lines to a tokenizer in multiline mode and concatenates the
    per-line results until the tokenizer has no pending field, so a record
    whose quoted field contains newlines is returned as one list.

    Args:
        source: Text stream, iterable of lines, or a whole document as a string.
            Open files with ``newline=""`` so carriage returns reach the reader.
        tokenizer: Tokenizer to use. Built from `config` when omitted.
        config: Parser and reader settings. Defaults to a new `CsvConfig`.
        **reader_options: `ReaderConfig` fields overriding values from `config`.

    Raises:
        ConfigError: If the reader settings are invalid.

    Examples:
        reader = CsvReader('a,"b\\nc",d\\n')
        reader.read_next()  # ["a", "b\\nc", "d"]
    """

    def __init__(
        self,
        source: Iterable[str] | str,
        tokenizer: LineTokenizer | None = None,
        config: CsvConfig | None = None,
        **reader_options: object,
    ):
        config = config or CsvConfig()
        if reader_options:
            config = replace(config, reader=replace(config.reader, **reader_options))
        validate_config(config)

        if isinstance(source, str):
            source = io.StringIO(source, newline="")
        self._source = source
        self.config = config
        self.tokenizer = tokenizer if tokenizer is not None else create_tokenizer(config)
        self.skip_lines = config.reader.skip_lines
        self.multiline_limit = config.reader.multiline_limit
        self.keep_cr = config.reader.keep_cr
        self.lines_read = 0
        self.records_read = 0
        self._lines = iter_physical_lines(source, keep_cr=self.keep_cr)
        self._lines_skipped = False
        self._exhausted = False
        self._peeked: object = _UNSET

    def __enter__(self) -> CsvReader:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def __iter__(self) -> Iterator[Record]:
        return self

    def __next__(self) -> Record:
        record = self.read_next()
        if record is None:
            raise StopIteration
        return record

    def close(self) -> None:
        """Close the underlying source when it supports closing."""
        self._exhausted = True
        close = getattr(self._source, "close", None)
        if callable(close):
            close()

    def _next_line(self) -> str | None:
        if self._exhausted:
            return None

        if not self._lines_skipped:
            self._lines_skipped = True
            for _ in range(self.skip_lines):
                if next(self._lines, None) is None:
                    break
                self.lines_read += 1
            if self.skip_lines:
                logger.debug("Skipped %d leading lines", self.skip_lines)

        line = next(self._lines, None)
        if line is None:
            self._exhausted = True
        else:
            self.lines_read += 1
        return line

    def read_next(self) -> Record | None:
        """Read the next logical record.

        Returns:
            Record | None: Field values of the next record, or None at end of
                input. A blank line is a record holding one empty field.

        Raises:
            MultilineLimitExceededError: If the record needs more physical
                lines than `multiline_limit` allows.
            UnterminatedQuoteError: If the input ends inside a quoted field.

        Examples:
            CsvReader("a,b\\n").read_next()  # ["a", "b"]
        """
        if self._peeked is not _UNSET:
            peeked, self._peeked = self._peeked, _UNSET
            return peeked

        record: Record | None = None
        lines_in_record = 0
        while True:
            line = self._next_line()
            lines_in_record += 1
            if line is None:
                if self.tokenizer.is_pending():
                    raise UnterminatedQuoteError(self.tokenizer.pending_text())
                return self._count_record(record)

            if self.multiline_limit > 0 and lines_in_record > self.multiline_limit:
                raise MultilineLimitExceededError(self.multiline_limit)

            fields = self.tokenizer.tokenize(line, multiline=True)
            if fields:
                record = fields if record is None else record + fields
            if not self.tokenizer.is_pending():
                break

        if lines_in_record > 1:
            logger.debug(
                "Record %d assembled from %d physical lines", self.records_read + 1, lines_in_record
            )
        return self._count_record(record)

    def _count_record(self, record: Record | None) -> Record | None:
        if record is not None:
            self.records_read += 1
        return record

    def peek(self) -> Record | None:
        """Return the next record without consuming it."""
        if self._peeked is _UNSET:
            self._peeked = self.read_next()
        return self._peeked

    def read_all(self) -> list[Record]:
        """Read every remaining record."""
        return list(self)

    def skip(self, count: int) -> None:
        """Skip the next `count` records."""
        for _ in range(count):
            self.read_next()


class HeaderAwareReader(CsvReader):
    """CSV reader that treats the first record as column names.

    Examples:
        reader = HeaderAwareReader("name,age\\nAda,36\\n")
        reader.read_map()  # {"name": "Ada", "age": "36"}
    """

    def __init__(
        self,
        source: Iterable[str] | str,
        tokenizer: LineTokenizer | None = None,
        config: CsvConfig | None = None,
        **reader_options: object,
    ):
        super().__init__(source, tokenizer, config, **reader_options)
        self.header: Record = super().read_next() or []
        self._header_index = {name: index for index, name in enumerate(self.header)}

    def read_next(self, *names: str) -> Record | None:
        """Read the next record, optionally selecting columns by header name.

        Args:
            names: Header names to select; all columns are returned when empty.

        Returns:
            Record | None: Selected field values in the order of `names`, or
                None at end of input.

        Raises:
            KeyError: If a name is not in the header.
            HeaderMismatchError: If the record length differs from the header.
        """
        if not names:
            return super().read_next()

        record = super().read_next()
        if record is None:
            return None

        selected: Record = []
        for name in names:
            index = self._header_index.get(name)
            if index is None:
                raise KeyError(f"The header column {name!r} does not exist")
            self._check_length(record)
            selected.append(record[index])
        return selected

    def read_map(self) -> dict[str | None, str | None] | None:
        """Read the next record as a mapping from header name to value."""
        record = super().read_next()
        if record is None:
            return None

        self._check_length(record)
        return {name: record[index] for name, index in self._header_index.items()}

    def _check_length(self, record: Record) -> None:
        if len(record) != len(self.header):
            raise HeaderMismatchError(self.records_read, len(self.header), len(record))
