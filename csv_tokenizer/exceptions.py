"""Package-specific exception types."""

from __future__ import annotations

from .constants import MAX_PENDING_TEXT_WIDTH


def _abbreviate(text: str, max_width: int) -> str:
    if len(text) <= max_width:
        return text
    return text[: max_width - 3] + "..."


class ParseError(ValueError):
    """Base class for parsing-related errors.

    Represents errors encountered while turning CSV text into records.
    """


class UnterminatedQuoteError(ParseError):
    """Raised when a quoted field never closes and no continuation is possible.

    Args:
        partial_text: Text accumulated for the unterminated field.
    """

    def __init__(self, partial_text: str):
        self.partial_text = partial_text
        super().__init__(self._build_message())

    def _build_message(self) -> str:
        return (
            "Un-terminated quoted field at end of CSV line. Beginning of lost text: "
            f"[{_abbreviate(self.partial_text, MAX_PENDING_TEXT_WIDTH)}]"
        )


class MultilineLimitExceededError(ParseError):
    """Raised when one record spans more physical lines than allowed.

    Args:
        limit: Maximum number of physical lines permitted per record.
    """

    def __init__(self, limit: int):
        self.limit = limit
        super().__init__(
            f"Exceeded the multiline limit of {self.limit} lines while reading a single record"
        )


class HeaderMismatchError(ParseError):
    """Raised when a record does not have as many fields as the header.

    Args:
        record_number: One-based number of the offending record, header included.
        expected: Number of header columns.
        actual: Number of fields found in the record.
    """

    def __init__(self, record_number: int, expected: int, actual: int):
        self.record_number = record_number
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Record {self.record_number} has {self.actual} fields "
            f"but the header has {self.expected}"
        )


class RecordProcessingError(RuntimeError):
    """Raised when a worker fails while processing a record.

    Args:
        record_number: One-based number of the record being processed.
        cause: Exception raised by the worker.
    """

    def __init__(self, record_number: int, cause: BaseException):
        self.record_number = record_number
        self.cause = cause
        super().__init__(f"Processing record {self.record_number} failed: {cause}")


class ParseFileError(ParseError):
    """Raised when a CSV file cannot be turned into records.

    Wraps decoding, access, and parsing failures with the offending path in
    the message.
    """
