"""Data models for csv-tokenizer."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import Protocol, Sequence

Record = list[str | None]


class NullFieldIndicator(Enum):
    """Policy deciding which empty fields are returned as ``None``.

    Attributes:
        NEITHER: Empty fields are always empty strings.
        EMPTY_SEPARATORS: Empty fields between separators become ``None``.
        EMPTY_QUOTES: Empty quoted fields (``""``) become ``None``.
        BOTH: Every empty field becomes ``None``.

    Examples:
        NullFieldIndicator.from_value("empty_quotes")  # NullFieldIndicator.EMPTY_QUOTES
    """

    NEITHER = "neither"
    EMPTY_SEPARATORS = "empty_separators"
    EMPTY_QUOTES = "empty_quotes"
    BOTH = "both"

    @classmethod
    def from_value(cls, value: NullFieldIndicator | str) -> NullFieldIndicator:
        """Resolve an indicator from a member or a case-insensitive name."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        raise ValueError(
            f"Unknown null field indicator {value!r} "
            f"(expected one of: {', '.join(member.value for member in cls)})"
        )

    def converts_empty(self, from_quoted_field: bool) -> bool:
        """Tell whether an empty field should become ``None``.

        Args:
            from_quoted_field: True when the field came from an explicit quoted
                token rather than from two adjacent separators.

        Returns:
            bool: True when the empty field is reported as ``None``.
        """
        if self is NullFieldIndicator.BOTH:
            return True
        if self is NullFieldIndicator.EMPTY_SEPARATORS:
            return not from_quoted_field
        if self is NullFieldIndicator.EMPTY_QUOTES:
            return from_quoted_field
        return False

    @property
    def quotes_null_values(self) -> bool:
        """True when ``None`` is written back as an explicit empty quoted field."""
        return self in (NullFieldIndicator.EMPTY_QUOTES, NullFieldIndicator.BOTH)


class ParserMode(Enum):
    """Tokenizer implementation selected for a parsing session.

    Attributes:
        GENERAL: Configurable scanner with escape character support.
        RFC4180: Strict RFC 4180 scanner without an escape character.
    """

    GENERAL = "general"
    RFC4180 = "rfc4180"


class ParserState(Enum):
    """Tokenizer states between calls.

    Attributes:
        READY: The previous line completed its record.
        PENDING: A quoted field is open and waits for the next physical line.
    """

    READY = auto()
    PENDING = auto()


@dataclass
class ParseContext:
    """Encapsulate tokenizer state carried from one physical line to the next.

    Attributes:
        state: Current tokenizer state.
        pending: Partial text of a quoted field spanning physical lines, if any.
        tokens_on_last_complete_line: Field count of the last completed line,
            used only to size the next result.
        in_field: Whether the scanner stopped inside a field.
    """

    state: ParserState = ParserState.READY
    pending: str | None = None
    tokens_on_last_complete_line: int = -1
    in_field: bool = False


class LineTokenizer(Protocol):
    """Contract shared by the general and RFC 4180 tokenizers."""

    def get_separator(self) -> str: ...

    def get_quote_char(self) -> str: ...

    def is_pending(self) -> bool: ...

    def pending_text(self) -> str: ...

    def tokenize(self, line: str | None, multiline: bool = False) -> Record | None: ...

    def render(self, fields: Sequence[str | None]) -> str: ...
