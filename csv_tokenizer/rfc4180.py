"""RFC 4180 CSV line tokenizer."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import replace

from .config import ParserConfig
from .constants import NEWLINE
from .models import NullFieldIndicator, ParseContext, ParserMode, ParserState, Record
from .renderer import render_line


class Rfc4180Tokenizer:
    """CSV line tokenizer following RFC 4180 quoting rules.

    Fields may be enclosed in quote characters, and a quote inside a quoted
    field is written as two quote characters. There is no escape character;
    the escape, strict-quotes, and leading-whitespace settings of the
    configuration are ignored.

    Args:
        config: Parser settings. Defaults to a new `ParserConfig`.
        **options: `ParserConfig` fields overriding values from `config`.

    Raises:
        ConfigError: If the resulting configuration is invalid.

    Examples:
        Rfc4180Tokenizer().tokenize('1,Foo,"With,Separator",Bar')
        # ["1", "Foo", "With,Separator", "Bar"]
    """

    mode = ParserMode.RFC4180

    def __init__(self, config: ParserConfig | None = None, **options: object):
        config = config or ParserConfig()
        self.config = replace(config, **options) if options else config
        self.context = ParseContext()

    @property
    def separator(self) -> str:
        return self.config.separator

    @property
    def quote_char(self) -> str:
        return self.config.quote_char

    @property
    def null_field_indicator(self) -> NullFieldIndicator:
        return self.config.null_field_indicator

    def get_separator(self) -> str:
        return self.config.separator

    def get_quote_char(self) -> str:
        return self.config.quote_char

    def is_pending(self) -> bool:
        return self.context.state is ParserState.PENDING

    def pending_text(self) -> str:
        return self.context.pending or ""

    def reset(self) -> None:
        self.context = ParseContext()

    def render(self, fields: Sequence[str | None]) -> str:
        """Render field values as one RFC 4180 line without a line terminator."""
        return render_line(fields, self.config, escape_aware=False)

    def parse_line(self, line: str | None) -> Record | None:
        return self.tokenize(line, multiline=False)

    def parse_line_multi(self, line: str | None) -> Record | None:
        return self.tokenize(line, multiline=True)

    def tokenize(self, line: str | None, multiline: bool = False) -> Record | None:
        """Split one physical line into fields.

        In multiline mode, when the last field opens a quote that the line
        does not close, that field is removed from the result and kept as
        pending text; the next call prepends it to the new line. This
        tokenizer never raises on unbalanced quotes.

        Args:
            line: Physical line without its terminator, or None at end of input.
            multiline: Whether the record may continue on the next line.

        Returns:
            Record | None: Field values (None for null fields). When `line` is
                None, the pending text as a single field, or None when nothing
                is pending.

        Examples:
            tokenizer = Rfc4180Tokenizer()
            tokenizer.tokenize('a,"b', multiline=True)  # ["a"]
            tokenizer.tokenize('c",d', multiline=True)  # ["b\\nc", "d"]
        """
        ctx = self.context
        if not multiline and ctx.pending is not None:
            self._release_pending()

        if line is None:
            if ctx.pending is not None:
                return [self._release_pending()]
            return None

        if multiline and ctx.pending is not None:
            line = self._release_pending() + line

        if self.config.quote_char not in line:
            elements = self._null_empty_separators(line.split(self.config.separator))
        else:
            elements = self._null_empty_separators(self._split_while_not_in_quotes(line, multiline))
            elements = [
                self._unquote(element)
                if element is not None and self.config.quote_char in element
                else element
                for element in elements
            ]

        ctx.tokens_on_last_complete_line = len(elements)
        return elements

    tokenize_line = tokenize

    def _release_pending(self) -> str:
        text = self.context.pending or ""
        self.context.pending = None
        self.context.state = ParserState.READY
        return text

    def _null_empty_separators(self, elements: list[str]) -> Record:
        if self.config.null_field_indicator in (
            NullFieldIndicator.EMPTY_SEPARATORS,
            NullFieldIndicator.BOTH,
        ):
            return [None if element == "" else element for element in elements]
        return list(elements)

    def _split_while_not_in_quotes(self, line: str, multiline: bool) -> list[str]:
        """Split on separators that are not enclosed in a quoted field."""
        separator = self.config.separator
        quote_char = self.config.quote_char
        position = 0
        elements: list[str] = []

        while position < len(line):
            next_separator = line.find(separator, position)
            next_quote = line.find(quote_char, position)

            if next_separator == -1:
                elements.append(line[position:])
                position = len(line)
            elif next_quote == -1 or next_quote > next_separator or next_quote != position:
                elements.append(line[position:next_separator])
                position = next_separator + 1
            else:
                field_end = self._find_end_of_field(line, position)
                elements.append(line[position:field_end])
                position = field_end + 1

        if multiline and self._last_element_is_unterminated(elements):
            self.context.pending = elements.pop() + NEWLINE
            self.context.state = ParserState.PENDING
        elif line.rfind(separator) == len(line) - 1:
            elements.append("")
        return elements

    def _find_end_of_field(self, line: str, position: int) -> int:
        """Return the index just past a quoted field starting at `position`.

        A doubled quote does not close the field. The field ends at the first
        closing quote followed by the separator, or at the end of the line.
        """
        next_quote = line.find(self.config.quote_char, position + 1)
        in_quote = False

        while self._has_more_after_quote(line, next_quote):
            if not in_quote and line[next_quote + 1] == self.config.separator:
                return next_quote + 1

            while True:
                next_quote = line.find(self.config.quote_char, next_quote + 1)
                in_quote = not in_quote
                if not (
                    self._has_more_after_quote(line, next_quote)
                    and line[next_quote + 1] == self.config.quote_char
                ):
                    break

        return len(line)

    @staticmethod
    def _has_more_after_quote(line: str, next_quote: int) -> bool:
        return next_quote != -1 and next_quote < len(line) - 1

    def _last_element_is_unterminated(self, elements: list[str]) -> bool:
        last = elements[-1]
        return self._starts_but_does_not_end_with_quote(last) or self._has_only_one_quote(last)

    def _has_only_one_quote(self, element: str) -> bool:
        return element.count(self.config.quote_char) == 1

    def _starts_but_does_not_end_with_quote(self, element: str) -> bool:
        quote_char = self.config.quote_char
        return element.startswith(quote_char) and not element.endswith(quote_char)

    def _unquote(self, element: str) -> str | None:
        """Strip one pair of enclosing quotes and collapse doubled quotes."""
        quote_char = self.config.quote_char
        result = element

        if not self._has_only_one_quote(result) and result.startswith(quote_char):
            result = result[len(quote_char) :]
            if result.endswith(quote_char):
                result = result[: -len(quote_char)]

        result = result.replace(quote_char * 2, quote_char)
        if not result and self.config.null_field_indicator.converts_empty(from_quoted_field=True):
            return None
        return result
