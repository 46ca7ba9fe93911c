"""General-mode CSV line tokenizer."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import replace

from .accumulator import OutputAccumulator
from .config import CsvConfig, ParserConfig
from .constants import BEGINNING_OF_LINE, NEWLINE
from .exceptions import UnterminatedQuoteError
from .models import LineTokenizer, NullFieldIndicator, ParseContext, ParserMode, ParserState, Record
from .renderer import render_line
from .rfc4180 import Rfc4180Tokenizer


def _hold_pending(ctx: ParseContext, text: str) -> None:
    ctx.pending = text
    ctx.state = ParserState.PENDING


def _take_pending(ctx: ParseContext) -> str | None:
    """Remove and return the pending text, returning the context to READY."""
    text = ctx.pending
    ctx.pending = None
    ctx.state = ParserState.READY
    return text


class CsvTokenizer:
    """Configurable CSV line tokenizer with escape character support.

    Splits one physical line at a time into fields. The tokenizer is stateful:
    a quoted field left open at the end of a line in multiline mode is kept as
    pending text and continued by the next call. One instance serves one
    input stream and must not be shared between threads.

    Args:
        config: Parser settings. Defaults to a new `ParserConfig`.
        **options: `ParserConfig` fields overriding values from `config`.

    Raises:
        ConfigError: If the resulting configuration is invalid.

    Examples:
        CsvTokenizer().tokenize('a,"b,b,b",c')  # ["a", "b,b,b", "c"]
        CsvTokenizer(separator=";").tokenize("a;b")  # ["a", "b"]
    """

    mode = ParserMode.GENERAL

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
    def escape_char(self) -> str:
        return self.config.escape_char

    @property
    def null_field_indicator(self) -> NullFieldIndicator:
        return self.config.null_field_indicator

    def get_separator(self) -> str:
        return self.config.separator

    def get_quote_char(self) -> str:
        return self.config.quote_char

    def get_escape_char(self) -> str:
        return self.config.escape_char

    def is_pending(self) -> bool:
        """Return True while a quoted field spanning physical lines is open."""
        return self.context.state is ParserState.PENDING

    def pending_text(self) -> str:
        """Return the partially accumulated field text, or an empty string."""
        return self.context.pending or ""

    def reset(self) -> None:
        """Discard any pending field and start over with a fresh state."""
        self.context = ParseContext()

    def render(self, fields: Sequence[str | None]) -> str:
        """Render field values as one CSV line without a line terminator.

        Args:
            fields: Field values; None renders according to the null policy.

        Returns:
            str: The delimited line, quote and escape characters doubled.

        Examples:
            CsvTokenizer().render(["a", 'b"c'])  # a,"b""c"
        """
        return render_line(fields, self.config, escape_aware=True)

    def parse_line(self, line: str | None) -> Record | None:
        return self.tokenize(line, multiline=False)

    def parse_line_multi(self, line: str | None) -> Record | None:
        return self.tokenize(line, multiline=True)

    def tokenize(self, line: str | None, multiline: bool = False) -> Record | None:
        """Split one physical line into fields.

        In multiline mode a line that ends inside quotes stores the open field
        as pending text (with a newline appended) and returns only the fields
        completed on this line; the next call continues the pending field.
        Outside multiline mode any pending state is discarded first.

        Args:
            line: Physical line without its terminator, or None at end of input.
            multiline: Whether the record may continue on the next line.

        Returns:
            Record | None: Field values (None for null fields). When `line` is
                None, the pending text as a single field, or None when nothing
                is pending.

        Raises:
            UnterminatedQuoteError: If the line ends inside quotes and
                `multiline` is False.

        Examples:
            tokenizer = CsvTokenizer()
            tokenizer.tokenize('a,"b', multiline=True)  # ["a"]
            tokenizer.tokenize('c",d', multiline=True)  # ["b\\nc", "d"]
        """
        ctx = self.context
        if not multiline and ctx.pending is not None:
            _take_pending(ctx)

        if line is None:
            if ctx.pending is not None:
                return [_take_pending(ctx)]
            return None

        config = self.config
        tokens: Record = []
        acc = OutputAccumulator(line)
        in_quotes = False
        from_quoted_field = False
        if ctx.pending is not None:
            acc.append(_take_pending(ctx))
            in_quotes = not config.ignore_quotations

        while not acc.is_empty_input():
            character = acc.take_input()
            if character == config.escape_char and config.escape_enabled:
                if self._is_next_character_escapable(
                    line, self._in_quoted_context(in_quotes), acc.position - 1
                ):
                    acc.take_input()
                    acc.append_prev()
            elif character == config.quote_char:
                if self._is_next_character_escaped_quote(
                    line, self._in_quoted_context(in_quotes), acc.position - 1
                ):
                    acc.take_input()
                    acc.append_prev()
                else:
                    in_quotes = not in_quotes
                    if acc.is_empty_output():
                        from_quoted_field = True
                    if not config.strict_quotes:
                        self._keep_embedded_quote(line, acc)
                ctx.in_field = not ctx.in_field
            elif character == config.separator and not (
                in_quotes and not config.ignore_quotations
            ):
                tokens.append(self._convert_empty_to_null(acc.take_output(), from_quoted_field))
                from_quoted_field = False
                ctx.in_field = False
            elif not config.strict_quotes or (in_quotes and not config.ignore_quotations):
                acc.append_prev()
                ctx.in_field = True
                from_quoted_field = True

        if in_quotes and not config.ignore_quotations:
            if not multiline:
                ctx.in_field = False
                raise UnterminatedQuoteError(acc.peek_output())
            # The open field is carried to the next line, not emitted yet
            acc.append(NEWLINE)
            _hold_pending(ctx, acc.peek_output())
        else:
            ctx.in_field = False
            tokens.append(self._convert_empty_to_null(acc.take_output(), from_quoted_field))

        ctx.tokens_on_last_complete_line = len(tokens)
        return tokens

    tokenize_line = tokenize

    def _keep_embedded_quote(self, line: str, acc: OutputAccumulator) -> None:
        """Keep a quote that sits in the middle of a field, as in ``a,bc"d"ef,g``.

        The quote is kept only past the first three characters of the line and
        when neither neighbour is the separator. A field holding nothing but
        whitespace before the quote is cleared instead when leading whitespace
        is ignored.
        """
        position = acc.position
        if (
            position > BEGINNING_OF_LINE
            and line[position - 2] != self.config.separator
            and len(line) > position
            and line[position] != self.config.separator
        ):
            if (
                self.config.ignore_leading_whitespace
                and not acc.is_empty_output()
                and acc.peek_output().isspace()
            ):
                acc.clear_output()
            else:
                acc.append_prev()

    def _in_quoted_context(self, in_quotes: bool) -> bool:
        return (in_quotes and not self.config.ignore_quotations) or self.context.in_field

    def _is_next_character_escaped_quote(self, line: str, in_quotes: bool, index: int) -> bool:
        return in_quotes and len(line) > index + 1 and line[index + 1] == self.config.quote_char

    def _is_next_character_escapable(self, line: str, in_quotes: bool, index: int) -> bool:
        """Check whether the character after an escape is a quote or escape character."""
        return (
            in_quotes
            and len(line) > index + 1
            and line[index + 1] in (self.config.quote_char, self.config.escape_char)
        )

    def _convert_empty_to_null(self, text: str, from_quoted_field: bool) -> str | None:
        if not text and self.config.null_field_indicator.converts_empty(from_quoted_field):
            return None
        return text


def create_tokenizer(
    config: CsvConfig | ParserConfig | None = None, mode: ParserMode | str | None = None
) -> LineTokenizer:
    """Build the tokenizer selected by `mode`.

    Args:
        config: A `CsvConfig` (its `mode` is used unless `mode` is given) or a
            bare `ParserConfig`. Defaults to general mode with default settings.
        mode: Explicit tokenizer mode, ``"general"`` or ``"rfc4180"``.

    Returns:
        LineTokenizer: A `CsvTokenizer` or an `Rfc4180Tokenizer`.

    Examples:
        create_tokenizer(mode="rfc4180").tokenize('1,"a,b"')  # ["1", "a,b"]
    """
    parser_config = config.parser if isinstance(config, CsvConfig) else config
    if mode is None:
        mode = config.mode if isinstance(config, CsvConfig) else ParserMode.GENERAL
    if ParserMode(mode) is ParserMode.RFC4180:
        return Rfc4180Tokenizer(parser_config)
    return CsvTokenizer(parser_config)
