"""Rendering of field values back into a delimited CSV line."""

from __future__ import annotations

from collections.abc import Sequence

from .config import ParserConfig
from .constants import NEWLINE


def needs_quotes(value: str | None, config: ParserConfig, escape_aware: bool = True) -> bool:
    """Decide whether a value must be enclosed in quote characters.

    Args:
        value: Field value, or None for a null field.
        config: Parser configuration supplying the special characters.
        escape_aware: Whether the escape character is special in the target
            dialect (general mode) or plain data (RFC 4180 mode).

    Returns:
        bool: True when the rendered value must be quoted.

    Examples:
        needs_quotes("a,b", ParserConfig())  # True
        needs_quotes(None, ParserConfig(null_field_indicator="empty_quotes"))  # True
    """
    if value is None:
        return config.null_field_indicator.quotes_null_values

    if config.quote_char in value or config.separator in value or NEWLINE in value:
        return True
    return escape_aware and config.escape_enabled and config.escape_char in value


def render_value(value: str | None, config: ParserConfig, escape_aware: bool = True) -> str:
    """Render one field value with quoting and doubling applied.

    Quote characters are doubled; in escape-aware mode the escape character is
    doubled as well. A None value renders as an empty field.

    Args:
        value: Field value, or None for a null field.
        config: Parser configuration supplying the special characters.
        escape_aware: Whether to double escape characters.

    Returns:
        str: The CSV representation of the value.

    Examples:
        render_value('Glen "The Man" Smith', ParserConfig())  # '"Glen ""The Man"" Smith"'
    """
    text = "" if value is None else value
    if config.quote_char in text:
        text = text.replace(config.quote_char, config.quote_char * 2)
    if escape_aware and config.escape_enabled and config.escape_char in text:
        text = text.replace(config.escape_char, config.escape_char * 2)

    if needs_quotes(value, config, escape_aware):
        return f"{config.quote_char}{text}{config.quote_char}"
    return text


def render_line(
    values: Sequence[str | None], config: ParserConfig, escape_aware: bool = True
) -> str:
    """Join rendered values with the separator, without a line terminator.

    Args:
        values: Field values to render.
        config: Parser configuration supplying the special characters.
        escape_aware: Whether the escape character is special.

    Returns:
        str: One CSV line.

    Examples:
        render_line(["a", "b,c", None], ParserConfig())  # 'a,"b,c",'
    """
    return config.separator.join(render_value(value, config, escape_aware) for value in values)
