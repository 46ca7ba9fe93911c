"""
Tokenizes a CSV file and prints its records.
Records are re-rendered as normalized CSV or emitted as JSON arrays; with
`--in-place` the normalized CSV replaces the file content.
"""

from __future__ import annotations

import io
import json
import logging
from pathlib import Path

import click
from .config import ConfigError, CsvConfig, build_config
from .exceptions import ParseFileError
from .filesystem import (
    collect_file_stat,
    ensure_file_unchanged,
    get_max_file_size,
    normalize_filepath,
    read_records,
    rewrite_records,
)
from .models import NullFieldIndicator, ParserMode, Record
from .tokenizer import create_tokenizer
from .writer import CsvWriter

__all__ = ["cli"]

logger = logging.getLogger(__name__)

_CHARACTER_ALIASES = {"\\t": "\t", "tab": "\t"}


def _decode_character(value: str | None) -> str | None:
    if value is None:
        return None
    return _CHARACTER_ALIASES.get(value.lower(), value)


def _render_csv(records: list[Record], config: CsvConfig) -> str:
    buffer = io.StringIO()
    with CsvWriter(buffer, create_tokenizer(config)) as writer:
        writer.write_all(records)
    return buffer.getvalue()


def _render_json(records: list[Record]) -> str:
    return "".join(json.dumps(record, ensure_ascii=False) + "\n" for record in records)


@click.command()
@click.version_option()
@click.option("--separator", help="Field separator (use '\\t' or 'tab' for tabs)")
@click.option("--quote-char", help="Quote character")
@click.option("--escape-char", help="Escape character (general mode only)")
@click.option(
    "--strict-quotes/--no-strict-quotes",
    default=None,
    help="Drop characters outside quoted spans",
)
@click.option(
    "--ignore-leading-whitespace/--keep-leading-whitespace",
    default=None,
    help="Discard whitespace before an embedded quote",
)
@click.option("--ignore-quotations", is_flag=True, help="Treat quotes as plain characters")
@click.option(
    "--null-fields",
    type=click.Choice([indicator.value for indicator in NullFieldIndicator]),
    help="Which empty fields are reported as null",
)
@click.option("--rfc4180", is_flag=True, help="Use the RFC 4180 tokenizer")
@click.option("--skip-lines", type=int, help="Physical lines to skip before the first record")
@click.option("--multiline-limit", type=int, help="Maximum physical lines per record (0: unlimited)")
@click.option("--keep-cr", is_flag=True, help="Keep carriage returns as field data")
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["csv", "json"]),
    default="csv",
    show_default=True,
    help="Output format",
)
@click.option("--in-place", is_flag=True, help="Rewrite the file with normalized CSV")
@click.option("--verbose", is_flag=True, help="Enable debug logging")
@click.argument("filepath", type=click.Path(exists=True, dir_okay=False))
def cli(
    filepath: str,
    separator: str | None = None,
    quote_char: str | None = None,
    escape_char: str | None = None,
    strict_quotes: bool | None = None,
    ignore_leading_whitespace: bool | None = None,
    ignore_quotations: bool = False,
    null_fields: str | None = None,
    rfc4180: bool = False,
    skip_lines: int | None = None,
    multiline_limit: int | None = None,
    keep_cr: bool = False,
    output_format: str = "csv",
    in_place: bool = False,
    verbose: bool = False,
):
    """
    Entry point for tokenizing a CSV file.

    Settings not given on the command line come from the nearest
    `pyproject.toml` `[tool.csv-tokenizer]` table or `.csv-tokenizer.toml`.

    Args:
        filepath: Path to the CSV file to process.
        separator: Override for the field separator.
        quote_char: Override for the quote character.
        escape_char: Override for the escape character.
        strict_quotes: Override for strict quote handling.
        ignore_leading_whitespace: Override for leading whitespace handling.
        ignore_quotations: Treat quote characters as plain data.
        null_fields: Null field policy name.
        rfc4180: Select the RFC 4180 tokenizer.
        skip_lines: Number of leading physical lines to skip.
        multiline_limit: Maximum physical lines per record.
        keep_cr: Keep carriage returns in field data.
        output_format: `csv` or `json`.
        in_place: Rewrite the file instead of printing.
        verbose: Enable debug logging on stderr.

    Returns:
        None.

    Raises:
        click.BadParameter: If the path or the configuration is invalid.
        click.ClickException: If parsing fails or filesystem safety checks fail.

    Examples:
        csv-tokenizer data.csv --separator ";" --format json
    """
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    if in_place and output_format != "csv":
        raise click.BadParameter("--in-place can only be combined with --format csv")

    base_dir = Path.cwd().resolve()
    try:
        filepath = normalize_filepath(filepath, base_dir)
    except ValueError as error:
        raise click.BadParameter(str(error)) from error

    try:
        config = build_config(
            filepath.parent,
            separator=_decode_character(separator),
            quote_char=_decode_character(quote_char),
            escape_char=_decode_character(escape_char),
            strict_quotes=strict_quotes,
            ignore_leading_whitespace=ignore_leading_whitespace,
            ignore_quotations=True if ignore_quotations else None,
            null_field_indicator=null_fields,
            mode=ParserMode.RFC4180 if rfc4180 else None,
            skip_lines=skip_lines,
            multiline_limit=multiline_limit,
            keep_cr=True if keep_cr else None,
        )
    except ConfigError as error:
        raise click.BadParameter(str(error)) from error

    try:
        max_file_size = get_max_file_size()
    except ValueError as error:
        raise click.ClickException(str(error)) from error

    try:
        initial_stat = collect_file_stat(filepath, max_size=max_file_size)
    except IOError as error:
        raise click.ClickException(str(error)) from error

    try:
        records = read_records(filepath, config)
    except ParseFileError as error:
        raise click.ClickException(str(error)) from error

    logger.debug("Read %d records from %s (%s mode)", len(records), filepath, config.mode.value)

    try:
        post_read_stat = collect_file_stat(filepath)
        ensure_file_unchanged(initial_stat, post_read_stat, filepath)
    except IOError as error:
        raise click.ClickException(str(error)) from error

    if output_format == "json":
        click.echo(_render_json(records), nl=False)
        return

    if in_place:
        try:
            rewrite_records(
                filepath,
                records,
                create_tokenizer(config),
                post_read_stat,
                initial_stat,
                warn=lambda message: click.echo(message, err=True),
            )
        except IOError as error:
            raise click.ClickException(str(error)) from error
    else:
        click.echo(_render_csv(records, config), nl=False)


if __name__ == "__main__":
    cli()
