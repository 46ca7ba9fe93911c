"""Constants used across the csv-tokenizer package."""

from __future__ import annotations

# Special characters
DEFAULT_SEPARATOR = ","
DEFAULT_QUOTE_CHARACTER = '"'
DEFAULT_ESCAPE_CHARACTER = "\\"
NULL_CHARACTER = "\0"  # marks a special character as unset
NEWLINE = "\n"

# Parser flags
DEFAULT_STRICT_QUOTES = False
DEFAULT_IGNORE_LEADING_WHITESPACE = True
DEFAULT_IGNORE_QUOTATIONS = False

# A quote at or before this index is never treated as embedded mid-field data
BEGINNING_OF_LINE = 3

# Reader defaults
DEFAULT_SKIP_LINES = 0
DEFAULT_MULTILINE_LIMIT = 0  # 0 means unlimited
DEFAULT_KEEP_CR = False
MAX_PENDING_TEXT_WIDTH = 100

# CLI limits
DEFAULT_MAX_FILE_SIZE = 100 * 1024 * 1024
CSV_EXTENSIONS = (".csv", ".tsv", ".txt", ".dat")
