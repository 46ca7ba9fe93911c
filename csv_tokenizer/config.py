"""Configuration loading and management."""

from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from pathlib import Path
import tomllib

from .constants import (
    DEFAULT_ESCAPE_CHARACTER,
    DEFAULT_IGNORE_LEADING_WHITESPACE,
    DEFAULT_IGNORE_QUOTATIONS,
    DEFAULT_KEEP_CR,
    DEFAULT_MULTILINE_LIMIT,
    DEFAULT_QUOTE_CHARACTER,
    DEFAULT_SEPARATOR,
    DEFAULT_SKIP_LINES,
    DEFAULT_STRICT_QUOTES,
    NULL_CHARACTER,
)
from .models import NullFieldIndicator, ParserMode


class ConfigError(ValueError):
    """Exception raised when configuration values are invalid.

    Attributes:
        args: Arguments provided to the underlying `ValueError`.

    Examples:
        raise ConfigError("The separator, quote, and escape characters must be different!")
    """


@dataclass(frozen=True)
class ParserConfig:
    """Immutable settings for a tokenizer.

    Validated on construction: the separator must be set, and the separator,
    quote, and escape characters must differ from each other (an escape of
    ``NULL_CHARACTER`` disables escaping and never collides).

    Attributes:
        separator: Field delimiter.
        quote_char: Character enclosing quoted fields.
        escape_char: Character escaping a following quote or escape character.
            Ignored in RFC 4180 mode.
        strict_quotes: Drop characters outside quoted spans. Ignored in RFC 4180 mode.
        ignore_leading_whitespace: Discard whitespace preceding an embedded quote.
            Ignored in RFC 4180 mode.
        ignore_quotations: Treat quote characters as plain field boundaries that
            never protect a separator.
        null_field_indicator: Which empty fields are reported as ``None``.

    Raises:
        ConfigError: If any character setting is invalid.

    Examples:
        ParserConfig(separator=";", null_field_indicator="empty_quotes")
    """

    separator: str = DEFAULT_SEPARATOR
    quote_char: str = DEFAULT_QUOTE_CHARACTER
    escape_char: str = DEFAULT_ESCAPE_CHARACTER
    strict_quotes: bool = DEFAULT_STRICT_QUOTES
    ignore_leading_whitespace: bool = DEFAULT_IGNORE_LEADING_WHITESPACE
    ignore_quotations: bool = DEFAULT_IGNORE_QUOTATIONS
    null_field_indicator: NullFieldIndicator = NullFieldIndicator.NEITHER

    def __post_init__(self):
        try:
            indicator = NullFieldIndicator.from_value(self.null_field_indicator)
        except ValueError as error:
            raise ConfigError(str(error)) from error
        object.__setattr__(self, "null_field_indicator", indicator)
        validate_parser_config(self)

    @property
    def escape_enabled(self) -> bool:
        return self.escape_char != NULL_CHARACTER


@dataclass
class ReaderConfig:
    """Settings for the record reader.

    Attributes:
        skip_lines: Physical lines discarded before the first record.
        multiline_limit: Maximum physical lines per record; 0 means unlimited.
        keep_cr: Keep a trailing carriage return as part of the line data.

    Examples:
        ReaderConfig(skip_lines=1, multiline_limit=50)
    """

    skip_lines: int = DEFAULT_SKIP_LINES
    multiline_limit: int = DEFAULT_MULTILINE_LIMIT
    keep_cr: bool = DEFAULT_KEEP_CR


@dataclass
class CsvConfig:
    """Complete configuration for a parsing session.

    Attributes:
        parser: Tokenizer settings.
        reader: Record reader settings.
        mode: Tokenizer implementation, ``"general"`` or ``"rfc4180"``.

    Examples:
        CsvConfig(parser=ParserConfig(separator="\\t"), mode=ParserMode.RFC4180)
    """

    parser: ParserConfig = field(default_factory=ParserConfig)
    reader: ReaderConfig = field(default_factory=ReaderConfig)
    mode: ParserMode = ParserMode.GENERAL


_PARSER_KEYS = frozenset(f.name for f in fields(ParserConfig))
_READER_KEYS = frozenset(f.name for f in fields(ReaderConfig))
_MODE_KEY = "mode"


def validate_parser_config(config: ParserConfig) -> None:
    """Validate the character settings and flags of a `ParserConfig`.

    Args:
        config: Parser configuration to validate.

    Returns:
        None.

    Raises:
        ConfigError: If a character setting is not a single character, the
            separator is `NULL_CHARACTER`, two special characters collide, or a
            flag is not a boolean.

    Examples:
        validate_parser_config(ParserConfig(separator=";"))
    """
    for key in ("separator", "quote_char", "escape_char"):
        value = getattr(config, key)
        if not isinstance(value, str) or len(value) != 1:
            raise ConfigError(f"`{key}` must be a single character")

    for key in ("strict_quotes", "ignore_leading_whitespace", "ignore_quotations"):
        if not isinstance(getattr(config, key), bool):
            raise ConfigError(f"`{key}` must be a boolean")

    if _any_characters_are_the_same(config.separator, config.quote_char, config.escape_char):
        raise ConfigError("The separator, quote, and escape characters must be different!")
    if config.separator == NULL_CHARACTER:
        raise ConfigError("You must define a separator character")


def _any_characters_are_the_same(separator: str, quote_char: str, escape_char: str) -> bool:
    return (
        _is_same_character(separator, quote_char)
        or _is_same_character(separator, escape_char)
        or _is_same_character(quote_char, escape_char)
    )


def _is_same_character(first: str, second: str) -> bool:
    return first != NULL_CHARACTER and first == second


def load_config(search_path: Path) -> CsvConfig:
    """Load configuration from the nearest config file.

    Walks parent directories from `search_path` to the filesystem root, reading
    the ``[tool.csv-tokenizer]`` table from `pyproject.toml` and the
    ``[csv-tokenizer]`` or ``[tool.csv-tokenizer]`` table from
    `.csv-tokenizer.toml` when present. Returns default values when no
    configuration is found. TOML files that cannot be read or decoded are
    skipped.

    Args:
        search_path: Directory used as the starting point for configuration lookup.

    Returns:
        CsvConfig: Loaded configuration with defaults applied when necessary.

    Raises:
        ConfigError: If the table is present but not a mapping, contains
            unsupported keys, or holds invalid values.

    Examples:
        load_config(Path("data"))
    """
    current = search_path.resolve()

    while True:
        pyproject_config = _load_from_file(
            current / "pyproject.toml", table_paths=[("tool", "csv-tokenizer")]
        )
        if pyproject_config is not None:
            return normalize_config(pyproject_config)

        dotfile_config = _load_from_file(
            current / ".csv-tokenizer.toml",
            table_paths=[("csv-tokenizer",), ("tool", "csv-tokenizer")],
        )
        if dotfile_config is not None:
            return normalize_config(dotfile_config)

        parent = current.parent
        if parent == current:
            break
        current = parent

    return CsvConfig()


_MISSING = object()


def _load_from_file(config_file: Path, table_paths: list[tuple[str, ...]]) -> CsvConfig | None:
    if not config_file.exists():
        return None

    try:
        with open(config_file, "rb") as stream:
            data = tomllib.load(stream)
    except (OSError, tomllib.TOMLDecodeError):
        return None

    for table_path in table_paths:
        raw_config = _extract_table(data, table_path)
        if raw_config is _MISSING:
            continue
        return _build_config_from_raw(raw_config, config_file, table_path)

    return None


def _extract_table(data: object, table_path: tuple[str, ...]) -> object:
    current = data
    for key in table_path:
        if not isinstance(current, dict) or key not in current:
            return _MISSING
        current = current[key]
    return current


def _build_config_from_raw(
    raw_config: object, config_file: Path, table_path: tuple[str, ...]
) -> CsvConfig:
    table_display = ".".join(table_path)

    if raw_config is None:
        return CsvConfig()

    if not isinstance(raw_config, dict):
        raise ConfigError(f"Invalid `[{table_display}]` settings in {config_file}")

    unknown = sorted(set(raw_config) - _PARSER_KEYS - _READER_KEYS - {_MODE_KEY})
    if unknown:
        raise ConfigError(
            f"Invalid `[{table_display}]` settings in {config_file}: "
            f"unsupported keys {', '.join(unknown)}"
        )

    try:
        return apply_overrides(CsvConfig(), **raw_config)
    except TypeError as error:
        raise ConfigError(f"Invalid `[{table_display}]` settings in {config_file}") from error


def normalize_config(config: CsvConfig) -> CsvConfig:
    mode = config.mode
    if not isinstance(mode, ParserMode):
        try:
            mode = ParserMode(str(mode).strip().lower())
        except ValueError as error:
            raise ConfigError("`mode` must be one of: general, rfc4180") from error
    return replace(config, mode=mode)


def validate_config(config: CsvConfig) -> None:
    """Validate a `CsvConfig` instance.

    Args:
        config: Configuration to validate.

    Returns:
        None.

    Raises:
        ConfigError: If reader limits are not non-negative integers, `keep_cr`
            is not a boolean, or the mode is unknown.

    Examples:
        validate_config(CsvConfig(reader=ReaderConfig(skip_lines=2)))
    """
    config = normalize_config(config)

    _ensure_integers(
        {
            "skip_lines": config.reader.skip_lines,
            "multiline_limit": config.reader.multiline_limit,
        }
    )
    _ensure_non_negative(
        {
            "skip_lines": config.reader.skip_lines,
            "multiline_limit": config.reader.multiline_limit,
        }
    )
    if not isinstance(config.reader.keep_cr, bool):
        raise ConfigError("`keep_cr` must be a boolean")


def apply_overrides(config: CsvConfig, **overrides: object) -> CsvConfig:
    """Apply override values to a `CsvConfig`.

    Args:
        config: Base configuration to update.
        overrides: Override values keyed by `ParserConfig` or `ReaderConfig`
            field name, or ``mode``; values set to None are ignored.

    Returns:
        CsvConfig: New configuration with the provided overrides applied. The
        original configuration is returned when no changes are supplied.

    Raises:
        TypeError: If an override name is not a known configuration field.
        ConfigError: If the resulting parser settings are invalid.

    Examples:
        updated = apply_overrides(config, separator=";", skip_lines=1)
    """
    changes = {key: value for key, value in overrides.items() if value is not None}
    if not changes:
        return config

    parser_changes = {key: changes.pop(key) for key in list(changes) if key in _PARSER_KEYS}
    reader_changes = {key: changes.pop(key) for key in list(changes) if key in _READER_KEYS}
    mode = changes.pop(_MODE_KEY, config.mode)
    if changes:
        raise TypeError(f"Unknown configuration option(s): {', '.join(sorted(changes))}")

    return replace(
        config,
        parser=replace(config.parser, **parser_changes) if parser_changes else config.parser,
        reader=replace(config.reader, **reader_changes) if reader_changes else config.reader,
        mode=mode,
    )


def build_config(search_path: Path, **overrides: object) -> CsvConfig:
    """Load, override, and validate configuration.

    Args:
        search_path: Directory where configuration files are resolved.
        overrides: Override values keyed by configuration attributes; None values
            are ignored.

    Returns:
        CsvConfig: Validated configuration ready for parsing.

    Raises:
        ConfigError: If configuration loading or validation fails.

    Examples:
        config = build_config(Path.cwd(), separator=";", mode="rfc4180")
    """
    config = load_config(search_path)
    config = apply_overrides(config, **overrides)
    config = normalize_config(config)
    validate_config(config)
    return config


def _ensure_non_negative(values: dict[str, int]) -> None:
    for key, value in values.items():
        if value < 0:
            raise ConfigError(f"`{key}` must be a non-negative integer")


def _ensure_integers(values: dict[str, object]) -> None:
    for key, value in values.items():
        if isinstance(value, bool) or not isinstance(value, int):
            raise ConfigError(f"`{key}` must be an integer")
