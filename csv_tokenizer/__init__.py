"""
csv-tokenizer: CSV line tokenizer with general and RFC 4180 modes.

This package can be used both as a CLI tool and as a library.

CLI Usage:
    csv-tokenizer data.csv --format json

Library Usage:
    from csv_tokenizer import CsvReader, CsvTokenizer

    CsvTokenizer().tokenize('a,"b,b,b",c')  # ["a", "b,b,b", "c"]

    with open("data.csv", encoding="UTF-8", newline="") as handle:
        records = CsvReader(handle).read_all()
"""

from .accumulator import OutputAccumulator
from .config import ConfigError, CsvConfig, ParserConfig, ReaderConfig
from .exceptions import (
    HeaderMismatchError,
    MultilineLimitExceededError,
    ParseError,
    ParseFileError,
    RecordProcessingError,
    UnterminatedQuoteError,
)
from .models import LineTokenizer, NullFieldIndicator, ParserMode, Record
from .pool import process_records
from .reader import CsvReader, HeaderAwareReader
from .rfc4180 import Rfc4180Tokenizer
from .tokenizer import CsvTokenizer, create_tokenizer
from .writer import CsvWriter

__version__ = "0.1.0"

__all__ = [
    # Tokenizers
    "CsvTokenizer",
    "Rfc4180Tokenizer",
    "create_tokenizer",
    "LineTokenizer",
    # Reading and writing
    "CsvReader",
    "HeaderAwareReader",
    "CsvWriter",
    "process_records",
    # Configuration
    "ParserConfig",
    "ReaderConfig",
    "CsvConfig",
    "ConfigError",
    # Data models
    "NullFieldIndicator",
    "ParserMode",
    "Record",
    "OutputAccumulator",
    # Exceptions
    "ParseError",
    "ParseFileError",
    "UnterminatedQuoteError",
    "MultilineLimitExceededError",
    "HeaderMismatchError",
    "RecordProcessingError",
    # Version
    "__version__",
]
