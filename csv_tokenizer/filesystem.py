"""Reading and rewriting CSV files on disk."""

from __future__ import annotations

import os
import stat
import tempfile
from collections.abc import Callable, Iterable, Sequence
from pathlib import Path
from typing import TextIO

from .config import CsvConfig
from .constants import CSV_EXTENSIONS, DEFAULT_MAX_FILE_SIZE, NEWLINE
from .exceptions import ParseError, ParseFileError
from .models import LineTokenizer, Record
from .reader import CsvReader
from .writer import CsvWriter

MAX_FILE_SIZE_ENV_VAR = "CSV_TOKENIZER_MAX_FILE_SIZE"


def get_max_file_size(default: int = DEFAULT_MAX_FILE_SIZE) -> int:
    """Read the input size limit from ``CSV_TOKENIZER_MAX_FILE_SIZE``.

    Raises:
        ValueError: If the variable is set to anything but a positive integer.
    """
    raw_limit = os.environ.get(MAX_FILE_SIZE_ENV_VAR)
    if raw_limit is None:
        return default

    if not raw_limit.strip().isdecimal() or int(raw_limit) == 0:
        raise ValueError(
            f"Invalid value for {MAX_FILE_SIZE_ENV_VAR}: {raw_limit} (expected positive integer)"
        )
    return int(raw_limit)


def contains_symlink(path: Path) -> bool:
    """Check whether a path or any parent directory is a symlink."""
    for candidate in (path, *path.parents):
        try:
            if candidate.is_symlink():
                return True
        except OSError:
            continue
    return False


def normalize_filepath(raw_path: str, base_dir: Path) -> Path:
    """Resolve a user-supplied CSV path and confine it to `base_dir`.

    Args:
        raw_path: Path to a delimited text file, absolute or relative.
        base_dir: Working directory that constrains allowed paths.

    Returns:
        Path: Absolute path to the file.

    Raises:
        ValueError: If the path is missing, not a regular file, outside
            `base_dir`, traverses a symlink, or lacks a CSV-like extension.

    Examples:
        normalize_filepath("exports/people.csv", Path.cwd())
    """
    path = Path(raw_path).expanduser()
    if contains_symlink(path):
        raise ValueError(f"Symlinks are not supported for security reasons: {path}")

    try:
        resolved = path.resolve(strict=True)
    except FileNotFoundError as error:
        raise ValueError(f"{path} does not exist.") from error
    except OSError as error:
        raise ValueError(f"Error resolving {path}: {error}") from error

    if not resolved.is_file():
        raise ValueError(f"{resolved} is not a regular file.")
    if not resolved.is_relative_to(base_dir):
        raise ValueError(f"{resolved} is outside of the working directory {base_dir}.")
    if resolved.suffix.lower() not in CSV_EXTENSIONS:
        raise ValueError(
            f"{resolved} is not a delimited text file.\n"
            f"Supported extensions are: {', '.join(CSV_EXTENSIONS)}"
        )
    return resolved


def collect_file_stat(filepath: Path, max_size: int | None = None) -> os.stat_result:
    """Stat a regular file without following symlinks.

    Args:
        filepath: Path to the CSV file.
        max_size: Optional limit in bytes the file must not exceed.

    Raises:
        IOError: If the path is inaccessible, a symlink, not a regular file,
            or larger than `max_size`.
    """
    try:
        stat_result = os.stat(filepath, follow_symlinks=False)
    except OSError as error:
        raise IOError(f"Error accessing {filepath}: {error}") from error

    if stat.S_ISLNK(stat_result.st_mode):
        raise IOError(f"Symlinks are not supported: {filepath}.")
    if not stat.S_ISREG(stat_result.st_mode):
        raise IOError(f"{filepath} is not a regular file.")
    if max_size is not None and stat_result.st_size > max_size:
        raise IOError(f"{filepath} exceeds the maximum allowed size of {max_size} bytes.")
    return stat_result


def _fingerprint(stat_result: os.stat_result) -> tuple:
    return (
        getattr(stat_result, "st_ino", None),
        getattr(stat_result, "st_dev", None),
        stat_result.st_size,
        stat_result.st_mtime_ns,
    )


def ensure_file_unchanged(
    expected_stat: os.stat_result, current_stat: os.stat_result, filepath: Path
):
    if _fingerprint(expected_stat) != _fingerprint(current_stat):
        raise IOError(f"{filepath} changed during processing; refusing to overwrite.")


def safe_read(filepath: Path) -> TextIO:
    """Open a CSV file as UTF-8 text with ``newline=""``.

    Carriage returns reach the reader untranslated, so quoted fields keep
    their embedded line breaks and ``keep_cr`` can take effect.

    Raises:
        IOError: If the path is missing, inaccessible, or not a file.
    """
    try:
        return open(filepath, "r", encoding="UTF-8", newline="")
    except (
        FileNotFoundError,
        PermissionError,
        IsADirectoryError,
        NotADirectoryError,
    ) as error:
        raise IOError(f"Error accessing {filepath}: {error}") from error


def read_records(filepath: Path, config: CsvConfig | None = None) -> list[Record]:
    """Read every record of a CSV file.

    Args:
        filepath: Path to the CSV file.
        config: Parser and reader settings. Defaults to general mode.

    Returns:
        list[Record]: Records in file order.

    Raises:
        ParseFileError: If the file is not valid UTF-8, cannot be opened, or
            holds malformed CSV. The message names the file.

    Examples:
        records = read_records(Path("people.csv"), CsvConfig(reader=ReaderConfig(skip_lines=1)))
    """
    try:
        with CsvReader(safe_read(filepath), config=config) as reader:
            return reader.read_all()
    except UnicodeDecodeError as error:
        raise ParseFileError(f"Invalid UTF-8 sequence in {filepath}: {error}") from error
    except ParseError as error:
        raise ParseFileError(f"{filepath.name}: {error}") from error
    except IOError as error:
        raise ParseFileError(str(error)) from error


def rewrite_records(
    filepath: Path,
    records: Iterable[Sequence[str | None]],
    tokenizer: LineTokenizer,
    expected_stat: os.stat_result,
    initial_stat: os.stat_result,
    warn: Callable[[str], None] | None = None,
    line_end: str = NEWLINE,
):
    """Atomically replace a CSV file with `records` rendered by `tokenizer`.

    The records are written to a temporary file next to `filepath`, which then
    replaces the original. Permissions, ownership (when privileges allow) and
    the access time from `initial_stat` are carried over.

    Args:
        filepath: Path to the file to rewrite.
        records: Field values to render, one record per line.
        tokenizer: Tokenizer whose dialect and null policy drive rendering.
        expected_stat: Stat captured after reading, used to detect races.
        initial_stat: Stat captured before reading, used to restore atime.
        warn: Optional callback for non-fatal warnings.
        line_end: Terminator written after each record.

    Returns:
        int: Number of records written.

    Raises:
        IOError: If the file changed since `expected_stat` or cannot be
            replaced.

    Examples:
        rewrite_records(path, records, create_tokenizer(config), post_stat, pre_stat)
    """
    ensure_file_unchanged(expected_stat, collect_file_stat(filepath), filepath)

    temp_path: Path | None = None
    try:
        with tempfile.NamedTemporaryFile(
            mode="w", encoding="UTF-8", newline="", delete=False, dir=filepath.parent
        ) as tmp_file:
            temp_path = Path(tmp_file.name)
            with CsvWriter(tmp_file, tokenizer, line_end=line_end) as writer:
                writer.write_all(records)
            os.fsync(tmp_file.fileno())
            _copy_ownership(expected_stat, temp_path, filepath, warn)

        os.replace(temp_path, filepath)
        # Only atime is restored; mtime reflects the rewrite
        os.utime(filepath, ns=(initial_stat.st_atime_ns, filepath.stat().st_mtime_ns))
    finally:
        if temp_path is not None:
            try:
                temp_path.unlink(missing_ok=True)
            except OSError:
                pass

    return writer.lines_written


def _copy_ownership(
    source_stat: os.stat_result,
    target: Path,
    filepath: Path,
    warn: Callable[[str], None] | None,
):
    os.chmod(target, stat.S_IMODE(source_stat.st_mode))

    uid = getattr(source_stat, "st_uid", None)
    gid = getattr(source_stat, "st_gid", None)
    if uid is None or gid is None or not hasattr(os, "chown"):
        return
    try:
        os.chown(target, uid, gid)
    except PermissionError:
        if warn is not None:
            warn(
                f"Warning: Could not preserve file ownership for {filepath.name} "
                "(requires elevated privileges)"
            )
