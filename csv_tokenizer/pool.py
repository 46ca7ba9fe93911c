"""Ordered, fail-fast processing of records on a worker pool."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Iterator
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from typing import TypeVar

from .exceptions import RecordProcessingError
from .models import Record

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_MAX_WORKERS = 4


def process_records(
    records: Iterable[Record],
    func: Callable[[Record], T],
    max_workers: int = DEFAULT_MAX_WORKERS,
    max_pending: int | None = None,
) -> Iterator[T]:
    """Apply `func` to every record concurrently and yield results in input order.

    Records are numbered from 1 as they are taken from `records`. At most
    `max_pending` records are submitted and not yet yielded at any time.
    Results finished out of order are held back until every earlier record has
    been yielded. The first failing record stops the pool: outstanding work is
    cancelled and no further results are produced.

    Args:
        records: Records to process, typically a `CsvReader`.
        func: Function converting one record; called from worker threads.
        max_workers: Size of the worker pool.
        max_pending: Bound on records in flight. Defaults to twice `max_workers`.

    Yields:
        T: `func(record)` for each record, in input order.

    Raises:
        ValueError: If `max_workers` or `max_pending` is not positive.
        RecordProcessingError: If `func` raises; carries the record number and
            the original exception.

    Examples:
        with CsvReader(stream) as reader:
            for row in process_records(reader, convert_row, max_workers=8):
                store(row)
    """
    if max_workers <= 0:
        raise ValueError("`max_workers` must be a positive integer")
    if max_pending is None:
        max_pending = 2 * max_workers
    if max_pending <= 0:
        raise ValueError("`max_pending` must be a positive integer")

    numbered = enumerate(records, start=1)
    in_flight: dict[int, Future[T]] = {}
    next_number = 1
    exhausted = False

    with ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="csv-tokenizer") as executor:
        while True:
            while not exhausted and len(in_flight) < max_pending:
                item = next(numbered, None)
                if item is None:
                    exhausted = True
                    break
                number, record = item
                in_flight[number] = executor.submit(func, record)

            if not in_flight:
                break

            running = [future for future in in_flight.values() if not future.done()]
            if running:
                wait(running, return_when=FIRST_COMPLETED)

            _raise_first_failure(in_flight)

            while next_number in in_flight and in_flight[next_number].done():
                yield in_flight.pop(next_number).result()
                next_number += 1


def _raise_first_failure(in_flight: dict[int, Future]) -> None:
    failed = sorted(
        number
        for number, future in in_flight.items()
        if future.done() and not future.cancelled() and future.exception() is not None
    )
    if not failed:
        return

    number = failed[0]
    cause = in_flight[number].exception()
    for future in in_flight.values():
        future.cancel()
    logger.debug("Record %d failed, cancelled %d queued records", number, len(in_flight) - 1)
    raise RecordProcessingError(number, cause) from cause
