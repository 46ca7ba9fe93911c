"""Field text accumulation for the general-mode tokenizer."""

from __future__ import annotations


class OutputAccumulator:
    """Collect the text of the current field while scanning one input line.

    Most fields are a contiguous run of the input line, so the accumulator
    tracks a pending ``[start, end)`` slice of the input and only copies into
    a buffer when the field stops being contiguous (after an escape, a doubled
    quote, or text carried over from a previous line).

    Args:
        text: Physical line being scanned.

    Examples:
        acc = OutputAccumulator("ab")
        acc.take_input(); acc.append_prev()
        acc.take_input(); acc.append_prev()
        acc.take_output()  # "ab"
    """

    def __init__(self, text: str):
        self._input = text
        self.position = 0
        self._buffer: list[str] | None = None
        self._slice_start = 0
        self._slice_end = 0

    def is_empty_input(self) -> bool:
        return self.position >= len(self._input)

    def take_input(self) -> str:
        """Consume and return the next input character."""
        character = self._input[self.position]
        self.position += 1
        return character

    def _materialize(self) -> list[str]:
        if self._buffer is None:
            self._buffer = []

        if self._slice_start < self._slice_end:
            self._buffer.append(self._input[self._slice_start : self._slice_end])
            self._slice_start = self._slice_end = self.position

        return self._buffer

    def _buffer_is_empty(self) -> bool:
        return not self._buffer

    def append(self, text: str) -> None:
        """Append text that does not come from the current input position."""
        self._materialize().append(text)

    def append_prev(self) -> None:
        """Append the most recently consumed input character."""
        if self._slice_end == self._slice_start:
            self._slice_start = self.position - 1
            self._slice_end = self.position
        elif self._slice_end == self.position - 1:
            self._slice_end += 1
        else:
            self._materialize().append(self._input[self.position - 1])

    def is_empty_output(self) -> bool:
        return self._slice_start >= self._slice_end and self._buffer_is_empty()

    def clear_output(self) -> None:
        if self._buffer is not None:
            self._buffer.clear()
        self._slice_start = self._slice_end = self.position

    def peek_output(self) -> str:
        """Return the field text accumulated since the last reset."""
        if self._buffer_is_empty():
            return self._input[self._slice_start : self._slice_end]
        return "".join(self._materialize())

    def take_output(self) -> str:
        """Return the accumulated field text and reset for the next field."""
        result = self.peek_output()
        self.clear_output()
        return result
