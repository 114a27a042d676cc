"""Accumulates inbound text fragments and commits them in batches."""

from typing import Callable, Tuple


FLUSH_THRESHOLD = 10


def accumulate(accumulator: str, fragment: str) -> Tuple[bool, str]:
    """Add ``fragment`` and report whether the result should be flushed."""
    combined = accumulator + fragment
    return len(combined) >= FLUSH_THRESHOLD or "\n" in combined, combined


class ChunkBuffer:
    """Per-stream buffer in front of a flush callback.

    The callback is normally ``ConversationStore.append_assistant_chunk``.
    """

    def __init__(self, on_flush: Callable[[str], None]):
        self.on_flush = on_flush
        self._accumulator = ""

    @property
    def pending(self) -> str:
        return self._accumulator

    def feed(self, fragment: str) -> None:
        should_flush, self._accumulator = accumulate(self._accumulator, fragment)
        if should_flush:
            self._flush()

    def finish(self) -> None:
        """End of stream: commit whatever is left."""
        if self._accumulator:
            self._flush()

    def _flush(self) -> None:
        text, self._accumulator = self._accumulator, ""
        self.on_flush(text)
