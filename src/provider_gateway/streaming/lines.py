"""Incremental line assembly over a byte stream."""

import codecs


class LineBuffer:
    """
    Turns arbitrarily split byte reads into complete text lines.

    UTF-8 is decoded incrementally, so a multi-byte character split across
    two reads is reassembled. A line is only released once its ``\\n`` has
    arrived; the unterminated remainder waits for the next read. A trailing
    ``\\r`` is stripped from every released line.
    """

    def __init__(self) -> None:
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._pending = ""

    def feed(self, data: bytes) -> list[str]:
        self._pending += self._decoder.decode(data)
        if "\n" not in self._pending:
            return []
        *lines, self._pending = self._pending.split("\n")
        return [line.rstrip("\r") for line in lines]

    @property
    def pending(self) -> str:
        """Unterminated text still waiting for its newline."""
        return self._pending
