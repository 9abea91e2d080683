"""Incremental text/event-stream decoding.

Network reads can split a record anywhere, including inside a multi-byte
character or a JSON payload. The decoder buffers input and only parses a
record once its terminating blank line has arrived.
"""

import codecs
import logging

from ..errors import StreamDecodeError
from ..relay.events import StreamEvent, parse_event

logger = logging.getLogger(__name__)


def decode_record(record: str) -> StreamEvent | None:
    """Parse one complete record (without its trailing blank line).

    Returns None for records that carry no data, such as keep-alive comments.

    Raises:
        StreamDecodeError: If the data payload is malformed
    """
    data_lines: list[str] = []
    for line in record.split("\n"):
        if not line or line.startswith(":"):
            continue
        name, _, value = line.partition(":")
        if value.startswith(" "):
            value = value[1:]
        if name == "data":
            data_lines.append(value)
    if not data_lines:
        return None
    return parse_event("\n".join(data_lines))


class SSEDecoder:
    """Turns a sequence of byte chunks into StreamEvents.

    Malformed records are logged and skipped; they never abort the stream.
    """

    def __init__(self) -> None:
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._buffer = ""
        self.skipped = 0

    def feed(self, data: bytes | str) -> list[StreamEvent]:
        """Add a chunk and return every event it completes."""
        text = data if isinstance(data, str) else self._decoder.decode(data)
        self._buffer = (self._buffer + text).replace("\r\n", "\n")
        events: list[StreamEvent] = []
        while "\n\n" in self._buffer:
            record, self._buffer = self._buffer.split("\n\n", 1)
            event = self._decode(record)
            if event is not None:
                events.append(event)
        return events

    def flush(self) -> list[StreamEvent]:
        """Decode whatever is left once the body has ended."""
        self._buffer += self._decoder.decode(b"", final=True)
        record, self._buffer = self._buffer.strip("\n"), ""
        if not record:
            return []
        event = self._decode(record)
        return [event] if event is not None else []

    def _decode(self, record: str) -> StreamEvent | None:
        try:
            return decode_record(record)
        except StreamDecodeError as exc:
            self.skipped += 1
            logger.warning("Skipping malformed event record: %s", exc)
            return None
