"""Server-sent events decoding.

Implements the line protocol of ``text/event-stream``: ``field: value`` lines
accumulate into a frame, a blank line dispatches it. ``data`` lines are joined
with newlines, lines starting with ``:`` are comments, and unknown fields are
ignored. A frame without any ``data`` line is not dispatched.
"""

from dataclasses import dataclass


@dataclass(slots=True, frozen=True)
class ServerSentEvent:
    """One dispatched frame."""

    data: str
    event: str = "message"
    id: str | None = None
    retry: int | None = None


class SSEDecoder:
    """Incremental decoder fed one line at a time.

    Example:
        >>> decoder = SSEDecoder()
        >>> decoder.feed_line('data: {"event": "new"}')
        >>> decoder.feed_line("")
        ServerSentEvent(data='{"event": "new"}', event='message', id=None, retry=None)
    """

    def __init__(self) -> None:
        self._data: list[str] = []
        self._event: str | None = None
        self._last_id: str | None = None
        self._retry: int | None = None

    @property
    def last_event_id(self) -> str | None:
        return self._last_id

    def feed_line(self, line: str) -> ServerSentEvent | None:
        """Consume one line (without its terminator).

        Returns:
            The completed frame when ``line`` is blank and data is pending,
            otherwise None
        """
        line = line.rstrip("\r\n")
        if not line:
            return self._dispatch()
        if line.startswith(":"):
            return None

        field_name, sep, value = line.partition(":")
        if sep and value.startswith(" "):
            value = value[1:]

        if field_name == "data":
            self._data.append(value)
        elif field_name == "event":
            self._event = value
        elif field_name == "id":
            # Ids containing NUL are ignored
            if "\0" not in value:
                self._last_id = value
        elif field_name == "retry":
            if value.isdigit():
                self._retry = int(value)
        return None

    def feed(self, chunk: str) -> list[ServerSentEvent]:
        """Consume a chunk holding whole lines; a trailing partial line is treated as complete."""
        events: list[ServerSentEvent] = []
        for line in chunk.splitlines():
            event = self.feed_line(line)
            if event is not None:
                events.append(event)
        return events

    def _dispatch(self) -> ServerSentEvent | None:
        if not self._data:
            self._event = None
            return None
        event = ServerSentEvent(
            data="\n".join(self._data),
            event=self._event or "message",
            id=self._last_id,
            retry=self._retry,
        )
        self._data = []
        self._event = None
        return event


def decode_events(text: str) -> list[ServerSentEvent]:
    """Decode a complete event-stream body; an unterminated last frame is dropped."""
    return SSEDecoder().feed(text)
