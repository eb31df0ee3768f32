"""Server-sent notification stream over aiohttp.

A :class:`PushStream` opens one long-lived ``GET`` per subscription and runs it
in a background task. The three callbacks fire on that task:

- ``on_open`` once the server answers ``200``
- ``on_message`` with the ``data`` payload of every decoded frame
- ``on_error`` at most once, when the handshake is refused, the transport
  fails or the server ends the stream; an explicit :meth:`StreamSubscription.close`
  never triggers it

The stream has no read timeout; only the connect phase is bounded.
"""

import asyncio
import contextlib
import logging
from collections.abc import Callable
from typing import Final

import aiohttp

from learnquest_client.realtime.sse import SSEDecoder
from learnquest_client.types.aliases import ErrorCallback, MessageCallback, OpenCallback
from learnquest_client.utils.sanitization import sanitize_exception, sanitize_url

logger = logging.getLogger(__name__)

STREAM_HEADERS: Final[dict[str, str]] = {
    "Accept": "text/event-stream",
    "Cache-Control": "no-cache",
}

SessionFactory = Callable[[], aiohttp.ClientSession]


class StreamError(Exception):
    """Raised into ``on_error`` when the stream cannot continue."""

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status: int | None = status


def default_session_factory() -> aiohttp.ClientSession:
    return aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=None))


class StreamSubscription:
    """Handle to one open push stream."""

    def __init__(self, url: str) -> None:
        self._url: str = url
        self._task: asyncio.Task[None] | None = None
        self._closed: bool = False
        self._connected: bool = False

    @property
    def url(self) -> str:
        return self._url

    @property
    def connected(self) -> bool:
        """True between the handshake and the end of the stream."""
        return self._connected and self.is_active()

    def is_active(self) -> bool:
        return not self._closed and self._task is not None and not self._task.done()

    async def close(self) -> None:
        """Stop reading and release the connection; safe to call repeatedly."""
        if self._closed:
            return
        self._closed = True
        self._connected = False
        task = self._task
        if task is None or task.done():
            return
        task.cancel()
        if task is asyncio.current_task():
            # Closed from one of its own callbacks
            return
        with contextlib.suppress(asyncio.CancelledError):
            await task
        logger.debug("Push stream closed: %s", sanitize_url(self._url))

    async def wait_closed(self) -> None:
        """Wait for the background task to finish."""
        if self._task is not None:
            with contextlib.suppress(asyncio.CancelledError):
                await self._task

    def __repr__(self) -> str:
        return f"StreamSubscription(url={sanitize_url(self._url)!r}, active={self.is_active()})"


class PushStream:
    """Factory of push-stream subscriptions.

    Args:
        session_factory: Builds the aiohttp session a subscription owns and
            closes when it ends
        connect_timeout: Bound on establishing the connection, in seconds
    """

    def __init__(
        self,
        session_factory: SessionFactory | None = None,
        *,
        connect_timeout: float = 15.0,
    ) -> None:
        self._session_factory: SessionFactory = session_factory or default_session_factory
        self._connect_timeout: float = connect_timeout

    async def open(
        self,
        url: str,
        on_message: MessageCallback,
        on_error: ErrorCallback | None = None,
        on_open: OpenCallback | None = None,
    ) -> StreamSubscription:
        """Start streaming ``url`` in the background and return its handle."""
        subscription = StreamSubscription(url)
        subscription._task = asyncio.create_task(
            self._run(subscription, on_message, on_error, on_open),
            name="learnquest-push-stream",
        )
        logger.info("Opening push stream %s", sanitize_url(url))
        return subscription

    async def _run(
        self,
        subscription: StreamSubscription,
        on_message: MessageCallback,
        on_error: ErrorCallback | None,
        on_open: OpenCallback | None,
    ) -> None:
        error: BaseException
        try:
            error = await self._consume(subscription, on_message, on_open)
        except asyncio.CancelledError:
            raise
        except (aiohttp.ClientError, OSError, TimeoutError) as e:
            error = e
        finally:
            subscription._connected = False

        if subscription._closed:
            return
        logger.warning(
            "Push stream %s ended: %s",
            sanitize_url(subscription.url),
            sanitize_exception(error),
        )
        if on_error is not None:
            _invoke("on_error", on_error, error)

    async def _consume(
        self,
        subscription: StreamSubscription,
        on_message: MessageCallback,
        on_open: OpenCallback | None,
    ) -> BaseException:
        timeout = aiohttp.ClientTimeout(total=None, sock_connect=self._connect_timeout)
        async with (
            self._session_factory() as session,
            session.get(subscription.url, headers=STREAM_HEADERS, timeout=timeout) as response,
        ):
            if response.status != 200:
                return StreamError(
                    f"stream handshake refused with HTTP {response.status}",
                    status=response.status,
                )

            subscription._connected = True
            logger.info("Push stream connected")
            if on_open is not None:
                _invoke("on_open", on_open)

            decoder = SSEDecoder()
            async for raw_line in response.content:
                frame = decoder.feed_line(raw_line.decode("utf-8", errors="replace"))
                if frame is not None:
                    _invoke("on_message", on_message, frame.data)

        return StreamError("server closed the stream")


def _invoke(name: str, callback: Callable[..., None], *args: object) -> None:
    try:
        callback(*args)
    except Exception:
        logger.exception("Push stream %s callback raised", name)
