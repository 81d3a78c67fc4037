"""
WebSocket transport built on the ``websockets`` asyncio client.

Each handle owns one reader task on the running event loop. Frames are
dispatched to the listener one at a time from that task, so listener
callbacks never run concurrently with each other.
"""

import asyncio
from typing import Optional

import websockets
from websockets.exceptions import WebSocketException

from src.logging_context import get_session_logger
from src.transport.base import TransportListener

logger = get_session_logger(__name__)


class WebSocketHandle:
    """A single client connection to the agent endpoint."""

    def __init__(
        self,
        url: str,
        listener: TransportListener,
        open_timeout: Optional[float] = 10.0,
    ) -> None:
        self.url = url
        self._listener = listener
        self._open_timeout = open_timeout
        self._ws = None
        self._loop = asyncio.get_running_loop()
        self._pending: set[asyncio.Task] = set()
        self._reader = self._loop.create_task(self._run())
        # Runs even if the reader is cancelled before its first step.
        self._reader.add_done_callback(self._on_reader_done)

    async def _run(self) -> None:
        try:
            async with websockets.connect(self.url, open_timeout=self._open_timeout) as ws:
                self._ws = ws
                logger.info("WebSocket open: %s", self.url)
                self._listener.on_open()
                async for frame in ws:
                    if isinstance(frame, bytes):
                        frame = frame.decode("utf-8", errors="replace")
                    logger.debug("Frame received (%d chars)", len(frame))
                    self._listener.on_message(frame)
        except (OSError, asyncio.TimeoutError, WebSocketException) as exc:
            logger.warning("WebSocket error on %s: %s", self.url, exc)
            self._listener.on_error(exc)
        finally:
            self._ws = None

    def _on_reader_done(self, task: asyncio.Task) -> None:
        exc = None if task.cancelled() else task.exception()
        if exc is not None:
            logger.error("WebSocket reader failed on %s", self.url, exc_info=exc)
        logger.info("WebSocket closed: %s", self.url)
        self._listener.on_close()

    def _spawn(self, coro) -> None:
        task = self._loop.create_task(coro)
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _send(self, text: str) -> None:
        ws = self._ws
        if ws is None:
            logger.warning("Send on %s before open or after close, dropped", self.url)
            return
        try:
            await ws.send(text)
        except WebSocketException as exc:
            # The reader task reports the failure and the close.
            logger.warning("Send failed on %s: %s", self.url, exc)

    def send(self, text: str) -> None:
        self._spawn(self._send(text))

    def close(self) -> None:
        if self._ws is not None:
            self._spawn(self._ws.close())
        else:
            self._reader.cancel()

    async def wait_closed(self) -> None:
        """Wait for the reader task to finish and the close event to fire."""
        await asyncio.wait({self._reader})


def open_websocket(url: str, listener: TransportListener) -> WebSocketHandle:
    """TransportFactory for real connections. Must be called inside a running loop."""
    return WebSocketHandle(url, listener)
