"""
In-memory transport for tests and the offline console demo.

No sockets are opened. Events are delivered synchronously, so a test
drives the whole open/message/close lifecycle by calling methods on the
handle the session created.
"""

import json
import logging
from typing import Optional

from src.transport.base import TransportListener

logger = logging.getLogger(__name__)


class ScriptedHandle:
    """One simulated connection."""

    def __init__(self, url: str, listener: TransportListener, transport: "ScriptedTransport") -> None:
        self.url = url
        self.listener = listener
        self.sent: list[str] = []
        self.opened = False
        self.closed = False
        self._transport = transport

    # --- Session-facing API ---

    def send(self, text: str) -> None:
        if self.closed:
            logger.debug("Dropping send on closed handle %s", self.url)
            return
        self.sent.append(text)
        self._transport._on_sent(self, text)

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        if self._transport.deferred_close:
            return
        self.listener.on_close()

    # --- Simulated server events ---

    def open(self) -> None:
        self.opened = True
        self.listener.on_open()

    def deliver(self, frame: str) -> None:
        if self.closed:
            return
        self.listener.on_message(frame)

    def fail(self, error: Optional[BaseException] = None) -> None:
        self.listener.on_error(error)

    def drop(self) -> None:
        """Server-side close."""
        self.closed = True
        self.listener.on_close()

    def finish_close(self) -> None:
        """Deliver the close event held back by a deferred close()."""
        self.listener.on_close()


class ScriptedTransport:
    """
    Transport factory producing ScriptedHandles.

    Args:
        auto_open: Fire the open event as soon as a handle is created.
        echo: Send each outbound message back as a ``type: user`` envelope,
            the way the agent server echoes the sender's own messages.
        replies: Frames delivered one per outbound message, in order.
        deferred_close: Hold back the close event after close(), the way a
            network transport reports it later. Use finish_close() to fire it.
    """

    def __init__(
        self,
        auto_open: bool = False,
        echo: bool = False,
        replies: Optional[list[str]] = None,
        deferred_close: bool = False,
    ) -> None:
        self.deferred_close = deferred_close
        self.auto_open = auto_open
        self.echo = echo
        self.replies = list(replies or [])
        self.handles: list[ScriptedHandle] = []

    def __call__(self, url: str, listener: TransportListener) -> ScriptedHandle:
        handle = ScriptedHandle(url, listener, self)
        self.handles.append(handle)
        logger.debug("Scripted connection to %s", url)
        if self.auto_open:
            handle.open()
        return handle

    @property
    def last(self) -> ScriptedHandle:
        return self.handles[-1]

    def _on_sent(self, handle: ScriptedHandle, text: str) -> None:
        if self.echo:
            handle.deliver(json.dumps({"type": "user", "message": text}))
        if self.replies:
            handle.deliver(self.replies.pop(0))
