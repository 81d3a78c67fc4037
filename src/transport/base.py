"""Transport abstraction between the chat session and the network."""

from typing import Callable, Optional, Protocol


class TransportListener(Protocol):
    """Receiver of transport events for one connection attempt."""

    def on_open(self) -> None: ...

    def on_message(self, frame: str) -> None: ...

    def on_close(self) -> None: ...

    def on_error(self, error: Optional[BaseException] = None) -> None: ...


class TransportHandle(Protocol):
    """A live (or pending) connection owned by exactly one session."""

    url: str

    def send(self, text: str) -> None: ...

    def close(self) -> None: ...


# Opens a connection to ``url`` and reports its events to ``listener``.
TransportFactory = Callable[[str, TransportListener], TransportHandle]
