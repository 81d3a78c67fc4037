"""Client-id logging context for following one chat connection in the logs.

``ChatSession.connect()`` stores the fresh client id in a ContextVar. The
WebSocket reader task is created right after, so it inherits that value
and every record it emits carries the id of the connection it serves.

``install_client_id_filter()`` puts the filter on the root handlers, so
records from any logger (including third-party ones like ``websockets``)
can be formatted with ``%(client_id)s``. ``load_config()`` calls it with a
format that includes the id.

Usage:
    from src.logging_context import get_session_logger

    logger = get_session_logger(__name__)
    logger.info("Frame received")
    # 2025-03-15 10:00:00 [src.transport.ws_client] [k3j9x0qa] INFO: Frame received
"""

import logging
from contextvars import ContextVar
from typing import Iterable, Optional

NO_CLIENT_ID = "-"

_client_id: ContextVar[str] = ContextVar("client_id", default=NO_CLIENT_ID)


def set_client_id(client_id: str) -> None:
    _client_id.set(client_id)


def get_client_id() -> str:
    return _client_id.get()


class ClientIdFilter(logging.Filter):
    """Stamps ``client_id`` on records that do not already carry one."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "client_id"):
            record.client_id = _client_id.get()  # type: ignore[attr-defined]
        return True


def install_client_id_filter(handlers: Optional[Iterable[logging.Handler]] = None) -> None:
    """Attach one ClientIdFilter to each handler (default: the root logger's)."""
    targets = list(handlers) if handlers is not None else logging.getLogger().handlers
    for handler in targets:
        if not any(isinstance(f, ClientIdFilter) for f in handler.filters):
            handler.addFilter(ClientIdFilter())


def get_session_logger(name: str) -> logging.Logger:
    """Logger whose records carry ``client_id`` even under foreign handlers.

    Handler filters installed by ``install_client_id_filter`` cover the
    root handlers only. This logger-level filter also covers handlers
    attached elsewhere, such as a test's capture handler.
    """
    logger = logging.getLogger(name)
    if not any(isinstance(f, ClientIdFilter) for f in logger.filters):
        logger.addFilter(ClientIdFilter())
    return logger
