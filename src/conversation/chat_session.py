"""
Chat session: owns the transport handle and turns frames into transcript entries.

The session never calls into the network directly. A TransportFactory
opens the connection and reports open/message/close/error back through a
listener bound to that one connect attempt. Events from a listener whose
attempt has been superseded by a newer connect() or by disconnect()
are ignored.

Usage:
    session = ChatSession(transport_factory=open_websocket)
    session.connect()
    ...
    session.send("Find me the CTO of Acme")
"""

import secrets
import string
from typing import Callable, Optional

from src.config import settings
from src.conversation.state_machine import (
    ConnectionStateMachine,
    InvalidTransitionError,
    TransitionTrigger,
)
from src.conversation.transcript import TranscriptStore
from src.ingestion.contact_extractor import extract_contacts
from src.ingestion.frame_decoder import decode_frame
from src.logging_context import get_session_logger, set_client_id
from src.schemas.chat_schema import (
    BotEntry,
    ConnectionStatus,
    ContactEntry,
    EntryKind,
    SystemEntry,
    UserEntry,
)
from src.transport.base import TransportFactory, TransportHandle

logger = get_session_logger(__name__)

CLIENT_ID_ALPHABET = string.ascii_lowercase + string.digits

CONNECTED_NOTICE = "Connected as client: {client_id}"
DISCONNECTED_NOTICE = "Disconnected from server"
ERROR_NOTICE = "Connection error occurred"

USER_ROLE = EntryKind.USER.value


def generate_client_id(length: int = 8) -> str:
    """Random lowercase alphanumeric token."""
    return "".join(secrets.choice(CLIENT_ID_ALPHABET) for _ in range(length))


class _AttemptListener:
    """Routes transport events for one connect attempt back to the session."""

    def __init__(self, session: "ChatSession", attempt: int) -> None:
        self._session = session
        self._attempt = attempt

    def on_open(self) -> None:
        self._session.handle_open(self._attempt)

    def on_message(self, frame: str) -> None:
        self._session.handle_message(self._attempt, frame)

    def on_close(self) -> None:
        self._session.handle_close(self._attempt)

    def on_error(self, error: Optional[BaseException] = None) -> None:
        self._session.handle_error(self._attempt, error)


class ChatSession:
    """
    Connection lifecycle plus inbound frame normalization.

    State exposed to a presentation layer: ``status``, ``client_id``,
    ``is_composing``, ``draft`` and the ``transcript``. The transcript
    outlives individual connections and is never cleared here.
    """

    def __init__(
        self,
        transport_factory: TransportFactory,
        transcript: Optional[TranscriptStore] = None,
        endpoint_for: Optional[Callable[[str], str]] = None,
        client_id_length: Optional[int] = None,
    ) -> None:
        self._transport_factory = transport_factory
        self.transcript = transcript if transcript is not None else TranscriptStore()
        self._endpoint_for = endpoint_for or settings.server.endpoint_for
        self._client_id_length = client_id_length or settings.client.client_id_length
        self._sm = ConnectionStateMachine()
        self._handle: Optional[TransportHandle] = None
        self._attempt = 0
        self._used_client_ids: set[str] = set()
        self.client_id = ""
        self.is_composing = False
        self.draft = ""

    @property
    def status(self) -> ConnectionStatus:
        return self._sm.current_state

    @property
    def state_machine(self) -> ConnectionStateMachine:
        return self._sm

    @property
    def handle(self) -> Optional[TransportHandle]:
        return self._handle

    # ------------------------------------------------------------------ #
    # User actions
    # ------------------------------------------------------------------ #

    def connect(self) -> str:
        """
        Open a new connection under a fresh client id.

        Returns:
            The new client id.

        Raises:
            InvalidTransitionError: If the session is already connected.
        """
        if not self._sm.can_connect():
            raise InvalidTransitionError(
                f"Cannot connect while '{self.status.value}'; disconnect first"
            )

        # Bump the attempt first so the old handle's close event is ignored.
        self._attempt += 1
        attempt = self._attempt
        if self._handle is not None:
            old, self._handle = self._handle, None
            logger.info("Closing pending connection %s before reconnecting", old.url)
            old.close()

        self.client_id = self._new_client_id()
        set_client_id(self.client_id)
        url = self._endpoint_for(self.client_id)
        logger.info("Connecting to %s", url)

        try:
            self._handle = self._transport_factory(url, _AttemptListener(self, attempt))
        except Exception as exc:
            logger.warning("Could not open transport to %s: %s", url, exc)
            self.handle_error(attempt, exc)
            self.handle_close(attempt)
        return self.client_id

    def disconnect(self) -> None:
        """
        Close and release the current handle.

        Takes effect immediately: status becomes disconnected and the notice
        is recorded here. The attempt is retired first, so the transport's
        own close event (and any frame still in flight) arrives stale and is
        ignored, and connect() may be called straight away.
        """
        if self._handle is None:
            return
        handle, self._handle = self._handle, None
        self._attempt += 1
        logger.info("Disconnect requested for %s", handle.url)
        handle.close()
        self._mark_closed()

    def send(self, text: Optional[str] = None) -> bool:
        """
        Send a message to the agent.

        Args:
            text: Message to send. Defaults to the current ``draft``.

        Returns:
            True if the message was recorded and transmitted. Blank input
            or a session that is not connected is a silent no-op.
        """
        message = self.draft if text is None else text
        if not message.strip() or self._handle is None or self.status != ConnectionStatus.CONNECTED:
            return False

        self.transcript.append(UserEntry(text=message))
        logger.debug("Sending %d chars", len(message))
        # Set before transmitting: a transport may deliver the reply synchronously.
        self.is_composing = True
        self._handle.send(message)
        self.draft = ""
        return True

    # ------------------------------------------------------------------ #
    # Transport events
    # ------------------------------------------------------------------ #

    def _is_stale(self, attempt: int, event: str) -> bool:
        if attempt != self._attempt:
            logger.debug("Ignoring %s from superseded attempt %d", event, attempt)
            return True
        return False

    def handle_open(self, attempt: int) -> None:
        if self._is_stale(attempt, "open"):
            return
        self._sm.transition(TransitionTrigger.OPENED)
        logger.info("Connected as client %s", self.client_id)
        self.transcript.append(SystemEntry(text=CONNECTED_NOTICE.format(client_id=self.client_id)))

    def handle_message(self, attempt: int, frame: str) -> None:
        if self._is_stale(attempt, "message"):
            return
        self.is_composing = False

        decoded = decode_frame(frame)
        if decoded.role == USER_ROLE:
            logger.debug("Dropping echoed user frame")
            return

        contacts = extract_contacts(decoded.text)
        if contacts:
            logger.info("Extracted %d contact(s) from agent reply", len(contacts))
            self.transcript.extend([ContactEntry(record=record) for record in contacts])
            return

        self.transcript.append(BotEntry(text=decoded.text))

    def handle_close(self, attempt: int) -> None:
        if self._is_stale(attempt, "close"):
            return
        self._handle = None
        self._mark_closed()

    def handle_error(self, attempt: int, error: Optional[BaseException] = None) -> None:
        if self._is_stale(attempt, "error"):
            return
        self._sm.transition(TransitionTrigger.ERRORED)
        logger.warning("Connection error: %s", error if error is not None else "unknown")
        self.transcript.append(SystemEntry(text=ERROR_NOTICE))

    # ------------------------------------------------------------------ #

    def _mark_closed(self) -> None:
        self._sm.transition(TransitionTrigger.CLOSED)
        logger.info("Connection closed")
        self.transcript.append(SystemEntry(text=DISCONNECTED_NOTICE))

    def _new_client_id(self) -> str:
        while True:
            client_id = generate_client_id(self._client_id_length)
            if client_id not in self._used_client_ids:
                self._used_client_ids.add(client_id)
                return client_id
