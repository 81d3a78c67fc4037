"""
Finite state machine for the chat connection lifecycle.

Three observable states and explicit transitions driven by transport
events. ``connecting`` is not a state of its own: a session with a live
handle that has not yet opened stays in its previous state.

Usage:
    sm = ConnectionStateMachine()
    sm.transition(TransitionTrigger.OPENED)
    assert sm.current_state == ConnectionStatus.CONNECTED
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from src.schemas.chat_schema import ConnectionStatus

logger = logging.getLogger(__name__)


class TransitionTrigger(str, Enum):
    """Transport events that cause status transitions."""
    OPENED = "opened"
    CLOSED = "closed"
    ERRORED = "errored"


@dataclass
class Transition:
    """A single valid status transition."""
    from_state: ConnectionStatus
    to_state: ConnectionStatus
    trigger: TransitionTrigger


@dataclass
class StateEntry:
    """Recorded history entry for a status visit."""
    state: ConnectionStatus
    entered_at: datetime
    trigger: Optional[TransitionTrigger] = None


class InvalidTransitionError(Exception):
    """Raised when a transition is not valid from the current state."""


class ConnectionStateMachine:
    """
    Deterministic state machine for connection status.

    ``error`` is left only by a close event (the transport always closes
    after failing) or by a fresh connection opening.
    """

    TRANSITIONS: list[Transition] = [
        # --- Open ---
        Transition(ConnectionStatus.DISCONNECTED, ConnectionStatus.CONNECTED,
                   TransitionTrigger.OPENED),
        Transition(ConnectionStatus.ERROR, ConnectionStatus.CONNECTED,
                   TransitionTrigger.OPENED),

        # --- Close ---
        Transition(ConnectionStatus.CONNECTED, ConnectionStatus.DISCONNECTED,
                   TransitionTrigger.CLOSED),
        Transition(ConnectionStatus.ERROR, ConnectionStatus.DISCONNECTED,
                   TransitionTrigger.CLOSED),
        Transition(ConnectionStatus.DISCONNECTED, ConnectionStatus.DISCONNECTED,
                   TransitionTrigger.CLOSED),

        # --- Error ---
        Transition(ConnectionStatus.CONNECTED, ConnectionStatus.ERROR,
                   TransitionTrigger.ERRORED),
        Transition(ConnectionStatus.DISCONNECTED, ConnectionStatus.ERROR,
                   TransitionTrigger.ERRORED),
        Transition(ConnectionStatus.ERROR, ConnectionStatus.ERROR,
                   TransitionTrigger.ERRORED),
    ]

    def __init__(self) -> None:
        self._current_state = ConnectionStatus.DISCONNECTED
        self._history: list[StateEntry] = [
            StateEntry(state=ConnectionStatus.DISCONNECTED, entered_at=datetime.now(timezone.utc))
        ]
        self._error_count: int = 0

    @property
    def current_state(self) -> ConnectionStatus:
        return self._current_state

    @property
    def error_count(self) -> int:
        return self._error_count

    def transition(self, trigger: TransitionTrigger) -> ConnectionStatus:
        """
        Execute a status transition.

        Args:
            trigger: The transport event triggering the transition.

        Returns:
            The new connection status.

        Raises:
            InvalidTransitionError: If no valid transition exists.
        """
        for t in self.TRANSITIONS:
            if t.from_state == self._current_state and t.trigger == trigger:
                old_state = self._current_state
                self._current_state = t.to_state

                self._history.append(StateEntry(
                    state=self._current_state,
                    entered_at=datetime.now(timezone.utc),
                    trigger=trigger,
                ))

                if trigger == TransitionTrigger.ERRORED:
                    self._error_count += 1

                logger.debug(
                    "Status transition: %s -> %s (trigger: %s)",
                    old_state.value, self._current_state.value, trigger.value,
                )
                return self._current_state

        valid = [t.value for t in self.get_valid_triggers()]
        raise InvalidTransitionError(
            f"No valid transition from '{self._current_state.value}' "
            f"with trigger '{trigger.value}'. Valid triggers: {valid}"
        )

    def get_valid_triggers(self) -> list[TransitionTrigger]:
        """Return all triggers valid from the current state."""
        return [t.trigger for t in self.TRANSITIONS if t.from_state == self._current_state]

    def get_history(self) -> list[StateEntry]:
        """Return the full status transition history."""
        return list(self._history)

    def get_state_trace(self) -> list[str]:
        """Return ordered list of status names visited."""
        return [entry.state.value for entry in self._history]

    def can_connect(self) -> bool:
        """A new connect request is accepted from disconnected or error."""
        return self._current_state in (ConnectionStatus.DISCONNECTED, ConnectionStatus.ERROR)
