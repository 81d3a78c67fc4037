from src.conversation.chat_session import ChatSession
from src.conversation.state_machine import (
    ConnectionStateMachine,
    InvalidTransitionError,
    TransitionTrigger,
)
from src.conversation.transcript import TranscriptStore

__all__ = [
    "ChatSession",
    "ConnectionStateMachine",
    "InvalidTransitionError",
    "TransitionTrigger",
    "TranscriptStore",
]
