from src.transport.base import TransportFactory, TransportHandle, TransportListener
from src.transport.memory import ScriptedHandle, ScriptedTransport

__all__ = [
    "TransportFactory", "TransportHandle", "TransportListener",
    "ScriptedHandle", "ScriptedTransport",
]
