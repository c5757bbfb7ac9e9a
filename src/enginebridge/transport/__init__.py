"""Transport between a language client and an in-process engine."""

from enginebridge.transport.bridge import (
    EngineTransport,
    MessageReader,
    MessageWriter,
    TransportState,
)
from enginebridge.transport.events import Emitter
from enginebridge.transport.messages import MessageKind, ProtocolMessage, message_kind

__all__ = [
    "Emitter",
    "EngineTransport",
    "MessageKind",
    "MessageReader",
    "MessageWriter",
    "ProtocolMessage",
    "TransportState",
    "message_kind",
]
