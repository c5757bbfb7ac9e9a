"""enginebridge: connect an editor's language client to an in-process analysis engine."""

__version__ = "0.1.0"

from enginebridge.bridge import BridgeSession, start_bridge
from enginebridge.config import Config, load_config
from enginebridge.engine import Engine, EngineFactory, EngineLoader, load_engine_factory
from enginebridge.exceptions import (
    BridgeError,
    EngineCallError,
    EngineLoadError,
    EngineNotReadyError,
    StartupError,
    TransportClosedError,
    TransportError,
    TransportStateError,
    WorkspaceError,
)
from enginebridge.mirror import FileRecord, WorkspaceMirror
from enginebridge.transport import EngineTransport, MessageKind, TransportState

__all__ = [
    # Startup
    "BridgeSession",
    "start_bridge",
    # Config
    "Config",
    "load_config",
    # Engine
    "Engine",
    "EngineFactory",
    "EngineLoader",
    "load_engine_factory",
    # Mirror
    "FileRecord",
    "WorkspaceMirror",
    # Transport
    "EngineTransport",
    "MessageKind",
    "TransportState",
    # Errors
    "BridgeError",
    "EngineCallError",
    "EngineLoadError",
    "EngineNotReadyError",
    "StartupError",
    "TransportClosedError",
    "TransportError",
    "TransportStateError",
    "WorkspaceError",
]
