"""Exception hierarchy for enginebridge.

All bridge-specific exceptions inherit from BridgeError.

Startup-fatal errors (StartupError and its relatives) abort bringing the
bridge up. Transport errors reject a single write and are also published on
the transport's error channel; they never tear the channel down.
"""

from __future__ import annotations

from typing import Any


class BridgeError(Exception):
    """Base exception for all enginebridge errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} ({self.details})"
        return self.message


# =============================================================================
# Startup Errors
# =============================================================================


class StartupError(BridgeError):
    """The bridge could not be brought up."""


class EngineLoadError(StartupError):
    """The engine module failed to load or did not become ready in time."""


class WorkspaceError(StartupError):
    """The workspace root is missing or cannot be scanned."""


# =============================================================================
# Transport Errors
# =============================================================================


class TransportError(BridgeError):
    """Base class for errors raised by the engine transport."""


class EngineNotReadyError(TransportError):
    """A write was attempted before an engine was attached."""

    def __init__(self, message: str = "Engine not ready", details: dict[str, Any] | None = None) -> None:
        super().__init__(message, details)


class EngineCallError(TransportError):
    """The engine rejected a message handed to it."""


class TransportClosedError(TransportError):
    """The transport has been disposed."""

    def __init__(self, message: str = "Transport is closed", details: dict[str, Any] | None = None) -> None:
        super().__init__(message, details)


class TransportStateError(TransportError):
    """An operation is not valid in the transport's current state."""
