"""Boundary contracts of the embedded analysis engine.

The engine is opaque. It is constructed with two callbacks and exposes one
call-in entry point:

    engine = factory(files_provider, replier)
    error = engine.handle_message(message)

``handle_message`` returns None when the message was accepted and an error
value (an exception or a message string) when it was rejected. Replies and
server-initiated notifications arrive later through ``replier``.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Protocol, runtime_checkable

from enginebridge.mirror.records import WorkspaceMapping
from enginebridge.transport.messages import ProtocolMessage

FilesProvider = Callable[[], WorkspaceMapping]
Replier = Callable[[ProtocolMessage], None]


@runtime_checkable
class Engine(Protocol):
    """A constructed engine instance."""

    def handle_message(self, message: ProtocolMessage) -> BaseException | str | None:
        """Accept one protocol message.

        Returns:
            None on successful hand-off, an error value on rejection.
        """
        ...


class EngineFactory(Protocol):
    """The engine's construction entry point."""

    def __call__(
        self,
        files_provider: FilesProvider,
        replier: Replier,
    ) -> Engine | BaseException:
        ...
