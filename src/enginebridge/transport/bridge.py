"""Duplex transport between a language client and an in-process engine.

The engine speaks the same JSON-RPC messages as the client, so there is no
encode/decode step: the transport only turns a synchronous call-in
(``engine.handle_message``) plus a reply callback into the reader/writer
pair a language client expects.

    client --write(msg)--> EngineTransport --handle_message(msg)--> engine
    client <--listen()---- EngineTransport <------replier(msg)----- engine

State machine: UNBOUND (no engine) -> BOUND (set_engine) -> DISPOSED.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from enum import Enum
from typing import TYPE_CHECKING

from enginebridge.exceptions import (
    EngineCallError,
    EngineNotReadyError,
    TransportClosedError,
    TransportStateError,
)
from enginebridge.logging import TRACE, get_logger
from enginebridge.transport.events import Disposable, Emitter
from enginebridge.transport.messages import ProtocolMessage, describe_inbound, describe_outbound

if TYPE_CHECKING:
    from enginebridge.engine.protocol import Engine, Replier

log = get_logger("transport")


def _running_loop() -> asyncio.AbstractEventLoop | None:
    try:
        return asyncio.get_running_loop()
    except RuntimeError:
        return None


class TransportState(Enum):
    UNBOUND = "unbound"
    BOUND = "bound"
    DISPOSED = "disposed"


class MessageReader:
    """Inbound half: engine -> client."""

    def __init__(self, transport: EngineTransport) -> None:
        self._transport = transport

    def listen(self, callback: Callable[[ProtocolMessage], None]) -> Disposable:
        """Subscribe to inbound messages; returns an unsubscribe function."""
        return self._transport._on_message.event(callback)

    def on_error(self, listener: Callable[[BaseException], None]) -> Disposable:
        return self._transport._on_error.event(listener)

    def on_close(self, listener: Callable[[None], None]) -> Disposable:
        return self._transport._on_close.event(listener)

    def dispose(self) -> None:
        self._transport.dispose()


class MessageWriter:
    """Outbound half: client -> engine."""

    def __init__(self, transport: EngineTransport) -> None:
        self._transport = transport

    def write(self, message: ProtocolMessage) -> asyncio.Future[None]:
        return self._transport.write(message)

    def on_error(self, listener: Callable[[BaseException], None]) -> Disposable:
        return self._transport._on_error.event(listener)

    def on_close(self, listener: Callable[[None], None]) -> Disposable:
        return self._transport._on_close.event(listener)

    def end(self) -> None:
        self._transport.dispose()

    def dispose(self) -> None:
        self._transport.dispose()


class EngineTransport:
    """Relays protocol messages between a language client and an engine.

    Example:
        transport = EngineTransport()
        engine = factory(mirror.get_files, transport.create_message_replier())
        transport.set_engine(engine)

        transport.reader.listen(handle_reply)
        await transport.writer.write({"jsonrpc": "2.0", "id": 1, "method": "initialize"})
    """

    def __init__(self) -> None:
        self._on_message: Emitter[ProtocolMessage] = Emitter("message")
        self._on_error: Emitter[BaseException] = Emitter("error")
        self._on_close: Emitter[None] = Emitter("close")

        self._engine: Engine | None = None
        self._state = TransportState.UNBOUND
        self._replier: Replier | None = None
        self._loop: asyncio.AbstractEventLoop | None = None

        self.reader = MessageReader(self)
        self.writer = MessageWriter(self)

    @property
    def state(self) -> TransportState:
        return self._state

    def create_message_replier(self) -> Replier:
        """Return the callback the engine uses to send messages to the client.

        The same callable is returned on every call. It publishes each
        message unchanged; after disposal messages are dropped. Engines may
        call it from any thread: calls made off the owning event loop are
        handed to that loop with ``call_soon_threadsafe``, so listeners
        always run on the loop, in invocation order per calling thread.
        """
        self._bind_loop()
        if self._replier is None:

            def replier(message: ProtocolMessage) -> None:
                loop = self._loop
                if loop is not None and not loop.is_closed() and _running_loop() is not loop:
                    loop.call_soon_threadsafe(self._publish, message)
                    return
                self._publish(message)

            self._replier = replier
        return self._replier

    def _bind_loop(self) -> None:
        if self._loop is None:
            self._loop = _running_loop()

    def _publish(self, message: ProtocolMessage) -> None:
        if self._state is TransportState.DISPOSED:
            log.debug("Dropping message after dispose: %s", describe_inbound(message))
            return
        if log.isEnabledFor(TRACE):
            log.log(TRACE, describe_inbound(message))
        self._on_message.fire(message)

    def set_engine(self, engine: Engine) -> None:
        """Attach the engine. Allowed exactly once, before disposal."""
        if self._state is TransportState.DISPOSED:
            raise TransportStateError("Cannot attach an engine to a disposed transport")
        if self._state is TransportState.BOUND:
            raise TransportStateError("Engine already attached")
        self._bind_loop()
        self._engine = engine
        self._state = TransportState.BOUND
        log.debug("Engine attached")

    def write(self, message: ProtocolMessage) -> asyncio.Future[None]:
        """Hand ``message`` to the engine.

        The engine call happens before this method returns, so engines
        receive messages in the order ``write`` was called. The returned
        future resolves once the engine has accepted the message (delivery,
        not completion) and fails with the engine's error otherwise. Every
        failure is also published on the error channel.

        Must be called with a running event loop.
        """
        future: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        self._bind_loop()

        if self._state is TransportState.DISPOSED:
            future.set_exception(TransportClosedError())
            return future

        if log.isEnabledFor(TRACE):
            log.log(TRACE, describe_outbound(message))

        if self._engine is None:
            log.error("Write before engine was attached")
            self._fail(future, EngineNotReadyError())
            return future

        try:
            result = self._engine.handle_message(message)
        except Exception as e:
            log.error("Engine raised while handling %s: %s", message.get("method"), e)
            self._fail(future, e)
            return future

        if result is not None:
            error = result if isinstance(result, BaseException) else EngineCallError(str(result))
            log.error("Engine rejected %s: %s", message.get("method"), error)
            self._fail(future, error)
            return future

        future.set_result(None)
        return future

    def _fail(self, future: asyncio.Future[None], error: BaseException) -> None:
        if isinstance(error, StopIteration):
            # Futures refuse StopIteration
            wrapped = EngineCallError(f"Engine raised StopIteration: {error}")
            wrapped.__cause__ = error
            error = wrapped
        self._on_error.fire(error)
        future.set_exception(error)

    def dispose(self) -> None:
        """Close the channel. Idempotent; never raises."""
        if self._state is TransportState.DISPOSED:
            return
        self._state = TransportState.DISPOSED
        self._engine = None

        try:
            self._on_close.fire(None)
        except Exception as e:
            log.debug("Error signalling close: %s", e)

        for emitter in (self._on_message, self._on_error, self._on_close):
            try:
                emitter.dispose()
            except Exception as e:
                log.debug("Error disposing emitter: %s", e)

        log.debug("Transport disposed")
