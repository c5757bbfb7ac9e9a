"""Stdio host: serve a BridgeSession to an editor over stdin/stdout.

Messages use the LSP base protocol framing:

    Content-Length: <length>\\r\\n
    [Content-Type: <type>]\\r\\n
    \\r\\n
    <json-rpc-message>
"""

from __future__ import annotations

import asyncio
import json
import sys
from typing import TYPE_CHECKING, Any

from enginebridge.logging import get_logger
from enginebridge.transport.messages import MessageKind, message_kind

if TYPE_CHECKING:
    from enginebridge.bridge import BridgeSession

log = get_logger("stdio")

HEADER_TERMINATOR = b"\r\n\r\n"
HEADER_ENCODING = "ascii"
CONTENT_ENCODING = "utf-8"
MAX_MESSAGE_SIZE = 10 * 1024 * 1024

INTERNAL_ERROR = -32603


class FramingError(Exception):
    """Malformed frame: bad headers, bad length, or a body that is not a JSON object."""


def parse_headers(block: bytes) -> dict[str, str]:
    """Parse a header block (without the blank-line terminator).

    Header names are matched case-insensitively and returned lowercased.
    """
    try:
        text = block.decode(HEADER_ENCODING)
    except UnicodeDecodeError as e:
        raise FramingError(f"Header contains non-ASCII characters: {e}") from e

    headers: dict[str, str] = {}
    for line in text.split("\r\n"):
        if not line:
            continue
        name, sep, value = line.partition(":")
        if not sep or not name.strip():
            raise FramingError(f"Malformed header line: {line!r}")
        headers[name.strip().lower()] = value.strip()

    if "content-length" not in headers:
        raise FramingError("Missing required Content-Length header")
    return headers


def content_length(headers: dict[str, str], limit: int = MAX_MESSAGE_SIZE) -> int:
    raw = headers["content-length"]
    try:
        length = int(raw)
    except ValueError as e:
        raise FramingError(f"Invalid Content-Length value: {raw!r}") from e
    if length < 0:
        raise FramingError(f"Negative Content-Length: {length}")
    if length > limit:
        raise FramingError(f"Message size {length} exceeds maximum {limit}")
    return length


def encode_message(message: dict[str, Any]) -> bytes:
    """Serialize ``message`` into one framed chunk."""
    try:
        body = json.dumps(message, separators=(",", ":"), ensure_ascii=False).encode(CONTENT_ENCODING)
    except (TypeError, ValueError) as e:
        raise FramingError(f"Message cannot be serialized to JSON: {e}") from e
    return f"Content-Length: {len(body)}\r\n\r\n".encode(HEADER_ENCODING) + body


async def read_message(reader: asyncio.StreamReader) -> dict[str, Any] | None:
    """Read one framed message; None on a clean EOF between messages."""
    try:
        block = await reader.readuntil(HEADER_TERMINATOR)
    except asyncio.IncompleteReadError as e:
        if not e.partial.strip():
            return None
        raise FramingError("Unexpected EOF while reading headers") from e
    except asyncio.LimitOverrunError as e:
        raise FramingError(f"Header block too long: {e}") from e

    length = content_length(parse_headers(block[: -len(HEADER_TERMINATOR)]))

    try:
        body = await reader.readexactly(length)
    except asyncio.IncompleteReadError as e:
        raise FramingError(
            f"Incomplete message body: expected {length} bytes, got {len(e.partial)}"
        ) from e

    try:
        message = json.loads(body.decode(CONTENT_ENCODING))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise FramingError(f"Invalid message body: {e}") from e

    if not isinstance(message, dict):
        raise FramingError(f"JSON-RPC message must be an object, got {type(message).__name__}")
    return message


def error_response(request_id: Any, error: BaseException) -> dict[str, Any]:
    return {
        "jsonrpc": "2.0",
        "id": request_id,
        "error": {"code": INTERNAL_ERROR, "message": str(error) or type(error).__name__},
    }


async def serve(
    session: BridgeSession,
    reader: asyncio.StreamReader,
    writer: asyncio.StreamWriter,
) -> None:
    """Pump messages between framed streams and the session until EOF.

    A rejected request is answered with a JSON-RPC error response so the
    editor is not left waiting; rejected notifications are only logged.
    """

    def send(message: dict[str, Any]) -> None:
        try:
            writer.write(encode_message(message))
        except FramingError as e:
            log.error("Dropping unserializable engine message: %s", e)

    unsubscribe = session.reader.listen(send)
    try:
        while True:
            try:
                message = await read_message(reader)
            except FramingError as e:
                log.error("Framing error, closing: %s", e)
                break
            if message is None:
                log.info("Input closed")
                break

            try:
                await session.writer.write(message)
            except Exception as e:
                if message_kind(message) is MessageKind.REQUEST:
                    send(error_response(message.get("id"), e))
            await writer.drain()
    finally:
        unsubscribe()
        session.close()


async def open_stdio() -> tuple[asyncio.StreamReader, asyncio.StreamWriter]:
    """Wrap this process's stdin/stdout as asyncio streams."""
    loop = asyncio.get_running_loop()

    reader = asyncio.StreamReader()
    protocol = asyncio.StreamReaderProtocol(reader)
    await loop.connect_read_pipe(lambda: protocol, sys.stdin.buffer)

    writer_transport, writer_protocol = await loop.connect_write_pipe(
        asyncio.streams.FlowControlMixin, sys.stdout.buffer
    )
    writer = asyncio.StreamWriter(writer_transport, writer_protocol, reader, loop)
    return reader, writer
