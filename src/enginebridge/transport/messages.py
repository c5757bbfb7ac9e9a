"""Protocol message shape helpers.

Messages pass through the transport untouched. These helpers only classify
and summarize them for logging.
"""

from __future__ import annotations

import json
from enum import Enum
from typing import Any

ProtocolMessage = dict[str, Any]

PREVIEW_LIMIT = 200


class MessageKind(Enum):
    REQUEST = "request"
    RESPONSE = "response"
    NOTIFICATION = "notification"


def message_kind(message: ProtocolMessage) -> MessageKind:
    """Classify a message by shape.

    - id and method: request
    - id without method: response
    - no id member: notification

    An error response may carry ``"id": null``; it is still a response.
    """
    if "id" not in message:
        return MessageKind.NOTIFICATION
    if "method" in message:
        return MessageKind.REQUEST
    return MessageKind.RESPONSE


def preview(value: Any, limit: int = PREVIEW_LIMIT) -> str:
    try:
        text = json.dumps(value, default=str, ensure_ascii=False)
    except (TypeError, ValueError):
        text = repr(value)
    if len(text) > limit:
        return text[:limit] + "..."
    return text


def describe_outbound(message: ProtocolMessage) -> str:
    """One-line summary of a client -> engine message."""
    method = message.get("method")
    msg_id = message.get("id")
    params = message.get("params") or {}
    if not isinstance(params, dict):
        params = {}
    document = params.get("textDocument") or {}

    if method == "initialize":
        return (
            f"-> initialize ID={msg_id}: locale={params.get('locale')} "
            f"rootUri={params.get('rootUri')}"
        )
    if method == "textDocument/completion":
        position = params.get("position") or {}
        return (
            f"-> completion ID={msg_id} at line {position.get('line')}, "
            f"char {position.get('character')} in {document.get('uri')}"
        )
    if method == "textDocument/didChange":
        changes = params.get("contentChanges") or [{}]
        text = changes[0].get("text") if isinstance(changes[0], dict) else None
        return (
            f"-> didChange: version={document.get('version')}, "
            f"contentLen={len(text or '')}, uri={document.get('uri')}"
        )
    if method == "textDocument/didOpen":
        return f"-> didOpen: version={document.get('version')}, uri={document.get('uri')}"

    kind = message_kind(message)
    if kind is MessageKind.RESPONSE:
        return f"-> response ID={msg_id}"
    if kind is MessageKind.REQUEST:
        return f"-> request ID={msg_id}: {method}"
    return f"-> notification: {method}"


def describe_inbound(message: ProtocolMessage) -> str:
    """One-line summary of an engine -> client message."""
    kind = message_kind(message)
    msg_id = message.get("id")

    if kind is MessageKind.RESPONSE:
        if "error" in message:
            return f"<- error ID={msg_id}: {preview(message['error'])}"
        result = message.get("result")
        if isinstance(result, list):
            if not result:
                return f"<- response ID={msg_id}: empty array"
            first = result[0]
            if isinstance(first, dict) and "label" in first:
                shape = "completion items"
            elif isinstance(first, dict) and "range" in first and "target" in first:
                shape = "document links"
            else:
                shape = "items"
            return f"<- response ID={msg_id}: array with {len(result)} {shape}"
        if result is None:
            return f"<- response ID={msg_id}: null"
        if isinstance(result, dict):
            return f"<- response ID={msg_id}: object {preview(result)}"
        return f"<- response ID={msg_id}: {type(result).__name__}"

    if kind is MessageKind.REQUEST:
        return f"<- request ID={msg_id}: {message.get('method')}"
    return f"<- notification: {preview(message)}"
