"""Tests for message shape classification and trace summaries."""

from __future__ import annotations

from enginebridge.transport.messages import (
    MessageKind,
    describe_inbound,
    describe_outbound,
    message_kind,
)


class TestMessageKind:
    def test_request(self) -> None:
        assert message_kind({"jsonrpc": "2.0", "id": 1, "method": "initialize"}) is MessageKind.REQUEST

    def test_response(self) -> None:
        assert message_kind({"jsonrpc": "2.0", "id": 1, "result": None}) is MessageKind.RESPONSE

    def test_error_response(self) -> None:
        message = {"jsonrpc": "2.0", "id": "a", "error": {"code": -32601, "message": "nope"}}
        assert message_kind(message) is MessageKind.RESPONSE

    def test_notification(self) -> None:
        assert message_kind({"jsonrpc": "2.0", "method": "initialized"}) is MessageKind.NOTIFICATION

    def test_id_zero_is_not_notification(self) -> None:
        """An id of 0 is a valid id."""
        assert message_kind({"id": 0, "method": "ping"}) is MessageKind.REQUEST

    def test_null_id_error_is_response(self) -> None:
        """A parse-error response carries a null id."""
        message = {"jsonrpc": "2.0", "id": None, "error": {"code": -32700, "message": "Parse error"}}
        assert message_kind(message) is MessageKind.RESPONSE
        assert describe_inbound(message).startswith("<- error ID=None")


class TestDescribe:
    """Trace summaries used for logging."""

    def test_completion_request(self) -> None:
        message = {
            "id": 4,
            "method": "textDocument/completion",
            "params": {
                "textDocument": {"uri": "file:///w/main.spx"},
                "position": {"line": 3, "character": 7},
            },
        }
        summary = describe_outbound(message)
        assert "completion ID=4" in summary
        assert "line 3, char 7" in summary
        assert "file:///w/main.spx" in summary

    def test_did_change_content_length(self) -> None:
        message = {
            "method": "textDocument/didChange",
            "params": {
                "textDocument": {"uri": "file:///w/a.spx", "version": 2},
                "contentChanges": [{"text": "hello"}],
            },
        }
        assert "contentLen=5" in describe_outbound(message)

    def test_completion_items_response(self) -> None:
        message = {"id": 4, "result": [{"label": "say"}, {"label": "turn"}]}
        assert describe_inbound(message) == "<- response ID=4: array with 2 completion items"

    def test_empty_and_null_results(self) -> None:
        assert describe_inbound({"id": 1, "result": []}) == "<- response ID=1: empty array"
        assert describe_inbound({"id": 2, "result": None}) == "<- response ID=2: null"

    def test_object_preview_truncated(self) -> None:
        summary = describe_inbound({"id": 1, "result": {"text": "x" * 500}})
        assert summary.endswith("...")
        assert len(summary) < 300
