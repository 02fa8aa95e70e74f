#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Test JSON-RPC request parsing and dispatch policy
"""

import asyncio
import pytest
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from codecontext.mcp.dispatcher import MethodError, RpcDispatcher, RpcRequest


class TestRpcRequest:

    def test_parse_request(self):
        request = RpcRequest.parse('{"jsonrpc":"2.0","id":3,"method":"tools/call","params":{"name":"x"}}')
        assert request.id == 3
        assert request.method == "tools/call"
        assert request.params == {"name": "x"}
        assert not request.is_notification

    def test_notification(self):
        request = RpcRequest.parse('{"jsonrpc":"2.0","method":"notifications/initialized"}')
        assert request.is_notification

    def test_request_without_id_outside_notifications(self):
        request = RpcRequest.parse('{"jsonrpc":"2.0","method":"tools/list"}')
        assert not request.is_notification

    @pytest.mark.parametrize("raw", [
        "not json",
        "[]",
        '{"jsonrpc":"2.0","id":1}',
        '{"jsonrpc":"2.0","id":1,"method":5}',
        '{"jsonrpc":"2.0","id":{"a":1},"method":"x"}',
        '{"jsonrpc":"2.0","id":1,"method":"x","params":[1,2]}',
    ])
    def test_invalid_envelopes(self, raw):
        with pytest.raises(ValueError):
            RpcRequest.parse(raw)


class TestRpcDispatcher:

    def setup_method(self):
        self.calls = []

        async def echo(params):
            self.calls.append(params)
            return {"echo": params}

        async def failing(params):
            raise MethodError("Missing framework")

        async def crashing(params):
            raise RuntimeError("boom")

        self.dispatcher = RpcDispatcher({
            "echo": echo,
            "failing": failing,
            "crashing": crashing,
        })

    def dispatch(self, raw):
        return asyncio.run(self.dispatcher.dispatch(raw))

    def test_result_echoes_id(self):
        response = self.dispatch('{"jsonrpc":"2.0","id":"abc","method":"echo","params":{"k":1}}')
        assert response == {"jsonrpc": "2.0", "id": "abc", "result": {"echo": {"k": 1}}}

    def test_parse_error(self):
        response = self.dispatch("{oops")
        assert response["id"] is None
        assert response["error"]["code"] == -32700
        assert response["error"]["message"] == "Parse error"
        assert "error" in response["error"]["data"]
        assert "result" not in response

    def test_notification_has_no_response(self):
        assert self.dispatch('{"jsonrpc":"2.0","method":"notifications/initialized"}') is None
        assert self.calls == []

    def test_unknown_method(self):
        response = self.dispatch('{"jsonrpc":"2.0","id":2,"method":"nope"}')
        assert response["id"] == 2
        assert response["error"]["code"] == -32603
        assert response["error"]["message"] == "Unknown method: nope"

    def test_unknown_notification_style_request_with_id(self):
        response = self.dispatch('{"jsonrpc":"2.0","id":9,"method":"notifications/cancelled"}')
        assert response["error"]["code"] == -32603

    def test_method_error(self):
        response = self.dispatch('{"jsonrpc":"2.0","id":4,"method":"failing"}')
        assert response["error"] == {"code": -32603, "message": "Missing framework"}

    def test_unexpected_exception_becomes_error(self):
        response = self.dispatch('{"jsonrpc":"2.0","id":5,"method":"crashing"}')
        assert response["error"]["code"] == -32603
        assert "boom" in response["error"]["message"]

    def test_missing_id_answered_with_null(self):
        response = self.dispatch('{"jsonrpc":"2.0","method":"echo"}')
        assert response["id"] is None
        assert response["result"] == {"echo": None}
