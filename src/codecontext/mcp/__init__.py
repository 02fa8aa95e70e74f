#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
MCP server module
Stdio framing, JSON-RPC dispatch, the tool catalog and the server loop
"""

from .framing import FrameCodec, FramingMode, FramingError
from .dispatcher import RpcDispatcher, RpcRequest, MethodError
from .tools import TOOLS, ToolHandlers
from .server import MCPServer, main

__all__ = [
    'FrameCodec',
    'FramingMode',
    'FramingError',
    'RpcDispatcher',
    'RpcRequest',
    'MethodError',
    'TOOLS',
    'ToolHandlers',
    'MCPServer',
    'main',
]
