#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
codecontext MCP Server Main Module
Serves project analysis and the pattern library to IDEs over stdio JSON-RPC,
using the official MCP SDK models for every result shape
"""

import argparse
import asyncio
import json
import logging
import sys
from typing import Any, BinaryIO, Dict, List, Optional

from mcp.types import (
    Implementation,
    InitializeResult,
    ListPromptsResult,
    ListResourcesResult,
    ListToolsResult,
    ServerCapabilities,
    ToolsCapability,
)

from .dispatcher import MethodError, RpcDispatcher
from .framing import FrameCodec, FramingError
from .tools import TOOLS, ToolHandlers
from ..storage import PatternStore, PatternStoreError
from ..utils.config import Config
from ..utils.helpers import setup_logging, truncate_text


# StreamReader line limit; line-delimited messages can carry large code samples
STREAM_LIMIT = 16 * 1024 * 1024


class MCPServer:
    """
    codecontext MCP Server

    Owns the configuration, the pattern store and the dispatcher. Requests
    are handled strictly one at a time, in arrival order.
    """

    def __init__(self, config: Optional[Config] = None):
        """
        Initialize MCP Server

        Args:
            config: Configuration object, uses default configuration when None
        """
        self.config = config or Config()
        self.logger = logging.getLogger('codecontext.mcp_server')

        self.patterns_path = self.config.get_patterns_path()
        self.store = PatternStore(self.patterns_path)
        self.tools = ToolHandlers(self.store, self.config)

        self.dispatcher = RpcDispatcher({
            "initialize": self._handle_initialize,
            "tools/list": self._handle_tools_list,
            "tools/call": self._handle_tools_call,
            "prompts/list": self._handle_prompts_list,
            "resources/list": self._handle_resources_list,
        })

        self.logger.info(f"codecontext MCP Server initialized (patterns: {self.patterns_path})")

    async def load_patterns(self) -> int:
        """
        Load the pattern library

        A corrupt pattern file is logged and the server continues with an
        empty store.

        Returns:
            Number of patterns loaded
        """
        try:
            return await asyncio.to_thread(self.store.load)
        except PatternStoreError as e:
            self.logger.error(f"Failed to load patterns, starting with an empty library: {e}")
            return 0

    # ==================== Methods ====================

    async def _handle_initialize(self, params: Optional[Dict[str, Any]]) -> InitializeResult:
        server = self.config.server
        return InitializeResult(
            protocolVersion=server.protocol_version,
            capabilities=ServerCapabilities(tools=ToolsCapability()),
            serverInfo=Implementation(name=server.name, version=server.version),
        )

    async def _handle_tools_list(self, params: Optional[Dict[str, Any]]) -> ListToolsResult:
        return ListToolsResult(tools=TOOLS)

    async def _handle_tools_call(self, params: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        if params is None:
            raise MethodError("Missing params")

        name = params.get("name")
        if not isinstance(name, str):
            raise MethodError("Missing tool name")

        arguments = params.get("arguments")
        if not isinstance(arguments, dict):
            arguments = {}

        return await self.tools.call(name, arguments)

    async def _handle_prompts_list(self, params: Optional[Dict[str, Any]]) -> ListPromptsResult:
        return ListPromptsResult(prompts=[])

    async def _handle_resources_list(self, params: Optional[Dict[str, Any]]) -> ListResourcesResult:
        return ListResourcesResult(resources=[])

    # ==================== Transport ====================

    async def serve(self, reader: asyncio.StreamReader, writer: BinaryIO) -> int:
        """
        Run the request loop until end of input

        Args:
            reader: Inbound byte stream
            writer: Outbound binary stream

        Returns:
            Exit status: 0 on end of input, 1 on a transport error
        """
        codec = FrameCodec(reader, writer)
        self.logger.info("Waiting for requests...")

        while True:
            try:
                raw = await codec.read_message()
            except FramingError as e:
                self.logger.error(f"Transport error, shutting down: {e}")
                return 1

            if raw is None:
                self.logger.info("stdin closed (EOF), shutting down")
                return 0

            self.logger.debug(f"Received request: {truncate_text(raw)}")
            response = await self.dispatcher.dispatch(raw)
            if response is None:
                continue

            try:
                codec.write_message(json.dumps(response, ensure_ascii=False))
            except OSError as e:
                self.logger.error(f"Error writing response, shutting down: {e}")
                return 1

    async def run(self) -> int:
        """Run MCP Server on stdin/stdout"""
        self.logger.info("Starting codecontext MCP Server on stdio transport...")
        await self.load_patterns()

        reader = asyncio.StreamReader(limit=STREAM_LIMIT)
        feeder = None
        loop = asyncio.get_running_loop()
        try:
            await loop.connect_read_pipe(lambda: asyncio.StreamReaderProtocol(reader), sys.stdin)
        except ValueError:
            # Regular files cannot be registered with the event loop
            feeder = asyncio.create_task(_feed_from_thread(reader, sys.stdin.buffer))

        try:
            return await self.serve(reader, sys.stdout.buffer)
        finally:
            if feeder is not None:
                feeder.cancel()


async def _feed_from_thread(reader: asyncio.StreamReader, source: BinaryIO):
    """Copy a blocking binary stream into a StreamReader"""
    while True:
        chunk = await asyncio.to_thread(source.read1, 65536)
        if not chunk:
            reader.feed_eof()
            return
        reader.feed_data(chunk)


async def run_server(config: Optional[Config] = None) -> int:
    """Start MCP Server"""
    server = MCPServer(config)
    return await server.run()


def main(argv: Optional[List[str]] = None) -> int:
    """MCP server entry point"""
    parser = argparse.ArgumentParser(
        prog='codecontext',
        description='Project analysis and code-pattern library served over MCP stdio',
    )
    parser.add_argument('--config', help='Path to a YAML configuration file')
    parser.add_argument('--patterns-path', help='Pattern storage directory (overrides all other sources)')
    parser.add_argument('-v', '--verbose', action='store_true', help='Enable debug logging')
    args = parser.parse_args(argv)

    setup_logging(args.verbose)

    config = Config(args.config)
    if args.patterns_path:
        config.patterns_path = args.patterns_path

    try:
        return asyncio.run(run_server(config))
    except KeyboardInterrupt:
        return 0


if __name__ == "__main__":
    sys.exit(main())
