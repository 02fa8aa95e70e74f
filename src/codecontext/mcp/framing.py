#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Stdio message framing

MCP clients frame JSON-RPC messages on stdio in one of two ways:

- Content-Length headers followed by a blank line and the exact body
- one JSON document per line

The codec detects the style from what the client sends. Once a
Content-Length header has been seen the session stays in that mode, and
every reply is framed the same way.
"""

import asyncio
import logging
from enum import Enum
from typing import BinaryIO, Optional


CONTENT_LENGTH = 'content-length:'


class FramingMode(Enum):
    """Framing state of a session"""
    UNKNOWN = "unknown"
    LINE_DELIMITED = "line-delimited"
    LENGTH_PREFIXED = "length-prefixed"


class FramingError(Exception):
    """Unrecoverable transport error; the session must end"""


class FrameCodec:
    """
    Reads and writes one framed message at a time

    Args:
        reader: Byte stream the client writes to (stdin)
        writer: Binary file-like object the replies go to (stdout)
    """

    def __init__(self, reader: asyncio.StreamReader, writer: BinaryIO):
        self.reader = reader
        self.writer = writer
        self.mode = FramingMode.UNKNOWN
        self.logger = logging.getLogger('codecontext.framing')

    async def read_message(self) -> Optional[str]:
        """
        Read the next message body

        Returns:
            Message text (not necessarily valid JSON), or None on end of input

        Raises:
            FramingError: On a bad header, invalid UTF-8 or end of input mid-message
        """
        while True:
            line = await self._read_line()
            if line is None:
                return None

            trimmed = line.strip()
            if not trimmed:
                continue

            if trimmed.lower().startswith(CONTENT_LENGTH):
                if self.mode != FramingMode.LENGTH_PREFIXED:
                    self.logger.debug("Client uses Content-Length framing")
                self.mode = FramingMode.LENGTH_PREFIXED
                return await self._read_framed_body(trimmed)

            if self.mode == FramingMode.UNKNOWN:
                self.mode = FramingMode.LINE_DELIMITED

            if not trimmed.startswith('{'):
                self.logger.warning(f"Unexpected line format, attempting to parse: {trimmed[:50]}")
            return trimmed

    async def _read_line(self) -> Optional[str]:
        try:
            raw = await self.reader.readline()
        except ValueError as e:
            # StreamReader limit overrun
            raise FramingError(f"Line too long: {e}") from e
        if not raw:
            return None
        try:
            return raw.decode('utf-8')
        except UnicodeDecodeError as e:
            raise FramingError(f"Invalid UTF-8 in input line: {e}") from e

    async def _read_framed_body(self, header: str) -> str:
        value = header.split(':', 1)[1].strip()
        try:
            length = int(value)
        except ValueError:
            raise FramingError(f"Invalid Content-Length value: {value!r}")
        if length < 0:
            raise FramingError(f"Invalid Content-Length value: {value!r}")

        # Remaining headers are ignored up to the blank separator line
        while True:
            line = await self._read_line()
            if line is None:
                raise FramingError("Unexpected end of input in message headers")
            if not line.strip():
                break

        try:
            body = await self.reader.readexactly(length)
        except asyncio.IncompleteReadError as e:
            raise FramingError(
                f"Unexpected end of input: expected {length} bytes, got {len(e.partial)}"
            ) from e

        try:
            return body.decode('utf-8')
        except UnicodeDecodeError as e:
            raise FramingError(f"Invalid UTF-8 in message body: {e}") from e

    def write_message(self, text: str):
        """
        Write one message in the session's framing style and flush

        Raises:
            OSError: If the output stream is closed (BrokenPipeError included)
        """
        body = text.encode('utf-8')
        if self.mode == FramingMode.LENGTH_PREFIXED:
            self.writer.write(f"Content-Length: {len(body)}\r\n\r\n".encode('ascii'))
            self.writer.write(body)
        else:
            self.writer.write(body + b"\n")
        self.writer.flush()
