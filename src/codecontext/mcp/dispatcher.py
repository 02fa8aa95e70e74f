#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
JSON-RPC dispatcher
Parses one request envelope, routes it to a method handler and builds the response
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional, Union

from mcp.types import ErrorData, INTERNAL_ERROR, PARSE_ERROR
from pydantic import BaseModel


JSONRPC_VERSION = "2.0"

RequestId = Union[str, int, None]
MethodHandler = Callable[[Optional[Dict[str, Any]]], Awaitable[Any]]


class MethodError(Exception):
    """Handler-level failure reported to the client as an internal error"""


@dataclass
class RpcRequest:
    """Request envelope; params stay untyped until a handler unpacks them"""
    method: str
    id: RequestId = None
    params: Optional[Dict[str, Any]] = None

    @property
    def is_notification(self) -> bool:
        return self.id is None and self.method.startswith('notifications/')

    @classmethod
    def parse(cls, raw: str) -> 'RpcRequest':
        """
        Parse a message body

        Raises:
            ValueError: If the body is not a JSON-RPC request object
        """
        data = json.loads(raw)
        if not isinstance(data, dict):
            raise ValueError("request must be a JSON object")

        method = data.get('method')
        if not isinstance(method, str):
            raise ValueError("missing field `method`")

        request_id = data.get('id')
        if request_id is not None and (isinstance(request_id, bool) or not isinstance(request_id, (str, int))):
            raise ValueError("`id` must be a string or an integer")

        params = data.get('params')
        if params is not None and not isinstance(params, dict):
            raise ValueError("`params` must be an object")

        return cls(method=method, id=request_id, params=params)


class RpcDispatcher:
    """
    Sequential JSON-RPC dispatcher

    Args:
        methods: Method name -> async handler taking the request params
    """

    def __init__(self, methods: Dict[str, MethodHandler]):
        self.methods = methods
        self.logger = logging.getLogger('codecontext.dispatcher')

    async def dispatch(self, raw: str) -> Optional[Dict[str, Any]]:
        """
        Handle one message body

        Args:
            raw: Message text as read from the transport

        Returns:
            Response object, or None for notifications
        """
        try:
            request = RpcRequest.parse(raw)
        except ValueError as e:
            # json.JSONDecodeError is a ValueError
            self.logger.warning(f"Failed to parse request: {e}")
            return self._error(None, PARSE_ERROR, "Parse error", {"error": str(e)})

        if request.is_notification:
            self.logger.debug(f"Received notification: {request.method}, ignoring")
            return None

        self.logger.info(f"Handling method: {request.method}")

        handler = self.methods.get(request.method)
        if handler is None:
            return self._error(request.id, INTERNAL_ERROR, f"Unknown method: {request.method}")

        try:
            result = await handler(request.params)
        except MethodError as e:
            self.logger.info(f"Method {request.method} failed: {e}")
            return self._error(request.id, INTERNAL_ERROR, str(e))
        except Exception as e:
            self.logger.exception(f"Unexpected error in method {request.method}")
            return self._error(request.id, INTERNAL_ERROR, f"Internal error: {e}")

        if isinstance(result, BaseModel):
            result = result.model_dump(by_alias=True, exclude_none=True, mode='json')

        return {"jsonrpc": JSONRPC_VERSION, "id": request.id, "result": result}

    def _error(self, request_id: RequestId, code: int, message: str,
               data: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        error = ErrorData(code=code, message=message, data=data)
        return {
            "jsonrpc": JSONRPC_VERSION,
            "id": request_id,
            "error": error.model_dump(exclude_none=True),
        }
