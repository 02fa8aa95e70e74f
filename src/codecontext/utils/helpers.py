#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Common utility functions
Provides logging setup and timestamp conversion helpers
"""

import logging
import re
import sys
from datetime import datetime, timezone
from typing import Any, Optional


LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

# RFC 3339 fractional seconds may carry nanoseconds; datetime keeps microseconds
_FRACTION_RE = re.compile(r'(\.\d{6})\d+')


def setup_logging(verbose: bool = False) -> logging.Logger:
    """
    Setup logging system

    Standard output carries the JSON-RPC transport, so every record goes to
    standard error.

    Args:
        verbose: Whether to enable verbose logging mode

    Returns:
        Configured logger object
    """
    log_level = logging.DEBUG if verbose else logging.INFO

    formatter = logging.Formatter(LOG_FORMAT, datefmt='%Y-%m-%d %H:%M:%S')

    logger = logging.getLogger('codecontext')
    logger.setLevel(log_level)

    # Avoid duplicate handlers
    if not logger.handlers:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(log_level)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)
    else:
        for handler in logger.handlers:
            handler.setLevel(log_level)

    return logger


def utc_now() -> datetime:
    """Current wall-clock time as an aware UTC datetime"""
    return datetime.now(timezone.utc)


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse an RFC 3339 timestamp into an aware UTC datetime

    Args:
        value: Timestamp string (``2025-10-25T00:00:00Z``), datetime or None

    Returns:
        Parsed datetime, None when value is empty

    Raises:
        ValueError: If the value is not a valid timestamp
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith(('Z', 'z')):
            text = text[:-1] + '+00:00'
        text = _FRACTION_RE.sub(r'\1', text)
        dt = datetime.fromisoformat(text)
    else:
        raise ValueError(f"Invalid timestamp: {value!r}")

    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def format_timestamp(dt: datetime) -> str:
    """Format a datetime as RFC 3339 with a ``Z`` suffix"""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat().replace('+00:00', 'Z')


def truncate_text(text: str, max_length: int = 100) -> str:
    """Shorten text for log output"""
    if len(text) <= max_length:
        return text
    return text[:max_length] + "..."
