#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Utility module
Configuration, constants, logging and timestamp helpers
"""

from .config import Config
from .helpers import setup_logging, utc_now, parse_timestamp, format_timestamp

__all__ = ['Config', 'setup_logging', 'utc_now', 'parse_timestamp', 'format_timestamp']
