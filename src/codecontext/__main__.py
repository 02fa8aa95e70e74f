#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Allow ``python -m codecontext``"""

import sys

from .mcp.server import main

if __name__ == "__main__":
    sys.exit(main())
