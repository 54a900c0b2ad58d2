#!/usr/bin/env python3
"""
Bookmark Aggregator - Main Entry Point

Collects bookmarks from browser profiles and exported bookmark files and
renders them, or serves them to MCP clients.
"""

import sys

from bookmark_aggregator.cli import main

if __name__ == "__main__":
    sys.exit(main())
