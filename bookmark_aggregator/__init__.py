"""
Bookmark Aggregator

Collects bookmarks from browser profiles and bookmark files, filters them,
and renders them as Markdown, JSON, YAML, OPML or HTML, or serves them to MCP
clients over stdio.
"""

__version__ = "1.0.0"
__author__ = "Troy Davis"
