"""
MCP (Model Context Protocol) server exposing aggregated bookmarks.
"""

from .server import BookmarkMCPServer

__all__ = ["BookmarkMCPServer"]
