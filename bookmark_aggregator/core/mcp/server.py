"""
MCP server over stdio.

Reads one JSON-RPC 2.0 message per line from the input stream and writes
one response per line to the output stream. Bookmarks are read lazily on
first use and cached until the ``sync_bookmarks`` tool refreshes them.
"""

import json
import logging
import sys
import threading
from typing import IO, Any, Callable, Dict, List, Optional

from ... import __version__
from ...utils.error_handler import (
    AggregatorError,
    InvalidParamsError,
    MethodNotFoundError,
    ProtocolError,
    ProtocolInternalError,
)
from ...utils.locking import ReadWriteLock
from ..data_models import BookmarkRecord, Collection, RenderOptions
from ..data_sources.protocol import is_cancelled
from ..exporters.json_renderer import bookmarks_to_list
from ..pipeline import PipelineOrchestrator
from ..registry import AdapterRegistry
from .messages import (
    MIME_JSON,
    MIME_MARKDOWN,
    PROTOCOL_VERSION,
    TOOL_SEARCH,
    TOOL_SYNC,
    URI_ALL,
    URI_MARKDOWN,
    URI_SCHEME,
    CallToolParams,
    ReadResourceParams,
    SearchArguments,
    error_response,
    parse_params,
    source_uri,
    success_response,
    text_content,
    tool_definitions,
)

SERVER_NAME = "bookmark-aggregator"


class BookmarkMCPServer:
    """
    JSON-RPC request loop exposing bookmarks as MCP resources and tools.

    Example:
        >>> server = BookmarkMCPServer(PipelineOrchestrator(registry), registry)
        >>> server.run()  # until stdin reaches end of input
    """

    def __init__(
        self,
        orchestrator: PipelineOrchestrator,
        registry: Optional[AdapterRegistry] = None,
        input_stream: Optional[IO[str]] = None,
        output_stream: Optional[IO[str]] = None,
    ):
        """
        Initialize the server.

        Args:
            orchestrator: Used to read every source and to render resources
            registry: Registry listing the sources (defaults to the
                orchestrator's)
            input_stream: Request stream (defaults to stdin)
            output_stream: Response stream (defaults to stdout)
        """
        self.orchestrator = orchestrator
        self.registry = registry or orchestrator.registry
        self.input_stream = input_stream if input_stream is not None else sys.stdin
        self.output_stream = output_stream if output_stream is not None else sys.stdout
        self.logger = logging.getLogger(__name__)

        self._cache: Optional[Collection] = None
        self._cache_lock = ReadWriteLock()
        self._cancel: Optional[threading.Event] = None

        self._handlers: Dict[str, Callable[[Any], Any]] = {
            "initialize": self._handle_initialize,
            "ping": self._handle_ping,
            "resources/list": self._handle_resources_list,
            "resources/read": self._handle_resources_read,
            "tools/list": self._handle_tools_list,
            "tools/call": self._handle_tools_call,
        }

    # ------------------------------------------------------------------
    # Request loop
    # ------------------------------------------------------------------

    def run(self, cancel: Optional[threading.Event] = None) -> None:
        """
        Serve requests until end of input or until ``cancel`` is set.

        Args:
            cancel: Optional event that stops the loop and any pending read
        """
        self._cancel = cancel
        # Undecodable bytes become U+FFFD so the frame fails as malformed JSON
        if hasattr(self.input_stream, "reconfigure"):
            self.input_stream.reconfigure(errors="replace")
        self.logger.info("MCP server ready on stdio")

        while not is_cancelled(cancel):
            line = self.input_stream.readline()
            if not line:
                break
            response = self.handle_line(line)
            if response is not None:
                self._write(response)

        self.logger.info("MCP server stopped")

    def handle_line(self, line: str) -> Optional[Dict[str, Any]]:
        """
        Handle one framed message.

        Returns:
            The response, or None for blank lines, malformed frames and
            notifications
        """
        line = line.strip()
        if not line:
            return None
        try:
            message = json.loads(line)
        except (ValueError, RecursionError) as e:
            self.logger.warning(f"Skipping malformed frame: {type(e).__name__}: {e}")
            return None
        if not isinstance(message, dict) or not isinstance(message.get("method"), str):
            self.logger.warning("Skipping frame without a method")
            return None
        return self.handle_request(message)

    def handle_request(self, message: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """
        Dispatch a decoded request.

        Messages without an ``id`` are notifications: they are dispatched
        but never answered.
        """
        method = message["method"]
        is_notification = "id" not in message
        request_id = message.get("id")

        handler = self._handlers.get(method)
        try:
            if handler is None:
                raise MethodNotFoundError(f"method not found: {method}")
            result = handler(message.get("params"))
        except ProtocolError as e:
            if is_notification:
                self.logger.debug(f"Ignoring notification {method}: {e.message}")
                return None
            self.logger.debug(f"Request {method} failed: {e.message}")
            return error_response(request_id, e)
        except Exception as e:
            # A failing request must not stop the loop
            self.logger.error(f"Unexpected error handling {method}: {e}", exc_info=True)
            if is_notification:
                return None
            return error_response(request_id, ProtocolInternalError(f"internal error: {e}"))

        if is_notification:
            return None
        return success_response(request_id, result)

    def _write(self, response: Dict[str, Any]) -> None:
        self.output_stream.write(json.dumps(response, ensure_ascii=False) + "\n")
        self.output_stream.flush()

    # ------------------------------------------------------------------
    # Cache
    # ------------------------------------------------------------------

    def get_collection(self) -> Collection:
        """Return the cached collection, reading every source on first use."""
        with self._cache_lock.read():
            if self._cache is not None:
                return self._cache
        with self._cache_lock.write():
            if self._cache is None:
                self._cache = self._load()
            return self._cache

    def invalidate_cache(self) -> None:
        with self._cache_lock.write():
            self._cache = None

    def refresh_cache(self) -> Collection:
        """Discard the cached collection and read every source again."""
        with self._cache_lock.write():
            self._cache = None
            self._cache = self._load()
            return self._cache

    @property
    def cache_populated(self) -> bool:
        with self._cache_lock.read():
            return self._cache is not None

    def _load(self) -> Collection:
        try:
            collection = self.orchestrator.read_all(self._cancel)
        except AggregatorError as e:
            raise ProtocolInternalError(f"failed to read bookmarks: {e}")
        self.logger.info(
            f"Loaded {len(collection)} bookmarks from {len(collection.sources)} source(s)"
        )
        return collection

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    def _handle_initialize(self, params: Any) -> Dict[str, Any]:
        return {
            "protocolVersion": PROTOCOL_VERSION,
            "serverInfo": {"name": SERVER_NAME, "version": __version__},
            "capabilities": {"resources": {}, "tools": {}},
        }

    def _handle_ping(self, params: Any) -> Dict[str, Any]:
        return {}

    def _handle_resources_list(self, params: Any) -> Dict[str, Any]:
        resources: List[Dict[str, str]] = [
            {
                "uri": URI_ALL,
                "name": "All Bookmarks",
                "description": "Bookmarks from every available source as JSON",
                "mimeType": MIME_JSON,
            },
            {
                "uri": URI_MARKDOWN,
                "name": "Bookmarks (Markdown)",
                "description": "Bookmarks from every available source as Markdown",
                "mimeType": MIME_MARKDOWN,
            },
        ]
        for source in self.registry.available_sources():
            resources.append(
                {
                    "uri": source_uri(source.name),
                    "name": f"{source.display_name} Bookmarks",
                    "description": f"Bookmarks from {source.display_name}",
                    "mimeType": MIME_JSON,
                }
            )
        return {"resources": resources}

    def _handle_resources_read(self, params: Any) -> Dict[str, Any]:
        uri = parse_params(ReadResourceParams, params).uri

        if uri == URI_MARKDOWN:
            renderer_name, mime_type = "markdown", MIME_MARKDOWN
            collection = self.get_collection()
        elif uri == URI_ALL:
            renderer_name, mime_type = "json", MIME_JSON
            collection = self.get_collection()
        elif uri.startswith(URI_SCHEME) and self.registry.has_source(uri[len(URI_SCHEME):]):
            renderer_name, mime_type = "json", MIME_JSON
            collection = self.get_collection().for_source(uri[len(URI_SCHEME):].lower())
        else:
            raise InvalidParamsError(f"unknown resource: {uri}")

        try:
            output = self.orchestrator.render(collection, renderer_name, RenderOptions.default())
        except AggregatorError as e:
            raise ProtocolInternalError(f"failed to render {uri}: {e}")

        return {
            "contents": [
                {"uri": uri, "mimeType": mime_type, "text": output.decode("utf-8")}
            ]
        }

    def _handle_tools_list(self, params: Any) -> Dict[str, Any]:
        return {"tools": tool_definitions()}

    def _handle_tools_call(self, params: Any) -> Dict[str, Any]:
        call = parse_params(CallToolParams, params)
        arguments = call.arguments or {}

        if call.name == TOOL_SYNC:
            collection = self.refresh_cache()
            return text_content(
                f"Synced {len(collection)} bookmarks from {len(collection.sources)} sources"
            )

        if call.name == TOOL_SEARCH:
            query = parse_params(SearchArguments, arguments).query
            matches = self.search(query)
            listing = json.dumps(bookmarks_to_list(matches), indent=2, ensure_ascii=False)
            return text_content(f"Found {len(matches)} matches:\n{listing}")

        raise InvalidParamsError(f"unknown tool: {call.name}")

    def search(self, query: str) -> List[BookmarkRecord]:
        """Case-insensitive substring search over titles and URLs."""
        needle = query.lower()
        return [
            record
            for record in self.get_collection().bookmarks
            if needle in record.title.lower() or needle in record.url.lower()
        ]
