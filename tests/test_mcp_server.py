"""
Unit tests for the MCP server.

Drives the JSON-RPC loop with in-memory streams and fake sources.
"""

import io
import json
import threading

import pytest

from bookmark_aggregator import __version__
from bookmark_aggregator.core.mcp import BookmarkMCPServer
from bookmark_aggregator.core.mcp.messages import (
    CallToolParams,
    SearchArguments,
    parse_params,
    tool_definitions,
)
from bookmark_aggregator.core.pipeline import PipelineOrchestrator
from bookmark_aggregator.utils.error_handler import InvalidParamsError
from tests.fixtures.fake_adapters import FakeRenderer, FakeSource


def request(method, params=None, request_id=1):
    message = {"jsonrpc": "2.0", "id": request_id, "method": method}
    if params is not None:
        message["params"] = params
    return message


@pytest.fixture
def server(orchestrator):
    return BookmarkMCPServer(orchestrator)


def run_lines(server, lines):
    """Feed lines through server.run and return the decoded responses."""
    server.input_stream = io.StringIO("".join(line + "\n" for line in lines))
    server.output_stream = io.StringIO()
    server.run()
    return [json.loads(line) for line in server.output_stream.getvalue().splitlines()]


class TestProtocolMethods:
    """Test the supported JSON-RPC methods."""

    def test_initialize(self, server):
        response = server.handle_request(request("initialize", {}))

        result = response["result"]
        assert response["jsonrpc"] == "2.0"
        assert response["id"] == 1
        assert result["protocolVersion"] == "2024-11-05"
        assert result["serverInfo"] == {"name": "bookmark-aggregator", "version": __version__}

    def test_ping(self, server):
        assert server.handle_request(request("ping"))["result"] == {}

    def test_unknown_method(self, server):
        response = server.handle_request(request("bookmarks/delete"))

        assert response["error"]["code"] == -32601
        assert "result" not in response

    def test_resources_list(self, server, fake_registry):
        fake_registry.register_source("safari", FakeSource("safari", available=False))

        resources = server.handle_request(request("resources/list"))["result"]["resources"]

        assert [r["uri"] for r in resources] == [
            "bookmarks://all",
            "bookmarks://markdown",
            "bookmarks://chrome",
            "bookmarks://firefox",
        ]
        assert resources[1]["mimeType"] == "text/markdown"

    def test_read_all_resource(self, server):
        response = server.handle_request(request("resources/read", {"uri": "bookmarks://all"}))

        content = response["result"]["contents"][0]
        assert content["uri"] == "bookmarks://all"
        assert content["mimeType"] == "application/json"
        data = json.loads(content["text"])
        assert data["metadata"]["total"] == 5

    def test_read_markdown_resource(self, server):
        response = server.handle_request(
            request("resources/read", {"uri": "bookmarks://markdown"})
        )

        content = response["result"]["contents"][0]
        assert content["mimeType"] == "text/markdown"
        assert content["text"].startswith("# Browser Bookmarks")

    def test_read_source_resource(self, server):
        response = server.handle_request(
            request("resources/read", {"uri": "bookmarks://firefox"})
        )

        data = json.loads(response["result"]["contents"][0]["text"])
        assert [b["url"] for b in data["bookmarks"]] == [
            "https://mozilla.org",
            "https://python.org",
        ]
        assert [s["name"] for s in data["metadata"]["sources"]] == ["firefox"]

    def test_read_unknown_resource(self, server):
        response = server.handle_request(
            request("resources/read", {"uri": "bookmarks://netscape"})
        )

        assert response["error"]["code"] == -32602

    @pytest.mark.parametrize("params", [None, [], {"uri": 42}, {}])
    def test_read_invalid_params(self, server, params):
        response = server.handle_request(request("resources/read", params))

        assert response["error"]["code"] == -32602

    def test_tools_list(self, server):
        tools = server.handle_request(request("tools/list"))["result"]["tools"]

        assert [t["name"] for t in tools] == ["sync_bookmarks", "search_bookmarks"]
        assert tools[1]["inputSchema"]["required"] == ["query"]


class TestTools:
    """Test tools/call."""

    def test_search(self, server):
        response = server.handle_request(
            request("tools/call", {"name": "search_bookmarks", "arguments": {"query": "PYTHON"}})
        )

        text = response["result"]["content"][0]["text"]
        header, listing = text.split("\n", 1)
        assert header == "Found 3 matches:"
        assert json.loads(listing) == [
            {"title": "Python", "url": "https://python.org"},
            {"title": "Python Docs", "url": "https://docs.python.org/3/"},
            {"title": "Python (again)", "url": "https://python.org"},
        ]

    def test_search_matches_urls(self, server):
        matches = server.search("ycombinator")

        assert [m.title for m in matches] == ["Hacker News"]

    def test_search_no_matches(self, server):
        response = server.handle_request(
            request("tools/call", {"name": "search_bookmarks", "arguments": {"query": "zzz"}})
        )

        assert response["result"]["content"][0]["text"] == "Found 0 matches:\n[]"

    @pytest.mark.parametrize("arguments", [None, {}, {"query": 7}])
    def test_search_requires_string_query(self, server, arguments):
        params = {"name": "search_bookmarks"}
        if arguments is not None:
            params["arguments"] = arguments

        response = server.handle_request(request("tools/call", params))

        assert response["error"]["code"] == -32602

    def test_sync_refreshes_cache(self, server, chrome_source):
        server.get_collection()
        chrome_source.bookmarks.append(("https://new.example", "New", []))

        response = server.handle_request(request("tools/call", {"name": "sync_bookmarks"}))

        assert response["result"]["content"][0]["text"] == "Synced 6 bookmarks from 2 sources"
        assert len(server.get_collection()) == 6

    def test_unknown_tool(self, server):
        response = server.handle_request(request("tools/call", {"name": "delete_everything"}))

        assert response["error"]["code"] == -32602


class TestCache:
    """Test lazy loading and caching."""

    def test_loaded_once(self, server, chrome_source):
        assert not server.cache_populated

        server.get_collection()
        server.get_collection()
        server.search("python")

        assert server.cache_populated
        assert chrome_source.read_count == 1

    def test_invalidate(self, server, chrome_source):
        server.get_collection()
        server.invalidate_cache()

        assert not server.cache_populated
        server.get_collection()
        assert chrome_source.read_count == 2

    def test_concurrent_first_use_reads_once(self, server, chrome_source):
        threads = [threading.Thread(target=server.get_collection) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=5)

        assert chrome_source.read_count == 1


class TestRequestLoop:
    """Test framing, notifications and error isolation."""

    def test_one_response_per_request(self, server):
        responses = run_lines(
            server,
            [
                json.dumps(request("initialize", {}, 1)),
                json.dumps(request("ping", None, 2)),
            ],
        )

        assert [r["id"] for r in responses] == [1, 2]

    def test_malformed_frames_skipped(self, server):
        responses = run_lines(
            server,
            ["{not json", "", "[1, 2]", '{"id": 5}', json.dumps(request("ping", None, 3))],
        )

        assert [r["id"] for r in responses] == [3]

    def test_invalid_utf8_frame_skipped(self, server):
        ping = json.dumps(request("ping", None, 7)).encode("utf-8")
        server.input_stream = io.TextIOWrapper(
            io.BytesIO(b"\xff\xfe garbage\n" + ping + b"\n"), encoding="utf-8"
        )
        server.output_stream = io.StringIO()

        server.run()

        responses = [json.loads(line) for line in server.output_stream.getvalue().splitlines()]
        assert [r["id"] for r in responses] == [7]

    def test_deeply_nested_frame_skipped(self, server):
        responses = run_lines(server, ["[" * 200000, json.dumps(request("ping", None, 8))])

        assert [r["id"] for r in responses] == [8]

    def test_notifications_not_answered(self, server):
        responses = run_lines(
            server,
            [
                json.dumps({"jsonrpc": "2.0", "method": "notifications/initialized"}),
                json.dumps({"jsonrpc": "2.0", "method": "ping"}),
                json.dumps(request("ping", None, "abc")),
            ],
        )

        assert [r["id"] for r in responses] == ["abc"]

    def test_internal_error_keeps_loop_alive(self, fake_registry):
        fake_registry.register_renderer("json", FakeRenderer("json", fail=True))
        server = BookmarkMCPServer(PipelineOrchestrator(fake_registry))

        responses = run_lines(
            server,
            [
                json.dumps(request("resources/read", {"uri": "bookmarks://all"}, 1)),
                json.dumps(request("ping", None, 2)),
            ],
        )

        assert responses[0]["error"]["code"] == -32603
        assert responses[1] == {"jsonrpc": "2.0", "id": 2, "result": {}}

    def test_unexpected_exception_becomes_internal_error(self, server, monkeypatch):
        def explode(params):
            raise RuntimeError("boom")

        monkeypatch.setitem(server._handlers, "ping", explode)

        response = server.handle_request(request("ping"))

        assert response["error"]["code"] == -32603

    def test_cancel_stops_loop(self, server):
        cancel = threading.Event()
        cancel.set()
        server.input_stream = io.StringIO(json.dumps(request("ping")) + "\n")
        server.output_stream = io.StringIO()

        server.run(cancel)

        assert server.output_stream.getvalue() == ""


class TestMessages:
    """Test parameter validation helpers."""

    def test_parse_params_ignores_extra_fields(self):
        params = parse_params(CallToolParams, {"name": "x", "extra": 1})

        assert params.name == "x"
        assert params.arguments is None

    def test_parse_params_rejects_non_object(self):
        with pytest.raises(InvalidParamsError):
            parse_params(SearchArguments, "python")

    def test_tool_definitions_describe_query(self):
        search = tool_definitions()[1]

        assert search["inputSchema"]["properties"]["query"]["type"] == "string"
