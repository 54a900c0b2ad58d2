"""
JSON-RPC message helpers and MCP parameter models.

Incoming parameter payloads are validated with pydantic; a validation
failure becomes an InvalidParams error for the caller.
"""

from typing import Any, Dict, List, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field, StrictStr, ValidationError

from ...utils.error_handler import InvalidParamsError, ProtocolError

JSONRPC_VERSION = "2.0"
PROTOCOL_VERSION = "2024-11-05"

URI_SCHEME = "bookmarks://"
URI_ALL = URI_SCHEME + "all"
URI_MARKDOWN = URI_SCHEME + "markdown"

MIME_JSON = "application/json"
MIME_MARKDOWN = "text/markdown"

TOOL_SYNC = "sync_bookmarks"
TOOL_SEARCH = "search_bookmarks"

P = TypeVar("P", bound=BaseModel)


class ReadResourceParams(BaseModel):
    """Parameters of ``resources/read``."""

    model_config = ConfigDict(extra="ignore")

    uri: StrictStr


class CallToolParams(BaseModel):
    """Parameters of ``tools/call``."""

    model_config = ConfigDict(extra="ignore")

    name: StrictStr
    arguments: Optional[Dict[str, Any]] = None


class SearchArguments(BaseModel):
    """Arguments of the ``search_bookmarks`` tool."""

    model_config = ConfigDict(extra="ignore")

    query: StrictStr = Field(description="Text to look for in titles and URLs")


def parse_params(model: Type[P], params: Any) -> P:
    """
    Validate ``params`` against ``model``.

    Raises:
        InvalidParamsError: If ``params`` is not an object or fails validation
    """
    if not isinstance(params, dict):
        raise InvalidParamsError("params must be an object")
    try:
        return model.model_validate(params)
    except ValidationError as e:
        details = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'params'}: {err['msg']}"
            for err in e.errors()
        )
        raise InvalidParamsError(f"invalid params: {details}")


def success_response(request_id: Any, result: Any) -> Dict[str, Any]:
    return {"jsonrpc": JSONRPC_VERSION, "id": request_id, "result": result}


def error_response(request_id: Any, error: ProtocolError) -> Dict[str, Any]:
    return {
        "jsonrpc": JSONRPC_VERSION,
        "id": request_id,
        "error": {"code": error.code, "message": error.message},
    }


def text_content(text: str) -> Dict[str, Any]:
    """Tool result holding a single text item."""
    return {"content": [{"type": "text", "text": text}]}


def source_uri(name: str) -> str:
    return URI_SCHEME + name


def tool_definitions() -> List[Dict[str, Any]]:
    """Descriptors returned by ``tools/list``."""
    return [
        {
            "name": TOOL_SYNC,
            "description": "Re-read bookmarks from every available source",
            "inputSchema": {"type": "object", "properties": {}},
        },
        {
            "name": TOOL_SEARCH,
            "description": "Search bookmarks by title or URL (case-insensitive)",
            "inputSchema": {
                "type": "object",
                "properties": {
                    "query": {
                        "type": "string",
                        "description": SearchArguments.model_fields["query"].description,
                    }
                },
                "required": ["query"],
            },
        },
    ]
