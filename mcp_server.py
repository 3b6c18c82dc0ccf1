"""News search helper spoken to over stdio.

Reads one JSON-RPC 2.0 request per line from stdin and writes exactly one
response line per request to stdout. Supports ``tools/list`` and
``tools/call`` for the ``search_news`` tool. Logs go to stderr.
"""

import json
import logging
import sys
from typing import Any, Callable, Dict, Optional

from mcp import types

from mcp_client import SEARCH_NEWS, SEARCH_NEWS_SCHEMA
from tools.news_search import search_news

logger = logging.getLogger(__name__)

TOOL_FUNCTIONS: Dict[str, Callable[..., str]] = {
    SEARCH_NEWS: search_news,
}


def _result(request_id: Any, result: Dict[str, Any]) -> Dict[str, Any]:
    return types.JSONRPCResponse(jsonrpc="2.0", id=request_id, result=result).model_dump(
        mode="json", by_alias=True, exclude_none=True
    )


def _error(request_id: Any, code: int, message: str) -> Dict[str, Any]:
    # id stays null when the request could not be read
    return {
        "jsonrpc": "2.0",
        "id": request_id,
        "error": types.ErrorData(code=code, message=message).model_dump(mode="json", exclude_none=True),
    }


def _text_result(text: str, is_error: bool = False) -> Dict[str, Any]:
    result = types.CallToolResult(
        content=[types.TextContent(type="text", text=text)],
        isError=is_error,
    )
    return result.model_dump(mode="json", by_alias=True, exclude_none=True)


def handle_call_tool(params: Dict[str, Any]) -> Dict[str, Any]:
    tool_name = params.get("name")
    func = TOOL_FUNCTIONS.get(tool_name)
    if not func:
        raise LookupError(f"Unknown tool: {tool_name}")

    arguments = params.get("arguments") or {}
    query = arguments.get("query")
    if not isinstance(query, str):
        raise ValueError("Argument 'query' must be a string")

    try:
        text = func(query=query)
    except Exception as exc:
        logger.exception("Tool %s failed", tool_name)
        return _text_result(f"Tool execution failed: {exc}", is_error=True)

    if not text:
        # an empty content list tells the caller nothing was found
        return types.CallToolResult(content=[]).model_dump(mode="json", by_alias=True, exclude_none=True)
    return _text_result(text)


def handle_request(request: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """Dispatch one decoded JSON-RPC message; notifications get no response."""
    request_id = request.get("id")
    method = request.get("method")
    if request_id is None:
        return None

    params = request.get("params") or {}
    if method == "tools/list":
        return _result(request_id, {"tools": [SEARCH_NEWS_SCHEMA]})
    if method != "tools/call":
        return _error(request_id, types.METHOD_NOT_FOUND, f"Method not found: {method}")

    try:
        return _result(request_id, handle_call_tool(params))
    except LookupError as exc:
        return _error(request_id, types.INVALID_PARAMS, str(exc))
    except ValueError as exc:
        return _error(request_id, types.INVALID_PARAMS, str(exc))


def handle_line(line: str) -> Optional[Dict[str, Any]]:
    try:
        request = json.loads(line)
    except json.JSONDecodeError as exc:
        return _error(None, types.PARSE_ERROR, f"Parse error: {exc}")
    if not isinstance(request, dict):
        return _error(None, types.INVALID_REQUEST, "Request must be a JSON object")
    return handle_request(request)


def serve(stdin=None, stdout=None):
    stdin = stdin or sys.stdin
    stdout = stdout or sys.stdout
    for line in stdin:
        if not line.strip():
            continue
        response = handle_line(line)
        if response is None:
            continue
        stdout.write(json.dumps(response, ensure_ascii=False) + "\n")
        stdout.flush()


if __name__ == "__main__":
    logging.basicConfig(stream=sys.stderr, level=logging.WARNING)
    serve()
