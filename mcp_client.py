import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import anyio
from mcp import types  # type: ignore

from config import DEFAULT_TOOL_CALL_TIMEOUT, DOTENV_PATH, resolve_tavily_key

logger = logging.getLogger(__name__)

SEARCH_NEWS = "search_news"

# plain dict so the model-facing schema does not depend on mcp.types attributes
SEARCH_NEWS_SCHEMA: Dict[str, Any] = {
    "name": SEARCH_NEWS,
    "description": "Searches the internet for news about Clinware, funding, or competitors.",
    "inputSchema": {
        "type": "object",
        "properties": {"query": {"type": "string"}},
        "required": ["query"],
    },
}

NO_RESPONSE = "Error: No response from news search helper."
NO_NEWS = "No news found."
TIMED_OUT = "Error: News search timed out."


def to_openai_tool(tool: Dict[str, Any]) -> Dict[str, Any]:
    """Convert an MCP-style tool definition into an OpenAI tool schema."""
    params = tool.get("inputSchema") or {"type": "object", "properties": {}}
    if "type" not in params:
        params = {"type": "object", **params}
    return {
        "type": "function",
        "function": {
            "name": tool["name"],
            "description": tool.get("description") or "",
            "parameters": params,
        },
    }


def build_call_request(query: str) -> bytes:
    request = types.JSONRPCRequest(
        jsonrpc="2.0",
        id=1,
        method="tools/call",
        params={"name": SEARCH_NEWS, "arguments": {"query": query}},
    )
    return request.model_dump_json(by_alias=True, exclude_none=True).encode("utf-8") + b"\n"


def extract_text(line: Optional[str]) -> str:
    """Pull result.content[0].text out of one JSON-RPC response line."""
    if not line:
        return NO_RESPONSE
    response = json.loads(line)
    error = response.get("error")
    if isinstance(error, dict):
        return f"Error: {error.get('message') or 'news search failed'}"
    result = response.get("result")
    content = result.get("content") if isinstance(result, dict) else None
    if isinstance(content, list) and content:
        first = content[0]
        text = first.get("text") if isinstance(first, dict) else None
        if isinstance(text, str) and text:
            return text
    return NO_NEWS


class NewsSearchClient:
    """One-shot stdio bridge to the news search helper.

    Every call spawns a fresh helper process, writes a single ``tools/call``
    request line, reads a single response line and kills the process.
    Failures never raise; they come back as text for the model to read.
    """

    def __init__(
        self,
        command: str = "python",
        args: Optional[List[str]] = None,
        cwd: Optional[str | Path] = None,
        env: Optional[Dict[str, str]] = None,
        call_timeout: float = DEFAULT_TOOL_CALL_TIMEOUT,
        dotenv_path: str | Path = DOTENV_PATH,
    ):
        self.command = [command, *(args if args is not None else ["mcp_server.py"])]
        self.cwd = str(cwd or Path(__file__).resolve().parent)
        self.env = env
        self.call_timeout = call_timeout
        self.dotenv_path = str(dotenv_path)

    def search_news(self, query: str) -> str:
        logger.debug("Calling %s with query: %s", SEARCH_NEWS, query)
        try:
            line = anyio.run(self._exchange_once, build_call_request(query))
            text = extract_text(line)
        except TimeoutError:
            logger.warning("News search helper timed out after %ss", self.call_timeout)
            return TIMED_OUT
        except Exception as exc:
            logger.exception("News search helper failed")
            return f"Error: {exc}"

        logger.debug("%s -> %s%s", SEARCH_NEWS, text[:80], "..." if len(text) > 80 else "")
        return text

    def child_env(self) -> Dict[str, str]:
        env = dict(os.environ)
        if self.env:
            env.update(self.env)
        key = resolve_tavily_key(self.dotenv_path)
        if key:
            env["TAVILY_API_KEY"] = key
        return env

    async def _exchange_once(self, request: bytes) -> Optional[str]:
        process = await anyio.open_process(
            self.command,
            cwd=self.cwd,
            env=self.child_env(),
            stderr=None,
        )
        try:
            with anyio.fail_after(self.call_timeout):
                try:
                    await process.stdin.send(request)
                except (anyio.BrokenResourceError, BrokenPipeError, ConnectionResetError):
                    # helper exited before reading; whatever it printed is still readable
                    logger.debug("News search helper closed its stdin early")
                line = await _read_line(process.stdout)
        finally:
            try:
                process.kill()
            except ProcessLookupError:
                pass
            with anyio.CancelScope(shield=True):
                await process.aclose()
        return line


async def _read_line(stream) -> Optional[str]:
    buffer = b""
    while b"\n" not in buffer:
        try:
            buffer += await stream.receive()
        except anyio.EndOfStream:
            break
    line = buffer.split(b"\n", 1)[0].decode("utf-8").strip()
    return line or None
