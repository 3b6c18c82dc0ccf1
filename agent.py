import logging
import threading
from typing import Any, Dict, List, Optional

from openai import OpenAI

from chat_session import ChatSession, FunctionCallPart, ModelResponse, ToolResponseEnvelope
from config import Settings, get_settings
from mcp_client import SEARCH_NEWS, SEARCH_NEWS_SCHEMA, NewsSearchClient, to_openai_tool
from vertex_auth import AccessToken

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are the Clinware Intelligence Agent. Use 'search_news' for questions about Clinware. "
    "If the tool returns no data, admit it. Do not hallucinate."
)


class ToolCallError(ValueError):
    """The model asked for a tool with arguments we cannot use."""


class Agent:
    """Drives one user turn through at most one news search.

    Turns are serialized: the chat session is a single shared history, so a
    second caller waits until the running turn has its final answer.
    """

    def __init__(
        self,
        session: ChatSession,
        news_client: Optional[NewsSearchClient] = None,
        verbose: bool = False,
    ):
        self.session = session
        self.news_client = news_client or NewsSearchClient()
        self.verbose = verbose
        self._lock = threading.Lock()

    def get_completion(self, prompt: str, return_details: bool = False):
        """Answer one user message.

        return_details=True returns a dict with the reply and the tool
        calls made during the turn.
        """
        with self._lock:
            content, tools, tool_results = self._run_turn(prompt)
        if return_details:
            return {"content": content, "tools": tools, "tool_results": tool_results}
        return content

    def _run_turn(self, prompt: str):
        tools: List[str] = []
        tool_results: List[str] = []

        response = self.session.send_message(prompt)
        call = self.find_tool_call(response)
        if call is None:
            return response.text, tools, tool_results

        query = extract_query(call)
        logger.info("Model calling %s with: %s", call.name, query)
        tools.append(call.name)

        result = self.news_client.search_news(query)
        tool_results.append(result)
        if self.verbose:
            preview = result if len(result) <= 2000 else result[:2000].rstrip() + "..."
            logger.info("Tool result: %s", preview)

        envelope = ToolResponseEnvelope(name=call.name, call_id=call.id, content=result)
        final = self.session.send_message(envelope)
        return final.text, tools, tool_results

    @staticmethod
    def find_tool_call(response: ModelResponse) -> Optional[FunctionCallPart]:
        for part in response.parts:
            if not isinstance(part, FunctionCallPart):
                continue
            if part.name == SEARCH_NEWS:
                return part
            # TODO: report unknown tool names back to the model instead of dropping them
            logger.warning("Ignoring call to unknown tool: %s", part.name)
        return None


def extract_query(call: FunctionCallPart) -> str:
    query = call.arguments.get("query")
    if not isinstance(query, str):
        raise ToolCallError(f"{call.name} needs a string 'query' argument, got {call.arguments!r}")
    return query


def build_session(settings: Settings) -> ChatSession:
    token_source = None
    api_key = settings.api_key
    if not api_key:
        # no static key: use Application Default Credentials against Vertex AI
        token_source = AccessToken()
        api_key = token_source.current()
    client = OpenAI(api_key=api_key, base_url=settings.api_base)
    return ChatSession(
        client=client,
        model=settings.model,
        tools=[to_openai_tool(SEARCH_NEWS_SCHEMA)],
        system_instruction=SYSTEM_PROMPT,
        max_history_messages=settings.max_history_messages,
        token_source=token_source,
    )


def build_agent(settings: Optional[Settings] = None, verbose: bool = False) -> Agent:
    settings = settings or get_settings()
    news_client = NewsSearchClient(
        command=settings.news_server_command,
        args=settings.news_server_args,
        call_timeout=settings.tool_call_timeout,
    )
    return Agent(session=build_session(settings), news_client=news_client, verbose=verbose)


def describe(details: Dict[str, Any]) -> str:
    if not details["tools"]:
        return details["content"]
    used = ", ".join(details["tools"])
    return f"[tools: {used}]\n{details['content']}"
