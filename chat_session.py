import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from openai import OpenAI
from pydantic import BaseModel

logger = logging.getLogger(__name__)

# answer for tool calls the orchestrator chose not to run
SKIPPED_TOOL_CONTENT = "Tool not available."
DEFAULT_MAX_HISTORY_MESSAGES = 40


@dataclass
class TextPart:
    text: str


@dataclass
class FunctionCallPart:
    name: str
    arguments: Dict[str, Any]
    id: Optional[str] = None


ResponsePart = Union[TextPart, FunctionCallPart]


@dataclass
class ModelResponse:
    parts: List[ResponsePart] = field(default_factory=list)

    @property
    def text(self) -> str:
        return "".join(p.text for p in self.parts if isinstance(p, TextPart))

    @property
    def function_calls(self) -> List[FunctionCallPart]:
        return [p for p in self.parts if isinstance(p, FunctionCallPart)]


class ToolResponseEnvelope(BaseModel):
    """A tool's result on its way back to the model."""

    name: str
    content: str
    call_id: Optional[str] = None

    def payload(self) -> Dict[str, str]:
        return {"content": self.content}


class ChatSession:
    """Stateful conversation with an OpenAI-compatible chat model.

    Keeps the message history in-process and replays it on every request,
    so successive ``send_message`` calls continue one conversation. Once the
    history reaches ``max_history_messages`` the oldest whole turns are
    dropped; the system instruction is always kept.

    With a ``token_source`` the client's API key is refreshed before each
    request (short-lived Google access tokens).
    """

    def __init__(
        self,
        client: OpenAI,
        model: str,
        tools: Optional[List[Dict[str, Any]]] = None,
        system_instruction: Optional[str] = None,
        request_timeout: float = 30,
        max_history_messages: Optional[int] = DEFAULT_MAX_HISTORY_MESSAGES,
        token_source=None,
    ):
        self.client = client
        self.model = model
        self.tools = tools or []
        self.request_timeout = request_timeout
        self.max_history_messages = max_history_messages
        self.token_source = token_source
        self.messages: List[Dict[str, Any]] = []
        if system_instruction:
            self.messages.append({"role": "system", "content": system_instruction})
        self._pending_call_ids: List[str] = []

    def send_message(self, content: Union[str, ToolResponseEnvelope]) -> ModelResponse:
        if isinstance(content, ToolResponseEnvelope):
            self._close_pending_calls(answered=content)
        else:
            self._close_pending_calls()
            self._compact_history()
            self.messages.append({"role": "user", "content": content})

        if self.token_source is not None:
            self.client.api_key = self.token_source.current()

        kwargs: Dict[str, Any] = {}
        if self.tools:
            kwargs["tools"] = self.tools
        completion = self.client.chat.completions.create(
            model=self.model,
            messages=self.messages,
            stream=False,
            timeout=self.request_timeout,
            **kwargs,
        )
        msg = completion.choices[0].message
        self._record_assistant(msg)
        return self._to_response(msg)

    def _compact_history(self) -> None:
        # drop from the front a whole turn at a time so tool calls stay paired with their results
        if not self.max_history_messages:
            return
        head = self.messages[:1] if self.messages and self.messages[0]["role"] == "system" else []
        history = self.messages[len(head):]
        while history and len(history) >= self.max_history_messages:
            next_turn = next((i for i, m in enumerate(history) if i > 0 and m["role"] == "user"), len(history))
            history = history[next_turn:]
        self.messages[:] = head + history

    def _record_assistant(self, msg) -> None:
        tool_calls = msg.tool_calls or []
        entry: Dict[str, Any] = {"role": "assistant", "content": msg.content}
        if tool_calls:
            entry["tool_calls"] = [
                {
                    "id": call.id,
                    "type": "function",
                    "function": {
                        "name": call.function.name,
                        "arguments": call.function.arguments,
                    },
                }
                for call in tool_calls
            ]
        self.messages.append(entry)
        self._pending_call_ids = [call.id for call in tool_calls]

    def _close_pending_calls(self, answered: Optional[ToolResponseEnvelope] = None) -> None:
        # every tool call in history needs a matching tool message
        pending = self._pending_call_ids
        self._pending_call_ids = []
        if answered is not None:
            call_id = answered.call_id or (pending[0] if pending else None)
            self.messages.append(
                {
                    "role": "tool",
                    "tool_call_id": call_id,
                    "content": json.dumps(answered.payload(), ensure_ascii=False),
                }
            )
            pending = [cid for cid in pending if cid != call_id]
        for call_id in pending:
            logger.debug("Closing unanswered tool call %s", call_id)
            self.messages.append(
                {
                    "role": "tool",
                    "tool_call_id": call_id,
                    "content": json.dumps({"content": SKIPPED_TOOL_CONTENT}),
                }
            )

    @staticmethod
    def _to_response(msg) -> ModelResponse:
        parts: List[ResponsePart] = []
        if msg.content:
            parts.append(TextPart(msg.content))
        for call in msg.tool_calls or []:
            arguments = json.loads(call.function.arguments or "{}")
            parts.append(FunctionCallPart(name=call.function.name, arguments=arguments, id=call.id))
        return ModelResponse(parts=parts)
