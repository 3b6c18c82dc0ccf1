"""Chat session doubles shared by the test modules."""

from typing import Any, Dict, List, Union

from chat_session import FunctionCallPart, ModelResponse, TextPart, ToolResponseEnvelope


class ScriptedSession:
    """Chat session double that replays canned responses and records what it was sent."""

    def __init__(self, responses: List[ModelResponse]):
        self.responses = list(responses)
        self.sent: List[Union[str, ToolResponseEnvelope]] = []

    def send_message(self, content):
        self.sent.append(content)
        return self.responses.pop(0)


def text_response(text: str) -> ModelResponse:
    return ModelResponse(parts=[TextPart(text)])


def call_response(name: str, arguments: Dict[str, Any], call_id: str = "call_1") -> ModelResponse:
    return ModelResponse(parts=[FunctionCallPart(name=name, arguments=arguments, id=call_id)])
