import os
from dataclasses import dataclass
from functools import lru_cache
from typing import List, Optional

from dotenv import dotenv_values, load_dotenv

DOTENV_PATH = ".env"

load_dotenv(DOTENV_PATH)

DEFAULT_LOCATION = "us-central1"
DEFAULT_MODEL = "google/gemini-1.5-flash-001"
DEFAULT_PORT = 7000
DEFAULT_TOOL_CALL_TIMEOUT = 20.0
DEFAULT_MAX_HISTORY_MESSAGES = 40


def require_env(key: str) -> str:
    value = os.getenv(key)
    if not value:
        raise RuntimeError(f"Environment variable {key} is not set")
    return value


def vertex_openai_base_url(project_id: str, location: str) -> str:
    """Vertex AI's OpenAI-compatible chat completions endpoint for a project."""
    return (
        f"https://{location}-aiplatform.googleapis.com/v1/projects/{project_id}"
        f"/locations/{location}/endpoints/openapi"
    )


def resolve_tavily_key(dotenv_path: str = DOTENV_PATH) -> Optional[str]:
    """The local .env file wins over the process environment."""
    key = dotenv_values(dotenv_path).get("TAVILY_API_KEY")
    if not key:
        key = os.getenv("TAVILY_API_KEY")
    return key or None


@dataclass(frozen=True)
class Settings:
    project_id: str
    location: str
    model: str
    api_base: str
    api_key: Optional[str]
    port: int
    news_server_command: str
    news_server_args: List[str]
    tool_call_timeout: float
    max_history_messages: int = DEFAULT_MAX_HISTORY_MESSAGES


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    project_id = require_env("GOOGLE_PROJECT_ID")
    location = os.getenv("GOOGLE_LOCATION", DEFAULT_LOCATION)
    return Settings(
        project_id=project_id,
        location=location,
        model=os.getenv("LLM_MODEL", DEFAULT_MODEL),
        api_base=os.getenv("LLM_API_BASE") or vertex_openai_base_url(project_id, location),
        api_key=os.getenv("LLM_API_KEY") or os.getenv("OPENAI_API_KEY"),
        port=int(os.getenv("PORT", str(DEFAULT_PORT))),
        news_server_command=os.getenv("NEWS_SERVER_COMMAND", "python"),
        news_server_args=os.getenv("NEWS_SERVER_ARGS", "mcp_server.py").split(),
        tool_call_timeout=float(os.getenv("TOOL_CALL_TIMEOUT", str(DEFAULT_TOOL_CALL_TIMEOUT))),
        max_history_messages=int(os.getenv("MAX_HISTORY_MESSAGES", str(DEFAULT_MAX_HISTORY_MESSAGES))),
    )


LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
