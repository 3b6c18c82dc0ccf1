"""Shared fixtures: scripted chat sessions and stub helper processes."""

import sys
import textwrap
from pathlib import Path
from typing import Callable

import pytest

from helpers import ScriptedSession
from mcp_client import NewsSearchClient


@pytest.fixture
def scripted_session() -> Callable[..., ScriptedSession]:
    return lambda *responses: ScriptedSession(list(responses))


@pytest.fixture
def stub_helper(tmp_path: Path) -> Callable[[str], NewsSearchClient]:
    """Build a NewsSearchClient whose helper is a throwaway Python script."""

    def factory(body: str, **kwargs) -> NewsSearchClient:
        script = tmp_path / "helper.py"
        script.write_text(textwrap.dedent(body))
        kwargs.setdefault("dotenv_path", tmp_path / "missing.env")
        kwargs.setdefault("call_timeout", 10)
        return NewsSearchClient(command=sys.executable, args=[str(script)], cwd=tmp_path, **kwargs)

    return factory
