import logging
import threading
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from anyio import to_thread
import uvicorn
from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse
from fastapi.staticfiles import StaticFiles

from agent import Agent, build_agent
from config import LOG_LEVEL, get_settings

logger = logging.getLogger(__name__)

PUBLIC_DIR = Path(__file__).resolve().parent.parent / "public"

# one conversation for the whole process
_agent: Optional[Agent] = None
_agent_lock = threading.Lock()


def get_agent() -> Agent:
    global _agent
    with _agent_lock:
        if _agent is None:
            _agent = build_agent(get_settings())
        return _agent


@asynccontextmanager
async def lifespan(app: FastAPI):
    # fail at startup, not on the first request, when config is missing
    get_agent()
    logger.info("Clinware agent ready")
    yield


app = FastAPI(title="Clinware Intelligence Agent", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.post("/chat", response_class=PlainTextResponse)
async def chat(request: Request, agent: Agent = Depends(get_agent)):
    # invalid UTF-8 becomes U+FFFD rather than failing the request
    user_msg = (await request.body()).decode("utf-8", errors="replace")
    logger.info("User: %s", user_msg)
    try:
        # turns block on the model and the helper process
        return await to_thread.run_sync(agent.get_completion, user_msg)
    except Exception as exc:
        logger.exception("Chat turn failed")
        return f"Error: {exc}"


@app.get("/health")
def health():
    return {"ok": True}


app.mount("/", StaticFiles(directory=PUBLIC_DIR, html=True), name="public")


def run():
    logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    settings = get_settings()
    uvicorn.run(app, host="0.0.0.0", port=settings.port)


if __name__ == "__main__":
    run()
