# FastAPI application entry point for the Cube Brain service.
# Thin HTTP layer over the generation core: health, raw corpus, and reply generation.

from contextlib import asynccontextmanager
from typing import Optional
import os
import sys

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
from pydantic import BaseModel, Field

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from cubebrain import config
from cubebrain.errors import CorpusParseError, GenerationFailure
from cubebrain.pipeline import generate
from cubebrain.store import ModelStore
from cubebrain.watcher import CorpusWatcher, read_corpus

store = ModelStore()
watcher: Optional[CorpusWatcher] = None


def load_initial_corpus(path: str) -> None:
    """Load the corpus once at startup. Failures leave the empty snapshot in place."""
    try:
        store.reload(read_corpus(path))
    except OSError as e:
        print(f"[CORPUS] could not read {path}: {e}; starting with an empty brain")
    except CorpusParseError:
        print(f"[CORPUS] {path} is not a valid brain; starting with an empty brain")


@asynccontextmanager
async def lifespan(app: FastAPI):
    global watcher
    load_initial_corpus(config.CORPUS_PATH)
    if config.CORPUS_POLL_SECONDS > 0:
        watcher = CorpusWatcher(store, config.CORPUS_PATH, config.CORPUS_POLL_SECONDS)
        watcher.prime()
        watcher.start()
    yield
    if watcher is not None:
        watcher.stop()
        watcher = None


app = FastAPI(title="Cube Brain API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.ALLOWED_ORIGINS,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)


# ─────────────────────────────────────────
# REQUEST / RESPONSE MODELS
# ─────────────────────────────────────────

class GenerateRequest(BaseModel):
    prompt: str
    max_tokens: Optional[int] = Field(default=None, ge=1, le=500)

class CandidateOut(BaseModel):
    label: str
    text: str
    score: float

class GenerateResponse(BaseModel):
    intent: str
    candidates: list[CandidateOut]
    chosenIndex: int
    chosen: str


# ─────────────────────────────────────────
# ROUTES
# ─────────────────────────────────────────

@app.get("/health")
@app.get("/_health")
def health():
    snap = store.snapshot()
    return {
        "ok": True,
        "intents": len(snap.brain.intents),
        "transitions": snap.model.transition_count,
        "version": snap.version,
    }


@app.get("/brain")
def brain():
    """Serve the raw corpus document exactly as it sits on disk."""
    try:
        raw = read_corpus(config.CORPUS_PATH)
    except OSError as e:
        raise HTTPException(
            status_code=500,
            detail={"error": "Failed to load brain.json", "detail": str(e)},
        )
    return Response(content=raw, media_type="application/json")


@app.post("/generate", response_model=GenerateResponse)
def generate_reply(request: GenerateRequest):
    """
    Generate one reply from the current snapshot.
    The snapshot is taken once, so a reload mid-request doesn't affect this reply.
    """
    max_tokens = request.max_tokens or config.MAX_TOKENS
    try:
        result = generate(store.snapshot(), request.prompt, max_tokens)
    except GenerationFailure as e:
        print(f"[ERROR] {e}")
        raise HTTPException(
            status_code=500,
            detail={"error": "generation_failed", "message": str(e)},
        )
    return result.to_dict()


# ─────────────────────────────────────────
# RUN
# ─────────────────────────────────────────

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("cubebrain.main:app", host="0.0.0.0", port=config.PORT)
