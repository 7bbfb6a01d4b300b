import logging
import threading
import uuid

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config import settings
from log_setup import setup_logging
from models import (
    BatchIn,
    FrameEvaluation,
    FrameIn,
    SessionCreated,
    SessionStatus,
    StillEvaluation,
    StillImageIn,
)
from session import StreamSession, evaluate_still

setup_logging(settings)
logger = logging.getLogger(__name__)

app = FastAPI(title=settings.APP_NAME, version=settings.APP_VERSION)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# In-memory stream sessions; each entry owns its own smoothing state
sessions: dict[str, StreamSession] = {}
_sessions_lock = threading.Lock()


@app.exception_handler(Exception)
async def unhandled_exception(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "Unhandled exception for request: %s %s",
        request.method, request.url.path,
        exc_info=exc,
    )
    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal Server Error",
            "detail": "An unexpected error occurred on the server.",
        },
    )


def _get_session(session_id: str) -> StreamSession:
    session = sessions.get(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Session not found")
    return session


@app.get("/api/health")
def health():
    return {"status": "ok"}


def _evict_idle_sessions() -> None:
    # caller holds _sessions_lock
    for session_id, session in list(sessions.items()):
        if session.idle_seconds() > settings.SESSION_IDLE_SECONDS:
            del sessions[session_id]
            logger.info("Session %s evicted after %.0fs idle", session_id, session.idle_seconds())


@app.post("/api/sessions", response_model=SessionCreated)
def create_session():
    with _sessions_lock:
        _evict_idle_sessions()
        if len(sessions) >= settings.MAX_SESSIONS:
            raise HTTPException(status_code=429, detail="Too many active sessions")
        session_id = str(uuid.uuid4())
        sessions[session_id] = StreamSession(settings.SMOOTH_ALPHA, settings.SCORE_WINDOW)
    logger.info("Session %s created", session_id)
    return SessionCreated(session_id=session_id)


@app.get("/api/sessions/{session_id}", response_model=SessionStatus)
def get_session(session_id: str):
    session = _get_session(session_id)
    with session.lock:
        session.touch()
        return SessionStatus(
            session_id=session_id,
            frames_seen=session.frames_seen,
            means=session.aggregator.means(),
        )


@app.post("/api/sessions/{session_id}/frames", response_model=FrameEvaluation)
def push_frame(session_id: str, frame: FrameIn):
    session = _get_session(session_id)
    with session.lock:
        return session.process(frame.to_pose())


@app.post("/api/sessions/{session_id}/reset", response_model=SessionStatus)
def reset_session(session_id: str):
    session = _get_session(session_id)
    with session.lock:
        session.reset()
    logger.info("Session %s reset", session_id)
    return SessionStatus(session_id=session_id, frames_seen=0, means={})


@app.delete("/api/sessions/{session_id}")
def delete_session(session_id: str):
    with _sessions_lock:
        if sessions.pop(session_id, None) is None:
            raise HTTPException(status_code=404, detail="Session not found")
    logger.info("Session %s closed", session_id)
    return {"session_id": session_id, "deleted": True}


def _evaluate(image: StillImageIn) -> StillEvaluation:
    pose = image.to_pose()
    if pose is None:
        raise HTTPException(status_code=422, detail="No person detected")
    return evaluate_still(pose, image.manual_score)


@app.post("/api/evaluate", response_model=StillEvaluation)
def evaluate(image: StillImageIn):
    return _evaluate(image)


@app.post("/api/evaluate/batch", response_model=list[StillEvaluation])
def evaluate_batch(batch: BatchIn):
    # images without a detected person are skipped
    results = []
    for image in batch.images:
        pose = image.to_pose()
        if pose is None:
            continue
        results.append(evaluate_still(pose, image.manual_score))
    return results


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
