"""
FastAPI backend for the mock interview coach.
Exposes the interview turn, feedback, reset and session-stats endpoints plus a health check.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ValidationInfo, field_validator

from interview_coach import config
from interview_coach.controller import TurnController
from interview_coach.errors import SessionNotFound
from interview_coach.oracle import GeminiOracle
from interview_coach.store import SessionStore

logging.basicConfig(level=config.LOG_LEVEL)
LOG = logging.getLogger("interview")


_CONFIG_DEFAULTS = {
    "role": config.DEFAULT_ROLE,
    "persona": config.DEFAULT_PERSONA,
    "experience": config.DEFAULT_EXPERIENCE,
}


class InterviewRequest(BaseModel):
    sessionId: Optional[str] = None
    role: Optional[str] = config.DEFAULT_ROLE
    persona: Optional[str] = config.DEFAULT_PERSONA
    experience: Optional[str] = config.DEFAULT_EXPERIENCE
    userMessage: Optional[str] = None

    @field_validator("role", "persona", "experience", mode="after")
    @classmethod
    def _default_when_null(cls, value: Optional[str], info: ValidationInfo) -> str:
        if value is None:
            return _CONFIG_DEFAULTS[info.field_name]
        return value


class SessionRequest(BaseModel):
    sessionId: Optional[str] = None


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def _controller(request: Request) -> TurnController:
    return request.app.state.controller


app = FastAPI(title="AI Mock Interview Coach", version="0.1.0")
app.state.controller = TurnController(
    oracle=GeminiOracle(),
    store=SessionStore(idle_ttl_seconds=config.SESSION_IDLE_TTL_SECONDS),
)

# CORS for local dev; narrow CORS_ORIGINS for prod.
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
async def health() -> Dict[str, str]:
    return {"status": "ok"}


@app.post("/api/interview")
async def interview_turn(request: Request, payload: Optional[InterviewRequest] = None) -> Any:
    if payload is None or not payload.sessionId:
        return _error(400, "sessionId is required")
    try:
        reply = await _controller(request).handle_turn(
            payload.sessionId,
            user_message=payload.userMessage,
            role=payload.role,
            persona=payload.persona,
            experience=payload.experience,
        )
    except Exception:
        LOG.exception("Error in /api/interview (session=%s)", payload.sessionId)
        return _error(500, "Error during interview")
    return reply.to_payload()


@app.post("/api/feedback")
async def feedback(request: Request, payload: Optional[SessionRequest] = None) -> Any:
    if payload is None or not payload.sessionId:
        return _error(400, "sessionId is required")
    try:
        result = await _controller(request).feedback(payload.sessionId)
    except SessionNotFound:
        return _error(400, "Invalid session")
    except Exception:
        LOG.exception("Error in /api/feedback (session=%s)", payload.sessionId)
        return _error(500, "Error generating feedback")
    return result.model_dump()


@app.post("/api/reset")
async def reset(request: Request, payload: Optional[SessionRequest] = None) -> Dict[str, bool]:
    await _controller(request).reset(payload.sessionId if payload else None)
    return {"ok": True}


@app.get("/api/session-stats/{session_id}")
async def session_stats(session_id: str, request: Request) -> Any:
    try:
        stats = _controller(request).stats(session_id)
    except SessionNotFound:
        return _error(404, "Session not found")
    return stats.model_dump()
