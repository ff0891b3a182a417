"""FastAPI routes for reading sessions and follow-up questions."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel, Field

from .. import storage
from ..errors import DivinationError
from ..models import Tier, UserChart
from ..reading import Reading, interpret, new_reading
from ..reference import get_spreads
from ..utils.rng import seeded_random
from .http_errors import to_http

router = APIRouter(prefix="/reading", tags=["reading"])


class ReadingCreateRequest(BaseModel):
    spread: str = Field("three-card", description="Spread key, e.g. 'single-card', 'celtic-cross'.")
    question: Optional[str] = None
    locale: str = "en"
    tier: str = Field("free", description="Subscription tier; unknown values count as free.")
    allow_reversals: bool = True
    codes: Optional[List[str]] = Field(None, description="Card codes picked from a physical deck.")
    seed: Optional[str] = Field(None, description="Optional seed for a reproducible draw.")


class InterpretRequest(BaseModel):
    mode: str = Field("traditional", description="'traditional', 'esoteric' or 'jungian'.")
    chart: Optional[UserChart] = None
    refresh: bool = False


class AskRequest(BaseModel):
    question: str
    mode: str = "traditional"


class ResetRequest(BaseModel):
    mode: Optional[str] = Field(None, description="Conversation to reset; all when omitted.")


def _load(reading_id: str) -> storage.ReadingSession:
    try:
        return storage.load_session(reading_id)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Reading not found: {reading_id}")


def _reading_out(reading: Reading) -> Dict[str, Any]:
    return {
        "reading_id": reading.reading_id,
        "spread": reading.spread.key,
        "question": reading.question,
        "locale": reading.locale,
        "cards": [
            {
                "position": d.position,
                "code": d.code,
                "title": d.card.title_for(reading.locale),
                "reversed": d.reversed,
            }
            for d in reading.drawn
        ],
        "interpretations": dict(reading.interpretations),
        "created_at": reading.created_at.isoformat(),
    }


@router.post("")
def create_reading(req: ReadingCreateRequest, request: Request) -> Dict[str, Any]:
    spread = {s.key: s for s in get_spreads()}.get(req.spread)
    if spread is None:
        raise HTTPException(status_code=404, detail=f"Unknown spread: {req.spread}")

    settings = request.app.state.settings
    try:
        reading = new_reading(
            spread,
            question=req.question,
            locale=req.locale,
            rng=seeded_random(req.seed) if req.seed else None,
            reversal_probability=settings.reversal_probability,
            allow_reversals=req.allow_reversals,
            codes=req.codes,
        )
    except DivinationError as e:
        raise to_http(e) from e

    storage.new_session(reading, Tier.parse(req.tier))
    return _reading_out(reading)


@router.get("/{reading_id}")
def get_reading(reading_id: str) -> Dict[str, Any]:
    session = _load(reading_id)
    out = _reading_out(session.reading)
    out["tier"] = session.tier.value
    out["conversations"] = {
        mode: [m.model_dump(mode="json") for m in chat.messages] for mode, chat in session.chats.items()
    }
    out["record"] = session.reading.to_record()
    return out


@router.post("/{reading_id}/interpret")
async def interpret_reading(reading_id: str, req: InterpretRequest, request: Request) -> Dict[str, Any]:
    session = _load(reading_id)
    try:
        text = await interpret(
            session.reading,
            request.app.state.registry,
            req.mode,
            chart=req.chart,
            refresh=req.refresh,
        )
    except DivinationError as e:
        raise to_http(e) from e
    if req.refresh:
        storage.reset_chat(reading_id, req.mode)
    return {"reading_id": reading_id, "mode": req.mode, "interpretation": text}


@router.post("/{reading_id}/ask")
async def ask(reading_id: str, req: AskRequest, request: Request) -> Dict[str, Any]:
    session = _load(reading_id)
    try:
        chat = session.chat(req.mode, request.app.state.registry)
        answer = await chat.ask(req.question)
    except DivinationError as e:
        raise to_http(e) from e

    return {
        "reading_id": reading_id,
        "mode": req.mode,
        "answer": answer,
        "remaining": chat.remaining(),
        "messages": [m.model_dump(mode="json") for m in chat.messages],
    }


@router.post("/{reading_id}/reset")
def reset(reading_id: str, req: Optional[ResetRequest] = None) -> Dict[str, Any]:
    _load(reading_id)
    storage.reset_chat(reading_id, req.mode if req else None)
    return {"ok": True, "reading_id": reading_id}
