"""FastAPI routes for reference data and I Ching casts.

Endpoints:
- GET /spreads
- GET /deck/cards
- GET /deck/cards/{code}
- POST /iching/cast
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel, Field

from ..draw import cast_hexagram
from ..errors import DivinationError
from ..models import CastMethod
from ..reading import interpret_hexagram
from ..reference import cards_by_code, get_deck, get_spreads
from ..utils.rng import seeded_random
from .http_errors import to_http

router = APIRouter(tags=["deck"])


class CastRequest(BaseModel):
    method: CastMethod = Field("coins", description="'coins' or 'yarrow'.")
    question: Optional[str] = None
    mode: str = Field("traditional", description="Interpretation mode.")
    locale: str = "en"
    interpret: bool = Field(True, description="If false, only the cast is returned.")
    seed: Optional[str] = Field(None, description="Optional seed for a reproducible cast.")


@router.get("/spreads")
def spreads(locale: str = "en") -> Dict[str, Any]:
    return {
        "spreads": [
            {
                "key": s.key,
                "name": s.name_for(locale),
                "card_count": s.card_count,
                "is_premium": s.is_premium,
                "positions": s.labels(locale),
            }
            for s in get_spreads()
        ]
    }


@router.get("/deck/cards")
def cards() -> Dict[str, Any]:
    return {"cards": [c.model_dump() for c in get_deck()]}


@router.get("/deck/cards/{code}")
def card(code: str) -> Dict[str, Any]:
    c = cards_by_code().get(code)
    if c is None:
        raise HTTPException(status_code=404, detail=f"Unknown card code: {code}")
    return c.model_dump()


@router.post("/iching/cast")
async def cast(req: CastRequest, request: Request) -> Dict[str, Any]:
    rng = seeded_random(req.seed) if req.seed else None
    try:
        result = cast_hexagram(req.method, rng)
        interpretation = None
        if req.interpret:
            interpretation = await interpret_hexagram(
                result,
                request.app.state.registry,
                req.mode,
                req.question,
                req.locale,
            )
    except DivinationError as e:
        raise to_http(e) from e

    return {"cast": result.model_dump(), "interpretation": interpretation}
