"""Map engine errors onto HTTP responses."""

import logging

from fastapi import HTTPException

from ..errors import (
    DeckError,
    DivinationError,
    FollowUpInFlight,
    InvalidRequest,
    NoActiveProvider,
    ProviderError,
    QuotaExceeded,
)

log = logging.getLogger("divination.routes")


def to_http(e: DivinationError) -> HTTPException:
    if isinstance(e, InvalidRequest):
        return HTTPException(status_code=400, detail=str(e))
    if isinstance(e, FollowUpInFlight):
        return HTTPException(status_code=409, detail=str(e))
    if isinstance(e, QuotaExceeded):
        return HTTPException(
            status_code=429,
            detail={"message": str(e), "tier": e.tier, "limit": e.limit},
        )
    if isinstance(e, ProviderError):
        log.warning("provider error (%s): %s", e.provider, e)
        return HTTPException(status_code=502, detail=str(e))
    if isinstance(e, NoActiveProvider):
        return HTTPException(status_code=503, detail=str(e))
    if isinstance(e, DeckError):
        log.error("reference data error: %s", e)
    return HTTPException(status_code=500, detail=str(e))
