from __future__ import annotations

from typing import Protocol, runtime_checkable

from ..models import GenerationRequest, GenerationResult


@runtime_checkable
class Provider(Protocol):
    """A text-generation backend. This is the only capability the engine needs."""

    async def generate(self, request: GenerationRequest) -> GenerationResult:
        ...
