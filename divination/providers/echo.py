"""Offline provider for local development and demos. Makes no network calls."""

from __future__ import annotations

from ..models import GenerationRequest, GenerationResult, TokenUsage


class EchoProvider:
    name = "echo"

    def __init__(self, template: str = "[echo:{length}] {first_line}"):
        self.template = template
        self.calls = 0

    async def generate(self, request: GenerationRequest) -> GenerationResult:
        self.calls += 1
        lines = [ln for ln in request.prompt.splitlines() if ln.strip()]
        text = self.template.format(
            length=len(request.prompt),
            first_line=lines[0].strip() if lines else "",
            language=request.language,
        )
        return GenerationResult(
            text=text,
            tokens_used=TokenUsage(input=len(request.prompt.split()), output=len(text.split())),
            provider=self.name,
            model="echo",
            finish_reason="stop",
        )
