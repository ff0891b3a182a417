"""OpenAI chat-completions backend."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import openai
from openai import AsyncOpenAI

from ..errors import PromptTooLong, ProviderError
from ..models import GenerationRequest, GenerationResult, TokenUsage

DEFAULT_MODEL = "gpt-4o-mini"


class OpenAIProvider:
    name = "openai"

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = DEFAULT_MODEL,
        timeout: float = 30.0,
        client: Optional[AsyncOpenAI] = None,
    ):
        self.model = model
        self.client = client or AsyncOpenAI(api_key=api_key, timeout=timeout, max_retries=0)

    async def generate(self, request: GenerationRequest) -> GenerationResult:
        messages: List[Dict[str, Any]] = []
        if request.system_prompt:
            messages.append({"role": "system", "content": request.system_prompt})
        messages.append({"role": "user", "content": request.prompt})

        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=messages,
                max_tokens=request.max_tokens,
                temperature=request.temperature,
            )
        except openai.BadRequestError as e:
            if getattr(e, "code", None) == "context_length_exceeded":
                raise PromptTooLong(f"Prompt too long for {self.model}: {e}", provider=self.name) from e
            raise
        except openai.APITimeoutError as e:
            raise ProviderError(f"OpenAI request timed out: {e}", provider=self.name) from e

        if not response.choices:
            raise ProviderError("OpenAI returned no choices", provider=self.name)

        choice = response.choices[0]
        usage = response.usage
        return GenerationResult(
            text=(choice.message.content or "").strip(),
            tokens_used=TokenUsage(input=usage.prompt_tokens, output=usage.completion_tokens) if usage else None,
            provider=self.name,
            model=self.model,
            finish_reason=choice.finish_reason,
        )
