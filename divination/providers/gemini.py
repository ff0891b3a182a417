"""Gemini backend over the generateContent REST endpoint."""

from __future__ import annotations

from typing import Any, Dict, Optional

import httpx

from ..errors import PromptTooLong, ProviderError
from ..models import GenerationRequest, GenerationResult, TokenUsage

DEFAULT_MODEL = "gemini-2.0-flash"
API_URL = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"

SAFETY_CATEGORIES = (
    "HARM_CATEGORY_HARASSMENT",
    "HARM_CATEGORY_HATE_SPEECH",
    "HARM_CATEGORY_SEXUALLY_EXPLICIT",
    "HARM_CATEGORY_DANGEROUS_CONTENT",
)


class GeminiProvider:
    name = "gemini"

    def __init__(
        self,
        api_key: str,
        model: str = DEFAULT_MODEL,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        if not api_key:
            raise ValueError("GeminiProvider requires an API key")
        self.api_key = api_key
        self.model = model
        self.timeout = timeout
        self.transport = transport

    def build_payload(self, request: GenerationRequest) -> Dict[str, Any]:
        text = f"{request.system_prompt}\n\n{request.prompt}" if request.system_prompt else request.prompt
        return {
            "contents": [{"parts": [{"text": text}]}],
            "generationConfig": {
                "temperature": request.temperature,
                "maxOutputTokens": request.max_tokens,
                "topP": 0.95,
                "topK": 40,
            },
            "safetySettings": [{"category": c, "threshold": "BLOCK_ONLY_HIGH"} for c in SAFETY_CATEGORIES],
        }

    async def generate(self, request: GenerationRequest) -> GenerationResult:
        url = API_URL.format(model=self.model)
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            try:
                response = await client.post(
                    url,
                    headers={"x-goog-api-key": self.api_key},
                    json=self.build_payload(request),
                )
            except httpx.TimeoutException as e:
                raise ProviderError(f"Gemini request timed out after {self.timeout}s", provider=self.name) from e

        if response.status_code >= 400:
            message = _error_message(response)
            if response.status_code == 400 and "token" in message.lower() and "exceed" in message.lower():
                raise PromptTooLong(f"Prompt too long for {self.model}: {message}", provider=self.name)
            raise ProviderError(f"Gemini API error ({response.status_code}): {message}", provider=self.name)

        data = response.json()
        candidates = data.get("candidates") or []
        if not candidates:
            reason = (data.get("promptFeedback") or {}).get("blockReason", "no candidates")
            raise ProviderError(f"Gemini returned no answer: {reason}", provider=self.name)

        candidate = candidates[0]
        parts = (candidate.get("content") or {}).get("parts") or []
        text = "".join(p.get("text", "") for p in parts).strip()
        if not text:
            reason = candidate.get("finishReason") or "empty response"
            raise ProviderError(f"Gemini returned no text: {reason}", provider=self.name)

        usage = data.get("usageMetadata") or {}
        return GenerationResult(
            text=text,
            tokens_used=TokenUsage(
                input=usage.get("promptTokenCount", 0),
                output=usage.get("candidatesTokenCount", 0),
            ),
            provider=self.name,
            model=self.model,
            finish_reason=candidate.get("finishReason"),
        )


def _error_message(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(data, dict) and isinstance(data.get("error"), dict):
        return data["error"].get("message") or response.reason_phrase
    return response.reason_phrase
