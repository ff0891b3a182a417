"""Provider registry and dispatcher.

Call sites ask the registry to generate; they never touch a backend SDK. The
active provider is a single named slot, set at startup and read on every call.
"""

from __future__ import annotations

import logging
import threading
from typing import Dict, List, Optional, Tuple

from ..config import Settings
from ..errors import InvalidRequest, NoActiveProvider, ProviderError, ProviderNotFound
from ..models import GenerationRequest, GenerationResult
from .base import Provider
from .echo import EchoProvider
from .gemini import GeminiProvider
from .openai_provider import OpenAIProvider

log = logging.getLogger("divination.providers")

MAX_TEMPERATURE = 2.0


class ProviderRegistry:
    def __init__(self) -> None:
        self._providers: Dict[str, Provider] = {}
        self._active: Optional[str] = None
        self._lock = threading.Lock()

    def register(self, name: str, provider: Provider) -> None:
        """Add a provider. Registering an existing name replaces it."""
        with self._lock:
            if name in self._providers:
                log.info("replacing provider %s", name)
            self._providers[name] = provider

    def set_provider(self, name: str) -> None:
        with self._lock:
            if name not in self._providers:
                raise ProviderNotFound(name)
            self._active = name
        log.info("active provider: %s", name)

    @property
    def active_name(self) -> Optional[str]:
        return self._active

    def names(self) -> List[str]:
        return sorted(self._providers)

    def _resolve(self) -> Tuple[str, Provider]:
        name = self._active
        if name is None:
            raise NoActiveProvider()
        return name, self._providers[name]

    def get_active(self) -> Provider:
        return self._resolve()[1]

    async def generate(self, request: GenerationRequest) -> GenerationResult:
        name, provider = self._resolve()
        _validate(request)

        log.info(
            "generate via %s: prompt=%s chars max_tokens=%s language=%s",
            name,
            len(request.prompt),
            request.max_tokens,
            request.language,
        )
        try:
            result = await provider.generate(request)
        except ProviderError:
            raise
        except Exception as e:
            log.warning("provider %s failed: %s", name, e)
            raise ProviderError(f"AI generation failed: {e}", provider=name) from e

        if isinstance(result, dict):
            result = GenerationResult(**result)
        return result


def _validate(request: GenerationRequest) -> None:
    if not request.prompt or not request.prompt.strip():
        raise InvalidRequest("prompt is required")
    if not 0.0 <= request.temperature <= MAX_TEMPERATURE:
        raise InvalidRequest(f"temperature must be between 0 and {MAX_TEMPERATURE}")
    if request.max_tokens < 1:
        raise InvalidRequest("max_tokens must be at least 1")


def build_registry(settings: Settings) -> ProviderRegistry:
    """Register every backend the settings allow and select the configured one."""
    registry = ProviderRegistry()
    registry.register("echo", EchoProvider())

    if settings.openai_api_key:
        registry.register(
            "openai",
            OpenAIProvider(
                api_key=settings.openai_api_key,
                model=settings.openai_model,
                timeout=settings.provider_timeout,
            ),
        )
    if settings.gemini_api_key:
        registry.register(
            "gemini",
            GeminiProvider(
                api_key=settings.gemini_api_key,
                model=settings.gemini_model,
                timeout=settings.provider_timeout,
            ),
        )

    registry.set_provider(settings.provider)
    return registry
