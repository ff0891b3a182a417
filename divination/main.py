import logging
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from divination.config import Settings, load_settings
from divination.providers.registry import ProviderRegistry, build_registry
from divination.reference import validate_deck
from divination.routes.deck_routes import router as deck_router
from divination.routes.reading_routes import router as reading_router


def create_app(registry: Optional[ProviderRegistry] = None, settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or load_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # Bad reference data should stop startup, not the first request.
    validate_deck()

    app = FastAPI(title="Divination Reading Engine", version="0.1.0")
    app.state.settings = settings
    app.state.registry = registry or build_registry(settings)

    app.include_router(deck_router)
    app.include_router(reading_router)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health")
    def health():
        return {"ok": True, "provider": app.state.registry.active_name}

    return app


app = create_app()
