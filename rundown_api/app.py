"""FastAPI application factory and configuration."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.engine import Engine

from .api import register_exception_handlers, register_routes
from .core import Settings, configure_logging, create_db_engine, init_db
from .services import StravaClient, WebhookDispatcher

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    init_db(app.state.engine, reset=settings.db_reset)
    app.state.webhook_dispatcher = WebhookDispatcher(
        max_workers=settings.webhook_workers,
        max_backlog=settings.webhook_backlog,
    )
    logger.info("Database initialized")
    yield
    app.state.webhook_dispatcher.shutdown(wait=True)
    logger.info("Shutting down...")


def create_app(
    settings: Optional[Settings] = None,
    *,
    engine: Optional[Engine] = None,
    strava_client: Optional[StravaClient] = None,
) -> FastAPI:
    settings = settings or Settings.from_env()
    configure_logging(settings.log_level)

    app = FastAPI(title="Rundown Strava API", version="0.1.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.engine = engine or create_db_engine(settings.database_url)
    app.state.strava_client = strava_client or StravaClient(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials="*" not in settings.cors_origins,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["Content-Length"],
        max_age=12 * 60 * 60,
    )

    register_exception_handlers(app)
    register_routes(app)
    return app


def main() -> None:
    import uvicorn

    settings = Settings.from_env()
    app = create_app(settings)
    logger.info("Server starting on port %s", settings.port)
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
