import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from toolchat import __version__
from toolchat.configuration.config import get_settings
from toolchat.configuration.logging_config import configure_logging
from toolchat.infrastructure.adapters.primary.web.middleware import configure_exception_handlers
from toolchat.infrastructure.adapters.primary.web.routers import chat, chats, model_catalog
from toolchat.infrastructure.adapters.secondary.persistence.database import (
    dispose_database,
    initialize_database,
)

settings = get_settings()
configure_logging(settings)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info("Starting toolchat application...")
    await initialize_database()

    yield

    # Shutdown
    logger.info("Shutting down toolchat application...")
    await dispose_database()


def create_app() -> FastAPI:
    app = FastAPI(
        title="toolchat API",
        description="""
Streaming chat completions with per-request MCP tool servers.

`POST /api/chat` streams Server-Sent Events of types `text-delta`,
`reasoning-delta`, `tool-call`, `tool-result`, `error` and `done`.
        """,
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.api_allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Chat-ID"],
    )

    configure_exception_handlers(app)

    @app.get("/health")
    async def health_check():
        return {"status": "ok", "version": __version__}

    app.include_router(chat.router)
    app.include_router(chats.router)
    app.include_router(model_catalog.router)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=settings.api_host, port=settings.api_port)
