from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from chat_relay.api.v1 import chat_websocket
from chat_relay.core.config import Settings, get_settings
from chat_relay.core.logging import configure_logging
from chat_relay.middleware.logging import LoggingMiddleware


def create_app(settings: Settings | None = None, verbose: bool = False) -> FastAPI:
    configure_logging(verbose)
    settings = settings or get_settings()

    app = FastAPI(
        title="Research Chat Relay",
        version="0.1.0",
    )

    # CORS middleware - must be added before other middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Middleware
    app.add_middleware(LoggingMiddleware)

    app.include_router(chat_websocket.router)

    @app.get("/health", tags=["health"])
    async def health_check() -> dict:
        return {"status": "ok", "environment": settings.ENVIRONMENT}

    # Built front-end, if present; mounted last so it does not shadow the routes above
    static_dir = Path(settings.STATIC_DIR)
    if static_dir.is_dir():
        app.mount("/", StaticFiles(directory=static_dir, html=True), name="static")

    return app


def run(host: str = "0.0.0.0", port: int | None = None, verbose: bool = False) -> None:
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        create_app(settings, verbose=verbose),
        host=host,
        port=port or settings.SERVER_PORT,
        log_config=None,
    )


if __name__ == "__main__":
    run()
