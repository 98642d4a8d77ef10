import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from app.api.v1 import auth, chat_websocket, upload
from app.chat import Broadcaster, ConnectionRegistry, HistoryReplay, MessageStore
from app.core.config import settings
from app.core.database import init_db
from app.core.logging import configure_logging
from app.core.network import bind_available_port, get_local_ip_address
from app.middleware.logging import LoggingMiddleware


logger = logging.getLogger("app.main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.DATABASE_AUTO_CREATE:
        init_db()

    # Chat services live for the whole process and are injected into routes
    registry = ConnectionRegistry()
    store = MessageStore()
    app.state.registry = registry
    app.state.broadcaster = Broadcaster(store, registry)
    app.state.history = HistoryReplay(store)
    logger.info("Chat services started")

    yield

    await registry.close_all()
    logger.info("Chat services stopped")


def create_app() -> FastAPI:
    configure_logging()

    app = FastAPI(
        title="Group Chat Relay",
        version="0.1.0",
        lifespan=lifespan,
    )

    # CORS middleware - must be added before other middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.FRONTEND_URL],
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["Content-Type", "Authorization"],
    )

    # Middleware
    app.add_middleware(LoggingMiddleware)

    # API routes
    prefix = settings.API_V1_PREFIX
    app.include_router(auth.router, prefix=prefix)
    app.include_router(upload.router, prefix=prefix)
    app.include_router(chat_websocket.router, prefix=prefix)

    # Serve uploaded files
    app.mount(upload.UPLOAD_URL_PREFIX, StaticFiles(directory=upload.UPLOAD_DIR), name="uploads")

    @app.get("/health", tags=["health"])
    async def health_check() -> dict:
        return {
            "status": "ok",
            "environment": settings.ENVIRONMENT,
            "connections": app.state.registry.count(),
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    sock = bind_available_port(settings.PORT, settings.HOST, settings.PORT_FALLBACK_ATTEMPTS)
    port = sock.getsockname()[1]

    logger.info("Server running on:")
    logger.info("- Local: http://localhost:%d", port)
    local_ip = get_local_ip_address()
    if local_ip:
        logger.info("- Network: http://%s:%d", local_ip, port)

    server = uvicorn.Server(uvicorn.Config(app, host=settings.HOST, port=port, log_config=None))
    server.run(sockets=[sock])
