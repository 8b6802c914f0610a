import time
from contextlib import asynccontextmanager
from typing import Callable, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from backend import Backend, create_backend
from constants import CORS_ALLOW_ORIGINS, LOG_FILE, LOG_LEVEL
from logging_config import get_logger, setup_logging
from messages import MessageAuthority
from presence import PresenceRegistry
from reaper import Reaper
from routers.messages import messages_router
from routers.participants import participants_router

# Setup logging
setup_logging(log_level=LOG_LEVEL, log_file=LOG_FILE)
logger = get_logger(__name__)


def create_app(backend: Optional[Backend] = None, clock: Optional[Callable[[], float]] = None) -> FastAPI:
    store = backend if backend is not None else create_backend()
    clock = clock or time.time

    presence = PresenceRegistry(store, clock=clock)
    authority = MessageAuthority(store, presence, clock=clock)
    reaper = Reaper(store, presence, clock=clock)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        store.open()
        reaper.start()
        logger.info("Chat backend started")
        try:
            yield
        finally:
            await reaper.stop()
            store.close()
            logger.info("Chat backend stopped")

    app = FastAPI(title="Chat Backend", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ALLOW_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.store = store
    app.state.presence = presence
    app.state.authority = authority
    app.state.reaper = reaper

    app.include_router(participants_router)
    app.include_router(messages_router)

    logger.info("FastAPI application initialized")
    return app


app = create_app()
