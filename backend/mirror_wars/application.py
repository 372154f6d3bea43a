from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from mirror_wars.api.router import api_router
from mirror_wars.config import settings
from mirror_wars.runtime import MirrorRuntime

logger = logging.getLogger(__name__)


def create_app(runtime: MirrorRuntime | None = None) -> FastAPI:
    logging.basicConfig(level=getattr(logging, settings.log_level, logging.INFO))
    room_runtime = runtime or MirrorRuntime()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Mirror Wars backend starting up...")
        yield
        await room_runtime.shutdown()
        logger.info("Backend shutting down.")

    app = FastAPI(title="Mirror Wars Backend", version="1.0.0", lifespan=lifespan)
    app.state.runtime = room_runtime

    app.add_middleware(
        CORSMiddleware,
        allow_origins=room_runtime.settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api_router)

    return app


app = create_app()
