from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ordermind.api.router import router as api_router
from ordermind.bootstrap import bootstrap
from ordermind.core.config import Settings, settings
from ordermind.core.logging import RequestContextMiddleware
from ordermind.core.storage import create_storage


def create_app(app_settings: Settings = settings) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        bootstrap()
        yield

    app = FastAPI(title="Ordermind", version="0.1.0", lifespan=lifespan)
    app.state.storage = create_storage(app_settings)
    app.add_middleware(RequestContextMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(api_router)
    return app


app = create_app()
