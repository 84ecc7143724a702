import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from dayfuse.api import root_router
from dayfuse.configs import configs
from dayfuse.core.logger import LOGGING_CONFIG
from dayfuse.infra.database import create_db_and_tables
from dayfuse.middleware import log_api_requests

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # Create database tables
    await create_db_and_tables()

    logger.info(f"DayFuse reminder relay starting ({configs.Env}) on port {configs.Port}")

    from dayfuse.core.push import ensure_vapid_keys, start_sweeper, stop_sweeper

    ensure_vapid_keys()

    sweeping = configs.Push.Enable and configs.Push.SweepMode == "inprocess"
    if sweeping:
        start_sweeper()
    else:
        logger.info(f"In-process push sweep disabled (mode={configs.Push.SweepMode}, enabled={configs.Push.Enable})")

    try:
        yield
    finally:
        if sweeping:
            await stop_sweeper()

        from dayfuse.infra.database.connection import async_engine

        await async_engine.dispose()


app = FastAPI(
    title="DayFuse Reminder Relay",
    description="Task storage and durable Web Push reminders for DayFuse clients",
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.middleware("http")(log_api_requests)

app.include_router(root_router)


if __name__ == "__main__":
    uvicorn.run(
        "dayfuse.main:app",
        host=configs.Host,
        port=configs.Port,
        log_config=LOGGING_CONFIG,
        reload=configs.Debug,
        reload_excludes=["tests"],
    )
