# wabridge/main.py
"""
FastAPI application exposing WhatsApp group management.
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from wabridge.api.v1.router import api_router
from wabridge.core.config import LOG_LEVEL
from wabridge.core.logging_config import setup_logging
from wabridge.db.session import init_db, test_db_connection

log = logging.getLogger("wabridge")


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging("wabridge", level=LOG_LEVEL)
    log.info("🚀 Application starting")
    try:
        init_db()
        if test_db_connection():
            log.info("✅ Database initialized")
    except Exception as e:
        log.error(f"❌ Database error: {e}")
    yield
    log.info("👋 Application shutting down")


app = FastAPI(
    title="wabridge - WhatsApp gateway bridge",
    description="Group management and messaging over a WhatsApp gateway",
    version="1.0.0",
    lifespan=lifespan,
)

app.include_router(api_router, prefix="/api/v1")


@app.get("/health")
def health():
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("wabridge.main:app", host="0.0.0.0", port=8002, reload=False)
