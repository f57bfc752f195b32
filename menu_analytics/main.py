from contextlib import asynccontextmanager
from typing import Any, cast

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from menu_analytics.api import analytics
from menu_analytics.core.config import settings
from menu_analytics.core.logging_config import get_logger
from menu_analytics.db import create_db_and_tables

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Menu Analytics API starting", api_prefix=settings.API_PREFIX)
    if settings.AUTO_CREATE_TABLES:
        create_db_and_tables()
    else:
        logger.info("AUTO_CREATE_TABLES is false - skipping table creation")
    yield


app = FastAPI(title=settings.PROJECT_NAME, openapi_url=f"{settings.API_PREFIX}/openapi.json", lifespan=lifespan)

# Public menu pages post tracking events cross-origin
origins = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
    settings.FRONTEND_URL,
]
origins = list(set([o for o in origins if o]))

app.add_middleware(
    cast(Any, CORSMiddleware),
    allow_origins=origins,
    allow_credentials=False,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type"],
)

app.include_router(analytics.router, prefix=f"{settings.API_PREFIX}/analytics", tags=["analytics"])


@app.get("/health")
def health():
    """Basic health check endpoint."""
    return {"status": "healthy"}
