import logging
import os
from contextlib import asynccontextmanager
from datetime import datetime, timezone

import httpx
from fastapi import FastAPI

from chitchat.api.routes import assistant, auth_routes, conversations, me
from chitchat.auth_config import auth_backend, fastapi_users
from chitchat.core.config import settings
from chitchat.db import check_database_health
from chitchat.schemas.user import UserRead
from chitchat.services import assistant_client
from chitchat.services.migration_service import run_migrations

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager for startup and shutdown events."""
    logger.info("Starting application...")
    try:
        await run_migrations()
        skip_table_check = os.getenv("SKIP_TABLE_CHECK") == "true"
        await check_database_health(skip_table_check=skip_table_check)
        logger.info("Database health check passed - application ready")
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        logger.error("Application startup aborted due to database issues")
        raise

    if not settings.AI_API_KEYS:
        logger.warning("No AI_API_KEYS configured; assistant questions will fail")
    client = httpx.AsyncClient(timeout=settings.AI_TIMEOUT_SECONDS)
    assistant_client.set_client(client)

    yield

    logger.info("Application shutting down...")
    assistant_client.set_client(None)
    await client.aclose()


app = FastAPI(title="ChitChat", lifespan=lifespan)


app.include_router(
    fastapi_users.get_auth_router(auth_backend), prefix="/auth/jwt", tags=["auth"]
)
app.include_router(auth_routes.auth_api_router, prefix="/auth", tags=["auth"])
app.include_router(
    fastapi_users.get_verify_router(UserRead),
    prefix="/auth",
    tags=["auth"],
)
app.include_router(conversations.conversations_router_instance)
app.include_router(me.me_router_instance)
app.include_router(assistant.assistant_router_instance)


@app.get("/health")
async def health_check():
    """Health check endpoint for Docker and load balancers."""
    return {"status": "healthy", "timestamp": datetime.now(timezone.utc).isoformat()}
