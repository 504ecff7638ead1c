import asyncio
import logging
import os
from contextlib import asynccontextmanager
from logging.handlers import RotatingFileHandler
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.config import settings

# ─── Logging setup (file + console) ───
_LOG_DIR = Path(__file__).resolve().parent.parent / "logs"
_LOG_DIR.mkdir(exist_ok=True)

_log_level = getattr(logging, os.environ.get("LOG_LEVEL", "INFO").upper(), logging.INFO)

logging.basicConfig(
    level=_log_level,
    format="%(asctime)s %(levelname)-8s [%(name)s] %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
    handlers=[
        logging.StreamHandler(),
        RotatingFileHandler(
            _LOG_DIR / "travelbuddy.log",
            maxBytes=10 * 1024 * 1024,  # 10 MB
            backupCount=5,
            encoding="utf-8",
        ),
    ],
)

# Quiet noisy libraries
logging.getLogger("httpcore").setLevel(logging.WARNING)
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

from app.errors import register_error_handlers
from app.routers import auth, interests, locations, packages, search, users
from app.services.cache_service import cache_service
from app.services.recommendation_client import recommendation_client
from app.services.search_results import search_result_store

logger = logging.getLogger(__name__)


async def _evict_idle_search_sessions():
    """Periodically drop result sets of sessions that went quiet."""
    ttl_seconds = settings.search_session_ttl_minutes * 60
    while True:
        await asyncio.sleep(120)
        evicted = search_result_store.evict_idle(ttl_seconds)
        if evicted:
            logger.info(f"Search results: evicted {evicted} idle sessions, {len(search_result_store)} active")


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Create tables and seed reference data if the DB is empty (dev/MVP convenience)
    if settings.seed_on_startup:
        try:
            from app.database import init_db
            from app.seed import seed
            await init_db()
            await seed()
        except Exception as e:
            logger.warning(f"Auto-seed skipped: {e}")

    cleanup_task = asyncio.create_task(_evict_idle_search_sessions())
    if not settings.recommendation_base_url:
        logger.warning("RECOMMENDATION_BASE_URL not set — serving mock recommendations")

    yield

    # Shutdown
    cleanup_task.cancel()
    await recommendation_client.close()
    await cache_service.close()
    logger.info("Travel Buddy shut down")


app = FastAPI(
    title="Travel Buddy",
    description="Travel interest dashboard and package recommendations",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)

app.include_router(auth.router, prefix="/api/auth", tags=["auth"])
app.include_router(users.router, prefix="/api/users", tags=["users"])
app.include_router(locations.router, prefix="/api/locations", tags=["locations"])
app.include_router(interests.router, prefix="/api/interests", tags=["interests"])
app.include_router(search.router, prefix="/api/search", tags=["search"])
app.include_router(search.proxy_router, prefix="/api", tags=["search"])
app.include_router(packages.router, prefix="/api/packages", tags=["packages"])


@app.get("/api/health")
async def health_check():
    return {"status": "ok", "service": "travelbuddy"}
