from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import uvicorn
import logging

from padel_ladder.config import (
    CORS_ALLOWED_ORIGINS,
    FORWARDED_ALLOW_IPS,
    PORT,
    configure_logging,
)
from padel_ladder.database import create_tables
from padel_ladder.errors import register_exception_handlers
from padel_ladder.routers.players import router as players_router
from padel_ladder.routers.matches import router as matches_router

# ✅ Configure logging
configure_logging()
logger = logging.getLogger(__name__)


# ✅ Create DB tables on startup
@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Creating tables if missing")
    await create_tables()
    yield
    logger.info("Padel ladder API stopped")


# ✅ redirect_slashes=False: routers serve both "/players" and "/players/"
app = FastAPI(title="Padel Ladder API", redirect_slashes=False, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ALLOWED_ORIGINS,
    allow_credentials="*" not in CORS_ALLOWED_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)


# ✅ Health check
@app.get("/")
async def home():
    return {"message": "Padel Ladder API is running!"}


# ✅ Register routers
app.include_router(players_router, prefix="/players", tags=["Players"])
app.include_router(matches_router, prefix="/matches", tags=["Matches"])


# ✅ Uvicorn entry point with proxy headers enabled
if __name__ == "__main__":
    uvicorn.run(
        "padel_ladder.main:app",
        host="0.0.0.0",
        port=PORT,
        proxy_headers=True,
        forwarded_allow_ips=FORWARDED_ALLOW_IPS,
    )
