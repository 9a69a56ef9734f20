"""EduHub API - FastAPI app entry point."""
import logging
from contextlib import asynccontextmanager
from typing import Annotated

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from eduhub.core.config import get_settings
from eduhub.core.errors import register_exception_handlers
from eduhub.core.logging import configure_logging, log_requests
from eduhub.core.timeutils import utcnow
from eduhub.db.base import Base
from eduhub.db.session import engine, get_db
from eduhub.routers import auth, challenges
from eduhub.services.rate_limit import RateLimitStore

settings = get_settings()
configure_logging(settings.log_level)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # create missing tables; Alembic owns real migrations
    Base.metadata.create_all(bind=engine)

    app.state.rate_limits = RateLimitStore()
    logger.info("%s started", settings.app_name)
    yield


app = FastAPI(
    title="EduHub API",
    description="Gamified learning platform: accounts, guest sessions and quiz challenges",
    debug=settings.debug,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in settings.cors_origins.split(",") if o.strip()],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.middleware("http")(log_requests)
register_exception_handlers(app)

app.include_router(auth.router)
app.include_router(challenges.router)


@app.get("/api/health")
def health(db: Annotated[Session, Depends(get_db)]):
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError:
        logger.exception("Health check: database unreachable")
        return JSONResponse(
            status_code=500,
            content={"status": "unhealthy", "database": "disconnected"},
        )
    return {"status": "healthy", "database": "connected", "timestamp": utcnow().isoformat()}
