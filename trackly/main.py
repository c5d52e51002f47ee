from contextlib import asynccontextmanager

from fastapi import FastAPI, Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy import text

from .config import settings
from .database import engine, get_db
from .models import Base
from .core.exception import CustomException
from .core.middleware import (
    ExceptionHandlingMiddleware,
    OriginGuardMiddleware,
    register_exception_handlers,
)
from .schemas.errors import ErrorCode

# Import routes
from .api.v1 import households, invites, roles, profiles, tasks

HEALTH_PATH = "/health"


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Schema is created on startup; there is no separate migration step yet
    Base.metadata.create_all(bind=engine)
    yield


app = FastAPI(
    lifespan=lifespan,
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    description="Trackly Home API - households, invites, member roles and tasks",
)

register_exception_handlers(app)

# Exception handling sits inside the origin guard so error bodies still get CORS headers
app.add_middleware(ExceptionHandlingMiddleware, log_internal_errors=settings.DEBUG)
app.add_middleware(
    OriginGuardMiddleware,
    allowed_origins=settings.allowed_origins,
    exempt_paths=[HEALTH_PATH],
)

# Include routers
app.include_router(households.router, prefix=settings.API_PREFIX, tags=["households"])
app.include_router(invites.router, prefix=settings.API_PREFIX, tags=["invites"])
app.include_router(roles.router, prefix=settings.API_PREFIX, tags=["roles"])
app.include_router(profiles.router, prefix=settings.API_PREFIX, tags=["profiles"])
app.include_router(tasks.router, prefix=settings.API_PREFIX, tags=["tasks"])


@app.get(HEALTH_PATH)
async def health_check(db: Session = Depends(get_db)):
    """Health check endpoint for the hosting platform"""
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError:
        raise CustomException(
            message="Health check failed",
            status_code=503,
            code=ErrorCode.DATABASE_ERROR,
        )
    return {"status": "healthy", "database": "connected"}
