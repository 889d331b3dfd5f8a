from __future__ import annotations

import logging
import sys

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .api import auth_router, groups_router, maintenance_router, pods_router, seats_router
from .core.config import settings
from .core.db import SessionLocal, engine
from .core.exceptions import PodError
from .core.migrations import run_migrations
from .core.security import get_password_hash
from .models.db import Base, User


def configure_logging() -> None:
    """Configure structured logging for the application."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    # Set specific log levels for third-party libraries
    logging.getLogger("uvicorn").setLevel(logging.INFO)
    logging.getLogger("sqlalchemy").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


logger = logging.getLogger(__name__)
configure_logging()


def ensure_superadmin() -> None:
    db = SessionLocal()
    try:
        exists = db.query(User).filter(User.role == "superadmin").first()
        if not exists:
            logger.info("Creating default superadmin user")
            db.add(
                User(
                    username=settings.SUPERADMIN_USERNAME,
                    password_hash=get_password_hash(settings.SUPERADMIN_PASSWORD),
                    role="superadmin",
                    location_id=None,
                    is_active=True,
                )
            )
            db.commit()
            logger.info(f"Superadmin user '{settings.SUPERADMIN_USERNAME}' created successfully")
        else:
            logger.info("Superadmin user already exists")
    finally:
        db.close()


def create_app() -> FastAPI:
    app = FastAPI(title="Pod Seating", version="1.0.0")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_list(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Add request logging middleware
    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """Log incoming requests."""
        logger.info(f"Request: {request.method} {request.url.path}")
        response = await call_next(request)
        logger.info(f"Response: {request.method} {request.url.path} - Status: {response.status_code}")
        return response

    @app.exception_handler(PodError)
    async def pod_error_handler(request: Request, exc: PodError):
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path}: {exc.code}: {exc.message}")
        else:
            logger.info(f"{request.method} {request.url.path}: {exc.code}: {exc.message}")
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError):
        return JSONResponse(status_code=400, content={"detail": str(exc), "code": "invalid_request"})

    app.include_router(auth_router)
    app.include_router(seats_router)
    app.include_router(pods_router)
    app.include_router(groups_router)
    app.include_router(maintenance_router)

    @app.get("/")
    def root():
        return {"ok": True, "service": "pod-seating", "docs": "/docs"}

    @app.get("/health")
    def health():
        return {"status": "ok"}

    @app.on_event("startup")
    def startup():
        logger.info("Starting application...")
        if settings.RUN_MIGRATIONS:
            run_migrations()
        else:
            Base.metadata.create_all(bind=engine)
            logger.info("Database tables created/verified")

        ensure_superadmin()
        logger.info("Application startup complete")

    return app


app = create_app()
