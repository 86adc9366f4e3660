import logging
import os

# --- Configure Logging ---
logging.basicConfig(level=logging.INFO, format='%(levelname)-5.5s [%(name)s] %(message)s')

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from .config import settings
from .core.error_handlers import request_validation_exception_handler
from .db import create_db_and_tables, get_engine
from .routers import approval as approval_router
from .routers import missions as missions_router
from .routers import user_missions as user_missions_router
from .routers import users as users_router

logging.getLogger().setLevel(settings.log_level.upper())
logger = logging.getLogger(__name__)


def setup_dedicated_loggers(log_dir: str = settings.log_dir) -> logging.Logger:
    """Set up the user activity logger (submissions, edits, visibility and status changes)."""
    os.makedirs(log_dir, exist_ok=True)
    user_activity_logger = logging.getLogger('user_activity')
    if not user_activity_logger.handlers:
        user_activity_handler = logging.FileHandler(os.path.join(log_dir, 'user_activity.log'))
        user_activity_handler.setFormatter(logging.Formatter('%(asctime)s - %(message)s'))
        user_activity_logger.addHandler(user_activity_handler)
    user_activity_logger.setLevel(logging.INFO)
    user_activity_logger.propagate = False
    return user_activity_logger


user_activity_logger = setup_dedicated_loggers()


def create_app() -> FastAPI:
    app = FastAPI(
        title="OrbitFund API",
        description="Crowdfunding backend for space missions: submission, review and owner editing.",
        version="0.1.0",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(RequestValidationError, request_validation_exception_handler)

    app.include_router(users_router.router, prefix=settings.api_prefix)
    app.include_router(missions_router.router, prefix=settings.api_prefix)
    app.include_router(user_missions_router.router, prefix=settings.api_prefix)
    app.include_router(approval_router.router, prefix=settings.api_prefix)

    @app.on_event("startup")
    async def startup_event():
        logger.info("Application startup event initiated.")
        create_db_and_tables(get_engine())

    @app.get("/health", tags=["Health"])
    async def health_check():
        return {"status": "ok"}

    return app


app = create_app()
logger.info("--- FastAPI application module loaded. ---")
