from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from alembic import command
from alembic.config import Config
from alembic.runtime.migration import MigrationContext
from alembic.script import ScriptDirectory
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from .container import build_services
from .db import engine
from .errors import register_exception_handlers
from .middleware import ActivityLogMiddleware, SecurityHeadersMiddleware
from .routers import (
    admin,
    auth,
    bookmarks,
    categories,
    comments,
    media,
    newsletter,
    notifications,
    posts,
    reports,
    system,
    tags,
    users,
)
from .seed import ensure_seed_data
from .settings import CORS_ORIGINS, LOG_LEVEL, UPLOADS_DIR

logging.basicConfig(level=LOG_LEVEL)
logger = logging.getLogger(__name__)

_STARTUP_COMPLETE = False


def run_migrations() -> None:
    logger.info("run_migrations: Starting...")
    try:
        alembic_cfg = _alembic_config()

        try:
            with engine.connect() as connection:
                context = MigrationContext.configure(connection)
                current_heads = set(context.get_current_heads())
                heads = set(ScriptDirectory.from_config(alembic_cfg).get_heads())
                if current_heads and current_heads == heads:
                    logger.info(f"Database is up to date (revision: {', '.join(sorted(heads))}), skipping migrations.")
                    return
                logger.info(f"Current revision(s): {sorted(current_heads)}, target: {sorted(heads)}. Running migrations...")
        finally:
            # Ensure connection is closed before calling command.upgrade
            engine.dispose()

        command.upgrade(alembic_cfg, "heads")
        logger.info("run_migrations: Completed successfully.")
    except Exception as e:
        logger.error(f"run_migrations: Error occurred: {e}", exc_info=True)
        raise


def _alembic_config() -> Config:
    base_dir = Path(__file__).resolve().parent.parent
    cfg = Config(str(base_dir / "alembic.ini"))
    cfg.set_main_option("script_location", str(base_dir / "alembic"))
    cfg.attributes["configure_logger"] = False
    return cfg


def run_startup_tasks() -> None:
    global _STARTUP_COMPLETE
    if _STARTUP_COMPLETE:
        logger.info("run_startup_tasks: Already completed, skipping.")
        return
    try:
        run_migrations()
        ensure_seed_data()
        _STARTUP_COMPLETE = True
        logger.info("Startup tasks completed.")
    except Exception as e:
        logger.error(f"Startup tasks failed: {e}", exc_info=True)
        raise


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting application...")
    # Server won't accept requests until these complete
    run_startup_tasks()
    logger.info("Inkwell API server ready")
    yield
    logger.info("Shutting down application...")


app = FastAPI(
    title="Inkwell API",
    version="1.0.0",
    description="Multi-author blog and publishing API",
    lifespan=lifespan,
)
app.state.services = build_services()

if "*" in CORS_ORIGINS:
    logger.warning(
        "CORS is configured to allow all origins. "
        "This is insecure for production. Set CORS_ORIGINS to specific domains."
    )

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "Accept", "Origin", "X-Requested-With"],
    max_age=600,  # Cache preflight requests for 10 minutes
)
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(ActivityLogMiddleware)

register_exception_handlers(app)

app.include_router(system.router)
app.include_router(auth.router)
app.include_router(users.router)
app.include_router(posts.router)
app.include_router(comments.router)
app.include_router(categories.router)
app.include_router(tags.router)
app.include_router(bookmarks.router)
app.include_router(notifications.router)
app.include_router(media.router)
app.include_router(admin.router)
app.include_router(reports.router)
app.include_router(newsletter.router)

# Uploaded media, served as /uploads/{user_id}/{filename}
uploads_path = Path(UPLOADS_DIR)
uploads_path.mkdir(parents=True, exist_ok=True)
app.mount("/uploads", StaticFiles(directory=str(uploads_path)), name="uploads")
