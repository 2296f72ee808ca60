from __future__ import annotations

import logging
from typing import Dict

from dotenv import load_dotenv

# Load environment variables from .env at project root
# This runs before the app is created so all downstream modules see the env.
load_dotenv()

from fastapi import FastAPI  # noqa: E402
from fastapi.middleware.cors import CORSMiddleware  # noqa: E402

from crm_backend.config import settings  # noqa: E402
from crm_backend.db import init_db  # noqa: E402
from crm_backend.logging_config import configure_logging  # noqa: E402
from crm_backend.routers import activities as activities_router  # noqa: E402
from crm_backend.routers import contacts as contacts_router  # noqa: E402
from crm_backend.routers import dashboard as dashboard_router  # noqa: E402
from crm_backend.routers import deals as deals_router  # noqa: E402
from crm_backend.routers import pipeline as pipeline_router  # noqa: E402
from crm_backend.routers import tasks as tasks_router  # noqa: E402
from crm_backend.routers import users as users_router  # noqa: E402

logger = logging.getLogger("crm_backend.main")


def create_app() -> FastAPI:
    configure_logging()

    app = FastAPI(title=settings.app_name, debug=settings.debug)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )

    # Dashboard + pipeline views
    app.include_router(dashboard_router.router)
    app.include_router(pipeline_router.router)

    # Entity endpoints
    app.include_router(users_router.router)
    app.include_router(contacts_router.router)
    app.include_router(deals_router.router)
    app.include_router(tasks_router.router)
    app.include_router(activities_router.router)

    @app.on_event("startup")
    async def on_startup() -> None:
        """Initialize resources on startup."""
        logger.info("Starting %s (env=%s)", settings.app_name, settings.environment)
        init_db()

    @app.get("/health", tags=["health"])
    def health() -> Dict[str, str]:
        return {"status": "ok"}

    return app


app = create_app()
