import os
import logging
from collections import defaultdict
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.routing import APIRoute

from plan_catalog.api.fastapi.middleware.errors import CatchAllExceptionMiddleware, register_error_handlers
from plan_catalog.api.fastapi.middleware.request_size_limit import RequestSizeLimitMiddleware
from plan_catalog.api.fastapi.routers import register_all_routers
from plan_catalog.app.core.env import get_env
from plan_catalog.app.settings import AppSettings, get_app_settings
from plan_catalog.db.client import MongoDatabase
from plan_catalog.db.integration import attach_mongo
from plan_catalog.db.settings import MongoSettings
from plan_catalog.plans.files import PlanFileStore

logger = logging.getLogger(__name__)

API_PREFIX = "/api"

# Room for multipart boundaries and metadata fields on top of the file itself.
FORM_OVERHEAD_BYTES = 1024 * 1024


def _gen_operation_id_factory():
    used: dict[str, int] = defaultdict(int)

    def _gen(route: APIRoute) -> str:
        base = route.name or getattr(route.endpoint, "__name__", "op")
        candidate = base
        if used[candidate]:
            method = next(iter(route.methods or ["GET"])).lower()
            candidate = f"{base}_{method}"
            if used[candidate]:
                candidate = f"{candidate}_{used[candidate] + 1}"
        used[candidate] += 1
        return candidate

    return _gen


def _cors_origins(app_settings: AppSettings) -> list[str]:
    raw = app_settings.cors_origins or os.getenv("CORS_ORIGIN", "http://localhost:3000")
    return [o.strip() for o in raw.split(",") if o.strip()]


def create_app(
        app_settings: Optional[AppSettings] = None,
        *,
        mongo_settings: Optional[MongoSettings] = None,
        database: Optional[MongoDatabase] = None,
) -> FastAPI:
    """Build the catalog API.

    The Mongo client is opened in the app lifespan (see ``attach_mongo``); pass
    ``database`` to supply a prebuilt one.
    """
    app_settings = app_settings or get_app_settings()

    app = FastAPI(
        title=app_settings.name,
        version=app_settings.version,
        generate_unique_id_function=_gen_operation_id_factory(),
    )
    app.state.settings = app_settings
    app.state.file_store = PlanFileStore(app_settings.upload_dir, max_bytes=app_settings.max_upload_bytes)

    app.add_middleware(RequestSizeLimitMiddleware, max_bytes=app_settings.max_upload_bytes + FORM_OVERHEAD_BYTES)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=_cors_origins(app_settings),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Error handling
    app.add_middleware(CatchAllExceptionMiddleware)
    register_error_handlers(app)

    attach_mongo(app, settings=mongo_settings, database=database)
    register_all_routers(app, prefix=API_PREFIX)

    logger.info(
        f"{app_settings.version} version of {app_settings.name} initialized "
        f"[env: {get_env()}, uploads: {app.state.file_store.upload_dir}]"
    )
    return app


__all__ = ["create_app", "API_PREFIX"]
