from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Annotated, Optional

from fastapi import Depends, FastAPI, Request

from .client import MongoDatabase
from .settings import MongoSettings, get_mongo_settings

logger = logging.getLogger(__name__)


def attach_mongo(
        app: FastAPI,
        *,
        settings: Optional[MongoSettings] = None,
        database: Optional[MongoDatabase] = None,
) -> None:
    """Open the Mongo client on startup, expose it on ``app.state.mongo``, close it on shutdown.

    A prebuilt ``database`` is used as-is (and still closed on shutdown); otherwise
    the client is built from ``settings`` (or the environment) when the app starts.
    """
    existing = getattr(app.router, "lifespan_context", None)  # type: ignore[attr-defined]

    @asynccontextmanager
    async def composed_lifespan(_app: FastAPI):
        mongo = database or MongoDatabase.from_settings(settings or get_mongo_settings())
        _app.state.mongo = mongo  # type: ignore[attr-defined]
        try:
            logger.info("Mongo attached: db=%s", mongo.name)
            if existing:
                async with existing(_app):  # type: ignore[misc]
                    yield
            else:
                yield
        finally:
            mongo.close()
            logger.info("Mongo client closed")

    app.router.lifespan_context = composed_lifespan  # type: ignore[attr-defined]


def get_mongo(request: Request) -> MongoDatabase:
    return request.app.state.mongo  # type: ignore[attr-defined]


MongoDep = Annotated[MongoDatabase, Depends(get_mongo)]
