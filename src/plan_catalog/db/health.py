from __future__ import annotations

import logging

from pymongo.errors import PyMongoError

from .client import MongoDatabase

logger = logging.getLogger(__name__)


async def mongo_healthcheck(mongo: MongoDatabase) -> bool:
    try:
        return await mongo.ping()
    except PyMongoError as exc:
        logger.warning("Mongo ping failed: %s", exc)
        return False
