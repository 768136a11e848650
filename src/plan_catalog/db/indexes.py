from __future__ import annotations

import logging

from pymongo import ASCENDING, DESCENDING, TEXT

from .client import MongoDatabase

logger = logging.getLogger(__name__)

# (keys, options) per index on the plans collection; mirrors the filters the search endpoint builds.
PLAN_INDEXES: list[tuple[list[tuple[str, object]], dict[str, object]]] = [
    ([("title", TEXT), ("description", TEXT), ("builderName", TEXT)], {"name": "plan_text"}),
    ([("status", ASCENDING), ("createdAt", DESCENDING)], {"name": "status_created"}),
    ([("status", ASCENDING), ("storeys", ASCENDING)], {"name": "status_storeys"}),
    ([("status", ASCENDING), ("councilArea", ASCENDING)], {"name": "status_council"}),
    ([("status", ASCENDING), ("orientation", ASCENDING)], {"name": "status_orientation"}),
    ([("status", ASCENDING), ("lotSize", ASCENDING)], {"name": "status_lot_size"}),
    ([("constructionType", ASCENDING)], {"name": "construction_type"}),
    ([("downloadCount", DESCENDING)], {"name": "download_count"}),
]


async def ensure_indexes(mongo: MongoDatabase, *, receipt_ttl_seconds: int) -> list[str]:
    """Create the catalog indexes if missing. Returns the index names touched."""
    names: list[str] = []
    for keys, options in PLAN_INDEXES:
        names.append(await mongo.plans.create_index(keys, **options))

    names.append(await mongo.admins.create_index([("email", ASCENDING)], name="admin_email", unique=True))
    names.append(
        await mongo.download_receipts.create_index(
            [("createdAt", ASCENDING)],
            name="receipt_ttl",
            expireAfterSeconds=receipt_ttl_seconds,
        )
    )
    logger.info("Ensured %d indexes on db=%s", len(names), mongo.name)
    return names
