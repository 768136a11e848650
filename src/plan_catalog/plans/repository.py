from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, AsyncIterator, Optional

from bson import ObjectId
from pymongo import ReturnDocument

from .filters import PlanFilters
from .models import ACTIVE, Plan, PlanStats

logger = logging.getLogger(__name__)

RECENT_WINDOW = timedelta(hours=24)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_object_id(plan_id: str) -> Optional[ObjectId]:
    """Parse a plan id; malformed ids yield None so callers can treat them as not found."""
    if isinstance(plan_id, ObjectId):
        return plan_id
    if not plan_id or not ObjectId.is_valid(plan_id):
        return None
    return ObjectId(plan_id)


class PlanRepository:
    """Async access to the ``plans`` collection (a Motor collection or compatible)."""

    def __init__(self, collection: Any):
        self.collection = collection

    async def search(self, filters: PlanFilters) -> list[Plan]:
        cursor = self.collection.find(filters.to_query(), **filters.find_kwargs())
        return [Plan.from_document(doc) async for doc in cursor]

    async def get(self, plan_id: str) -> Optional[Plan]:
        oid = to_object_id(plan_id)
        if oid is None:
            return None
        doc = await self.collection.find_one({"_id": oid})
        return Plan.from_document(doc) if doc else None

    async def create(self, document: dict[str, Any]) -> Plan:
        now = utcnow()
        doc = {
            **document,
            "status": document.get("status") or ACTIVE,
            "downloadCount": 0,
            "createdAt": now,
            "updatedAt": now,
        }
        result = await self.collection.insert_one(doc)
        doc["_id"] = result.inserted_id
        return Plan.from_document(doc)

    async def update(self, plan_id: str, changes: dict[str, Any]) -> Optional[Plan]:
        oid = to_object_id(plan_id)
        if oid is None:
            return None
        # Counter and identity are never writable through an edit.
        changes = {k: v for k, v in changes.items() if k not in ("_id", "downloadCount", "createdAt")}
        changes["updatedAt"] = utcnow()
        doc = await self.collection.find_one_and_update(
            {"_id": oid},
            {"$set": changes},
            return_document=ReturnDocument.AFTER,
        )
        return Plan.from_document(doc) if doc else None

    async def set_file_path(self, plan_id: str, file_path: str) -> bool:
        oid = to_object_id(plan_id)
        if oid is None:
            return False
        result = await self.collection.update_one(
            {"_id": oid},
            {"$set": {"filePath": file_path, "updatedAt": utcnow()}},
        )
        return result.matched_count == 1

    async def delete(self, plan_id: str) -> Optional[Plan]:
        oid = to_object_id(plan_id)
        if oid is None:
            return None
        doc = await self.collection.find_one_and_delete({"_id": oid})
        return Plan.from_document(doc) if doc else None

    async def increment_download_count(self, plan_id: str) -> Optional[int]:
        """Atomically add one to ``downloadCount``. Returns the new value, None if the plan is gone."""
        oid = to_object_id(plan_id)
        if oid is None:
            return None
        doc = await self.collection.find_one_and_update(
            {"_id": oid},
            {"$inc": {"downloadCount": 1}},
            projection={"downloadCount": 1},
            return_document=ReturnDocument.AFTER,
        )
        return doc["downloadCount"] if doc else None

    async def reset_download_count(self, plan_id: str, count: int = 0) -> Optional[Plan]:
        oid = to_object_id(plan_id)
        if oid is None:
            return None
        doc = await self.collection.find_one_and_update(
            {"_id": oid},
            {"$set": {"downloadCount": count, "updatedAt": utcnow()}},
            return_document=ReturnDocument.AFTER,
        )
        return Plan.from_document(doc) if doc else None

    async def total_downloads(self) -> int:
        pipeline = [
            {"$match": {"status": ACTIVE}},
            {"$group": {"_id": None, "total": {"$sum": "$downloadCount"}}},
        ]
        total = 0
        async for row in self.collection.aggregate(pipeline):
            total = row.get("total") or 0
        return int(total)

    async def stats(self, *, now: Optional[datetime] = None) -> PlanStats:
        now = now or utcnow()
        total_plans = await self.collection.count_documents({"status": ACTIVE})
        recent = await self.collection.count_documents(
            {"status": ACTIVE, "createdAt": {"$gte": now - RECENT_WINDOW}}
        )
        return PlanStats(
            total_plans=total_plans,
            total_downloads=await self.total_downloads(),
            recent_uploads=recent,
        )

    async def iter_all(self) -> AsyncIterator[Plan]:
        async for doc in self.collection.find({}, sort=[("createdAt", -1), ("_id", -1)]):
            yield Plan.from_document(doc)
