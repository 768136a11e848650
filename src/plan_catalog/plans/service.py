from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from pymongo.errors import DuplicateKeyError
from starlette.datastructures import UploadFile

from ..exceptions import (
    NoFileUploadedError,
    PlanFileCorruptError,
    PlanFileMissingError,
    PlanNotFoundError,
    PlanValidationError,
    UnsupportedFileTypeError,
)
from .files import PlanFileStore
from .filters import PlanFilters
from .keywords import extract_keywords
from .models import Plan, PlanCreate, PlanStats, PlanUpdate
from .repository import PlanRepository, utcnow

logger = logging.getLogger(__name__)

PDF_MIME = "application/pdf"


@dataclass(frozen=True)
class PlanDownload:
    plan: Plan
    path: Path
    filename: str
    counted: bool


class PlanService:
    """Plan use cases: search, upload, edit, delete, download bookkeeping."""

    def __init__(self, repo: PlanRepository, files: PlanFileStore, receipts: Any = None):
        self.repo = repo
        self.files = files
        self.receipts = receipts

    async def search(self, filters: PlanFilters) -> list[Plan]:
        return await self.repo.search(filters)

    async def get(self, plan_id: str) -> Plan:
        plan = await self.repo.get(plan_id)
        if plan is None:
            raise PlanNotFoundError()
        return plan

    async def upload(
            self,
            metadata: PlanCreate,
            upload: Optional[UploadFile],
            *,
            uploaded_by: Optional[str] = None,
    ) -> Plan:
        """Store the PDF and insert the plan. Metadata must already be validated.

        The file is removed again if the insert fails.
        """
        if upload is None or not upload.filename:
            raise NoFileUploadedError()
        if upload.content_type != PDF_MIME:
            logger.info("Rejected upload %r with content type %r", upload.filename, upload.content_type)
            raise UnsupportedFileTypeError()

        stored = await self.files.save(upload.file, upload.filename)

        document = metadata.to_document()
        document.update(
            fileName=upload.filename[:255],
            filePath=stored.file_path,
            fileSize=stored.size,
            extractedKeywords=extract_keywords(metadata.description).keywords,
            uploadedBy=uploaded_by,
        )
        try:
            plan = await self.repo.create(document)
        except Exception:
            await self.files.discard(stored.path)
            raise
        logger.info("Plan uploaded: %s (%d bytes)", plan.title, stored.size, extra={"plan_id": plan.id})
        return plan

    async def update(self, plan_id: str, patch: PlanUpdate) -> Plan:
        changes = patch.to_changes()
        if ("lotSizeMin" in changes) != ("lotSizeMax" in changes):
            await self._check_lot_range(plan_id, changes)
        if "description" in changes:
            changes["extractedKeywords"] = extract_keywords(changes["description"]).keywords
        plan = await self.repo.update(plan_id, changes)
        if plan is None:
            raise PlanNotFoundError()
        logger.info("Plan updated: fields=%s", sorted(changes), extra={"plan_id": plan_id})
        return plan

    async def _check_lot_range(self, plan_id: str, changes: dict[str, Any]) -> None:
        """A patch touching one end of the lot range must stay ordered against the stored other end."""
        stored = await self.get(plan_id)
        low = changes.get("lotSizeMin", stored.lot_size_min)
        high = changes.get("lotSizeMax", stored.lot_size_max)
        if low is not None and high is not None and low > high:
            field = "lotSizeMin" if "lotSizeMin" in changes else "lotSizeMax"
            raise PlanValidationError([{"field": field, "message": "lotSizeMin must not exceed lotSizeMax"}])

    async def delete(self, plan_id: str) -> Plan:
        plan = await self.repo.delete(plan_id)
        if plan is None:
            raise PlanNotFoundError()
        resolved = await self.files.locate(plan.file_path)
        removed = resolved is not None and await self.files.discard(resolved.path)
        logger.info("Plan deleted (file removed: %s)", removed, extra={"plan_id": plan_id})
        return plan

    async def _locate(self, plan_id: str) -> tuple[Plan, Path]:
        plan = await self.get(plan_id)
        resolved = await self.files.locate(plan.file_path)
        if resolved is None:
            logger.warning("No file on disk for stored path %r", plan.file_path, extra={"plan_id": plan_id})
            raise PlanFileMissingError()
        if not await self.files.is_intact(resolved.path):
            logger.error("Stored file %s is empty or not a PDF", resolved.path, extra={"plan_id": plan_id})
            raise PlanFileCorruptError()
        return plan, resolved.path

    async def _first_receipt(self, plan_id: str, key: str) -> bool:
        try:
            result = await self.receipts.update_one(
                {"_id": f"{plan_id}:{key}"},
                {"$setOnInsert": {"planId": plan_id, "createdAt": utcnow()}},
                upsert=True,
            )
        except DuplicateKeyError:
            return False
        return result.upserted_id is not None

    async def download(self, plan_id: str, *, idempotency_key: Optional[str] = None) -> PlanDownload:
        """Resolve the plan file and count the download before streaming starts.

        A repeated ``idempotency_key`` for the same plan is served without counting again.
        """
        plan, path = await self._locate(plan_id)

        counted = True
        if idempotency_key and self.receipts is not None:
            counted = await self._first_receipt(plan.id, idempotency_key)
        if counted:
            if await self.repo.increment_download_count(plan.id) is None:
                raise PlanNotFoundError()
            logger.info("Download counted", extra={"plan_id": plan.id})
        return PlanDownload(plan=plan, path=path, filename=plan.download_name, counted=counted)

    async def view(self, plan_id: str) -> PlanDownload:
        plan, path = await self._locate(plan_id)
        return PlanDownload(plan=plan, path=path, filename=plan.download_name, counted=False)

    async def reset_downloads(self, plan_id: str, count: int = 0) -> Plan:
        plan = await self.repo.reset_download_count(plan_id, count)
        if plan is None:
            raise PlanNotFoundError()
        logger.warning("Download count reset to %d", count, extra={"plan_id": plan_id})
        return plan

    async def stats(self) -> PlanStats:
        return await self.repo.stats()

    async def total_downloads(self) -> int:
        return await self.repo.total_downloads()
