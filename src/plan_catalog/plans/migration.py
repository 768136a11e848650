"""Storage health scan and path relinking for plan files."""

from __future__ import annotations

import logging
from enum import StrEnum
from typing import Iterable, Literal, Optional

from pydantic import ConfigDict, Field
from starlette.concurrency import run_in_threadpool

from .files import PlanFileStore
from .models import CamelModel, Plan
from .repository import PlanRepository

logger = logging.getLogger(__name__)


class FileHealth(StrEnum):
    HEALTHY = "healthy"
    RECOVERABLE = "recoverable"
    PROBLEMATIC = "problematic"


class PlanFileReport(CamelModel):
    plan_id: str
    title: str
    file_path: Optional[str] = None
    status: FileHealth
    resolved_path: Optional[str] = None
    canonical_path: Optional[str] = None


class ScanReport(CamelModel):
    total_plans: int = 0
    healthy: int = 0
    recoverable: int = 0
    problematic: int = 0
    details: list[PlanFileReport] = Field(default_factory=list)


class FixDetail(CamelModel):
    plan_id: str
    success: bool
    message: str
    file_path: Optional[str] = None


class FixReport(CamelModel):
    total_processed: int = 0
    successful: int = 0
    failed: int = 0
    details: list[FixDetail] = Field(default_factory=list)


def inspect_plan(plan: Plan, files: PlanFileStore) -> PlanFileReport:
    report = PlanFileReport(plan_id=plan.id, title=plan.title, file_path=plan.file_path, status=FileHealth.PROBLEMATIC)
    resolved = files.resolve(plan.file_path)
    if resolved is None:
        return report
    report.resolved_path = str(resolved.path)
    if resolved.direct:
        report.status = FileHealth.HEALTHY
    else:
        report.status = FileHealth.RECOVERABLE
        report.canonical_path = files.canonical_path(plan.file_path or "")
    return report


async def scan(repo: PlanRepository, files: PlanFileStore) -> ScanReport:
    report = ScanReport()
    async for plan in repo.iter_all():
        item = await run_in_threadpool(inspect_plan, plan, files)
        report.details.append(item)
        report.total_plans += 1
        if item.status is FileHealth.HEALTHY:
            report.healthy += 1
        elif item.status is FileHealth.RECOVERABLE:
            report.recoverable += 1
        else:
            report.problematic += 1
    logger.info(
        "File scan: total=%d healthy=%d recoverable=%d problematic=%d",
        report.total_plans, report.healthy, report.recoverable, report.problematic,
    )
    return report


async def relink(repo: PlanRepository, files: PlanFileStore, plan_ids: Iterable[str]) -> FixReport:
    """Rewrite ``filePath`` of recoverable plans to their location under the upload root.

    A plan is relinked only when its file actually exists in the upload root.
    """
    report = FixReport()
    for plan_id in plan_ids:
        report.total_processed += 1
        detail = await _relink_one(repo, files, plan_id)
        report.details.append(detail)
        if detail.success:
            report.successful += 1
        else:
            report.failed += 1
    return report


async def _relink_one(repo: PlanRepository, files: PlanFileStore, plan_id: str) -> FixDetail:
    plan = await repo.get(plan_id)
    if plan is None:
        return FixDetail(plan_id=plan_id, success=False, message="Plan not found")
    item = await run_in_threadpool(inspect_plan, plan, files)
    if item.status is FileHealth.HEALTHY:
        return FixDetail(plan_id=plan_id, success=True, message="Already healthy", file_path=plan.file_path)
    if item.status is FileHealth.PROBLEMATIC or not plan.file_path:
        return FixDetail(plan_id=plan_id, success=False, message="File not found")

    canonical = files.canonical_path(plan.file_path)
    target = await files.locate(canonical)
    if target is None or not target.direct:
        return FixDetail(plan_id=plan_id, success=False, message="File is not under the upload root")

    await repo.set_file_path(plan_id, canonical)
    logger.info("Relinked plan file", extra={"plan_id": plan_id})
    return FixDetail(plan_id=plan_id, success=True, message="Path updated", file_path=canonical)


class MigrationFixRequest(CamelModel):
    model_config = ConfigDict(extra="forbid")

    plan_ids: list[str] = Field(min_length=1)
    action: Literal["update-paths"] = "update-paths"
