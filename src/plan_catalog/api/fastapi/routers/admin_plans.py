"""Admin plan management: listing, upload, edit, delete, counter reset and file relinking."""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Body, Depends, Request

from plan_catalog.auth.deps import AdminDep, require_admin
from plan_catalog.plans.deps import FileStoreDep, PlanRepositoryDep, PlanServiceDep
from plan_catalog.plans.filters import ADMIN_SCOPE, PlanFilters
from plan_catalog.plans.forms import read_upload_form
from plan_catalog.plans.migration import FixReport, MigrationFixRequest, ScanReport, relink, scan
from plan_catalog.plans.models import DownloadCountReset, MessageResponse, Plan, PlanUpdate

ROUTER_PREFIX = "/admin/plans"
ROUTER_TAG = "Admin"

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(require_admin)])


@router.get("", response_model=list[Plan])
async def list_plans(request: Request, service: PlanServiceDep) -> list[Plan]:
    """All plans regardless of status. Same filters as the public search, limit defaults to 50."""
    filters = PlanFilters.from_params(request.query_params, ADMIN_SCOPE)
    return await service.search(filters)


@router.post("", response_model=Plan)
async def upload_plan(request: Request, service: PlanServiceDep, admin: AdminDep) -> Plan:
    """Multipart upload: a ``file`` part (application/pdf) plus metadata fields."""
    metadata, upload = await read_upload_form(request)
    try:
        return await service.upload(metadata, upload, uploaded_by=admin.email)
    finally:
        if upload is not None:
            await upload.close()


@router.get("/migration-scan", response_model=ScanReport)
async def migration_scan(repo: PlanRepositoryDep, files: FileStoreDep) -> ScanReport:
    return await scan(repo, files)


@router.post("/migration-fix", response_model=FixReport)
async def migration_fix(body: MigrationFixRequest, repo: PlanRepositoryDep, files: FileStoreDep) -> FixReport:
    return await relink(repo, files, body.plan_ids)


@router.put("/{plan_id}", response_model=Plan)
async def update_plan(plan_id: str, patch: PlanUpdate, service: PlanServiceDep) -> Plan:
    return await service.update(plan_id, patch)


@router.delete("/{plan_id}", response_model=MessageResponse)
async def delete_plan(plan_id: str, service: PlanServiceDep) -> MessageResponse:
    await service.delete(plan_id)
    return MessageResponse(message="Plan deleted successfully")


@router.post("/{plan_id}/reset-downloads", response_model=Plan)
async def reset_downloads(
        plan_id: str,
        service: PlanServiceDep,
        admin: AdminDep,
        body: Optional[DownloadCountReset] = Body(default=None),
) -> Plan:
    count = body.count if body else 0
    logger.info("Counter reset requested by %s", admin.email, extra={"plan_id": plan_id})
    return await service.reset_downloads(plan_id, count)
