"""Public plan endpoints: search, detail, download and inline view."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Header, Request
from fastapi.responses import FileResponse

from plan_catalog.plans.deps import PlanServiceDep
from plan_catalog.plans.filters import PUBLIC_SCOPE, PlanFilters
from plan_catalog.plans.models import Plan, TotalDownloads
from plan_catalog.plans.service import PDF_MIME, PlanDownload

ROUTER_PREFIX = "/plans"
ROUTER_TAG = "Plans"

router = APIRouter()


def _file_response(download: PlanDownload, disposition: str) -> FileResponse:
    return FileResponse(
        download.path,
        media_type=PDF_MIME,
        filename=download.filename,
        content_disposition_type=disposition,
    )


@router.get("/search", response_model=list[Plan])
async def search_plans(request: Request, service: PlanServiceDep) -> list[Plan]:
    """Search active plans.

    Query params: lotSize, orientation, siteType, foundationType, storeys,
    councilArea, planType, houseType, roadPosition, builderName, bedrooms,
    constructionType, search, sortBy, sortOrder, limit (default 20), offset.
    Unparseable paging values fall back to defaults instead of failing.
    """
    filters = PlanFilters.from_params(request.query_params, PUBLIC_SCOPE)
    return await service.search(filters)


@router.get("/total-downloads", response_model=TotalDownloads)
async def total_downloads(service: PlanServiceDep) -> TotalDownloads:
    return TotalDownloads(total_downloads=await service.total_downloads())


@router.get("/{plan_id}", response_model=Plan)
async def get_plan(plan_id: str, service: PlanServiceDep) -> Plan:
    return await service.get(plan_id)


@router.get("/{plan_id}/download", response_class=FileResponse)
async def download_plan(
        plan_id: str,
        service: PlanServiceDep,
        idempotency_key: Optional[str] = Header(default=None, alias="Idempotency-Key"),
) -> FileResponse:
    """Stream the PDF as an attachment and count the download.

    Retrying with the same ``Idempotency-Key`` header is not counted twice.
    """
    download = await service.download(plan_id, idempotency_key=idempotency_key)
    return _file_response(download, "attachment")


@router.get("/{plan_id}/view", response_class=FileResponse)
async def view_plan(plan_id: str, service: PlanServiceDep) -> FileResponse:
    download = await service.view(plan_id)
    return _file_response(download, "inline")
