from __future__ import annotations

from fastapi import APIRouter, Depends

from plan_catalog.auth.deps import require_admin
from plan_catalog.plans.deps import PlanServiceDep
from plan_catalog.plans.models import PlanStats

ROUTER_PREFIX = "/admin"
ROUTER_TAG = "Admin"

router = APIRouter(dependencies=[Depends(require_admin)])


@router.get("/stats", response_model=PlanStats)
async def get_stats(service: PlanServiceDep) -> PlanStats:
    """Active plan count, their summed downloads, and uploads in the last 24 hours."""
    return await service.stats()
