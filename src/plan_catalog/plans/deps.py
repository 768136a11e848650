from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Request

from ..db.integration import MongoDep
from .files import PlanFileStore
from .repository import PlanRepository
from .service import PlanService


def get_file_store(request: Request) -> PlanFileStore:
    return request.app.state.file_store  # type: ignore[attr-defined]


FileStoreDep = Annotated[PlanFileStore, Depends(get_file_store)]


def get_plan_repository(mongo: MongoDep) -> PlanRepository:
    return PlanRepository(mongo.plans)


PlanRepositoryDep = Annotated[PlanRepository, Depends(get_plan_repository)]


def get_plan_service(repo: PlanRepositoryDep, files: FileStoreDep, mongo: MongoDep) -> PlanService:
    return PlanService(repo, files, receipts=mongo.download_receipts)


PlanServiceDep = Annotated[PlanService, Depends(get_plan_service)]
