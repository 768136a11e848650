from __future__ import annotations

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from plan_catalog.db.health import mongo_healthcheck
from plan_catalog.db.integration import MongoDep

ROUTER_PREFIX = "/health"
ROUTER_TAG = "Health"

router = APIRouter()


@router.get("")
async def health() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/db")
async def db_health(mongo: MongoDep) -> JSONResponse:
    ok = await mongo_healthcheck(mongo)
    return JSONResponse(
        status_code=200 if ok else 503,
        content={"status": "ok" if ok else "unavailable"},
    )
