from __future__ import annotations

import io

import pytest
from pymongo.errors import AutoReconnect
from starlette.datastructures import Headers, UploadFile

from plan_catalog.exceptions import (
    NoFileUploadedError,
    PlanNotFoundError,
    PlanValidationError,
    UnsupportedFileTypeError,
)
from plan_catalog.plans import files as files_module
from plan_catalog.plans.models import PlanCreate, PlanUpdate
from plan_catalog.plans.service import PlanService
from tests.helpers import PDF_BYTES, download_count


def _upload(data: bytes = PDF_BYTES, filename: str = "plan.pdf", content_type: str = "application/pdf"):
    return UploadFile(file=io.BytesIO(data), filename=filename, headers=Headers({"content-type": content_type}))


@pytest.fixture
def service(plan_repo, file_store, mongo) -> PlanService:
    return PlanService(plan_repo, file_store, receipts=mongo.download_receipts)


@pytest.mark.asyncio
async def test_upload_removes_file_when_insert_fails(service, plan_repo, upload_root, mocker):
    mocker.patch.object(plan_repo, "create", side_effect=AutoReconnect("primary stepped down"))

    with pytest.raises(AutoReconnect):
        await service.upload(PlanCreate(title="Ridge", storeys=1), _upload())

    assert list(upload_root.iterdir()) == []


@pytest.mark.asyncio
async def test_upload_checks_file_before_type(service):
    with pytest.raises(NoFileUploadedError):
        await service.upload(PlanCreate(title="Ridge", storeys=1), None)
    with pytest.raises(UnsupportedFileTypeError):
        await service.upload(PlanCreate(title="Ridge", storeys=1), _upload(content_type="image/png"))


@pytest.mark.asyncio
async def test_long_file_names_are_truncated(service):
    plan = await service.upload(PlanCreate(title="Ridge", storeys=1), _upload(filename="x" * 300 + ".pdf"))
    assert len(plan.file_name) == 255


@pytest.mark.asyncio
async def test_update_clearing_description_clears_keywords(service, seed_plan):
    doc = seed_plan(description="brick house", extractedKeywords=["brick", "house"])
    plan = await service.update(str(doc["_id"]), PlanUpdate(description=None))
    assert plan.description is None
    assert plan.extracted_keywords == []


@pytest.mark.asyncio
async def test_download_without_receipts_store_always_counts(plan_repo, file_store, seed_plan, mongo):
    doc = seed_plan()
    service = PlanService(plan_repo, file_store)
    for _ in range(2):
        result = await service.download(str(doc["_id"]), idempotency_key="same")
        assert result.counted
    assert download_count(mongo, doc["_id"]) == 2


@pytest.mark.asyncio
async def test_reset_missing_plan(service):
    with pytest.raises(PlanNotFoundError):
        await service.reset_downloads("nope")


@pytest.mark.asyncio
async def test_download_checks_disk_off_the_event_loop(service, file_store, seed_plan, mocker):
    spy = mocker.spy(files_module, "run_in_threadpool")
    doc = seed_plan()
    await service.download(str(doc["_id"]))
    called = [c.args[0] for c in spy.call_args_list]
    assert called == [file_store.resolve, file_store._intact]


class TestLotRangeUpdate:
    @pytest.mark.asyncio
    async def test_min_above_stored_max_is_rejected(self, service, seed_plan, mongo):
        doc = seed_plan(lotSizeMin=300.0, lotSizeMax=450.0)
        with pytest.raises(PlanValidationError) as exc:
            await service.update(str(doc["_id"]), PlanUpdate(lot_size_min=500))
        assert exc.value.errors[0]["field"] == "lotSizeMin"
        assert mongo.plans.sync.find_one({"_id": doc["_id"]})["lotSizeMin"] == 300.0

    @pytest.mark.asyncio
    async def test_max_below_stored_min_is_rejected(self, service, seed_plan):
        doc = seed_plan(lotSizeMin=300.0, lotSizeMax=450.0)
        with pytest.raises(PlanValidationError):
            await service.update(str(doc["_id"]), PlanUpdate(lot_size_max=200))

    @pytest.mark.asyncio
    async def test_one_sided_change_within_range(self, service, seed_plan):
        doc = seed_plan(lotSizeMin=300.0, lotSizeMax=450.0)
        plan = await service.update(str(doc["_id"]), PlanUpdate(lot_size_min=400))
        assert (plan.lot_size_min, plan.lot_size_max) == (400, 450)

    @pytest.mark.asyncio
    async def test_clearing_one_end_is_allowed(self, service, seed_plan):
        doc = seed_plan(lotSizeMin=300.0, lotSizeMax=450.0)
        plan = await service.update(str(doc["_id"]), PlanUpdate(lot_size_max=None))
        assert plan.lot_size_max is None
