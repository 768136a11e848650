"""Admin plan management endpoints."""

from __future__ import annotations

import pytest
from bson import ObjectId

from plan_catalog.auth.deps import NO_TOKEN
from plan_catalog.auth.tokens import create_access_token
from plan_catalog.plans.repository import utcnow
from tests.helpers import ADMIN_EMAIL, PDF_BYTES, download_count

PDF_PART = ("harbour-view.pdf", PDF_BYTES, "application/pdf")


def _stored_files(upload_root):
    return sorted(upload_root.iterdir()) if upload_root.exists() else []


# =============================================================================
# Access control
# =============================================================================


@pytest.mark.security
@pytest.mark.parametrize(
    "method,path",
    [
        ("GET", "/api/admin/plans"),
        ("POST", "/api/admin/plans"),
        ("PUT", f"/api/admin/plans/{ObjectId()}"),
        ("DELETE", f"/api/admin/plans/{ObjectId()}"),
        ("POST", f"/api/admin/plans/{ObjectId()}/reset-downloads"),
        ("GET", "/api/admin/plans/migration-scan"),
        ("GET", "/api/admin/stats"),
    ],
)
@pytest.mark.asyncio
async def test_admin_routes_require_a_session(client, method, path):
    r = await client.request(method, path)
    assert r.status_code == 401
    assert r.json() == {"message": NO_TOKEN}


@pytest.mark.security
@pytest.mark.asyncio
async def test_bearer_token_is_accepted(client, admin_doc, auth_settings):
    token = create_access_token(str(admin_doc["_id"]), ADMIN_EMAIL, auth_settings)
    r = await client.get("/api/admin/plans", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 200


# =============================================================================
# Upload
# =============================================================================


class TestUpload:
    @pytest.mark.asyncio
    async def test_upload_applies_defaults_and_keywords(self, admin_client, upload_root, mongo):
        r = await admin_client.post(
            "/api/admin/plans",
            data={
                "title": "Harbour View",
                "storeys": "2",
                "description": "A modern double storey 4 bedroom home in Sydney",
                "constructionType": '["Brick", "Hebel"]',
                "outdoorFeatures": ["Pool", "Deck"],
                "councilArea": "",
            },
            files={"file": PDF_PART},
        )

        assert r.status_code == 200, r.text
        body = r.json()
        assert body["title"] == "Harbour View"
        assert (body["bedrooms"], body["toilets"], body["livingAreas"]) == (3, 2, 1)
        assert body["constructionType"] == ["Brick", "Hebel"]
        assert body["outdoorFeatures"] == ["Pool", "Deck"]
        assert body["councilArea"] is None
        assert body["status"] == "active"
        assert body["downloadCount"] == 0
        assert body["fileName"] == "harbour-view.pdf"
        assert body["fileSize"] == len(PDF_BYTES)
        assert body["uploadedBy"] == ADMIN_EMAIL
        assert {"4 bedroom", "double storey", "modern", "sydney"} <= set(body["extractedKeywords"])

        stored = _stored_files(upload_root)
        assert len(stored) == 1
        assert body["filePath"] == f"uploads/{stored[0].name}"
        assert stored[0].read_bytes() == PDF_BYTES
        assert mongo.plans.sync.count_documents({}) == 1

    @pytest.mark.asyncio
    async def test_uploaded_metadata_is_persisted(self, admin_client):
        form = {
            "title": "Coastal Retreat",
            "description": "Single storey beach house",
            "planType": "Residential",
            "storeys": "1",
            "lotSize": "Medium",
            "lotSizeMin": "300",
            "lotSizeMax": "450.5",
            "orientation": "North",
            "siteType": "Sloping",
            "foundationType": "Slab",
            "councilArea": "Penrith",
            "roadPosition": "Corner",
            "houseType": "Villa",
            "builderName": "Coastline",
            "constructionType": ["Cladding", "NRG"],
            "plotLength": "32.5",
            "plotWidth": "12",
            "coveredArea": "180.4",
            "totalBuildingHeight": "6.2",
            "roofPitch": "22.5",
            "outdoorFeatures": ["Alfresco", "Garden"],
            "indoorFeatures": ["Study", "Walk-in Robe"],
        }
        created = await admin_client.post("/api/admin/plans", data=form, files={"file": PDF_PART})
        assert created.status_code == 200, created.text

        r = await admin_client.get(f"/api/plans/{created.json()['id']}")
        assert r.status_code == 200
        stored = r.json()
        assert stored["id"] == created.json()["id"]
        for field in ("title", "description", "planType", "lotSize", "orientation", "siteType",
                      "foundationType", "councilArea", "roadPosition", "houseType", "builderName",
                      "constructionType", "outdoorFeatures", "indoorFeatures"):
            assert stored[field] == form[field], field
        assert stored["storeys"] == 1
        assert (stored["lotSizeMin"], stored["lotSizeMax"]) == (300, 450.5)
        assert (stored["plotLength"], stored["plotWidth"], stored["coveredArea"]) == (32.5, 12, 180.4)
        assert stored["totalBuildingHeight"] == 6.2
        assert stored["roofPitch"] == 22.5
        assert (stored["bedrooms"], stored["toilets"], stored["livingAreas"]) == (3, 2, 1)
        assert stored["status"] == "active"
        assert stored["downloadCount"] == 0
        assert stored["uploadedBy"] == ADMIN_EMAIL

    @pytest.mark.asyncio
    async def test_uploaded_plan_is_downloadable(self, admin_client):
        created = (
            await admin_client.post("/api/admin/plans", data={"title": "Ridge", "storeys": "1"}, files={"file": PDF_PART})
        ).json()
        r = await admin_client.get(f"/api/plans/{created['id']}/download")
        assert r.status_code == 200
        assert r.content == PDF_BYTES

    @pytest.mark.security
    @pytest.mark.asyncio
    async def test_non_pdf_is_rejected(self, admin_client, upload_root, mongo):
        r = await admin_client.post(
            "/api/admin/plans",
            data={"title": "Ridge", "storeys": "1"},
            files={"file": ("notes.txt", b"hello", "text/plain")},
        )
        assert r.status_code == 400
        assert r.json() == {"message": "Only PDF files are allowed"}
        assert mongo.plans.sync.count_documents({}) == 0
        assert _stored_files(upload_root) == []

    @pytest.mark.asyncio
    async def test_missing_file(self, admin_client, mongo):
        r = await admin_client.post("/api/admin/plans", data={"title": "Ridge", "storeys": "1"})
        assert r.status_code == 400
        assert r.json() == {"message": "No file uploaded"}
        assert mongo.plans.sync.count_documents({}) == 0

    @pytest.mark.asyncio
    async def test_invalid_metadata_writes_nothing(self, admin_client, upload_root, mongo):
        r = await admin_client.post(
            "/api/admin/plans",
            data={"storeys": "zero", "roofPitch": "40", "constructionType": "Brick,Straw"},
            files={"file": PDF_PART},
        )
        assert r.status_code == 400
        body = r.json()
        assert body["message"] == "Invalid plan data"
        fields = {e["field"] for e in body["errors"]}
        assert {"title", "storeys", "roofPitch"} <= fields
        assert any(f.startswith("constructionType") for f in fields)
        assert mongo.plans.sync.count_documents({}) == 0
        assert _stored_files(upload_root) == []

    @pytest.mark.security
    @pytest.mark.asyncio
    async def test_oversize_file_is_rejected(self, admin_client, upload_root, mongo):
        big = PDF_BYTES + b"0" * (1024 * 1024 + 512 * 1024)
        r = await admin_client.post(
            "/api/admin/plans",
            data={"title": "Ridge", "storeys": "1"},
            files={"file": ("big.pdf", big, "application/pdf")},
        )
        assert r.status_code == 413
        assert mongo.plans.sync.count_documents({}) == 0
        assert _stored_files(upload_root) == []

    @pytest.mark.security
    @pytest.mark.asyncio
    async def test_oversize_request_is_rejected_before_parsing(self, admin_client, upload_root, mongo):
        big = PDF_BYTES + b"0" * (3 * 1024 * 1024)
        r = await admin_client.post(
            "/api/admin/plans",
            data={"title": "Ridge", "storeys": "1"},
            files={"file": ("big.pdf", big, "application/pdf")},
        )
        assert r.status_code == 413
        assert r.json() == {"message": "File exceeds the maximum upload size"}
        assert _stored_files(upload_root) == []


# =============================================================================
# Listing, edit, delete
# =============================================================================


@pytest.mark.asyncio
async def test_admin_list_includes_inactive(admin_client, seed_plan):
    inactive = seed_plan(status="inactive")
    active = seed_plan()
    r = await admin_client.get("/api/admin/plans")
    assert [p["id"] for p in r.json()] == [str(active["_id"]), str(inactive["_id"])]

    r = await admin_client.get("/api/admin/plans", params={"status": "inactive"})
    assert [p["id"] for p in r.json()] == [str(inactive["_id"])]


class TestUpdate:
    @pytest.mark.asyncio
    async def test_partial_update(self, admin_client, seed_plan):
        doc = seed_plan(title="Ridge", bedrooms=3, downloadCount=9)
        r = await admin_client.put(f"/api/admin/plans/{doc['_id']}", json={"bedrooms": 5, "status": "inactive"})
        assert r.status_code == 200
        body = r.json()
        assert (body["title"], body["bedrooms"], body["status"]) == ("Ridge", 5, "inactive")
        assert body["downloadCount"] == 9

    @pytest.mark.asyncio
    async def test_description_change_refreshes_keywords(self, admin_client, seed_plan):
        doc = seed_plan(extractedKeywords=["old"])
        r = await admin_client.put(
            f"/api/admin/plans/{doc['_id']}", json={"description": "Timber cottage with a pool"}
        )
        assert r.json()["extractedKeywords"] == ["cottage", "pool", "timber"]

    @pytest.mark.asyncio
    async def test_unknown_and_invalid_fields(self, admin_client, seed_plan):
        doc = seed_plan()
        r = await admin_client.put(f"/api/admin/plans/{doc['_id']}", json={"downloadCount": 0})
        assert r.status_code == 400
        assert r.json()["message"] == "Invalid plan data"

        r = await admin_client.put(f"/api/admin/plans/{doc['_id']}", json={"title": None})
        assert r.status_code == 400

    @pytest.mark.asyncio
    async def test_lot_range_is_checked_against_stored_values(self, admin_client, seed_plan):
        doc = seed_plan(lotSizeMin=300.0, lotSizeMax=450.0)
        r = await admin_client.put(f"/api/admin/plans/{doc['_id']}", json={"lotSizeMin": 600})
        assert r.status_code == 400
        assert r.json()["errors"] == [{"field": "lotSizeMin", "message": "lotSizeMin must not exceed lotSizeMax"}]

    @pytest.mark.asyncio
    async def test_missing_plan(self, admin_client):
        r = await admin_client.put(f"/api/admin/plans/{ObjectId()}", json={"bedrooms": 2})
        assert r.status_code == 404
        assert r.json() == {"message": "Plan not found"}


class TestDelete:
    @pytest.mark.asyncio
    async def test_delete_removes_record_and_file(self, admin_client, seed_plan, upload_root, mongo):
        doc = seed_plan()
        r = await admin_client.delete(f"/api/admin/plans/{doc['_id']}")
        assert r.status_code == 200
        assert r.json() == {"message": "Plan deleted successfully"}
        assert mongo.plans.sync.count_documents({}) == 0
        assert _stored_files(upload_root) == []

    @pytest.mark.asyncio
    async def test_delete_with_missing_file_still_succeeds(self, admin_client, seed_plan, mongo):
        doc = seed_plan(with_file=False, filePath="uploads/gone.pdf")
        r = await admin_client.delete(f"/api/admin/plans/{doc['_id']}")
        assert r.status_code == 200
        assert mongo.plans.sync.count_documents({}) == 0

    @pytest.mark.asyncio
    async def test_delete_missing_plan(self, admin_client):
        r = await admin_client.delete(f"/api/admin/plans/{ObjectId()}")
        assert r.status_code == 404


# =============================================================================
# Counters and stats
# =============================================================================


class TestResetDownloads:
    @pytest.mark.asyncio
    async def test_reset_to_zero(self, admin_client, seed_plan, mongo):
        doc = seed_plan(downloadCount=12)
        r = await admin_client.post(f"/api/admin/plans/{doc['_id']}/reset-downloads")
        assert r.status_code == 200
        assert r.json()["downloadCount"] == 0
        assert download_count(mongo, doc["_id"]) == 0

    @pytest.mark.asyncio
    async def test_reset_to_value(self, admin_client, seed_plan, mongo):
        doc = seed_plan(downloadCount=12)
        r = await admin_client.post(f"/api/admin/plans/{doc['_id']}/reset-downloads", json={"count": 5})
        assert r.json()["downloadCount"] == 5

    @pytest.mark.asyncio
    async def test_negative_count_is_rejected(self, admin_client, seed_plan, mongo):
        doc = seed_plan(downloadCount=12)
        r = await admin_client.post(f"/api/admin/plans/{doc['_id']}/reset-downloads", json={"count": -1})
        assert r.status_code == 400
        assert download_count(mongo, doc["_id"]) == 12


@pytest.mark.asyncio
async def test_stats(admin_client, seed_plan):
    seed_plan(downloadCount=2, createdAt=utcnow())
    seed_plan(downloadCount=3)
    seed_plan(downloadCount=40, status="inactive", createdAt=utcnow())

    r = await admin_client.get("/api/admin/stats")
    assert r.status_code == 200
    assert r.json() == {"totalPlans": 2, "totalDownloads": 5, "recentUploads": 1}


# =============================================================================
# File migration
# =============================================================================


@pytest.mark.asyncio
async def test_migration_scan_and_fix(admin_client, seed_plan, mongo):
    healthy = seed_plan()
    recoverable = seed_plan()
    name = recoverable["filePath"].rsplit("/", 1)[-1]
    mongo.plans.sync.update_one({"_id": recoverable["_id"]}, {"$set": {"filePath": f"/app/uploads/{name}"}})
    problematic = seed_plan(with_file=False, filePath="/app/uploads/lost.pdf")

    r = await admin_client.get("/api/admin/plans/migration-scan")
    assert r.status_code == 200
    report = r.json()
    assert (report["totalPlans"], report["healthy"], report["recoverable"], report["problematic"]) == (3, 1, 1, 1)
    by_id = {d["planId"]: d for d in report["details"]}
    assert by_id[str(healthy["_id"])]["status"] == "healthy"
    assert by_id[str(recoverable["_id"])]["canonicalPath"] == f"uploads/{name}"

    r = await admin_client.post(
        "/api/admin/plans/migration-fix",
        json={"planIds": [str(recoverable["_id"]), str(problematic["_id"])], "action": "update-paths"},
    )
    assert r.status_code == 200
    fix = r.json()
    assert (fix["totalProcessed"], fix["successful"], fix["failed"]) == (2, 1, 1)
    assert mongo.plans.sync.find_one({"_id": recoverable["_id"]})["filePath"] == f"uploads/{name}"
    assert mongo.plans.sync.find_one({"_id": problematic["_id"]})["filePath"] == "/app/uploads/lost.pdf"


@pytest.mark.asyncio
async def test_migration_fix_requires_ids(admin_client):
    r = await admin_client.post("/api/admin/plans/migration-fix", json={"planIds": []})
    assert r.status_code == 400
