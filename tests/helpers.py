from __future__ import annotations

from datetime import datetime, timezone

PDF_BYTES = b"%PDF-1.4\n1 0 obj\n<< /Type /Catalog >>\nendobj\ntrailer\n<< /Root 1 0 R >>\n%%EOF\n"
TEST_SECRET = "test-secret-0123456789-abcdefghijklmnop"
ADMIN_EMAIL = "admin@example.com"
ADMIN_PASSWORD = "Sup3r-Secret-Pass!"
BASE_TIME = datetime(2024, 1, 1, tzinfo=timezone.utc)


def download_count(mongo, plan_id) -> int:
    return mongo.plans.sync.find_one({"_id": plan_id})["downloadCount"]
