from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional

from pymongo.errors import DuplicateKeyError

from .passwords import hash_password, verify_password

logger = logging.getLogger(__name__)


class AdminExistsError(Exception):
    pass


@dataclass(frozen=True)
class Admin:
    id: str
    email: str
    password_hash: str
    created_at: Optional[datetime] = None

    @classmethod
    def from_document(cls, doc: dict[str, Any]) -> "Admin":
        return cls(
            id=str(doc["_id"]),
            email=doc["email"],
            password_hash=doc.get("password", ""),
            created_at=doc.get("createdAt"),
        )


def normalize_email(email: str) -> str:
    return email.strip().lower()


class AdminRepository:
    """Credential store over the ``admins`` collection."""

    def __init__(self, collection: Any, *, bcrypt_rounds: int = 12):
        self.collection = collection
        self.bcrypt_rounds = bcrypt_rounds

    async def get_by_email(self, email: str) -> Optional[Admin]:
        doc = await self.collection.find_one({"email": normalize_email(email)})
        return Admin.from_document(doc) if doc else None

    async def create(self, email: str, password: str) -> Admin:
        email = normalize_email(email)
        if await self.collection.find_one({"email": email}):
            raise AdminExistsError(email)
        doc = {
            "email": email,
            "password": hash_password(password, rounds=self.bcrypt_rounds),
            "createdAt": datetime.now(timezone.utc),
        }
        try:
            result = await self.collection.insert_one(doc)
        except DuplicateKeyError as exc:
            raise AdminExistsError(email) from exc
        doc["_id"] = result.inserted_id
        logger.info("Admin created: %s", email)
        return Admin.from_document(doc)

    async def authenticate(self, email: str, password: str) -> Optional[Admin]:
        admin = await self.get_by_email(email)
        if admin is None or not verify_password(password, admin.password_hash):
            return None
        return admin
