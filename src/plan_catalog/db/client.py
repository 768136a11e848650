from __future__ import annotations

from typing import Any

from motor.motor_asyncio import AsyncIOMotorClient

from .settings import MongoSettings

DEFAULT_DB_NAME = "plan_catalog"

PLANS = "plans"
ADMINS = "admins"
DOWNLOAD_RECEIPTS = "download_receipts"


class MongoDatabase:
    """Holds the Motor client and the catalog database handle."""

    def __init__(self, client: Any, database: Any):
        self._client = client
        self._database = database

    @classmethod
    def from_settings(cls, settings: MongoSettings) -> "MongoDatabase":
        client = AsyncIOMotorClient(
            settings.resolved_url,
            serverSelectionTimeoutMS=settings.server_selection_timeout_ms,
            appname=settings.app_name,
            tz_aware=True,
        )
        if settings.db:
            database = client[settings.db]
        else:
            database = client.get_default_database(DEFAULT_DB_NAME)
        return cls(client, database)

    @property
    def client(self) -> Any:
        return self._client

    @property
    def database(self) -> Any:
        return self._database

    @property
    def name(self) -> str:
        return self._database.name

    @property
    def plans(self) -> Any:
        return self._database[PLANS]

    @property
    def admins(self) -> Any:
        return self._database[ADMINS]

    @property
    def download_receipts(self) -> Any:
        return self._database[DOWNLOAD_RECEIPTS]

    async def ping(self) -> bool:
        await self._database.command("ping")
        return True

    def close(self) -> None:
        self._client.close()
