from .client import ADMINS, DOWNLOAD_RECEIPTS, PLANS, MongoDatabase
from .integration import MongoDep, attach_mongo, get_mongo
from .settings import MongoSettings, get_mongo_settings

__all__ = [
    "ADMINS",
    "DOWNLOAD_RECEIPTS",
    "PLANS",
    "MongoDatabase",
    "MongoDep",
    "attach_mongo",
    "get_mongo",
    "MongoSettings",
    "get_mongo_settings",
]
