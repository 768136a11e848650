"""ASGI entrypoint: ``uvicorn plan_catalog.main:app_factory --factory``."""

from fastapi import FastAPI

from plan_catalog.api.fastapi import create_app
from plan_catalog.app.core.logging import setup_logging


def app_factory() -> FastAPI:
    setup_logging()
    return create_app()
