"""Deployment environment detection.

``APP_ENV`` wins. ``NODE_ENV`` is still read for hosts configured for the
previous deployment. Anything unset resolves to ``local``.
"""

from __future__ import annotations

import os
import warnings
from enum import StrEnum
from functools import cache

ENV_VARS = ("APP_ENV", "NODE_ENV")


class Env(StrEnum):
    LOCAL = "local"
    DEV = "dev"
    TEST = "test"
    PROD = "prod"

    @classmethod
    def parse(cls, raw: str | None) -> Env | None:
        if not raw:
            return None
        value = raw.strip().lower()
        if value in ALIASES:
            return ALIASES[value]
        return next((e for e in cls if e.value == value), None)


ALIASES: dict[str, Env] = {
    "development": Env.DEV,
    "testing": Env.TEST,
    "staging": Env.TEST,
    "production": Env.PROD,
}


@cache
def get_env() -> Env:
    raw = next((value for value in map(os.getenv, ENV_VARS) if value), None)
    env = Env.parse(raw)
    if env is None and raw:
        warnings.warn(f"Unrecognized environment {raw!r}, using 'local'.", RuntimeWarning, stacklevel=2)
    return env or Env.LOCAL


def is_prod() -> bool:
    return get_env() is Env.PROD


def pick(*, prod, nonprod, **per_env):
    """Return ``prod`` in production, else a ``dev=``/``test=``/``local=`` override or ``nonprod``.

    Example:
        secure_cookie = pick(prod=True, nonprod=False)
    """
    env = get_env()
    if env is Env.PROD:
        return prod
    override = per_env.get(env.value)
    return nonprod if override is None else override
