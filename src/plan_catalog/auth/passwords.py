from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable

import bcrypt

COMMON_PASSWORDS = {"password", "123456", "qwerty", "letmein", "admin", "welcome"}

# bcrypt only looks at the first 72 bytes of a secret.
BCRYPT_MAX_BYTES = 72


@dataclass
class PasswordPolicy:
    min_length: int = 12
    require_upper: bool = True
    require_lower: bool = True
    require_digit: bool = True
    require_symbol: bool = True
    forbid_common: bool = True


class PasswordValidationError(Exception):
    def __init__(self, reasons: Iterable[str]):
        super().__init__("Password validation failed")
        self.reasons = list(reasons)


UPPER = re.compile(r"[A-Z]")
LOWER = re.compile(r"[a-z]")
DIGIT = re.compile(r"[0-9]")
SYMBOL = re.compile(r"[!@#$%^&*()_+=\-{}\[\]:;,.?/]")


def validate_password(pw: str, policy: PasswordPolicy | None = None) -> None:
    policy = policy or PasswordPolicy()
    reasons: list[str] = []
    if len(pw) < policy.min_length:
        reasons.append(f"min_length({policy.min_length})")
    if len(pw.encode("utf-8")) > BCRYPT_MAX_BYTES:
        reasons.append(f"max_bytes({BCRYPT_MAX_BYTES})")
    if policy.require_upper and not UPPER.search(pw):
        reasons.append("missing_upper")
    if policy.require_lower and not LOWER.search(pw):
        reasons.append("missing_lower")
    if policy.require_digit and not DIGIT.search(pw):
        reasons.append("missing_digit")
    if policy.require_symbol and not SYMBOL.search(pw):
        reasons.append("missing_symbol")
    if policy.forbid_common:
        lowered = pw.lower()
        if any(term in lowered for term in COMMON_PASSWORDS):
            reasons.append("common_password")
    if reasons:
        raise PasswordValidationError(reasons)


def hash_password(pw: str, *, rounds: int = 12) -> str:
    raw = pw.encode("utf-8")
    if len(raw) > BCRYPT_MAX_BYTES:
        raise ValueError(f"password exceeds {BCRYPT_MAX_BYTES} bytes")
    return bcrypt.hashpw(raw, bcrypt.gensalt(rounds=rounds)).decode("ascii")


def verify_password(pw: str, hashed: str) -> bool:
    raw = pw.encode("utf-8")
    if len(raw) > BCRYPT_MAX_BYTES or not hashed:
        return False
    try:
        return bcrypt.checkpw(raw, hashed.encode("ascii"))
    except ValueError:
        # malformed hash in the store
        return False


__all__ = [
    "PasswordPolicy",
    "PasswordValidationError",
    "validate_password",
    "hash_password",
    "verify_password",
]
