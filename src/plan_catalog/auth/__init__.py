from .deps import AdminDep, require_admin
from .passwords import PasswordPolicy, PasswordValidationError, hash_password, validate_password, verify_password
from .repository import Admin, AdminExistsError, AdminRepository
from .settings import AuthSettings, get_auth_settings
from .tokens import AdminPrincipal, create_access_token, decode_access_token

__all__ = [
    "AdminDep",
    "require_admin",
    "PasswordPolicy",
    "PasswordValidationError",
    "hash_password",
    "validate_password",
    "verify_password",
    "Admin",
    "AdminExistsError",
    "AdminRepository",
    "AuthSettings",
    "get_auth_settings",
    "AdminPrincipal",
    "create_access_token",
    "decode_access_token",
]
