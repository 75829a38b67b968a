"""
Registration input checks and tenant schema naming
"""

import re
import secrets
import string
import time
from typing import Mapping, Optional

from honeycert.models.admin import AdminRole
from honeycert.schemas.registration import AdminRegistrationRequest

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
SCHEMA_NAME_PATTERN = re.compile(r"^[a-z_][a-z0-9_]*$")
PHONE_PATTERN = re.compile(r"^\+[1-9]\d{1,14}$")

# PostgreSQL truncates identifiers longer than this
MAX_SCHEMA_NAME_LENGTH = 63
NAME_PART_LENGTH = 20
SUFFIX_ALPHABET = string.ascii_lowercase + string.digits
SUFFIX_LENGTH = 6

MIN_PASSWORD_LENGTH = 8

# column limits of the admins table
MAX_NAME_LENGTH = 100
MAX_EMAIL_LENGTH = 255
MAX_PHONE_LENGTH = 32
MAX_DISPLAY_NAME_LENGTH = 255
ALLOWED_ROLES = {role.value for role in AdminRole}


def _present(value: Optional[str]) -> bool:
    return bool(value and value.strip())


def validate_registration(
    data: AdminRegistrationRequest,
    admin_codes: Optional[Mapping[str, str]] = None,
) -> Optional[str]:
    """Return None when the registration input is acceptable, else the reason it is not"""
    if not all(_present(v) for v in (data.firstname, data.lastname, data.password, data.role)):
        return "Missing required fields"

    if not _present(data.email) and not _present(data.phonenumber):
        return "Either email or phone number is required"

    if len(data.firstname.strip()) > MAX_NAME_LENGTH or len(data.lastname.strip()) > MAX_NAME_LENGTH:
        return f"First and last name must be at most {MAX_NAME_LENGTH} characters long"

    if _present(data.email) and len(data.email.strip()) > MAX_EMAIL_LENGTH:
        return f"Email must be at most {MAX_EMAIL_LENGTH} characters long"

    if _present(data.phonenumber) and len(normalize_phone(data.phonenumber)) > MAX_PHONE_LENGTH:
        return f"Phone number must be at most {MAX_PHONE_LENGTH} characters long"

    if _present(data.email) and not EMAIL_PATTERN.match(data.email.strip()):
        return "Invalid email format"

    if data.role not in ALLOWED_ROLES:
        return "Invalid role specified"

    if len(data.password) < MIN_PASSWORD_LENGTH:
        return f"Password must be at least {MIN_PASSWORD_LENGTH} characters long"

    if admin_codes and data.role in admin_codes:
        if data.admin_code != admin_codes[data.role]:
            return "Invalid admin authorization code"

    if data.namespace and data.namespace.name is not None:
        if not is_valid_schema_name(data.namespace.name):
            return "Invalid schema name"

    if data.namespace and data.namespace.display_name and len(data.namespace.display_name) > MAX_DISPLAY_NAME_LENGTH:
        return f"Display name must be at most {MAX_DISPLAY_NAME_LENGTH} characters long"

    return None


def is_valid_schema_name(name: str) -> bool:
    return len(name) <= MAX_SCHEMA_NAME_LENGTH and bool(SCHEMA_NAME_PATTERN.match(name))


def _slug(value: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "_", value.strip().lower()).strip("_")
    return slug[:NAME_PART_LENGTH] or "x"


def generate_schema_name(firstname: str, lastname: str, timestamp_ms: Optional[int] = None) -> str:
    """Build <first>_<last>_<epoch millis>_<random suffix> for a new tenant schema"""
    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)
    suffix = "".join(secrets.choice(SUFFIX_ALPHABET) for _ in range(SUFFIX_LENGTH))
    name = f"{_slug(firstname)}_{_slug(lastname)}_{timestamp_ms}_{suffix}"
    if name[0].isdigit():
        name = f"t_{name}"
    return name[:MAX_SCHEMA_NAME_LENGTH]


def normalize_phone(phone: str) -> str:
    return re.sub(r"\s+", "", phone)


def is_valid_phone(phone: str) -> bool:
    return bool(PHONE_PATTERN.match(phone))
