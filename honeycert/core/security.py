"""
Credential hashing and admin JWT utilities
"""

from datetime import timedelta
from functools import lru_cache
from jose import JWTError, jwt
from passlib.context import CryptContext
from typing import Dict, Optional

from honeycert.core.config import get_settings
from honeycert.core.dates import utc_now

settings = get_settings()


@lru_cache()
def get_pwd_context() -> CryptContext:
    return CryptContext(
        schemes=["bcrypt"],
        deprecated="auto",
        bcrypt__rounds=settings.BCRYPT_ROUNDS,
    )


def hash_password(password: str) -> str:
    """Return a salted bcrypt hash of the plaintext credential"""
    return get_pwd_context().hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return get_pwd_context().verify(password, password_hash)
    except ValueError:
        return False


def create_admin_token(
    admin_id: int,
    email: str,
    role: str,
    schema_name: str,
    firstname: Optional[str] = None,
    lastname: Optional[str] = None,
    expires_delta: Optional[timedelta] = None
) -> str:
    """Create JWT access token with admin claims"""
    if expires_delta:
        expire = utc_now() + expires_delta
    else:
        expire = utc_now() + timedelta(minutes=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES)

    to_encode = {
        "sub": str(admin_id),
        "adminId": admin_id,
        "email": email,
        "role": role,
        "schemaName": schema_name,
        "firstname": firstname,
        "lastname": lastname,
        "exp": expire,
        "iat": utc_now(),
    }

    return jwt.encode(to_encode, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_admin_token(token: str) -> Optional[Dict]:
    """Decode and validate an admin token; None when invalid, expired or not an admin token"""
    try:
        payload = jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        return None

    if not payload.get("adminId") or not payload.get("role") or not payload.get("schemaName"):
        return None
    return payload
