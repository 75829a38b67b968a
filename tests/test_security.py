"""
Unit tests for credential hashing and admin JWTs
"""

from datetime import timedelta

from jose import jwt

from honeycert.core.config import get_settings
from honeycert.core.dates import utc_now
from honeycert.core.security import (
    create_admin_token,
    decode_admin_token,
    hash_password,
    verify_password,
)

settings = get_settings()


def test_hash_password_is_salted_bcrypt():
    """Same credential hashes differently each time"""
    first = hash_password("correct-horse")
    second = hash_password("correct-horse")

    assert first != second
    assert first.startswith("$2")
    assert verify_password("correct-horse", first)
    assert verify_password("correct-horse", second)


def test_verify_password_rejects_wrong_credential():
    hashed = hash_password("correct-horse")
    assert not verify_password("battery-staple", hashed)


def test_verify_password_with_malformed_hash():
    assert verify_password("correct-horse", "not-a-bcrypt-hash") is False


def test_create_admin_token():
    """Test JWT token creation"""
    token = create_admin_token(
        admin_id=7,
        email="ada@example.com",
        role="admin",
        schema_name="ada_lovelace_1_abcdef",
        firstname="Ada",
        lastname="Lovelace",
        expires_delta=timedelta(hours=1),
    )

    payload = jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    assert payload["sub"] == "7"
    assert payload["adminId"] == 7
    assert payload["email"] == "ada@example.com"
    assert payload["role"] == "admin"
    assert payload["schemaName"] == "ada_lovelace_1_abcdef"
    assert payload["firstname"] == "Ada"
    assert "exp" in payload
    assert "iat" in payload


def test_decode_admin_token():
    token = create_admin_token(7, "ada@example.com", "super_admin", "ada_ws")

    payload = decode_admin_token(token)
    assert payload is not None
    assert payload["adminId"] == 7
    assert payload["role"] == "super_admin"


def test_decode_expired_token():
    token = create_admin_token(7, "ada@example.com", "admin", "ada_ws", expires_delta=timedelta(seconds=-10))
    assert decode_admin_token(token) is None


def test_decode_token_with_wrong_secret():
    token = jwt.encode(
        {"adminId": 7, "role": "admin", "schemaName": "ada_ws", "exp": utc_now() + timedelta(hours=1)},
        "some-other-secret",
        algorithm=settings.JWT_ALGORITHM,
    )
    assert decode_admin_token(token) is None


def test_decode_token_without_admin_claims():
    """A token without the schema claim is not an admin session"""
    token = jwt.encode(
        {"sub": "7", "role": "admin", "exp": utc_now() + timedelta(hours=1)},
        settings.JWT_SECRET_KEY,
        algorithm=settings.JWT_ALGORITHM,
    )
    assert decode_admin_token(token) is None


def test_decode_garbage_token():
    assert decode_admin_token("not.a.jwt") is None
