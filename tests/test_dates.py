"""
Tests for the UTC datetime helpers and column type
"""

from datetime import datetime, timedelta, timezone

from honeycert.core.dates import ensure_utc, utc_now
from honeycert.models import AdminOTP


def test_utc_now_is_aware():
    assert utc_now().utcoffset() == timedelta(0)


def test_ensure_utc():
    naive = datetime(2026, 10, 1, 12, 0)
    plus_two = datetime(2026, 10, 1, 14, 0, tzinfo=timezone(timedelta(hours=2)))

    assert ensure_utc(None) is None
    assert ensure_utc(naive) == datetime(2026, 10, 1, 12, 0, tzinfo=timezone.utc)
    assert ensure_utc(plus_two) == datetime(2026, 10, 1, 12, 0, tzinfo=timezone.utc)
    assert ensure_utc(plus_two).tzinfo == timezone.utc


async def test_offset_values_are_stored_as_utc(session_maker):
    issued = datetime(2026, 10, 1, 14, 0, tzinfo=timezone(timedelta(hours=2)))
    async with session_maker() as session:
        code = AdminOTP(identifier="+15551234567", otp="123456", expires_at=issued, created_at=issued)
        session.add(code)
        await session.commit()
        code_id = code.id

    async with session_maker() as session:
        stored = await session.get(AdminOTP, code_id)

    assert stored.expires_at == datetime(2026, 10, 1, 12, 0, tzinfo=timezone.utc)
    assert stored.expires_at.tzinfo == timezone.utc
    assert stored.used_at is None
