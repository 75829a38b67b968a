"""
Integration tests for the phone code endpoints
"""

import re
from datetime import timedelta

from sqlmodel import select

from honeycert.core.dates import utc_now
from honeycert.models import AdminOTP
from honeycert.services.phone_verification import is_phone_verified
from tests.conftest import phone_registration

PHONE = "+15551234567"
SEND = "/api/otp/send"
VERIFY = "/api/otp/verify"


def sent_code(sms_sender) -> str:
    return re.search(r"\b(\d{6})\b", sms_sender.sent[-1]["message"]).group(1)


async def stored_codes(session_maker):
    async with session_maker() as session:
        return (await session.exec(select(AdminOTP).where(AdminOTP.identifier == PHONE))).all()


async def test_send_code(client, sms_sender, session_maker):
    response = await client.post(SEND, json={"phoneNumber": PHONE})

    assert response.status_code == 200
    assert response.json()["success"] is True
    assert sms_sender.sent[-1]["to"] == PHONE

    codes = await stored_codes(session_maker)
    assert len(codes) == 1
    assert codes[0].otp == sent_code(sms_sender)
    assert codes[0].type == "phone"
    assert codes[0].used_at is None
    lifetime = codes[0].expires_at - codes[0].created_at
    assert timedelta(minutes=4) < lifetime <= timedelta(minutes=5, seconds=5)


async def test_send_replaces_previous_code(client, session_maker):
    await client.post(SEND, json={"phoneNumber": PHONE})
    await client.post(SEND, json={"phoneNumber": PHONE})

    assert len(await stored_codes(session_maker)) == 1


async def test_send_normalizes_spaces(client, sms_sender):
    response = await client.post(SEND, json={"phoneNumber": "+1 555 123 4567"})

    assert response.status_code == 200
    assert sms_sender.sent[-1]["to"] == PHONE


async def test_send_rejects_invalid_number(client, sms_sender):
    response = await client.post(SEND, json={"phoneNumber": "5551234567"})

    assert response.status_code == 400
    assert response.json()["success"] is False
    assert sms_sender.sent == []


async def test_send_requires_number(client):
    response = await client.post(SEND, json={})

    assert response.status_code == 400


async def test_send_failure_is_500(client, sms_sender):
    sms_sender.result = False

    response = await client.post(SEND, json={"phoneNumber": PHONE})

    assert response.status_code == 500


async def test_verify_correct_code(client, sms_sender, session_maker):
    await client.post(SEND, json={"phoneNumber": PHONE})

    response = await client.post(VERIFY, json={"phoneNumber": PHONE, "otp": sent_code(sms_sender)})

    assert response.status_code == 200
    codes = await stored_codes(session_maker)
    assert codes[0].used_at is not None
    async with session_maker() as session:
        assert await is_phone_verified(session, PHONE) is True


async def test_verify_wrong_code_counts_attempt(client, sms_sender, session_maker):
    await client.post(SEND, json={"phoneNumber": PHONE})
    wrong = "000000" if sent_code(sms_sender) != "000000" else "111111"

    response = await client.post(VERIFY, json={"phoneNumber": PHONE, "otp": wrong})

    assert response.status_code == 400
    assert response.json()["error"] == "Invalid verification code"
    codes = await stored_codes(session_maker)
    assert codes[0].attempts == 1
    assert codes[0].used_at is None


async def test_verify_non_ascii_code_is_rejected(client, sms_sender, session_maker):
    await client.post(SEND, json={"phoneNumber": PHONE})

    response = await client.post(VERIFY, json={"phoneNumber": PHONE, "otp": "\u0661\u0662\u0663\u0664\u0665\u0666"})

    assert response.status_code == 400
    assert response.json() == {"success": False, "error": "Invalid verification code"}
    codes = await stored_codes(session_maker)
    assert codes[0].attempts == 1


async def test_verify_locks_after_max_attempts(client, sms_sender):
    await client.post(SEND, json={"phoneNumber": PHONE})
    code = sent_code(sms_sender)
    wrong = "000000" if code != "000000" else "111111"

    for _ in range(3):
        await client.post(VERIFY, json={"phoneNumber": PHONE, "otp": wrong})

    response = await client.post(VERIFY, json={"phoneNumber": PHONE, "otp": code})

    assert response.status_code == 400
    assert "Too many failed attempts" in response.json()["error"]


async def test_verify_expired_code(client, sms_sender, session_maker):
    await client.post(SEND, json={"phoneNumber": PHONE})
    async with session_maker() as session:
        code = (await session.exec(select(AdminOTP))).one()
        code.expires_at = utc_now() - timedelta(seconds=1)
        session.add(code)
        await session.commit()

    response = await client.post(VERIFY, json={"phoneNumber": PHONE, "otp": sent_code(sms_sender)})

    assert response.status_code == 400
    assert response.json()["error"] == "Verification code has expired"


async def test_verify_without_code_is_404(client):
    response = await client.post(VERIFY, json={"phoneNumber": PHONE, "otp": "123456"})

    assert response.status_code == 404


async def test_used_code_cannot_be_reused(client, sms_sender):
    await client.post(SEND, json={"phoneNumber": PHONE})
    code = sent_code(sms_sender)
    await client.post(VERIFY, json={"phoneNumber": PHONE, "otp": code})

    response = await client.post(VERIFY, json={"phoneNumber": PHONE, "otp": code})

    assert response.status_code == 404


async def test_phone_registration_after_verification(client, sms_sender):
    """Send, verify, then register with the same number"""
    await client.post(SEND, json={"phoneNumber": PHONE})
    await client.post(VERIFY, json={"phoneNumber": PHONE, "otp": sent_code(sms_sender)})

    response = await client.post("/api/admin/register", json=phone_registration())

    assert response.status_code == 201
    assert response.json()["data"]["admin"]["isConfirmed"] is True
