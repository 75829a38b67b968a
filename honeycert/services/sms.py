"""
SMS delivery for phone one-time codes
"""

from typing import Protocol

import structlog

logger = structlog.get_logger(__name__)


class SmsSender(Protocol):
    async def send(self, phone_number: str, message: str) -> bool: ...


class LogSmsSender:
    """Writes the outgoing SMS to the log; no carrier integration.

    The message body, which carries the code, is only logged when
    include_body is set (development).
    """

    def __init__(self, include_body: bool = False):
        self.include_body = include_body

    async def send(self, phone_number: str, message: str) -> bool:
        if self.include_body:
            logger.info("SMS (log sender)", to=phone_number, body=message)
        else:
            logger.info("SMS (log sender)", to=phone_number, length=len(message))
        return True
