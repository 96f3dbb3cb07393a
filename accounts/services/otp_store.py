import hmac
import logging
import secrets
import threading
import time
from dataclasses import dataclass
from typing import Callable

from accounts.config import settings

logger = logging.getLogger(__name__)

OTP_MIN = 100000
OTP_MAX = 999999


@dataclass(frozen=True)
class OtpEntry:
    code: str
    expires_at: float


class OtpStore:
    """In-memory one-time codes keyed by email.

    Entries live only as long as the process. All access goes through a
    single lock because sync routes are served from a thread pool.
    """

    def __init__(self, ttl_seconds: int = settings.OTP_TTL_SECONDS, clock: Callable[[], float] = time.time):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[str, OtpEntry] = {}
        self._lock = threading.Lock()

    def issue(self, email: str) -> str:
        code = str(secrets.randbelow(OTP_MAX - OTP_MIN + 1) + OTP_MIN)
        with self._lock:
            self._entries[email] = OtpEntry(code=code, expires_at=self._clock() + self.ttl_seconds)
        logger.info("Issued password reset code for %s", email)
        return code

    def verify(self, email: str, code: str | None) -> bool:
        if code is None:
            return False
        with self._lock:
            entry = self._entries.get(email)
            if entry is None:
                return False
            if entry.expires_at < self._clock():
                del self._entries[email]
                logger.info("Password reset code for %s expired", email)
                return False
        return hmac.compare_digest(entry.code.encode(), str(code).encode())

    def consume(self, email: str) -> None:
        with self._lock:
            self._entries.pop(email, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


otp_store = OtpStore()
