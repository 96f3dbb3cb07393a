import logging

from passlib.context import CryptContext

from accounts.config import settings

logger = logging.getLogger(__name__)


class PasswordHasher:
    """bcrypt hashing with the salt embedded in each digest."""

    def __init__(self, rounds: int | None = None):
        rounds = rounds or settings.PASSWORD_HASH_ROUNDS
        self.rounds = rounds
        self._context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=rounds)

    def hash(self, plaintext: str) -> str:
        return self._context.hash(plaintext)

    def verify(self, plaintext: str, digest: str | None) -> bool:
        if not plaintext or not digest:
            return False
        try:
            return self._context.verify(plaintext, digest)
        except (ValueError, TypeError):
            logger.warning("Stored password digest could not be parsed")
            return False


password_hasher = PasswordHasher()
