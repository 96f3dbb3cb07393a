import uuid
from datetime import datetime

from sqlalchemy import BigInteger, Boolean, Column, DateTime, Index, String, text

from accounts.database import Base

UNIQUE_FIELDS = ("email", "user_name", "mobile_no")


def _new_account_id() -> str:
    return uuid.uuid4().hex


def _active_unique_index(column: str) -> Index:
    # Uniqueness only applies to accounts that have not been soft-deleted
    return Index(
        f"uq_accounts_{column}_active",
        column,
        unique=True,
        sqlite_where=text("is_deleted = 0"),
        postgresql_where=text("is_deleted = false"),
    )


class Account(Base):
    __tablename__ = "accounts"
    __table_args__ = tuple(_active_unique_index(column) for column in UNIQUE_FIELDS)

    id = Column(String(32), primary_key=True, default=_new_account_id)

    first_name = Column(String, nullable=False)
    last_name = Column(String, nullable=False)
    user_name = Column(String, nullable=False, index=True)
    email = Column(String, nullable=False, index=True)
    address = Column(String, nullable=False)
    mobile_no = Column(BigInteger, nullable=False)
    gender = Column(String, nullable=False)

    password_hash = Column(String, nullable=False)
    photo_ref = Column(String, nullable=True)  # local path or CDN URL

    is_deleted = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    def __repr__(self) -> str:
        return f"<Account id={self.id} email={self.email} deleted={self.is_deleted}>"
