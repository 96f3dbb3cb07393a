import logging
from typing import Any

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from accounts.errors import DuplicateKeyError, PersistenceError
from accounts.models.account import UNIQUE_FIELDS, Account

logger = logging.getLogger(__name__)

def _duplicate_field(error: IntegrityError) -> str | None:
    # SQLite names the column, Postgres names the index; both contain the field
    detail = str(error.orig)
    for field in UNIQUE_FIELDS:
        if field in detail:
            return field
    return None


class AccountRepository:
    """Queries and writes for the ``accounts`` table.

    Uniqueness is checked with a read before each write. The partial unique
    indexes on the table catch whatever slips between the read and the
    commit; both paths surface as ``DuplicateKeyError``.
    """

    def __init__(self, db: Session):
        self.db = db

    def _query(self, include_deleted: bool):
        query = self.db.query(Account)
        if not include_deleted:
            query = query.filter(Account.is_deleted.is_(False))
        return query

    def find_by_email_or_username(
        self, email: str | None, user_name: str | None, include_deleted: bool = False
    ) -> Account | None:
        clauses = []
        if email:
            clauses.append(Account.email == email)
        if user_name:
            clauses.append(Account.user_name == user_name)
        if not clauses:
            return None
        return self._query(include_deleted).filter(or_(*clauses)).first()

    def find_by_email(self, email: str, include_deleted: bool = False) -> Account | None:
        # A live account wins over soft-deleted rows sharing the same email
        return (
            self._query(include_deleted)
            .filter(Account.email == email)
            .order_by(Account.is_deleted.asc(), Account.created_at.desc())
            .first()
        )

    def find_by_id(self, account_id: str, include_deleted: bool = False) -> Account | None:
        return self._query(include_deleted).filter(Account.id == account_id).first()

    def find_conflict(self, field: str, value: Any, exclude_id: str | None = None) -> Account | None:
        query = self._query(include_deleted=False).filter(getattr(Account, field) == value)
        if exclude_id is not None:
            query = query.filter(Account.id != exclude_id)
        return query.first()

    def insert(self, account: Account) -> Account:
        for field in UNIQUE_FIELDS:
            if self.find_conflict(field, getattr(account, field)):
                raise DuplicateKeyError(field)

        self.db.add(account)
        self._commit()
        self.db.refresh(account)
        return account

    def check_changes_unique(self, account: Account, changes: dict[str, Any]) -> None:
        """Raise ``DuplicateKeyError`` if a changed unique field belongs to another live account."""
        for field in UNIQUE_FIELDS:
            if field in changes and changes[field] != getattr(account, field):
                if self.find_conflict(field, changes[field], exclude_id=account.id):
                    raise DuplicateKeyError(field)

    def update_fields(self, account: Account, changes: dict[str, Any]) -> Account:
        self.check_changes_unique(account, changes)

        for field, value in changes.items():
            setattr(account, field, value)

        self._commit()
        self.db.refresh(account)
        return account

    def delete_by_email(self, email: str) -> bool:
        account = self.find_by_email(email, include_deleted=True)
        if account is None:
            return False
        self.db.delete(account)
        self._commit()
        return True

    def _commit(self) -> None:
        try:
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            field = _duplicate_field(exc)
            logger.warning("Unique index rejected write on %s", field or "unknown field")
            raise DuplicateKeyError(field) from exc
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.exception("Database write failed")
            raise PersistenceError("Could not save account changes") from exc
