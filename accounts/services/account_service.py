import logging
from contextlib import contextmanager
from typing import Any

from fastapi import status
from sqlalchemy.exc import SQLAlchemyError

from accounts.config import settings
from accounts.errors import (
    AuthError,
    ConflictError,
    DuplicateKeyError,
    NotFoundError,
    NotificationError,
    PersistenceError,
    ValidationError,
)
from accounts.models.account import Account
from accounts.schemas.account import (
    LoginRequest,
    ProfileUpdate,
    ResetPasswordRequest,
    SignupData,
)
from accounts.services.account_repository import AccountRepository
from accounts.services.email_services import Notifier, render_otp_email, render_welcome_email
from accounts.services.image_store import ImageStore, ImageUpload
from accounts.services.otp_store import OtpStore
from accounts.services.password_hasher import PasswordHasher

logger = logging.getLogger(__name__)

SIGNUP_FIELDS = (
    "first_name",
    "last_name",
    "user_name",
    "email",
    "address",
    "mobile_no",
    "gender",
    "password",
)
EDITABLE_FIELDS = ("first_name", "last_name", "user_name", "gender", "address")
MOBILE_NO_MAX = 2**63 - 1

CONFLICT_MESSAGES = {
    "email": ("Email already in use by another account", "ConflictEmail"),
    "mobile_no": ("Mobile number already in use by another account", "ConflictMobile"),
    "user_name": ("User name already in use by another account", "ConflictUserName"),
}


def _present(value: str | None) -> bool:
    return value is not None and str(value).strip() != ""


def _parse_mobile_no(value: str) -> int:
    try:
        mobile_no = int(str(value).strip())
    except ValueError as exc:
        raise ValidationError("Mobile number must be numeric", code="InvalidField") from exc
    # Must fit the signed 64-bit column
    if not 0 < mobile_no <= MOBILE_NO_MAX:
        raise ValidationError("Mobile number is out of range", code="InvalidField")
    return mobile_no


@contextmanager
def _storage_errors():
    try:
        yield
    except SQLAlchemyError as exc:
        logger.exception("Account storage query failed")
        raise PersistenceError("Could not reach account storage") from exc


class AccountService:
    """Account lifecycle: signup, login, profile edits, password reset, deletion.

    Every failure leaves as an ``AccountError`` subclass.
    """

    def __init__(
        self,
        repository: AccountRepository,
        hasher: PasswordHasher,
        otp_store: OtpStore,
        notifier: Notifier,
        image_store: ImageStore,
        deleted_accounts_recoverable: bool = settings.DELETED_ACCOUNTS_RECOVERABLE,
    ):
        self.repository = repository
        self.hasher = hasher
        self.otp_store = otp_store
        self.notifier = notifier
        self.image_store = image_store
        self.deleted_accounts_recoverable = deleted_accounts_recoverable

    # -- registration -----------------------------------------------------

    def signup(self, data: SignupData, photo: ImageUpload | None = None) -> Account:
        if not all(_present(getattr(data, field)) for field in SIGNUP_FIELDS):
            raise ValidationError("All fields are required")
        mobile_no = _parse_mobile_no(data.mobile_no)

        with _storage_errors():
            if self.repository.find_by_email_or_username(data.email, data.user_name):
                raise ConflictError("User already exists")
            if self.repository.find_conflict("mobile_no", mobile_no):
                raise ConflictError("Mobile number already registered")

            password_hash = self.hasher.hash(data.password)
            photo_ref = self._store_photo(photo) if photo else None
            account = Account(
                first_name=data.first_name,
                last_name=data.last_name,
                user_name=data.user_name,
                email=data.email,
                address=data.address,
                mobile_no=mobile_no,
                gender=data.gender,
                password_hash=password_hash,
                photo_ref=photo_ref,
            )
            try:
                account = self.repository.insert(account)
            except DuplicateKeyError as exc:
                self._discard_photo(photo_ref)
                raise ConflictError("User already exists") from exc
            except PersistenceError:
                self._discard_photo(photo_ref)
                raise

        logger.info("Account %s created for %s", account.id, account.email)
        self._send_welcome(account)
        return account

    def _store_photo(self, photo: ImageUpload) -> str:
        try:
            return self.image_store.save(photo)
        except OSError as exc:
            logger.exception("Image store failed to save %s", photo.filename)
            raise PersistenceError("Could not store profile photo") from exc

    def _discard_photo(self, photo_ref: str | None) -> None:
        if photo_ref:
            self.image_store.delete(photo_ref)

    def _send_welcome(self, account: Account) -> None:
        subject, body = render_welcome_email(account.first_name)
        try:
            sent = self.notifier.send(account.email, subject, body)
        except Exception:
            logger.exception("Welcome email to %s raised", account.email)
            return
        if not sent:
            logger.warning("Welcome email to %s was not delivered", account.email)

    # -- authentication ---------------------------------------------------

    def login(self, credentials: LoginRequest) -> Account:
        has_identifier = _present(credentials.email) or _present(credentials.user_name)
        if not has_identifier or not _present(credentials.password):
            raise ValidationError("Email or user name and password are required")

        with _storage_errors():
            account = self.repository.find_by_email_or_username(credentials.email, credentials.user_name)
        if account is None:
            raise NotFoundError("User not found", status_code=status.HTTP_400_BAD_REQUEST)

        if not self.hasher.verify(credentials.password, account.password_hash):
            logger.warning("Rejected login for account %s", account.id)
            raise AuthError("Wrong password")
        return account

    # -- profile ----------------------------------------------------------

    def edit_profile(self, update: ProfileUpdate, photo: ImageUpload | None = None) -> Account:
        if not _present(update.email) or not _present(update.current_password):
            raise ValidationError("Email and Password are required")

        with _storage_errors():
            account = self.repository.find_by_email(update.email)
            if account is None:
                raise NotFoundError("User not found")
            if not self.hasher.verify(update.current_password, account.password_hash):
                logger.warning("Rejected profile edit for account %s", account.id)
                raise AuthError("Incorrect password")

            changes = self._collect_changes(update)
            try:
                # Reject conflicts before anything is written to the image store
                self.repository.check_changes_unique(account, changes)
            except DuplicateKeyError as exc:
                raise self._conflict(exc) from exc

            photo_ref = self._store_photo(photo) if photo else None
            if photo_ref:
                changes["photo_ref"] = photo_ref

            try:
                account = self.repository.update_fields(account, changes)
            except DuplicateKeyError as exc:
                self._discard_photo(photo_ref)
                raise self._conflict(exc) from exc
            except PersistenceError:
                self._discard_photo(photo_ref)
                raise

        logger.info("Account %s updated fields %s", account.id, sorted(changes))
        return account

    @staticmethod
    def _conflict(error: DuplicateKeyError) -> ConflictError:
        message, code = CONFLICT_MESSAGES.get(error.field, ("Account details already in use", "DuplicateUser"))
        return ConflictError(message, code=code)

    def _collect_changes(self, update: ProfileUpdate) -> dict[str, Any]:
        changes: dict[str, Any] = {}
        for field in EDITABLE_FIELDS:
            value = getattr(update, field)
            if _present(value):
                changes[field] = value
        if _present(update.mobile_no):
            changes["mobile_no"] = _parse_mobile_no(update.mobile_no)
        if _present(update.new_email):
            changes["email"] = update.new_email
        if _present(update.new_password):
            changes["password_hash"] = self.hasher.hash(update.new_password)
        return changes

    # -- password reset ---------------------------------------------------

    def forgot_password(self, email: str | None) -> None:
        if not _present(email):
            raise ValidationError("Email is required")

        with _storage_errors():
            account = self.repository.find_by_email(email, include_deleted=self.deleted_accounts_recoverable)
        if account is None:
            raise NotFoundError("User not found", status_code=status.HTTP_400_BAD_REQUEST)

        code = self.otp_store.issue(email)
        subject, body = render_otp_email(code, self.otp_store.ttl_seconds)
        try:
            sent = self.notifier.send(email, subject, body)
        except Exception:
            logger.exception("Reset code email to %s raised", email)
            sent = False
        if not sent:
            # The code is useless if it never reached the user
            self.otp_store.consume(email)
            raise NotificationError("Could not send the reset code, please try again later")

    def reset_password(self, request: ResetPasswordRequest) -> Account:
        if not all(_present(value) for value in (request.email, request.otp, request.new_password)):
            raise ValidationError("Email, OTP and new password are required")

        if not self.otp_store.verify(request.email, request.otp):
            raise AuthError(
                "Invalid or expired OTP",
                code="InvalidOrExpiredOtp",
                status_code=status.HTTP_400_BAD_REQUEST,
            )

        with _storage_errors():
            account = self.repository.find_by_email(
                request.email, include_deleted=self.deleted_accounts_recoverable
            )
            if account is None:
                raise NotFoundError("User not found", status_code=status.HTTP_400_BAD_REQUEST)
            account = self.repository.update_fields(
                account, {"password_hash": self.hasher.hash(request.new_password)}
            )

        self.otp_store.consume(request.email)
        logger.info("Password reset for account %s", account.id)
        return account

    # -- deletion ---------------------------------------------------------

    def soft_delete(self, email: str | None) -> Account:
        if not _present(email):
            raise ValidationError("Email is required")

        with _storage_errors():
            account = self.repository.find_by_email(email, include_deleted=True)
            if account is None:
                raise NotFoundError("User not found")
            if account.is_deleted:
                raise ConflictError("User already deleted", code="AlreadyDeleted")
            account = self.repository.update_fields(account, {"is_deleted": True})

        logger.info("Account %s soft deleted", account.id)
        return account

    def hard_delete(self, email: str | None) -> None:
        if not _present(email):
            raise ValidationError("Email is required")

        with _storage_errors():
            removed = self.repository.delete_by_email(email)
        if not removed:
            raise NotFoundError("User not found")
        logger.info("Account for %s permanently deleted", email)
