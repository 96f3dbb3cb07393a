from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from sqlalchemy.orm import Session

from accounts.database import get_db
from accounts.schemas.account import (
    AccountEmailRequest,
    AccountResponse,
    ForgotPasswordRequest,
    LoginRequest,
    ProfileUpdate,
    ResetPasswordRequest,
    SignupData,
)
from accounts.services.account_repository import AccountRepository
from accounts.services.account_service import AccountService
from accounts.services.email_services import notifier
from accounts.services.image_store import ImageUpload, image_store
from accounts.services.otp_store import otp_store
from accounts.services.password_hasher import password_hasher
from accounts.utils.response import create_response, handle_exception

router = APIRouter(tags=["Accounts"])


def get_notifier():
    return notifier


def get_otp_store():
    return otp_store


def get_image_store():
    return image_store


def get_password_hasher():
    return password_hasher


def get_account_service(
    db: Session = Depends(get_db),
    mailer=Depends(get_notifier),
    otps=Depends(get_otp_store),
    images=Depends(get_image_store),
    hasher=Depends(get_password_hasher),
) -> AccountService:
    return AccountService(
        repository=AccountRepository(db),
        hasher=hasher,
        otp_store=otps,
        notifier=mailer,
        image_store=images,
    )


def _read_upload(photo: UploadFile | None) -> ImageUpload | None:
    if photo is None or not photo.filename:
        return None
    return ImageUpload(filename=photo.filename, content_type=photo.content_type, data=photo.file.read())


def _account_payload(account) -> dict:
    return AccountResponse.model_validate(account).model_dump()


@router.post("/signup")
def signup(
    first_name: str | None = Form(None),
    last_name: str | None = Form(None),
    user_name: str | None = Form(None),
    email: str | None = Form(None),
    address: str | None = Form(None),
    mobile_no: str | None = Form(None),
    gender: str | None = Form(None),
    password: str | None = Form(None),
    photo: UploadFile | None = File(None),
    service: AccountService = Depends(get_account_service),
):
    try:
        data = SignupData(
            first_name=first_name,
            last_name=last_name,
            user_name=user_name,
            email=email,
            address=address,
            mobile_no=mobile_no,
            gender=gender,
            password=password,
        )
        account = service.signup(data, _read_upload(photo))
        return create_response(
            message="Signup successful!",
            data={"user": _account_payload(account)},
            status_code=status.HTTP_201_CREATED,
        )
    except Exception as exc:
        return handle_exception(exc)


@router.post("/login")
def login(body: LoginRequest, service: AccountService = Depends(get_account_service)):
    try:
        account = service.login(body)
        return create_response(
            message="Login successful!",
            data={"user": _account_payload(account)},
            status_code=status.HTTP_200_OK,
        )
    except Exception as exc:
        return handle_exception(exc)


@router.put("/edit-user")
def edit_user(
    email: str | None = Form(None),
    currentpassword: str | None = Form(None),
    first_name: str | None = Form(None),
    last_name: str | None = Form(None),
    user_name: str | None = Form(None),
    gender: str | None = Form(None),
    mobile_no: str | None = Form(None),
    address: str | None = Form(None),
    new_email: str | None = Form(None),
    newpassword: str | None = Form(None),
    photo: UploadFile | None = File(None),
    service: AccountService = Depends(get_account_service),
):
    try:
        update = ProfileUpdate(
            email=email,
            current_password=currentpassword,
            first_name=first_name,
            last_name=last_name,
            user_name=user_name,
            gender=gender,
            mobile_no=mobile_no,
            address=address,
            new_email=new_email,
            new_password=newpassword,
        )
        account = service.edit_profile(update, _read_upload(photo))
        return create_response(
            message="User details updated successfully",
            data={"user": _account_payload(account)},
            status_code=status.HTTP_200_OK,
        )
    except Exception as exc:
        return handle_exception(exc)


@router.post("/forgot-password")
def forgot_password(body: ForgotPasswordRequest, service: AccountService = Depends(get_account_service)):
    try:
        service.forgot_password(body.email)
        return create_response(
            message="OTP sent to your email",
            data=None,
            status_code=status.HTTP_200_OK,
        )
    except Exception as exc:
        return handle_exception(exc)


@router.post("/reset-password")
def reset_password(body: ResetPasswordRequest, service: AccountService = Depends(get_account_service)):
    try:
        service.reset_password(body)
        return create_response(
            message="Password reset successfully",
            data=None,
            status_code=status.HTTP_200_OK,
        )
    except Exception as exc:
        return handle_exception(exc)


@router.put("/soft-delete")
def soft_delete(body: AccountEmailRequest, service: AccountService = Depends(get_account_service)):
    try:
        account = service.soft_delete(body.email)
        return create_response(
            message="User deleted successfully",
            data={"id": account.id, "is_deleted": account.is_deleted},
            status_code=status.HTTP_200_OK,
        )
    except Exception as exc:
        return handle_exception(exc)


@router.delete("/hard-delete")
def hard_delete(body: AccountEmailRequest, service: AccountService = Depends(get_account_service)):
    try:
        service.hard_delete(body.email)
        return create_response(
            message="User permanently deleted",
            data={"deleted": True},
            status_code=status.HTTP_200_OK,
        )
    except Exception as exc:
        return handle_exception(exc)
