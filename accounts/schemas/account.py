from datetime import datetime

from pydantic import BaseModel


# Request fields are optional so that absent values reach the service's
# presence checks and come back as MissingFields instead of a schema error.

class SignupData(BaseModel):
    first_name: str | None = None
    last_name: str | None = None
    user_name: str | None = None
    email: str | None = None
    address: str | None = None
    mobile_no: str | None = None
    gender: str | None = None
    password: str | None = None


class ProfileUpdate(BaseModel):
    email: str | None = None
    current_password: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    user_name: str | None = None
    gender: str | None = None
    mobile_no: str | None = None
    address: str | None = None
    new_email: str | None = None
    new_password: str | None = None


class LoginRequest(BaseModel):
    email: str | None = None
    user_name: str | None = None
    password: str | None = None


class ForgotPasswordRequest(BaseModel):
    email: str | None = None


class ResetPasswordRequest(BaseModel):
    email: str | None = None
    otp: str | None = None
    new_password: str | None = None


class AccountEmailRequest(BaseModel):
    email: str | None = None


class AccountResponse(BaseModel):
    id: str
    first_name: str
    last_name: str
    user_name: str
    email: str
    address: str
    mobile_no: int
    gender: str
    photo_ref: str | None
    is_deleted: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
