from typing import Any

from fastapi import APIRouter, Body, Depends
from sqlalchemy.orm import Session
from tasktracker.cache import TaskCache, get_cache
from tasktracker.database import get_db
from tasktracker.mailer import Mailer, get_mailer
from tasktracker.schemas.user import (
    EmailIn,
    LoginIn,
    ResetPasswordIn,
    SignupIn,
    UserOut,
    VerifyEmailIn,
)
from tasktracker.schemas.validation import require_valid
from tasktracker.services.credentials import CredentialService

router = APIRouter(prefix="/api/auth", tags=["auth"])

RESEND_MESSAGE = "If that email is registered, a new code has been sent."
RESET_REQUEST_MESSAGE = "If that email is registered, a reset link has been sent."


def get_credentials(
    db: Session = Depends(get_db),
    cache: TaskCache = Depends(get_cache),
    mailer: Mailer = Depends(get_mailer),
) -> CredentialService:
    return CredentialService(db, cache, mailer)


def _session_body(user, token: str) -> dict:
    return {"token": token, "user": UserOut.model_validate(user).model_dump()}


@router.post("/signup", status_code=201)
def signup(payload: Any = Body(None), credentials: CredentialService = Depends(get_credentials)):
    data = require_valid(SignupIn, payload)
    credentials.register(data.name, data.email, data.password)
    return {
        "message": "Account created. Please check your email for the verification code.",
        "email": data.email,
    }


@router.post("/verify-email")
def verify_email(payload: Any = Body(None), credentials: CredentialService = Depends(get_credentials)):
    data = require_valid(VerifyEmailIn, payload)
    user, token = credentials.verify_email(data.email, data.otp)
    return {"message": "Email verified successfully", **_session_body(user, token)}


@router.post("/resend-otp")
def resend_otp(payload: Any = Body(None), credentials: CredentialService = Depends(get_credentials)):
    data = require_valid(EmailIn, payload)
    credentials.resend_otp(data.email)
    return {"message": RESEND_MESSAGE}


@router.post("/login")
def login(payload: Any = Body(None), credentials: CredentialService = Depends(get_credentials)):
    data = require_valid(LoginIn, payload)
    user, token = credentials.login(data.email, data.password)
    return _session_body(user, token)


@router.post("/forgot-password")
def forgot_password(payload: Any = Body(None), credentials: CredentialService = Depends(get_credentials)):
    data = require_valid(EmailIn, payload)
    credentials.request_password_reset(data.email)
    return {"message": RESET_REQUEST_MESSAGE}


@router.post("/reset-password")
def reset_password(payload: Any = Body(None), credentials: CredentialService = Depends(get_credentials)):
    data = require_valid(ResetPasswordIn, payload)
    credentials.reset_password(data.token, data.password)
    return {"message": "Password reset successfully. You can now log in."}
