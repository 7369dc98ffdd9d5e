"""Signup, email verification, login and password reset.

Endpoints that take only an email (resend OTP, forgot password) answer the
same way whether or not the account exists, so they cannot be used to probe
for registered addresses.
"""
import hmac
import logging
from datetime import timedelta
from typing import Tuple

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from tasktracker import config
from tasktracker.cache import TaskCache
from tasktracker.database import utcnow
from tasktracker.errors import (
    AlreadyVerifiedError,
    ConflictError,
    ExpiredCodeError,
    InvalidCodeError,
    InvalidCredentialsError,
    InvalidOrExpiredTokenError,
    NotFoundError,
    UnverifiedError,
)
from tasktracker.mailer import Mailer
from tasktracker.models.user import User
from tasktracker.services.demo import create_demo_workspace
from tasktracker.utils.auth import (
    create_token,
    digest_token,
    generate_otp,
    generate_reset_token,
    hash_password,
    verify_password,
)

logger = logging.getLogger(__name__)


class CredentialService:
    def __init__(self, db: Session, cache: TaskCache, mailer: Mailer):
        self.db = db
        self.cache = cache
        self.mailer = mailer

    def _find(self, email: str):
        return self.db.scalars(select(User).where(User.email == email)).first()

    def _issue_otp(self, user: User) -> str:
        otp = generate_otp()
        user.verification_otp = otp
        user.verification_otp_expiry = utcnow() + timedelta(minutes=config.OTP_EXPIRE_MINUTES)
        return otp

    def _send_otp(self, email: str, otp: str) -> None:
        # delivery problems never fail the request
        try:
            self.mailer.send_verification_email(email, otp)
        except Exception:
            logger.exception("Failed to send verification email to %s", email)

    def register(self, name: str, email: str, password: str) -> User:
        if self._find(email) is not None:
            raise ConflictError()

        user = User(name=name, email=email, password=hash_password(password), is_verified=False)
        otp = self._issue_otp(user)
        self.db.add(user)
        try:
            self.db.commit()
        except IntegrityError:
            # lost a race with a concurrent signup for the same address
            self.db.rollback()
            raise ConflictError()
        self.db.refresh(user)
        logger.info("Registered user %s", user.id)

        self._send_otp(email, otp)
        return user

    def verify_email(self, email: str, otp: str) -> Tuple[User, str]:
        user = self._find(email)
        if user is None:
            raise NotFoundError("User not found")
        if user.is_verified:
            raise AlreadyVerifiedError()
        if not user.verification_otp or not hmac.compare_digest(user.verification_otp, otp):
            raise InvalidCodeError()
        if user.verification_otp_expiry is None or user.verification_otp_expiry < utcnow():
            raise ExpiredCodeError()

        user.is_verified = True
        user.verification_otp = None
        user.verification_otp_expiry = None
        create_demo_workspace(self.db, self.cache, user.id, commit=False)
        self.db.commit()
        self.db.refresh(user)
        self.cache.invalidate(user.id)
        logger.info("Verified user %s", user.id)
        return user, create_token(user.id)

    def resend_otp(self, email: str) -> None:
        user = self._find(email)
        if user is None or user.is_verified:
            return
        otp = self._issue_otp(user)
        self.db.commit()
        self._send_otp(email, otp)

    def login(self, email: str, password: str) -> Tuple[User, str]:
        user = self._find(email)
        # same error for unknown email and wrong password
        if user is None or not verify_password(password, user.password):
            raise InvalidCredentialsError()
        if not user.is_verified:
            raise UnverifiedError(user.email)
        return user, create_token(user.id)

    def request_password_reset(self, email: str) -> None:
        user = self._find(email)
        if user is None:
            return
        token = generate_reset_token()
        user.reset_token = digest_token(token)
        user.reset_token_expiry = utcnow() + timedelta(minutes=config.RESET_TOKEN_EXPIRE_MINUTES)
        self.db.commit()
        try:
            self.mailer.send_password_reset_email(email, token)
        except Exception:
            logger.exception("Failed to send reset email to %s", email)

    def reset_password(self, token: str, new_password: str) -> None:
        stmt = select(User).where(
            User.reset_token == digest_token(token),
            User.reset_token_expiry > utcnow(),
        )
        user = self.db.scalars(stmt).first()
        if user is None:
            raise InvalidOrExpiredTokenError()
        user.password = hash_password(new_password)
        user.reset_token = None
        user.reset_token_expiry = None
        self.db.commit()
        logger.info("Password reset for user %s", user.id)
