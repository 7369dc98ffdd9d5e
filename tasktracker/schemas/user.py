import re

from pydantic import BaseModel, ConfigDict, EmailStr, field_validator

SPECIAL_CHARACTERS = re.compile(r"""[!@#$%^&*()_+\-=\[\]{};':"\\|,.<>/?`~]""")


def check_password_policy(v: str) -> str:
    """At least 8 characters, one uppercase letter and one special character.

    Also enforces bcrypt's 72-byte limit so hashing never fails later on.
    """
    if len(v) < 8:
        raise ValueError("Password must be at least 8 characters")
    if not re.search(r"[A-Z]", v):
        raise ValueError("Password must contain at least one uppercase letter")
    if not SPECIAL_CHARACTERS.search(v):
        raise ValueError("Password must contain at least one special character")
    if len(v.encode("utf-8")) > 72:
        raise ValueError("password too long: must be at most 72 bytes when UTF-8 encoded")
    return v


class EmailIn(BaseModel):
    email: EmailStr

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()


class SignupIn(EmailIn):
    name: str
    password: str

    @field_validator("name")
    @classmethod
    def name_not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Name is required")
        return v.strip()

    @field_validator("password")
    @classmethod
    def password_policy(cls, v: str) -> str:
        return check_password_policy(v)


class LoginIn(EmailIn):
    password: str

    @field_validator("password")
    @classmethod
    def password_present(cls, v: str) -> str:
        if not v:
            raise ValueError("Password is required")
        return v


class VerifyEmailIn(EmailIn):
    otp: str

    @field_validator("otp")
    @classmethod
    def six_digits(cls, v: str) -> str:
        v = v.strip()
        if not re.fullmatch(r"[0-9]{6}", v):
            raise ValueError("OTP must be 6 digits")
        return v


class ResetPasswordIn(BaseModel):
    token: str
    password: str

    @field_validator("token")
    @classmethod
    def token_present(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Token is required")
        return v.strip()

    @field_validator("password")
    @classmethod
    def password_policy(cls, v: str) -> str:
        return check_password_policy(v)


class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: EmailStr
