from sqlalchemy import Boolean, Column, DateTime, Integer, String
from tasktracker.database import Base, utcnow


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    # bcrypt hash, never the plaintext
    password = Column(String, nullable=False)
    is_verified = Column(Boolean, nullable=False, default=False)
    verification_otp = Column(String(6), nullable=True)
    verification_otp_expiry = Column(DateTime, nullable=True)
    # sha256 digest of the token that was emailed
    reset_token = Column(String(64), nullable=True, index=True)
    reset_token_expiry = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
