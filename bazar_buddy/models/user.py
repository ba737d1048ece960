"""User and credential models."""

import uuid
from datetime import datetime
from sqlalchemy import Column, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship

from ..core.database import Base


class User(Base):
    """Model for registered users."""

    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    email = Column(String(320), nullable=False, unique=True, index=True)
    name = Column(String(200), nullable=False)
    password_hash = Column(String(255), nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    grocery_lists = relationship("GroceryList", back_populates="user", cascade="all, delete-orphan")
    sessions = relationship("AuthSession", back_populates="user", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}')>"


class AuthSession(Base):
    """Bearer token issued at login or registration."""

    __tablename__ = "auth_sessions"

    token = Column(String(128), primary_key=True)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    expires_at = Column(DateTime, nullable=False, index=True)

    user = relationship("User", back_populates="sessions", lazy="joined")

    @property
    def is_expired(self) -> bool:
        return self.expires_at <= datetime.utcnow()


class PasswordResetToken(Base):
    """One-time token for the password reset flow."""

    __tablename__ = "password_reset_tokens"

    token = Column(String(128), primary_key=True)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    expires_at = Column(DateTime, nullable=False, index=True)
    used_at = Column(DateTime)

    user = relationship("User", lazy="joined")

    @property
    def is_usable(self) -> bool:
        return self.used_at is None and self.expires_at > datetime.utcnow()
