"""Registration, login sessions and password reset."""

import hashlib
import hmac
import secrets
from datetime import datetime, timedelta
from typing import Optional, Tuple
from sqlalchemy import delete, func, select, or_
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import settings
from ..core.exceptions import AuthenticationError, InvalidInputError
from ..core.logging import get_logger
from ..models.user import AuthSession, PasswordResetToken, User
from .notification_service import NotificationService

logger = get_logger(__name__)

_HASH_ALGORITHM = "pbkdf2_sha256"
_HASH_ITERATIONS = 260_000


def hash_password(password: str, salt: Optional[str] = None) -> str:
    """Hash a password as ``algorithm$iterations$salt$hexdigest``."""
    salt = salt or secrets.token_hex(16)
    digest = hashlib.pbkdf2_hmac(
        "sha256", password.encode("utf-8"), salt.encode("utf-8"), _HASH_ITERATIONS
    )
    return f"{_HASH_ALGORITHM}${_HASH_ITERATIONS}${salt}${digest.hex()}"


def verify_password(password: str, stored: str) -> bool:
    """Check a password against a stored hash in constant time."""
    try:
        algorithm, iterations, salt, expected = stored.split("$", 3)
    except ValueError:
        return False
    if algorithm != _HASH_ALGORITHM:
        return False
    digest = hashlib.pbkdf2_hmac(
        "sha256", password.encode("utf-8"), salt.encode("utf-8"), int(iterations)
    )
    return hmac.compare_digest(digest.hex(), expected)


def normalize_email(email: str) -> str:
    return email.strip().lower()


class AuthService:
    """Service for user accounts and bearer sessions."""

    def __init__(self, db: AsyncSession, notifier: NotificationService = None):
        self.db = db
        self.notifier = notifier

    async def get_user_by_email(self, email: str) -> Optional[User]:
        result = await self.db.execute(
            select(User).where(User.email == normalize_email(email))
        )
        return result.scalar_one_or_none()

    async def register(self, name: str, email: str, password: str) -> Tuple[User, str]:
        """Create a user and open a session for it."""
        email = normalize_email(email)
        if "@" not in email:
            raise InvalidInputError("Please provide a valid email address")
        self._check_password(password)
        if await self.get_user_by_email(email):
            raise InvalidInputError("An account with this email already exists")

        user = User(name=name.strip(), email=email, password_hash=hash_password(password))
        self.db.add(user)
        await self.db.flush()
        logger.info("Registered user %s", user.id)

        token = await self._open_session(user)
        return user, token

    async def login(self, email: str, password: str) -> Tuple[User, str]:
        """Verify credentials and open a session."""
        user = await self.get_user_by_email(email)
        if not user or not verify_password(password, user.password_hash):
            raise AuthenticationError("Invalid email or password")
        token = await self._open_session(user)
        return user, token

    async def logout(self, token: str) -> None:
        await self.db.execute(delete(AuthSession).where(AuthSession.token == token))
        await self.db.flush()

    async def authenticate(self, token: str) -> User:
        """Resolve a bearer token to its user."""
        result = await self.db.execute(select(AuthSession).where(AuthSession.token == token))
        session = result.scalar_one_or_none()
        if session is None or session.is_expired:
            raise AuthenticationError("Session expired or invalid, please sign in again")
        return session.user

    async def request_password_reset(self, email: str) -> Optional[str]:
        """Issue a reset token and mail it.

        Returns the token, or None when no account matches. Callers facing
        the network must not reveal which case happened.
        """
        user = await self.get_user_by_email(email)
        if user is None:
            logger.info("Password reset requested for unknown email")
            return None

        token = secrets.token_urlsafe(32)
        self.db.add(PasswordResetToken(
            token=token,
            user_id=user.id,
            expires_at=datetime.utcnow() + timedelta(minutes=settings.auth.reset_token_ttl_minutes),
        ))
        await self.db.flush()

        if self.notifier and self.notifier.is_enabled():
            await self.notifier.send_password_reset(user.email, user.name, token)
        else:
            logger.warning("Email delivery disabled; reset token for %s was not sent", user.id)
        return token

    async def confirm_password_reset(self, token: str, new_password: str) -> User:
        """Set a new password and revoke every open session of the user."""
        result = await self.db.execute(
            select(PasswordResetToken).where(PasswordResetToken.token == token)
        )
        reset = result.scalar_one_or_none()
        if reset is None or not reset.is_usable:
            raise AuthenticationError("Reset link is invalid or has expired")
        self._check_password(new_password)

        user = reset.user
        user.password_hash = hash_password(new_password)
        reset.used_at = datetime.utcnow()
        await self.db.execute(delete(AuthSession).where(AuthSession.user_id == user.id))
        await self.db.flush()
        logger.info("Password reset completed for user %s", user.id)
        return user

    async def purge_expired(self) -> int:
        """Delete expired sessions and spent or expired reset tokens."""
        now = datetime.utcnow()
        expired_sessions = await self.db.scalar(
            select(func.count()).select_from(AuthSession).where(AuthSession.expires_at <= now)
        )
        await self.db.execute(delete(AuthSession).where(AuthSession.expires_at <= now))
        await self.db.execute(
            delete(PasswordResetToken).where(
                or_(PasswordResetToken.expires_at <= now, PasswordResetToken.used_at.isnot(None))
            )
        )
        await self.db.flush()
        return expired_sessions or 0

    async def _open_session(self, user: User) -> str:
        token = secrets.token_urlsafe(32)
        self.db.add(AuthSession(
            token=token,
            user_id=user.id,
            expires_at=datetime.utcnow() + timedelta(hours=settings.auth.token_ttl_hours),
        ))
        await self.db.flush()
        return token

    @staticmethod
    def _check_password(password: str) -> None:
        if len(password) < settings.auth.min_password_length:
            raise InvalidInputError(
                f"Password must be at least {settings.auth.min_password_length} characters"
            )
