"""Tests for accounts, bearer sessions and the password reset flow."""

from datetime import datetime, timedelta

import pytest
from sqlalchemy import func, select

from bazar_buddy.core.exceptions import AuthenticationError, InvalidInputError
from bazar_buddy.core.scheduler import TaskScheduler, setup_scheduled_tasks, task_purge_expired_sessions
from bazar_buddy.models.user import AuthSession, PasswordResetToken
from bazar_buddy.services.auth_service import AuthService, hash_password, verify_password


class FakeNotifier:

    def __init__(self):
        self.sent = []

    def is_enabled(self):
        return True

    async def send_password_reset(self, email, name, token):
        self.sent.append((email, name, token))
        return True


class TestPasswordHashing:

    def test_round_trip(self):
        stored = hash_password("secret123")
        assert stored.startswith("pbkdf2_sha256$")
        assert verify_password("secret123", stored)
        assert not verify_password("secret124", stored)

    def test_salts_differ(self):
        assert hash_password("secret123") != hash_password("secret123")

    def test_malformed_hash_is_rejected(self):
        assert not verify_password("secret123", "plaintext")


class TestRegistrationAndLogin:

    @pytest.mark.asyncio
    async def test_register_then_authenticate(self, db):
        service = AuthService(db)
        user, token = await service.register("Rahim", " Rahim@Example.com ", "secret123")

        assert user.email == "rahim@example.com"
        assert (await service.authenticate(token)).id == user.id

    @pytest.mark.asyncio
    async def test_duplicate_email_rejected(self, db):
        service = AuthService(db)
        await service.register("Rahim", "rahim@example.com", "secret123")
        with pytest.raises(InvalidInputError):
            await service.register("Other", "RAHIM@example.com", "secret456")

    @pytest.mark.asyncio
    async def test_short_password_rejected(self, db):
        with pytest.raises(InvalidInputError):
            await AuthService(db).register("Rahim", "rahim@example.com", "123")

    @pytest.mark.asyncio
    async def test_wrong_password(self, db):
        service = AuthService(db)
        await service.register("Rahim", "rahim@example.com", "secret123")
        with pytest.raises(AuthenticationError):
            await service.login("rahim@example.com", "wrong-password")

    @pytest.mark.asyncio
    async def test_logout_revokes_token(self, db):
        service = AuthService(db)
        _, token = await service.register("Rahim", "rahim@example.com", "secret123")
        await service.logout(token)
        with pytest.raises(AuthenticationError):
            await service.authenticate(token)

    @pytest.mark.asyncio
    async def test_expired_session_rejected(self, db):
        service = AuthService(db)
        user, _ = await service.register("Rahim", "rahim@example.com", "secret123")
        db.add(AuthSession(token="old", user_id=user.id, expires_at=datetime.utcnow() - timedelta(minutes=1)))
        await db.flush()
        with pytest.raises(AuthenticationError):
            await service.authenticate("old")


class TestPasswordReset:

    @pytest.mark.asyncio
    async def test_reset_flow(self, db):
        notifier = FakeNotifier()
        service = AuthService(db, notifier)
        _, old_token = await service.register("Rahim", "rahim@example.com", "secret123")

        reset_token = await service.request_password_reset("rahim@example.com")
        assert notifier.sent == [("rahim@example.com", "Rahim", reset_token)]

        await service.confirm_password_reset(reset_token, "new-secret")

        user, _ = await service.login("rahim@example.com", "new-secret")
        assert user.email == "rahim@example.com"
        with pytest.raises(AuthenticationError):
            await service.authenticate(old_token)

    @pytest.mark.asyncio
    async def test_reset_token_is_single_use(self, db):
        service = AuthService(db)
        await service.register("Rahim", "rahim@example.com", "secret123")
        reset_token = await service.request_password_reset("rahim@example.com")

        await service.confirm_password_reset(reset_token, "new-secret")
        with pytest.raises(AuthenticationError):
            await service.confirm_password_reset(reset_token, "another-secret")

    @pytest.mark.asyncio
    async def test_unknown_email_issues_nothing(self, db):
        assert await AuthService(db).request_password_reset("nobody@example.com") is None


class TestSessionPurge:

    @pytest.mark.asyncio
    async def test_scheduled_task_removes_expired_rows(self, db, session_factory):
        service = AuthService(db)
        user, live_token = await service.register("Rahim", "rahim@example.com", "secret123")
        past = datetime.utcnow() - timedelta(hours=1)
        db.add(AuthSession(token="stale", user_id=user.id, expires_at=past))
        db.add(PasswordResetToken(token="stale-reset", user_id=user.id, expires_at=past))
        await db.commit()

        removed = await task_purge_expired_sessions(session_factory)

        assert removed == 1
        async with session_factory() as check:
            tokens = (await check.scalars(select(AuthSession.token))).all()
            resets = await check.scalar(select(func.count()).select_from(PasswordResetToken))
        assert tokens == [live_token]
        assert resets == 0

    def test_purge_job_registered(self):
        scheduler = TaskScheduler()
        setup_scheduled_tasks(scheduler)
        assert [job.id for job in scheduler.get_jobs()] == ["session_purge"]
