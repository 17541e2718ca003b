"""Unit tests for session issuance, renewal and revocation."""

import json
from datetime import timedelta

import pytest

from conftest import ACCESS_SECRET, REFRESH_SECRET, max_loop_stall
from hostel_api.application.services.session_service import SOCIAL_AVATAR_PUBLIC_ID, SessionService
from hostel_api.domain.errors import (
    AccountInactiveError,
    CorruptSessionError,
    InvalidCredentialsError,
    MissingTokenError,
    SessionExpiredError,
    TokenInvalidError,
    ValidationError,
)
from hostel_api.infrastructure.cache.memory_session_cache import MemorySessionCache
from hostel_api.services.password_hasher import PasswordHasher
from hostel_api.services.token_codec import sign_token, verify_token


async def _active_user(activation_service, email="ana@x.com", password="secret1"):
    ticket = await activation_service.register(
        name="Ana", email=email, phone="1234567890", password=password
    )
    return await activation_service.activate(ticket.token, ticket.code)


class TestLogin:
    async def test_login_issues_pair_and_caches_snapshot(self, activation_service, session_service, session_cache):
        user = await _active_user(activation_service)

        issued = await session_service.login("ANA@x.com", "secret1")

        assert issued.user.id == user.id
        assert verify_token(issued.access_token, ACCESS_SECRET)["id"] == user.id
        assert verify_token(issued.refresh_token, REFRESH_SECRET)["id"] == user.id
        snapshot = json.loads(await session_cache.get(user.id))
        assert snapshot["email"] == "ana@x.com"
        assert "password_hash" not in snapshot
        assert "password" not in snapshot

    async def test_token_lifetimes(self, activation_service, session_service):
        await _active_user(activation_service)

        issued = await session_service.login("ana@x.com", "secret1")

        access = verify_token(issued.access_token, ACCESS_SECRET)
        refresh = verify_token(issued.refresh_token, REFRESH_SECRET)
        assert access["exp"] - access["iat"] == 3 * 24 * 3600
        assert refresh["exp"] - refresh["iat"] == 7 * 24 * 3600

    async def test_wrong_password_and_unknown_email_look_identical(self, activation_service, session_service):
        await _active_user(activation_service)

        with pytest.raises(InvalidCredentialsError) as wrong_password:
            await session_service.login("ana@x.com", "not-the-password")
        with pytest.raises(InvalidCredentialsError) as unknown_email:
            await session_service.login("nobody@x.com", "secret1")

        assert str(wrong_password.value) == str(unknown_email.value)
        assert wrong_password.value.status_code == unknown_email.value.status_code

    async def test_missing_credentials(self, session_service):
        with pytest.raises(ValidationError):
            await session_service.login("", "secret1")
        with pytest.raises(ValidationError):
            await session_service.login("ana@x.com", None)

    async def test_unactivated_account_cannot_log_in(self, activation_service, session_service):
        await activation_service.register(name="Ana", email="ana@x.com", phone="1234567890", password="secret1")

        with pytest.raises(AccountInactiveError):
            await session_service.login("ana@x.com", "secret1")

    async def test_unactivated_account_with_wrong_password_stays_generic(self, activation_service, session_service):
        await activation_service.register(name="Ana", email="ana@x.com", phone="1234567890", password="secret1")

        with pytest.raises(InvalidCredentialsError):
            await session_service.login("ana@x.com", "wrong-one")


    async def test_password_check_does_not_block_the_event_loop(self, user_repository, session_service):
        user_repository.create(
            name="Ana",
            email="ana@x.com",
            phone="1234567890",
            password_hash=PasswordHasher(rounds=12).hash("secret1"),
            is_active=True,
        )

        issued, stall = await max_loop_stall(session_service.login("ana@x.com", "secret1"))

        assert issued.user.email == "ana@x.com"
        assert stall < 0.1


class TestSocialAuth:
    async def test_creates_active_identity_without_password(self, session_service, user_repository):
        issued = await session_service.social_auth("Bo", "Bo@x.com", "https://cdn/bo.png")

        stored = user_repository.get_by_email("bo@x.com")
        assert stored.id == issued.user.id
        assert stored.is_active is True
        assert stored.password_hash is None
        assert stored.avatar.public_id == SOCIAL_AVATAR_PUBLIC_ID
        assert stored.avatar.url == "https://cdn/bo.png"

    async def test_reuses_existing_identity(self, activation_service, session_service):
        user = await _active_user(activation_service)

        issued = await session_service.social_auth("Ana", "ana@x.com")

        assert issued.user.id == user.id

    async def test_social_identity_cannot_use_password_login(self, session_service):
        await session_service.social_auth("Bo", "bo@x.com")

        with pytest.raises(InvalidCredentialsError):
            await session_service.login("bo@x.com", "anything")

    async def test_claims_pending_registration(self, activation_service, session_service, user_repository):
        await activation_service.register(name="Ana", email="ana@x.com", phone="1234567890", password="secret1")

        issued = await session_service.social_auth("Ana", "ana@x.com")

        assert issued.user.is_active is True
        assert user_repository.get_by_email("ana@x.com").password_hash is None
        with pytest.raises(InvalidCredentialsError):
            await session_service.login("ana@x.com", "secret1")


class TestRefresh:
    async def test_refresh_after_login_rotates_tokens(self, activation_service, session_service):
        user = await _active_user(activation_service)
        issued = await session_service.login("ana@x.com", "secret1")

        renewed = await session_service.refresh(issued.refresh_token)

        assert renewed.user.id == user.id
        assert verify_token(renewed.access_token, ACCESS_SECRET)["id"] == user.id
        assert verify_token(renewed.refresh_token, REFRESH_SECRET)["id"] == user.id

    async def test_missing_token(self, session_service):
        with pytest.raises(MissingTokenError):
            await session_service.refresh(None)

    async def test_garbage_token(self, session_service):
        with pytest.raises(TokenInvalidError):
            await session_service.refresh("garbage")

    async def test_access_token_is_not_a_refresh_token(self, activation_service, session_service):
        await _active_user(activation_service)
        issued = await session_service.login("ana@x.com", "secret1")

        with pytest.raises(TokenInvalidError):
            await session_service.refresh(issued.access_token)

    async def test_token_without_id(self, session_service):
        token = sign_token({"sub": "someone"}, REFRESH_SECRET, timedelta(days=7))

        with pytest.raises(TokenInvalidError):
            await session_service.refresh(token)

    async def test_refresh_after_logout_fails(self, activation_service, session_service):
        user = await _active_user(activation_service)
        issued = await session_service.login("ana@x.com", "secret1")

        await session_service.logout(user.id)

        with pytest.raises(SessionExpiredError):
            await session_service.refresh(issued.refresh_token)

    async def test_logout_between_read_and_renewal_stays_final(self, activation_service, user_repository, hasher):
        class LogoutAfterRead(MemorySessionCache):
            logout_next_read = False

            async def get(self, user_id):
                snapshot = await super().get(user_id)
                if self.logout_next_read:
                    await self.delete(user_id)
                return snapshot

        cache = LogoutAfterRead()
        service = SessionService(
            user_repository, cache, hasher, access_secret=ACCESS_SECRET, refresh_secret=REFRESH_SECRET
        )
        user = await _active_user(activation_service)
        issued = await service.login("ana@x.com", "secret1")
        cache.logout_next_read = True

        with pytest.raises(SessionExpiredError):
            await service.refresh(issued.refresh_token)
        assert await cache.get(user.id) is None

    async def test_corrupt_snapshot(self, activation_service, session_service, session_cache):
        user = await _active_user(activation_service)
        issued = await session_service.login("ana@x.com", "secret1")
        await session_cache.set(user.id, "{not json", 60)

        with pytest.raises(CorruptSessionError):
            await session_service.refresh(issued.refresh_token)

    async def test_snapshot_for_another_user_is_corrupt(self, activation_service, session_service, session_cache):
        user = await _active_user(activation_service)
        issued = await session_service.login("ana@x.com", "secret1")
        await session_cache.set(user.id, json.dumps({"id": user.id + 1, "email": "x@x.com"}), 60)

        with pytest.raises(CorruptSessionError):
            await session_service.refresh(issued.refresh_token)

    async def test_refresh_renews_cache_ttl(self, activation_service, user_repository, hasher):
        class Clock:
            now = 0.0

            def __call__(self):
                return self.now

        clock = Clock()
        cache = MemorySessionCache(clock=clock)
        service = SessionService(
            user_repository,
            cache,
            hasher,
            access_secret=ACCESS_SECRET,
            refresh_secret=REFRESH_SECRET,
            session_ttl_seconds=100,
        )
        await _active_user(activation_service)
        issued = await service.login("ana@x.com", "secret1")

        clock.now = 90
        renewed = await service.refresh(issued.refresh_token)
        clock.now = 180

        assert (await service.refresh(renewed.refresh_token)).user.email == "ana@x.com"

    async def test_superseded_refresh_token_still_works_while_session_is_live(
        self, activation_service, session_service
    ):
        await _active_user(activation_service)
        issued = await session_service.login("ana@x.com", "secret1")
        await session_service.refresh(issued.refresh_token)

        again = await session_service.refresh(issued.refresh_token)

        assert again.access_token


class TestAuthenticateAndLogout:
    async def test_authenticate_resolves_live_session(self, activation_service, session_service):
        user = await _active_user(activation_service)
        issued = await session_service.login("ana@x.com", "secret1")

        current = await session_service.authenticate(issued.access_token)

        assert current.id == user.id
        assert current.password_hash is None

    async def test_authenticate_after_logout(self, activation_service, session_service):
        user = await _active_user(activation_service)
        issued = await session_service.login("ana@x.com", "secret1")
        await session_service.logout(user.id)

        with pytest.raises(SessionExpiredError):
            await session_service.authenticate(issued.access_token)

    async def test_authenticate_rejects_refresh_token(self, activation_service, session_service):
        await _active_user(activation_service)
        issued = await session_service.login("ana@x.com", "secret1")

        with pytest.raises(TokenInvalidError):
            await session_service.authenticate(issued.refresh_token)

    async def test_logout_is_idempotent(self, session_service):
        await session_service.logout(12345)
        await session_service.logout(12345)
        await session_service.logout(None)


def test_access_and_refresh_secrets_must_differ(user_repository, session_cache, hasher):
    with pytest.raises(RuntimeError):
        SessionService(
            user_repository,
            session_cache,
            hasher,
            access_secret=ACCESS_SECRET,
            refresh_secret=ACCESS_SECRET,
        )
