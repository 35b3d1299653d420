"""
Unit tests for the session controller
Login, logout, onboarding, token refresh and session teardown
"""
import asyncio

import pytest
from unittest.mock import AsyncMock, MagicMock


def make_tokens(now: float, expires_in: float, access: str = "access-1", refresh: str = "refresh-1"):
    from voiceai_console.domain.models.auth import AuthTokens
    return AuthTokens(access_token=access, refresh_token=refresh, expires_at=now + expires_in)


def make_user(company_id=None):
    from voiceai_console.domain.models.auth import AuthUser
    return AuthUser(id="u1", email="owner@acme.test", name="Owner", company_id=company_id)


def make_controller(clock, auth_api=None, token_store=None, **kwargs):
    from voiceai_console.domain.services.session_controller import SessionController
    from voiceai_console.infrastructure.storage.token_store import TokenStore

    return SessionController(
        auth_api or AsyncMock(),
        token_store or TokenStore(),
        clock=clock,
        **kwargs
    )


async def logged_in(controller, clock, expires_in: float = 3600):
    """Put the controller into an authenticated state without a login call."""
    from voiceai_console.domain.models.auth import AuthState

    tokens = make_tokens(clock(), expires_in)
    user = make_user(company_id="c1")
    controller.token_store.save_session(tokens, user)
    controller.state = AuthState(user=user, tokens=tokens, is_authenticated=True)
    return tokens


class TestLogin:
    """Tests for login"""

    @pytest.mark.asyncio
    async def test_dev_login_uses_test_endpoint(self, clock):
        """Development logins go through test-login and persist the session"""
        auth_api = AsyncMock()
        auth_api.test_login.return_value = make_tokens(clock(), 3600)
        auth_api.get_current_user.return_value = make_user(company_id="c1")
        controller = make_controller(clock, auth_api)

        onboarded = await controller.login("owner@acme.test")

        assert onboarded is True
        assert controller.is_authenticated
        auth_api.test_login.assert_awaited_once_with("owner@acme.test")
        auth_api.google_login.assert_not_called()
        assert controller.token_store.get_tokens().access_token == "access-1"

    @pytest.mark.asyncio
    async def test_user_without_company_needs_onboarding(self, clock):
        """login() returns False for users that still have to onboard"""
        auth_api = AsyncMock()
        auth_api.test_login.return_value = make_tokens(clock(), 3600)
        auth_api.get_current_user.return_value = make_user()
        controller = make_controller(clock, auth_api)

        assert await controller.login("new@acme.test") is False
        assert controller.is_authenticated
        assert not controller.is_onboarded

    @pytest.mark.asyncio
    async def test_production_login_uses_google_for_id_tokens(self, clock):
        """JWT-shaped credentials go to google-login outside development"""
        auth_api = AsyncMock()
        auth_api.google_login.return_value = make_tokens(clock(), 3600)
        auth_api.get_current_user.return_value = make_user(company_id="c1")
        controller = make_controller(clock, auth_api, dev_login=False)

        await controller.login("header.payload.signature")

        auth_api.google_login.assert_awaited_once_with("header.payload.signature")

    @pytest.mark.asyncio
    async def test_failed_login_keeps_previous_session(self, clock):
        """A rejected login surfaces the error and leaves the stored session in place"""
        from voiceai_console.core.errors import ApiError

        auth_api = AsyncMock()
        auth_api.test_login.side_effect = ApiError(400, "Invalid email")
        controller = make_controller(clock, auth_api)
        tokens = await logged_in(controller, clock)

        assert await controller.login("bad") is False

        assert controller.state.error == "Invalid email"
        assert controller.tokens == tokens
        assert controller.token_store.get_tokens() == tokens


class TestTokenRefresh:
    """Tests for refresh and expiry handling"""

    @pytest.mark.asyncio
    async def test_tick_refreshes_token_expiring_within_threshold(self, clock):
        """A token 4 minutes from expiry is refreshed exactly once"""
        auth_api = AsyncMock()
        auth_api.refresh_token.return_value = make_tokens(clock(), 3600, access="access-2", refresh="refresh-2")
        controller = make_controller(clock, auth_api, refresh_threshold=300)
        await logged_in(controller, clock, expires_in=240)

        await controller.tick()
        await controller.tick()

        auth_api.refresh_token.assert_awaited_once_with("refresh-1")
        assert controller.tokens.access_token == "access-2"
        assert controller.token_store.get_tokens().refresh_token == "refresh-2"

    @pytest.mark.asyncio
    async def test_tick_leaves_fresh_token_alone(self, clock):
        """No refresh when the token is far from expiry"""
        auth_api = AsyncMock()
        controller = make_controller(clock, auth_api)
        await logged_in(controller, clock, expires_in=3600)

        await controller.tick()

        auth_api.refresh_token.assert_not_called()

    @pytest.mark.asyncio
    async def test_concurrent_refreshes_share_one_request(self, clock):
        """Several requests hitting an expired token trigger one refresh"""
        auth_api = AsyncMock()
        release = asyncio.Event()

        async def slow_refresh(refresh_token):
            await release.wait()
            return make_tokens(clock(), 3600, access="access-2")

        auth_api.refresh_token.side_effect = slow_refresh
        controller = make_controller(clock, auth_api)
        await logged_in(controller, clock, expires_in=60)
        clock.advance(120)

        pending = asyncio.gather(*(controller.get_access_token() for _ in range(3)))
        await asyncio.sleep(0)
        release.set()

        assert await pending == ["access-2"] * 3
        assert auth_api.refresh_token.await_count == 1

    @pytest.mark.asyncio
    async def test_failed_refresh_tears_down_session(self, clock):
        """Refresh failure clears storage, reports expiry and notifies listeners"""
        from voiceai_console.core.errors import AuthenticationError
        from voiceai_console.domain.services.session_controller import SESSION_EXPIRED_MESSAGE

        auth_api = AsyncMock()
        auth_api.refresh_token.side_effect = AuthenticationError("Invalid refresh token")
        cleared = MagicMock()
        controller = make_controller(clock, auth_api, on_session_cleared=cleared)
        await logged_in(controller, clock, expires_in=60)
        clock.advance(120)

        with pytest.raises(AuthenticationError) as exc_info:
            await controller.get_access_token()

        assert exc_info.value.message == SESSION_EXPIRED_MESSAGE
        assert not controller.is_authenticated
        assert controller.state.error == SESSION_EXPIRED_MESSAGE
        assert controller.token_store.get_tokens() is None
        cleared.assert_called_once()

    @pytest.mark.asyncio
    async def test_unusable_refresh_response_tears_down_session(self, clock):
        """A refresh that fails outside the error types still ends the session"""
        from voiceai_console.domain.services.session_controller import SESSION_EXPIRED_MESSAGE

        auth_api = AsyncMock()
        auth_api.refresh_token.side_effect = KeyError("access_token")
        controller = make_controller(clock, auth_api)
        await logged_in(controller, clock, expires_in=240)

        await controller.tick()

        assert not controller.is_authenticated
        assert controller.state.error == SESSION_EXPIRED_MESSAGE
        assert controller.token_store.get_tokens() is None

    @pytest.mark.asyncio
    async def test_empty_refresh_body_tears_down_session(self, clock):
        """A 200 refresh answer without tokens is treated as a failed refresh"""
        import httpx
        from voiceai_console.infrastructure.api.auth import AuthAPI
        from voiceai_console.infrastructure.api.client import BackendClient

        def handler(request):
            return httpx.Response(200, json={})

        client = BackendClient("http://backend.test/api/v1", http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))
        controller = make_controller(clock, AuthAPI(client, clock=clock))
        await logged_in(controller, clock, expires_in=240)

        await controller.tick()

        assert not controller.is_authenticated
        assert controller.token_store.get_tokens() is None

    @pytest.mark.asyncio
    async def test_refresh_timer_survives_failed_check(self, clock):
        """An unexpected error in one check does not stop later checks"""
        sleeps = []
        third_sleep = asyncio.Event()

        async def fake_sleep(seconds):
            sleeps.append(seconds)
            if len(sleeps) > 2:
                third_sleep.set()
                await asyncio.Event().wait()

        controller = make_controller(clock, refresh_interval=300, sleep=fake_sleep)
        controller.tick = AsyncMock(side_effect=[RuntimeError("boom"), None])

        controller.start_refresh_timer()
        await third_sleep.wait()
        await controller.stop_refresh_timer()

        assert sleeps == [300, 300, 300]
        assert controller.tick.await_count == 2

    @pytest.mark.asyncio
    async def test_unexpired_token_returned_without_refresh(self, clock):
        """get_access_token hands out a valid token as is"""
        auth_api = AsyncMock()
        controller = make_controller(clock, auth_api)
        await logged_in(controller, clock, expires_in=3600)

        assert await controller.get_access_token() == "access-1"
        auth_api.refresh_token.assert_not_called()

    @pytest.mark.asyncio
    async def test_refresh_timer_runs_periodic_checks(self, clock):
        """The background timer sleeps refresh_interval, then checks expiry"""
        auth_api = AsyncMock()
        auth_api.refresh_token.return_value = make_tokens(clock(), 3600, access="access-2")
        sleeps = []
        second_sleep = asyncio.Event()

        async def fake_sleep(seconds):
            sleeps.append(seconds)
            if len(sleeps) > 1:
                second_sleep.set()
                await asyncio.Event().wait()

        controller = make_controller(clock, auth_api, refresh_interval=300, sleep=fake_sleep)
        await logged_in(controller, clock, expires_in=120)

        controller.start_refresh_timer()
        await second_sleep.wait()
        await controller.stop_refresh_timer()

        assert sleeps == [300, 300]
        auth_api.refresh_token.assert_awaited_once()
        assert controller.tokens.access_token == "access-2"


class TestSessionLifecycle:
    """Tests for initialize, onboarding, logout and 401 handling"""

    @pytest.mark.asyncio
    async def test_initialize_restores_stored_session(self, clock):
        """A stored session is re-validated against the profile endpoint"""
        from voiceai_console.infrastructure.storage.token_store import TokenStore

        store = TokenStore()
        store.save_session(make_tokens(clock(), 3600), make_user(company_id="c1"))
        auth_api = AsyncMock()
        auth_api.get_current_user.return_value = make_user(company_id="c1")
        controller = make_controller(clock, auth_api, token_store=store)

        await controller.initialize()

        assert controller.is_authenticated
        assert controller.is_onboarded
        auth_api.get_current_user.assert_awaited_once_with("access-1")

    @pytest.mark.asyncio
    async def test_initialize_refreshes_expired_stored_token(self, clock):
        """An expired stored token is refreshed before the profile check"""
        from voiceai_console.infrastructure.storage.token_store import TokenStore

        store = TokenStore()
        store.save_session(make_tokens(clock() - 7200, 3600), make_user(company_id="c1"))
        auth_api = AsyncMock()
        auth_api.refresh_token.return_value = make_tokens(clock(), 3600, access="access-2")
        auth_api.get_current_user.return_value = make_user(company_id="c1")
        controller = make_controller(clock, auth_api, token_store=store)

        await controller.initialize()

        auth_api.get_current_user.assert_awaited_once_with("access-2")
        assert store.get_tokens().access_token == "access-2"

    @pytest.mark.asyncio
    async def test_initialize_clears_rejected_session(self, clock):
        """A stored session the backend rejects is cleared"""
        from voiceai_console.core.errors import AuthenticationError
        from voiceai_console.infrastructure.storage.token_store import TokenStore

        store = TokenStore()
        store.save_session(make_tokens(clock(), 3600), make_user())
        auth_api = AsyncMock()
        auth_api.get_current_user.side_effect = AuthenticationError()
        controller = make_controller(clock, auth_api, token_store=store)

        await controller.initialize()

        assert not controller.is_authenticated
        assert not store.has_session()

    @pytest.mark.asyncio
    async def test_onboarding_validates_before_request(self, clock):
        """Invalid onboarding data raises without calling the backend"""
        from voiceai_console.core.errors import ValidationError
        from voiceai_console.domain.models.auth import OnboardingData

        auth_api = AsyncMock()
        controller = make_controller(clock, auth_api)
        await logged_in(controller, clock)

        with pytest.raises(ValidationError) as exc_info:
            await controller.complete_onboarding(OnboardingData(name="", phone="555", company_name="Acme"))

        assert set(exc_info.value.field_errors) == {"name", "phone"}
        auth_api.complete_profile.assert_not_called()

    @pytest.mark.asyncio
    async def test_onboarding_updates_user(self, clock):
        """Completed onboarding stores the user with its company"""
        from voiceai_console.domain.models.auth import OnboardingData

        auth_api = AsyncMock()
        auth_api.complete_profile.return_value = make_user(company_id="c9")
        controller = make_controller(clock, auth_api)
        await logged_in(controller, clock)

        user = await controller.complete_onboarding(
            OnboardingData(name="Owner", phone="+14155550123", company_name="Acme")
        )

        assert user.company_id == "c9"
        assert controller.token_store.get_user().company_id == "c9"

    @pytest.mark.asyncio
    async def test_logout_clears_session_even_if_backend_fails(self, clock):
        """Backend logout errors do not keep the user logged in"""
        from voiceai_console.core.errors import NetworkError

        auth_api = AsyncMock()
        auth_api.logout.side_effect = NetworkError()
        navigator = MagicMock()
        controller = make_controller(clock, auth_api, navigator=navigator)
        await logged_in(controller, clock)

        await controller.logout()

        assert not controller.is_authenticated
        assert not controller.token_store.has_session()
        navigator.assert_called_once_with("/")

    @pytest.mark.asyncio
    async def test_unauthorized_response_redirects_to_login(self, clock):
        """A 401 on the session token clears everything and redirects"""
        from voiceai_console.core.errors import AuthenticationError

        cleared = MagicMock()
        controller = make_controller(clock, on_session_cleared=cleared)
        await logged_in(controller, clock)

        await controller.handle_unauthorized(AuthenticationError(status_code=401))

        assert not controller.is_authenticated
        assert controller.redirect_to == "/login"
        cleared.assert_called_once()
