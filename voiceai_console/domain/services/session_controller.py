"""
Session Controller
Owns the login / logout / token refresh lifecycle and the current-user state.

The controller is the only writer of the session. The token store holds a
persisted copy that is restored on startup.
"""
import asyncio
import logging
import time
from typing import Awaitable, Callable, Optional

from voiceai_console.core.errors import AuthenticationError, ConsoleError
from voiceai_console.core.validation import validate_onboarding
from voiceai_console.domain.models.auth import AuthState, AuthTokens, AuthUser, OnboardingData
from voiceai_console.infrastructure.api.auth import AuthAPI
from voiceai_console.infrastructure.storage.token_store import TokenStore

logger = logging.getLogger(__name__)

SESSION_EXPIRED_MESSAGE = "Session expired. Please login again."
DEFAULT_REFRESH_INTERVAL = 300
DEFAULT_REFRESH_THRESHOLD = 300

LOGIN_PATH = "/login"
ENTRY_PATH = "/"


def looks_like_jwt(credential: str) -> bool:
    """Google ID tokens are three dot-separated segments."""
    return len(credential.split(".")) == 3


class SessionController:
    """
    Session/auth controller.

    Args:
        auth_api: Auth adapter
        token_store: Persisted session copy
        dev_login: Log in through test-login with the credential as an email
        clock: Wall clock in epoch seconds (injectable for tests)
        refresh_interval: Seconds between background expiry checks
        refresh_threshold: Refresh when the token expires within this many seconds
        navigator: Called with a path when the session forces a redirect
        on_session_cleared: Called after the session is torn down
        sleep: Injectable sleep used by the refresh timer
    """

    def __init__(
        self,
        auth_api: AuthAPI,
        token_store: TokenStore,
        dev_login: bool = True,
        clock: Callable[[], float] = time.time,
        refresh_interval: float = DEFAULT_REFRESH_INTERVAL,
        refresh_threshold: float = DEFAULT_REFRESH_THRESHOLD,
        navigator: Optional[Callable[[str], None]] = None,
        on_session_cleared: Optional[Callable[[], None]] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
    ):
        self.auth_api = auth_api
        self.token_store = token_store
        self.dev_login = dev_login
        self._clock = clock
        self.refresh_interval = refresh_interval
        self.refresh_threshold = refresh_threshold
        self._navigator = navigator
        self._on_session_cleared = on_session_cleared
        self._sleep = sleep

        self.state = AuthState()
        self.redirect_to: Optional[str] = None
        self._refresh_task: Optional[asyncio.Task] = None
        self._timer_task: Optional[asyncio.Task] = None

    # State helpers

    @property
    def user(self) -> Optional[AuthUser]:
        return self.state.user

    @property
    def tokens(self) -> Optional[AuthTokens]:
        return self.state.tokens

    @property
    def is_authenticated(self) -> bool:
        return self.state.is_authenticated and self.state.tokens is not None

    @property
    def is_onboarded(self) -> bool:
        return self.state.user is not None and self.state.user.has_company

    def _update(self, **changes) -> None:
        self.state = self.state.model_copy(update=changes)

    def clear_error(self) -> None:
        self._update(error=None)

    def navigate(self, path: str) -> None:
        self.redirect_to = path
        if self._navigator:
            self._navigator(path)

    def _teardown(self, error: Optional[str] = None) -> None:
        self.token_store.clear()
        self.state = AuthState(error=error)
        if self._on_session_cleared:
            self._on_session_cleared()

    # Lifecycle

    async def initialize(self) -> None:
        """Restore the persisted session and re-validate it against /auth/me."""
        self._update(is_loading=True)
        stored = self.token_store.get_tokens()
        if stored is None:
            self._update(is_loading=False)
            return

        self._update(tokens=stored, user=self.token_store.get_user(), is_authenticated=True)

        try:
            if stored.is_expired(self._clock()):
                await self.refresh_tokens()
            user = await self.auth_api.get_current_user(self.state.tokens.access_token)
        except ConsoleError as e:
            logger.warning(f"Stored session is no longer valid: {e.message}")
            if self.state.tokens is not None:
                self._teardown()
            return

        self.token_store.set_user(user)
        self._update(user=user, is_loading=False, error=None)
        logger.info(f"Restored session for {user.email}")

    async def login(self, credential: str) -> bool:
        """
        Exchange a credential for a session.

        Args:
            credential: Email (test login) or Google ID token

        Returns:
            True if the user already belongs to a company (onboarding done).
            False on failure; state.error holds the message and any previous
            session is left untouched.
        """
        self._update(is_loading=True, error=None)
        credential = (credential or "").strip()

        try:
            if self.dev_login or not looks_like_jwt(credential):
                tokens = await self.auth_api.test_login(credential)
            else:
                tokens = await self.auth_api.google_login(credential)
            user = await self.auth_api.get_current_user(tokens.access_token)
        except (ConsoleError, KeyError, ValueError) as e:
            message = e.message if isinstance(e, ConsoleError) else "Login failed"
            logger.warning(f"Login failed: {message}")
            self._update(is_loading=False, error=message)
            return False

        self.token_store.save_session(tokens, user)
        self.state = AuthState(user=user, tokens=tokens, is_authenticated=True)
        logger.info(f"Logged in as {user.email} (onboarded={user.has_company})")
        return user.has_company

    async def complete_onboarding(self, data: OnboardingData) -> AuthUser:
        """
        Submit the onboarding form for the current user.

        Raises:
            ValidationError: Before any request when a field is invalid
            AuthenticationError: No session
        """
        validate_onboarding(data.name, data.phone, data.company_name)
        if self.state.tokens is None:
            raise AuthenticationError("No authentication token available")

        self._update(is_loading=True, error=None)
        try:
            user = await self.auth_api.complete_profile(data)
        except ConsoleError as e:
            self._update(is_loading=False, error=e.message)
            raise

        self.token_store.set_user(user)
        self._update(user=user, is_loading=False)
        logger.info(f"Onboarding complete for {user.email}")
        return user

    async def logout(self) -> None:
        """Best-effort backend logout, then always clear the local session."""
        tokens = self.state.tokens
        if tokens is not None:
            try:
                await self.auth_api.logout(tokens.access_token)
            except ConsoleError as e:
                logger.warning(f"Backend logout failed, clearing local session anyway: {e.message}")

        self._teardown()
        logger.info("Logged out")
        self.navigate(ENTRY_PATH)

    # Tokens

    async def refresh_tokens(self) -> AuthTokens:
        """
        Refresh the token pair. Concurrent callers share one request.

        Raises:
            AuthenticationError / ApiError / NetworkError: Refresh failed; the
            session has already been torn down
        """
        if self._refresh_task is None or self._refresh_task.done():
            self._refresh_task = asyncio.get_running_loop().create_task(self._refresh())
        return await asyncio.shield(self._refresh_task)

    async def _refresh(self) -> AuthTokens:
        tokens = self.state.tokens
        if tokens is None or not tokens.refresh_token:
            self._teardown(SESSION_EXPIRED_MESSAGE)
            raise AuthenticationError("No refresh token available")

        try:
            new_tokens = await self.auth_api.refresh_token(tokens.refresh_token)
        except ConsoleError:
            logger.warning("Token refresh failed, tearing down session")
            self._teardown(SESSION_EXPIRED_MESSAGE)
            raise
        except Exception as e:
            logger.error(f"Token refresh returned an unusable response, tearing down session: {e}")
            self._teardown(SESSION_EXPIRED_MESSAGE)
            raise AuthenticationError(SESSION_EXPIRED_MESSAGE) from e

        self.token_store.set_tokens(new_tokens)
        self._update(tokens=new_tokens, is_authenticated=True, error=None)
        logger.info("Access token refreshed")
        return new_tokens

    async def check_and_refresh_token(self) -> bool:
        """
        Refresh when the token is expired or expires within the threshold.

        Returns:
            False when there is no session or the refresh failed
        """
        tokens = self.state.tokens
        if tokens is None:
            return False

        if tokens.is_expiring_soon(self._clock(), self.refresh_threshold):
            try:
                await self.refresh_tokens()
            except ConsoleError:
                return False
        return True

    async def get_access_token(self) -> Optional[str]:
        """
        Token for an authenticated request; an expired token is refreshed first.

        Raises:
            AuthenticationError: The token expired and could not be refreshed
        """
        tokens = self.state.tokens
        if tokens is None:
            return None

        if tokens.is_expired(self._clock()):
            try:
                tokens = await self.refresh_tokens()
            except ConsoleError as e:
                raise AuthenticationError(SESSION_EXPIRED_MESSAGE) from e

        return tokens.access_token

    async def handle_unauthorized(self, error: AuthenticationError) -> None:
        """Backend answered 401/403 for the session token: clear and re-authenticate."""
        logger.warning(f"Backend rejected session ({error.status_code}), redirecting to login")
        self._teardown()
        self.navigate(LOGIN_PATH)

    # Background refresh timer

    async def tick(self) -> None:
        """One periodic expiry check."""
        if self.is_authenticated:
            await self.check_and_refresh_token()

    async def _refresh_loop(self) -> None:
        while True:
            await self._sleep(self.refresh_interval)
            try:
                await self.tick()
            except Exception as e:
                logger.error(f"Token refresh check failed: {e}")

    def start_refresh_timer(self) -> None:
        if self._timer_task is None or self._timer_task.done():
            self._timer_task = asyncio.get_running_loop().create_task(self._refresh_loop())
            logger.debug(f"Token refresh timer started (every {self.refresh_interval}s)")

    async def stop_refresh_timer(self) -> None:
        if self._timer_task is not None:
            self._timer_task.cancel()
            try:
                await self._timer_task
            except asyncio.CancelledError:
                pass
            self._timer_task = None
