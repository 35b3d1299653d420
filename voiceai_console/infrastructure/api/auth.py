"""
Auth API Adapter
Login, profile, company, token refresh and API key endpoints
"""
import logging
import time
from typing import Any, Callable, Dict, List, Optional

from voiceai_console.core.errors import ApiError, NetworkError
from voiceai_console.domain.models.auth import (
    ApiKey,
    ApiKeyCreated,
    AuthTokens,
    AuthUser,
    Company,
    OnboardingData,
)
from voiceai_console.infrastructure.api.client import BackendClient

logger = logging.getLogger(__name__)

DEFAULT_TOKEN_LIFETIME = 60 * 24 * 60 * 60  # 60 days


class AuthAPI:
    """
    Args:
        client: Shared BackendClient
        clock: Wall clock (epoch seconds) used to compute token expiry
        default_token_lifetime: Seconds assumed when the backend omits expires_in
    """

    def __init__(
        self,
        client: BackendClient,
        clock: Callable[[], float] = time.time,
        default_token_lifetime: int = DEFAULT_TOKEN_LIFETIME
    ):
        self.client = client
        self._clock = clock
        self.default_token_lifetime = default_token_lifetime

    def _tokens(self, body: Any, previous_refresh_token: str = "", error_message: str = "Login failed") -> AuthTokens:
        if not isinstance(body, dict) or not body.get("access_token"):
            logger.error("Token response did not contain an access token")
            raise ApiError(502, error_message)
        expires_in = body.get("expires_in") or self.default_token_lifetime
        return AuthTokens(
            access_token=body["access_token"],
            refresh_token=body.get("refresh_token") or previous_refresh_token,
            expires_at=self._clock() + float(expires_in),
            token_type=body.get("token_type") or "Bearer",
        )

    async def test_login(self, email: str) -> AuthTokens:
        """Development login with an email address."""
        body = await self.client.request_json(
            "POST", "auth/test-login",
            json={"email": email},
            authenticated=False,
            error_message="Login failed",
        )
        return self._tokens(body)

    async def google_login(self, id_token: str) -> AuthTokens:
        body = await self.client.request_json(
            "POST", "auth/google-login",
            json={"token": id_token},
            authenticated=False,
            error_message="Google login failed",
        )
        return self._tokens(body, error_message="Google login failed")

    async def refresh_token(self, refresh_token: str) -> AuthTokens:
        """Exchange a refresh token; the old refresh token is kept if none is returned."""
        body = await self.client.request_json(
            "POST", "auth/refresh",
            json={"refresh_token": refresh_token},
            authenticated=False,
            error_message="Session expired. Please login again.",
        )
        return self._tokens(
            body,
            previous_refresh_token=refresh_token,
            error_message="Session expired. Please login again."
        )

    async def logout(self, access_token: Optional[str] = None) -> None:
        await self.client.request(
            "POST", "auth/logout",
            token=access_token,
            error_message="Logout failed",
        )

    async def get_current_user(self, access_token: Optional[str] = None) -> AuthUser:
        """
        Fetch the user profile.

        When the user has a company the company is fetched too and its id
        becomes user.company_id. A failed company lookup is logged and leaves
        company_id unset.
        """
        body = await self.client.request_json(
            "GET", "auth/me",
            token=access_token,
            error_message="Failed to get user info",
        )
        user = AuthUser.model_validate(body)

        if body.get("has_company") and not user.company_id:
            try:
                company = await self.get_company(access_token)
                user = user.model_copy(update={"company_id": company.id})
            except (ApiError, NetworkError) as e:
                logger.warning(f"Failed to fetch company info: {e.message}")

        return user

    async def get_company(self, access_token: Optional[str] = None) -> Company:
        body = await self.client.request_json(
            "GET", "auth/company",
            token=access_token,
            error_message="Failed to get company info",
        )
        return Company.model_validate(body)

    async def complete_profile(self, data: OnboardingData, access_token: Optional[str] = None) -> AuthUser:
        """Submit onboarding data, then return the refreshed profile."""
        await self.client.request(
            "PUT", "auth/profile",
            json=data.model_dump(),
            token=access_token,
            error_message="Failed to complete profile",
        )
        return await self.get_current_user(access_token)

    async def list_api_keys(self) -> List[ApiKey]:
        body = await self.client.request_json("GET", "auth/api-keys", error_message="Failed to load API keys")
        items = body.get("api_keys", []) if isinstance(body, dict) else body
        return [ApiKey.model_validate(item) for item in items or []]

    async def create_api_key(self, name: str) -> ApiKeyCreated:
        body = await self.client.request_json(
            "POST", "auth/api-keys",
            json={"name": name},
            error_message="Failed to create API key",
        )
        return ApiKeyCreated.model_validate(body)

    async def revoke_api_key(self, key_id: str) -> None:
        await self.client.request("DELETE", f"auth/api-keys/{key_id}", error_message="Failed to revoke API key")
