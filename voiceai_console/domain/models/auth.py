"""
Auth Domain Models
"""
from pydantic import BaseModel
from typing import Optional


class AuthTokens(BaseModel):
    """Access/refresh token pair held by the session"""
    access_token: str
    refresh_token: str = ""
    expires_at: float  # Unix timestamp (seconds)
    token_type: str = "Bearer"

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at

    def is_expiring_soon(self, now: float, threshold_seconds: float = 300) -> bool:
        """True when the token expires within threshold_seconds (or already has)."""
        return now >= (self.expires_at - threshold_seconds)


class AuthUser(BaseModel):
    """Current user profile"""
    id: str
    email: str
    name: str = ""
    phone: Optional[str] = None
    google_id: str = ""
    company_id: Optional[str] = None
    created_at: str = ""
    updated_at: str = ""

    @property
    def has_company(self) -> bool:
        """Onboarding is complete once the user belongs to a company."""
        return bool(self.company_id)


class AuthState(BaseModel):
    """Session state exposed to the view layer"""
    user: Optional[AuthUser] = None
    tokens: Optional[AuthTokens] = None
    is_loading: bool = False
    is_authenticated: bool = False
    error: Optional[str] = None


class OnboardingData(BaseModel):
    """Profile completion form"""
    name: str
    phone: str
    company_name: str


class Company(BaseModel):
    """Company the user belongs to"""
    id: str
    name: str
    max_agents_limit: int = 0
    max_concurrent_calls: int = 0
    total_minutes_limit: Optional[int] = None
    total_minutes_used: int = 0


class ApiKey(BaseModel):
    """API key listed in settings (secret never included)"""
    id: str
    name: str
    key_preview: str = ""
    created_at: Optional[str] = None
    last_used_at: Optional[str] = None


class ApiKeyCreated(ApiKey):
    """Freshly created key; the full secret is only returned once"""
    key: str
