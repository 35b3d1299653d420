"""
Backend HTTP Client
Shared request/response plumbing for the resource adapters.

Builds the request, attaches the bearer token, and turns non-2xx responses
into typed errors. No caching and no retries: a failure propagates once.
"""
import logging
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple

import httpx

from voiceai_console.core.errors import (
    ApiError,
    AuthenticationError,
    NetworkError,
    VerificationRequiredError,
    LEAD_NOT_VERIFIED_CODE,
    sanitize_error_message,
)

logger = logging.getLogger(__name__)

TokenProvider = Callable[[], Awaitable[Optional[str]]]
UnauthorizedHandler = Callable[[AuthenticationError], Awaitable[None]]


def extract_error(body: Any) -> Tuple[Optional[str], Optional[str]]:
    """
    Pull (message, error_code) out of an error body.

    Understands FastAPI-style bodies: {"detail": "..."}, {"detail": [{"msg": ...}]},
    {"detail": {"code": ..., "message": ...}} as well as {"message"} / {"error"}.
    """
    if not isinstance(body, dict):
        return None, None

    code = body.get("error_code") or body.get("code")
    detail = body.get("detail")
    message = None

    if isinstance(detail, str):
        message = detail
    elif isinstance(detail, dict):
        code = code or detail.get("code") or detail.get("error_code")
        message = detail.get("message") or detail.get("msg")
    elif isinstance(detail, list):
        parts = [item.get("msg") for item in detail if isinstance(item, dict) and item.get("msg")]
        message = "; ".join(parts) or None

    if message is None:
        raw = body.get("message") or body.get("error")
        message = raw if isinstance(raw, str) else None

    return message, code


def _clean_params(params: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Drop unset query params; list values become repeated keys."""
    if not params:
        return None
    cleaned = {}
    for key, value in params.items():
        if value is None or value == "" or value == []:
            continue
        if hasattr(value, "value"):  # str Enum
            value = value.value
        elif isinstance(value, list):
            value = [v.value if hasattr(v, "value") else v for v in value]
        cleaned[key] = value
    return cleaned or None


class BackendClient:
    """
    Thin wrapper around httpx.AsyncClient bound to the backend base URL.

    Args:
        base_url: API root, e.g. http://localhost:8080/api/v1
        http_client: Optional pre-built client (tests pass a MockTransport client)
        timeout: Request timeout in seconds when the client is built here
    """

    def __init__(
        self,
        base_url: str,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: float = 30.0
    ):
        self.base_url = base_url.rstrip("/")
        self._http = http_client or httpx.AsyncClient(timeout=timeout)
        self._owns_client = http_client is None
        self._token_provider: Optional[TokenProvider] = None
        self._on_unauthorized: Optional[UnauthorizedHandler] = None

    def set_token_provider(self, provider: Optional[TokenProvider]) -> None:
        """Install the coroutine that returns the current access token."""
        self._token_provider = provider

    def set_unauthorized_handler(self, handler: Optional[UnauthorizedHandler]) -> None:
        """Install the coroutine called on any 401/403 response."""
        self._on_unauthorized = handler

    def url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    async def _headers(self, authenticated: bool, token: Optional[str]) -> Dict[str, str]:
        headers: Dict[str, str] = {}
        if token is None and authenticated and self._token_provider:
            token = await self._token_provider()
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json: Any = None,
        data: Optional[Dict[str, Any]] = None,
        files: Optional[Dict[str, Any]] = None,
        authenticated: bool = True,
        token: Optional[str] = None,
        error_message: str = "Request failed"
    ) -> httpx.Response:
        """
        Send a request and return the 2xx response.

        Args:
            token: Explicit bearer token (used during login before the session exists)
            error_message: Fallback message when the error body is not usable

        Raises:
            NetworkError: Transport failure
            AuthenticationError: 401/403
            VerificationRequiredError: Lead must be verified first
            ApiError: Any other non-2xx response
        """
        headers = await self._headers(authenticated, token)

        try:
            response = await self._http.request(
                method,
                self.url(path),
                params=_clean_params(params),
                json=json,
                data=data,
                files=files,
                headers=headers,
            )
        except httpx.TransportError as e:
            logger.error(f"{method} {path} failed: {e}")
            raise NetworkError() from e

        if response.is_success:
            return response

        error = self._translate_error(response, error_message)
        logger.error(f"{method} {path} -> {response.status_code}: {error.message}")

        # Only a rejected session token ends the session; login calls pass their own token
        if isinstance(error, AuthenticationError) and self._on_unauthorized and authenticated and token is None:
            await self._on_unauthorized(error)

        raise error

    async def request_json(self, method: str, path: str, **kwargs) -> Any:
        """Send a request and decode the JSON body (None for empty bodies)."""
        response = await self.request(method, path, **kwargs)
        if response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            logger.error(f"{method} {path} -> {response.status_code}: response body is not JSON")
            raise ApiError(response.status_code, kwargs.get("error_message", "Request failed"))

    def _translate_error(self, response: httpx.Response, fallback: str) -> ApiError:
        try:
            body = response.json()
        except ValueError:
            body = None

        raw_message, code = extract_error(body)
        message = sanitize_error_message(raw_message, fallback=fallback)
        detail = body.get("detail") if isinstance(body, dict) else None

        if code == LEAD_NOT_VERIFIED_CODE or "must be verified" in message.lower():
            return VerificationRequiredError(response.status_code, message, detail=detail, error_code=code)

        if response.status_code in (401, 403):
            return AuthenticationError(
                message,
                status_code=response.status_code,
                detail=detail,
                error_code=code
            )

        return ApiError(response.status_code, message, detail=detail, error_code=code)

    async def close(self) -> None:
        """Close the underlying HTTP client if this wrapper created it."""
        if self._owns_client:
            await self._http.aclose()
