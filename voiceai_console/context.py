"""
Console Context
Single per-process owner of the session, the query cache and the API adapters.

Build one ConsoleContext per process and pass it to whatever needs it; the
FastAPI app keeps it on app.state.
"""
import logging
from typing import Dict, Optional

import httpx

from voiceai_console.core.config import ConfigManager, Settings
from voiceai_console.core.errors import VerificationError
from voiceai_console.domain.services.account_queries import AccountQueries
from voiceai_console.domain.services.agent_queries import AgentQueries
from voiceai_console.domain.services.call_queries import CallQueries
from voiceai_console.domain.services.calliq_queries import CallIQQueries
from voiceai_console.domain.services.lead_queries import LeadQueries
from voiceai_console.domain.services.query_cache import QueryCache
from voiceai_console.domain.services.session_controller import SessionController
from voiceai_console.domain.services.verification_flow import (
    LeadVerificationFlow,
    ScheduleOutcome,
    ScheduleResult,
    VerificationState,
)
from voiceai_console.infrastructure.api.agents import AgentAPI
from voiceai_console.infrastructure.api.auth import AuthAPI, DEFAULT_TOKEN_LIFETIME
from voiceai_console.infrastructure.api.calliq import CallIQAPI
from voiceai_console.infrastructure.api.calls import CallAPI
from voiceai_console.infrastructure.api.client import BackendClient
from voiceai_console.infrastructure.api.demo import DemoAPI
from voiceai_console.infrastructure.api.leads import LeadAPI
from voiceai_console.infrastructure.storage.encryption import SessionCipher
from voiceai_console.infrastructure.storage.token_store import FileStorage, MemoryStorage, TokenStore

logger = logging.getLogger(__name__)


class ConsoleContext:
    """
    Wires settings, adapters, session and cache together.

    Args:
        settings: Console settings (loaded from the environment when omitted)
        config: Cache/session/upload configuration
        http_client: Optional httpx client (tests pass a MockTransport client)
        token_store: Optional pre-built token store
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        config: Optional[ConfigManager] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        token_store: Optional[TokenStore] = None
    ):
        self.settings = settings or Settings()
        self.config = config or ConfigManager(
            env=self.settings.environment,
            config_dir=self.settings.config_dir or None
        )

        self.client = BackendClient(
            self.settings.api_url,
            http_client=http_client,
            timeout=self.settings.request_timeout
        )
        self.token_store = token_store or self._build_token_store()

        self.auth_api = AuthAPI(
            self.client,
            default_token_lifetime=self.config.get("session.default_token_lifetime", DEFAULT_TOKEN_LIFETIME)
        )
        self.agent_api = AgentAPI(self.client)
        self.lead_api = LeadAPI(self.client)
        self.call_api = CallAPI(self.client)
        self.calliq_api = CallIQAPI(self.client)
        self.demo_api = DemoAPI(self.client)

        defaults = self.config.get("cache.defaults", {}) or {}
        self.cache = QueryCache(
            default_stale_time=float(defaults.get("stale_time", 0)),
            default_cache_time=float(defaults.get("cache_time", 300))
        )

        self.session = SessionController(
            self.auth_api,
            self.token_store,
            dev_login=self.settings.is_development,
            refresh_interval=self.config.get("session.refresh_interval", 300),
            refresh_threshold=self.config.get("session.refresh_threshold", 300),
            on_session_cleared=self._on_session_cleared,
        )
        self.client.set_token_provider(self.session.get_access_token)
        self.client.set_unauthorized_handler(self.session.handle_unauthorized)

        self.agents = AgentQueries(self.cache, self.agent_api, self.config)
        self.leads = LeadQueries(self.cache, self.lead_api, self.call_api, self.config)
        self.calls = CallQueries(self.cache, self.call_api, self.config)
        self.calliq = CallIQQueries(self.cache, self.calliq_api, self.config)
        self.account = AccountQueries(self.cache, self.auth_api, self.demo_api, self.config)

        self._verification_flows: Dict[str, LeadVerificationFlow] = {}

    def _build_token_store(self) -> TokenStore:
        storage = FileStorage(self.settings.token_store_path) if self.settings.token_store_path else MemoryStorage()
        cipher = SessionCipher(self.settings.encryption_key) if self.settings.encryption_key else None
        return TokenStore(storage, cipher)

    def _on_session_cleared(self) -> None:
        # Cached data belongs to the previous user
        self.cache.clear()
        self._verification_flows.clear()

    def verification_flow(self, lead_id: str) -> LeadVerificationFlow:
        """Verification state for a lead, kept across requests until its call is scheduled."""
        flow = self._verification_flows.get(lead_id)
        if flow is None:
            flow = LeadVerificationFlow(lead_id, self.leads, self.account)
            self._verification_flows[lead_id] = flow
        return flow

    def find_verification_flow(self, lead_id: str) -> Optional[LeadVerificationFlow]:
        return self._verification_flows.get(lead_id)

    def _settle_flow(self, lead_id: str, result: ScheduleResult) -> ScheduleResult:
        if result.outcome == ScheduleOutcome.SCHEDULED:
            self._verification_flows.pop(lead_id, None)
        return result

    async def schedule_call(self, lead_id: str) -> ScheduleResult:
        """Schedule a call through the lead's verification flow."""
        flow = self.verification_flow(lead_id)
        try:
            result = await flow.schedule_call()
        except Exception:
            if flow.state == VerificationState.UNVERIFIED:
                self._verification_flows.pop(lead_id, None)
            raise
        return self._settle_flow(lead_id, result)

    async def submit_verification_code(self, lead_id: str, otp_code: str) -> ScheduleResult:
        """
        Submit an OTP; the flow is dropped once the retried call is scheduled.

        Raises:
            VerificationError: No verification was started for this lead
        """
        flow = self.find_verification_flow(lead_id)
        if flow is None:
            raise VerificationError("No verification in progress for this lead")
        result = await flow.submit_code(otp_code)
        return self._settle_flow(lead_id, result)

    async def start(self) -> None:
        """Restore the persisted session and start the refresh timer."""
        await self.session.initialize()
        self.session.start_refresh_timer()
        logger.info(f"Console context started (api={self.settings.api_url}, authenticated={self.session.is_authenticated})")

    async def close(self) -> None:
        await self.session.stop_refresh_timer()
        await self.client.close()
        logger.info("Console context closed")
