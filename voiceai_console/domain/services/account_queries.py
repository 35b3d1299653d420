"""
Account Queries
Account policy (demo status), company info and API keys
"""
import logging
from typing import List

from voiceai_console.core.errors import DemoLimitError
from voiceai_console.core.validation import FormValidator, validate_required
from voiceai_console.domain.models.auth import ApiKey, ApiKeyCreated, Company
from voiceai_console.domain.models.demo import DemoStatus
from voiceai_console.domain.services.query_cache import OptimisticTransaction, QueryCache, QueryService
from voiceai_console.domain.services.query_keys import AccountKeys
from voiceai_console.infrastructure.api.auth import AuthAPI
from voiceai_console.infrastructure.api.demo import DemoAPI

logger = logging.getLogger(__name__)


class AccountQueries(QueryService):
    resource = "account"

    def __init__(self, cache: QueryCache, auth_api: AuthAPI, demo_api: DemoAPI, config=None):
        super().__init__(cache, config)
        self.auth_api = auth_api
        self.demo_api = demo_api

    async def demo_status(self) -> DemoStatus:
        """Account policy, including whether only verified leads may be called."""
        return await self.cache.read(AccountKeys.demo_status(), self.demo_api.get_status, **self.policy("demo_status"))

    async def ensure_agent_quota(self) -> None:
        """
        Raises:
            DemoLimitError: Demo account with no agents remaining
        """
        status = await self.demo_status()
        if not status.can_create_agent:
            logger.info(f"Agent creation blocked by demo limit ({status.agents_count}/{status.agents_limit})")
            raise DemoLimitError(
                f"Demo agent limit reached ({status.agents_count}/{status.agents_limit} agents). "
                "Please upgrade to create more agents."
            )

    async def company(self) -> Company:
        return await self.cache.read(AccountKeys.company(), self.auth_api.get_company, **self.policy("company"))

    async def api_keys(self) -> List[ApiKey]:
        return await self.cache.read(AccountKeys.api_keys(), self.auth_api.list_api_keys, **self.policy("api_keys"))

    async def create_api_key(self, name: str) -> ApiKeyCreated:
        """Create a key; the returned secret is not kept in the cache."""
        validator = FormValidator()
        validator.check("name", validate_required(name, "Key name"))
        validator.raise_if_invalid()

        def on_success(created: ApiKeyCreated) -> None:
            listed = ApiKey.model_validate(created.model_dump(exclude={"key"}))
            self.cache.set_queries_data(AccountKeys.api_keys(), lambda keys: keys + [listed])
            logger.info(f"Created API key {created.id}")

        return await self.cache.mutate(
            lambda: self.auth_api.create_api_key(name.strip()),
            on_success=on_success,
            invalidates=[AccountKeys.api_keys()],
        )

    async def revoke_api_key(self, key_id: str) -> None:
        def on_mutate(tx: OptimisticTransaction) -> None:
            tx.apply(AccountKeys.api_keys(), lambda keys: [k for k in keys if k.id != key_id])

        await self.cache.mutate(
            lambda: self.auth_api.revoke_api_key(key_id),
            on_mutate=on_mutate,
            invalidates=[AccountKeys.api_keys()],
        )
        logger.info(f"Revoked API key {key_id}")
