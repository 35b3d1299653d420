"""
Agent Queries
Cached agent reads and optimistic agent mutations
"""
import logging
from typing import Callable, List, Optional

from voiceai_console.domain.models.agent import (
    Agent,
    AgentCreate,
    AgentList,
    AgentStatus,
    AgentUpdate,
    ConversationFlowResult,
    FAQResult,
    TaskResult,
    Voice,
    WebsiteScrapeResult,
)
from voiceai_console.domain.services.query_cache import OptimisticTransaction, QueryCache, QueryService
from voiceai_console.domain.services.query_keys import AccountKeys, AgentKeys
from voiceai_console.infrastructure.api.agents import AgentAPI

logger = logging.getLogger(__name__)


def map_agent(agent_list: AgentList, agent_id: str, fn: Callable[[Agent], Agent]) -> AgentList:
    """Replace one agent inside a list, leaving every other agent object untouched."""
    return agent_list.model_copy(update={
        "agents": [fn(a) if a.id == agent_id else a for a in agent_list.agents]
    })


def without_agent(agent_list: AgentList, agent_id: str) -> AgentList:
    remaining = [a for a in agent_list.agents if a.id != agent_id]
    removed = len(agent_list.agents) - len(remaining)
    return agent_list.model_copy(update={"agents": remaining, "total": max(0, agent_list.total - removed)})


def with_status(status: AgentStatus) -> Callable[[Agent], Agent]:
    return lambda agent: agent.model_copy(update={"status": status})


class AgentQueries(QueryService):
    """Agent list/detail/voices plus create, update, toggle and delete"""
    resource = "agents"

    def __init__(self, cache: QueryCache, api: AgentAPI, config=None):
        super().__init__(cache, config)
        self.api = api

    async def agents(
        self,
        page: Optional[int] = None,
        per_page: Optional[int] = None,
        status_filter: Optional[AgentStatus] = None
    ) -> AgentList:
        filters = {"page": page, "per_page": per_page, "status_filter": status_filter}
        return await self.cache.read(
            AgentKeys.list(filters),
            lambda: self.api.list_agents(**filters),
            **self.policy("list")
        )

    async def agent(self, agent_id: str) -> Agent:
        return await self.cache.read(
            AgentKeys.detail(agent_id),
            lambda: self.api.get_agent(agent_id),
            **self.policy("detail")
        )

    async def voices(self) -> List[Voice]:
        return await self.cache.read(AgentKeys.voices(), self.api.get_voices, **self.policy("voices"))

    async def create(self, data: AgentCreate) -> Agent:
        """Create an agent, append it to cached lists and seed its detail entry."""
        def on_success(agent: Agent) -> None:
            self.cache.set_queries_data(
                AgentKeys.lists(),
                lambda lst: lst.model_copy(update={"agents": lst.agents + [agent], "total": lst.total + 1})
            )
            self.cache.set_query_data(AgentKeys.detail(agent.id), agent)
            logger.info(f"Created agent {agent.id} ({agent.name})")

        return await self.cache.mutate(
            lambda: self.api.create_agent(data),
            on_success=on_success,
            invalidates=[AgentKeys.lists(), AccountKeys.demo_status()],
        )

    async def update(self, agent_id: str, data: AgentUpdate) -> Agent:
        """Optimistically patch list and detail entries, then save."""
        changes = data.model_dump(exclude_none=True)

        def patch(agent: Agent) -> Agent:
            return agent.model_copy(update=changes)

        def on_mutate(tx: OptimisticTransaction) -> None:
            tx.apply(AgentKeys.detail(agent_id), patch)
            tx.apply_all(AgentKeys.lists(), lambda lst: map_agent(lst, agent_id, patch))

        def on_success(agent: Agent) -> None:
            self.cache.set_query_data(AgentKeys.detail(agent_id), agent)
            self.cache.set_queries_data(AgentKeys.lists(), lambda lst: map_agent(lst, agent_id, lambda _: agent))

        return await self.cache.mutate(
            lambda: self.api.update_agent(agent_id, data),
            on_mutate=on_mutate,
            on_success=on_success,
            invalidates=[AgentKeys.lists(), AgentKeys.detail(agent_id)],
        )

    async def toggle_status(self, agent_id: str) -> AgentStatus:
        """
        Flip active/inactive.

        The cached lists and detail show the new status immediately and are
        restored exactly if the backend call fails.
        """
        def flip(agent: Agent) -> Agent:
            return agent.model_copy(update={"status": agent.status.toggled()})

        def on_mutate(tx: OptimisticTransaction) -> None:
            tx.apply_all(AgentKeys.lists(), lambda lst: map_agent(lst, agent_id, flip))
            tx.apply(AgentKeys.detail(agent_id), flip)

        def on_success(status: AgentStatus) -> None:
            self.cache.set_queries_data(AgentKeys.lists(), lambda lst: map_agent(lst, agent_id, with_status(status)))

        def on_error(error: Exception) -> None:
            logger.warning(f"Toggling agent {agent_id} failed, reverted: {error}")

        return await self.cache.mutate(
            lambda: self.api.toggle_status(agent_id),
            on_mutate=on_mutate,
            on_success=on_success,
            on_error=on_error,
            invalidates=[AgentKeys.lists(), AgentKeys.detail(agent_id)],
        )

    async def delete(self, agent_id: str) -> None:
        def on_mutate(tx: OptimisticTransaction) -> None:
            tx.apply_all(AgentKeys.lists(), lambda lst: without_agent(lst, agent_id))
            tx.remove(AgentKeys.detail(agent_id))

        await self.cache.mutate(
            lambda: self.api.delete_agent(agent_id),
            on_mutate=on_mutate,
            invalidates=[AgentKeys.lists(), AccountKeys.demo_status()],
        )
        logger.info(f"Deleted agent {agent_id}")

    # Wizard generators (not cached)

    async def scrape_website(self, url: str) -> WebsiteScrapeResult:
        return await self.api.scrape_website(url)

    async def generate_faqs(self, content: str, company_name: str = "") -> FAQResult:
        return await self.api.generate_faqs(content, company_name)

    async def generate_tasks(self, role: str, industry: str, business_context: str = "") -> TaskResult:
        return await self.api.generate_tasks(role, industry, business_context)

    async def generate_conversation_flow(self, role: str, tasks: str, business_context: str = "") -> ConversationFlowResult:
        return await self.api.generate_conversation_flow(role, tasks, business_context)
