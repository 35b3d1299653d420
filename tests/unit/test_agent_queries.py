"""
Unit tests for agent queries
Cached agent reads and optimistic toggle/update/delete
"""
import pytest
from unittest.mock import AsyncMock


def make_agent(agent_id: str, status: str = "active", name: str = "Sarah"):
    from voiceai_console.domain.models.agent import Agent
    return Agent(id=agent_id, name=name, status=status)


def make_api(*agents):
    from voiceai_console.domain.models.agent import AgentList

    api = AsyncMock()
    api.list_agents.return_value = AgentList(agents=list(agents), total=len(agents))
    api.get_agent.side_effect = lambda agent_id: next(a for a in agents if a.id == agent_id)
    return api


class TestAgentReads:
    """Tests for list/detail reads"""

    @pytest.mark.asyncio
    async def test_list_is_cached_per_filter(self, cache, config):
        """Same filters hit the cache, different filters fetch again"""
        from voiceai_console.domain.models.agent import AgentStatus
        from voiceai_console.domain.services.agent_queries import AgentQueries

        api = make_api(make_agent("a1"))
        queries = AgentQueries(cache, api, config)

        await queries.agents()
        await queries.agents()
        await queries.agents(status_filter=AgentStatus.ACTIVE)

        assert api.list_agents.await_count == 2

    @pytest.mark.asyncio
    async def test_policy_comes_from_config(self, cache, config):
        """Agent lists use the configured stale time"""
        from voiceai_console.domain.services.agent_queries import AgentQueries
        from voiceai_console.domain.services.query_keys import AgentKeys

        queries = AgentQueries(cache, make_api(make_agent("a1")), config)
        await queries.agents()

        assert cache.get_entry(AgentKeys.list()).stale_time == 900


class TestToggleStatus:
    """Tests for the optimistic status toggle"""

    @pytest.mark.asyncio
    async def test_failed_toggle_restores_list_and_detail(self, cache, config):
        """a1 shows inactive while the request runs and is active again after it fails"""
        from voiceai_console.core.errors import ApiError
        from voiceai_console.domain.models.agent import AgentStatus
        from voiceai_console.domain.services.agent_queries import AgentQueries
        from voiceai_console.domain.services.query_keys import AgentKeys

        a1, a2 = make_agent("a1"), make_agent("a2", status="inactive", name="Tom")
        api = make_api(a1, a2)
        queries = AgentQueries(cache, api, config)
        await queries.agents()
        await queries.agent("a1")
        list_before = cache.get_query_data(AgentKeys.list())
        detail_before = cache.get_query_data(AgentKeys.detail("a1"))
        seen = {}

        async def failing_toggle(agent_id):
            seen["list"] = cache.get_query_data(AgentKeys.list()).agents[0].status
            seen["detail"] = cache.get_query_data(AgentKeys.detail(agent_id)).status
            raise ApiError(500, "Failed to update agent status")

        api.toggle_status.side_effect = failing_toggle

        with pytest.raises(ApiError):
            await queries.toggle_status("a1")

        assert seen == {"list": AgentStatus.INACTIVE, "detail": AgentStatus.INACTIVE}
        assert cache.get_query_data(AgentKeys.list()) == list_before
        assert cache.get_query_data(AgentKeys.detail("a1")) == detail_before
        assert cache.get_query_data(AgentKeys.list()).agents[1].status == AgentStatus.INACTIVE

    @pytest.mark.asyncio
    async def test_successful_toggle_writes_backend_status(self, cache, config):
        """The backend's answer is written into every cached list"""
        from voiceai_console.domain.models.agent import AgentStatus
        from voiceai_console.domain.services.agent_queries import AgentQueries
        from voiceai_console.domain.services.query_keys import AgentKeys

        api = make_api(make_agent("a1"))
        api.toggle_status.return_value = AgentStatus.INACTIVE
        queries = AgentQueries(cache, api, config)
        await queries.agents()

        status = await queries.toggle_status("a1")

        assert status == AgentStatus.INACTIVE
        assert cache.get_query_data(AgentKeys.list()).agents[0].status == AgentStatus.INACTIVE
        assert cache.get_entry(AgentKeys.list()).invalidated


class TestAgentMutations:
    """Tests for create/update/delete"""

    @pytest.mark.asyncio
    async def test_create_appends_to_cached_lists(self, cache, config):
        """A created agent shows up in lists and its detail is seeded"""
        from voiceai_console.domain.models.agent import AgentCreate
        from voiceai_console.domain.services.agent_queries import AgentQueries
        from voiceai_console.domain.services.query_keys import AgentKeys

        api = make_api(make_agent("a1"))
        api.create_agent.return_value = make_agent("a2", name="Priya")
        queries = AgentQueries(cache, api, config)
        await queries.agents()

        created = await queries.create(AgentCreate(name="Priya", prompt="Hello"))

        cached = cache.get_query_data(AgentKeys.list())
        assert [a.id for a in cached.agents] == ["a1", "a2"]
        assert cached.total == 2
        assert cache.get_query_data(AgentKeys.detail("a2")) == created

    @pytest.mark.asyncio
    async def test_update_failure_rolls_back(self, cache, config):
        """A rejected rename leaves the cached name untouched"""
        from voiceai_console.core.errors import ApiError
        from voiceai_console.domain.models.agent import AgentUpdate
        from voiceai_console.domain.services.agent_queries import AgentQueries
        from voiceai_console.domain.services.query_keys import AgentKeys

        api = make_api(make_agent("a1", name="Sarah"))
        api.update_agent.side_effect = ApiError(400, "Invalid agent")
        queries = AgentQueries(cache, api, config)
        await queries.agent("a1")

        with pytest.raises(ApiError):
            await queries.update("a1", AgentUpdate(name="Renamed"))

        assert cache.get_query_data(AgentKeys.detail("a1")).name == "Sarah"

    @pytest.mark.asyncio
    async def test_delete_removes_agent_optimistically(self, cache, config):
        """Deleted agents disappear from lists and detail"""
        from voiceai_console.domain.services.agent_queries import AgentQueries
        from voiceai_console.domain.services.query_keys import AgentKeys

        api = make_api(make_agent("a1"), make_agent("a2", name="Tom"))
        api.delete_agent.return_value = None
        queries = AgentQueries(cache, api, config)
        await queries.agents()
        await queries.agent("a1")

        await queries.delete("a1")

        cached = cache.get_query_data(AgentKeys.list())
        assert [a.id for a in cached.agents] == ["a2"]
        assert cached.total == 1
        assert AgentKeys.detail("a1") not in cache


class TestDemoAgentLimit:
    """Tests for the demo agent allowance"""

    def test_limit_only_applies_in_demo_mode(self):
        """Paid accounts are never capped; demo accounts stop at zero remaining"""
        from voiceai_console.domain.models.demo import DemoStatus

        assert DemoStatus(demo_mode=False, agents_remaining=0).can_create_agent
        assert DemoStatus(demo_mode=True).can_create_agent
        assert DemoStatus(demo_mode=True, agents_remaining=1).can_create_agent
        assert not DemoStatus(demo_mode=True, agents_remaining=0).can_create_agent

    @pytest.mark.asyncio
    async def test_quota_check_reports_counts(self, cache, config):
        """An exhausted demo allowance raises with the agent counts"""
        from voiceai_console.core.errors import DemoLimitError
        from voiceai_console.domain.models.demo import DemoStatus
        from voiceai_console.domain.services.account_queries import AccountQueries

        demo_api = AsyncMock()
        demo_api.get_status.return_value = DemoStatus(
            demo_mode=True, agents_count=2, agents_limit=2, agents_remaining=0
        )
        queries = AccountQueries(cache, AsyncMock(), demo_api, config)

        with pytest.raises(DemoLimitError) as exc_info:
            await queries.ensure_agent_quota()

        assert exc_info.value.message == (
            "Demo agent limit reached (2/2 agents). Please upgrade to create more agents."
        )
