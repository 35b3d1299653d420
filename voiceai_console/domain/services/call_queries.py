"""
Call Queries
Cached call history and metrics
"""
from typing import Optional

from voiceai_console.domain.models.call import CallHistory, CallHistoryFilters, CallMetrics
from voiceai_console.domain.services.query_cache import QueryCache, QueryService
from voiceai_console.domain.services.query_keys import CallKeys
from voiceai_console.infrastructure.api.calls import CallAPI


class CallQueries(QueryService):
    resource = "calls"

    def __init__(self, cache: QueryCache, api: CallAPI, config=None):
        super().__init__(cache, config)
        self.api = api

    async def history(self, filters: Optional[CallHistoryFilters] = None) -> CallHistory:
        filters = filters or CallHistoryFilters()
        return await self.cache.read(
            CallKeys.history(filters),
            lambda: self.api.get_history(filters),
            **self.policy("history")
        )

    async def metrics(
        self,
        agent_id: Optional[str] = None,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None
    ) -> CallMetrics:
        return await self.cache.read(
            CallKeys.metrics() + ((agent_id, start_date, end_date),),
            lambda: self.api.get_metrics(agent_id, start_date, end_date),
            **self.policy("metrics")
        )
