"""
Call API Adapter
Call history, metrics and scheduling
"""
from typing import Optional

from voiceai_console.domain.models.call import (
    CallHistory,
    CallHistoryFilters,
    CallMetrics,
    ScheduleCallResult,
)
from voiceai_console.infrastructure.api.client import BackendClient


class CallAPI:
    """Typed wrapper over /calls"""

    def __init__(self, client: BackendClient):
        self.client = client

    async def get_history(self, filters: Optional[CallHistoryFilters] = None) -> CallHistory:
        filters = filters or CallHistoryFilters()
        body = await self.client.request_json(
            "GET", "calls/history",
            params=filters.model_dump(),
            error_message="Failed to fetch call history",
        )
        return CallHistory.model_validate(body)

    async def get_metrics(
        self,
        agent_id: Optional[str] = None,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None
    ) -> CallMetrics:
        body = await self.client.request_json(
            "GET", "calls/metrics",
            params={"agent_id": agent_id, "start_date": start_date, "end_date": end_date},
            error_message="Failed to fetch call metrics",
        )
        return CallMetrics.model_validate(body)

    async def schedule_call(self, lead_id: str) -> ScheduleCallResult:
        """
        Ask the backend to call a lead now.

        Raises:
            VerificationRequiredError: The account only allows verified leads
        """
        body = await self.client.request_json(
            "POST", "calls/schedule",
            json={"lead_id": lead_id},
            error_message="Failed to schedule call",
        )
        return ScheduleCallResult.model_validate(body or {})
