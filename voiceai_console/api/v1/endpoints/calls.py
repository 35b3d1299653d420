"""
Call History Endpoints
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query

from voiceai_console.api.v1.dependencies import require_session
from voiceai_console.context import ConsoleContext
from voiceai_console.domain.models.call import CallHistory, CallHistoryFilters, CallMetrics, CallOutcome

router = APIRouter(prefix="/calls", tags=["calls"])


@router.get("", response_model=CallHistory)
async def call_history(
    agent_id: Optional[str] = None,
    outcome: Optional[CallOutcome] = None,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    search: Optional[str] = None,
    page: Optional[int] = Query(None, ge=1),
    per_page: Optional[int] = Query(None, ge=1, le=100),
    context: ConsoleContext = Depends(require_session)
):
    filters = CallHistoryFilters(
        agent_id=agent_id,
        outcome=outcome,
        start_date=start_date,
        end_date=end_date,
        search=search,
        page=page,
        per_page=per_page,
    )
    return await context.calls.history(filters)


@router.get("/metrics", response_model=CallMetrics)
async def call_metrics(
    agent_id: Optional[str] = None,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    context: ConsoleContext = Depends(require_session)
):
    return await context.calls.metrics(agent_id, start_date, end_date)
