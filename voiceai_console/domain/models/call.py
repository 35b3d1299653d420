"""
Call History Domain Models
"""
from pydantic import BaseModel
from typing import Optional, List
from enum import Enum


class CallStatus(str, Enum):
    """Call attempt status"""
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"


class CallOutcome(str, Enum):
    """Outcome of a completed attempt"""
    ANSWERED = "answered"
    NO_ANSWER = "no_answer"
    FAILED = "failed"


class CallRecord(BaseModel):
    """Call history item (one interaction attempt)"""
    id: str
    lead_id: str
    agent_id: str
    lead_name: Optional[str] = None
    lead_phone: Optional[str] = None
    agent_name: Optional[str] = None
    attempt_number: int = 1
    status: CallStatus = CallStatus.PENDING
    outcome: Optional[CallOutcome] = None
    duration_seconds: Optional[int] = None
    transcript_url: Optional[str] = None
    summary: Optional[str] = None
    created_at: Optional[str] = None

    class Config:
        extra = "ignore"

    @property
    def duration_display(self) -> str:
        """Duration as m:ss ("-" when unknown)"""
        if self.duration_seconds is None:
            return "-"
        minutes, seconds = divmod(self.duration_seconds, 60)
        return f"{minutes}:{seconds:02d}"


class CallHistory(BaseModel):
    calls: List[CallRecord] = []
    total: int = 0
    page: int = 1
    per_page: int = 20


class CallHistoryFilters(BaseModel):
    agent_id: Optional[str] = None
    outcome: Optional[CallOutcome] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    search: Optional[str] = None
    page: Optional[int] = None
    per_page: Optional[int] = None


class CallMetrics(BaseModel):
    total_calls: int = 0
    answered_calls: int = 0
    no_answer_calls: int = 0
    failed_calls: int = 0
    pickup_rate: float = 0.0
    average_attempts_per_lead: float = 0.0
    active_agents: int = 0


class ScheduleCallResult(BaseModel):
    message: str = ""
    call_id: Optional[str] = None
