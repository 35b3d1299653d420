"""
CallIQ Domain Models
Uploaded sales calls and their AI analysis
"""
from pydantic import BaseModel
from typing import Optional, List, Dict, Any
from enum import Enum


class CallIQStatus(str, Enum):
    """Upload pipeline states"""
    UPLOADED = "uploaded"
    TRANSCRIBING = "transcribing"
    ANALYZING = "analyzing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (CallIQStatus.COMPLETED, CallIQStatus.FAILED)


class CallIQOutcome(str, Enum):
    WON = "won"
    LOST = "lost"
    FOLLOW_UP = "follow_up"
    NO_DECISION = "no_decision"


class CallIQCall(BaseModel):
    """Uploaded call"""
    id: str
    user_id: Optional[str] = None
    company_id: Optional[str] = None
    title: Optional[str] = None
    date: Optional[str] = None
    duration: Optional[int] = None  # seconds
    recording_url: Optional[str] = None
    original_filename: Optional[str] = None
    file_size: Optional[int] = None  # bytes
    status: CallIQStatus = CallIQStatus.UPLOADED
    outcome: Optional[CallIQOutcome] = None
    error_message: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    has_transcript: bool = False
    has_analysis: bool = False
    insights_count: int = 0
    transcript: Optional[Dict[str, Any]] = None
    analysis: Optional[Dict[str, Any]] = None
    rep_name: Optional[str] = None
    customer_name: Optional[str] = None
    talk_ratio: Optional[float] = None
    sentiment: Optional[str] = None
    win_probability: Optional[float] = None

    class Config:
        extra = "ignore"


class CallIQList(BaseModel):
    calls: List[CallIQCall] = []
    total: int = 0
    page: int = 1
    page_size: int = 20
    has_more: bool = False


class DateRange(BaseModel):
    start: str
    end: str


class CallIQFilters(BaseModel):
    """Call list filters (part of the list cache key)"""
    date_range: Optional[DateRange] = None
    status: List[CallIQStatus] = []
    reps: List[str] = []
    outcomes: List[CallIQOutcome] = []
    search: Optional[str] = None
    sort_by: Optional[str] = None  # date, duration, win_probability, sentiment
    sort_order: str = "desc"


class TrendPoint(BaseModel):
    date: str
    value: float
    label: Optional[str] = None


class CallIQStats(BaseModel):
    total_calls: int = 0
    avg_win_rate: float = 0.0
    calls_today: int = 0
    processing_count: int = 0
    total_duration: int = 0
    team_performance_score: float = 0.0
    calls_trend: List[TrendPoint] = []
    win_rate_trend: List[TrendPoint] = []
    sentiment_trend: List[TrendPoint] = []


class CallIQInsight(BaseModel):
    id: str
    call_id: str
    type: str  # objection, topic, action_item, competitor, risk, opportunity, question, commitment
    content: str
    timestamp: Optional[float] = None
    speaker: Optional[str] = None
    sentiment: Optional[str] = None
    priority: Optional[str] = None
    resolved: Optional[bool] = None
    created_at: Optional[str] = None


class CallIQInsights(BaseModel):
    insights: List[CallIQInsight] = []
    grouped_by_type: Dict[str, List[CallIQInsight]] = {}
    total: int = 0


class SimilarCall(BaseModel):
    call: CallIQCall
    similarity_score: float
    matching_patterns: List[str] = []


class CallPattern(BaseModel):
    id: str
    name: str
    description: str = ""
    frequency: float = 0.0
    success_rate: float = 0.0


class RepPerformance(BaseModel):
    id: str
    name: str
    calls_analyzed: int = 0
    win_rate: float = 0.0
    avg_talk_ratio: float = 0.0
    top_strength: str = ""
    performance_score: float = 0.0
    rank: Optional[int] = None
    trend: str = "stable"


class RecordingUrl(BaseModel):
    url: str
    expires_in: int


class BulkUploadJob(BaseModel):
    job_id: str
    message: str = ""


class UploadPhase(str, Enum):
    IDLE = "idle"
    UPLOADING = "uploading"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


# Progress shown for each backend pipeline state once the upload finished
STATUS_PROGRESS = {
    CallIQStatus.UPLOADED: 55,
    CallIQStatus.TRANSCRIBING: 70,
    CallIQStatus.ANALYZING: 85,
    CallIQStatus.COMPLETED: 100,
    CallIQStatus.FAILED: 100,
}

STATUS_MESSAGES = {
    CallIQStatus.UPLOADED: "File uploaded successfully",
    CallIQStatus.TRANSCRIBING: "Transcribing audio...",
    CallIQStatus.ANALYZING: "Analyzing conversation...",
    CallIQStatus.COMPLETED: "Processing complete!",
    CallIQStatus.FAILED: "Processing failed",
}


class UploadProgress(BaseModel):
    """Progress event surfaced to the upload page"""
    status: UploadPhase = UploadPhase.IDLE
    progress: int = 0  # 0-100
    message: Optional[str] = None
    error: Optional[str] = None
    result: Optional[CallIQCall] = None

    @classmethod
    def from_call(cls, call: CallIQCall) -> "UploadProgress":
        """Map a polled call onto the 50-100% processing range."""
        if call.status == CallIQStatus.COMPLETED:
            phase = UploadPhase.COMPLETED
        elif call.status == CallIQStatus.FAILED:
            phase = UploadPhase.FAILED
        else:
            phase = UploadPhase.PROCESSING
        return cls(
            status=phase,
            progress=STATUS_PROGRESS.get(call.status, 50),
            message=STATUS_MESSAGES.get(call.status, "Processing..."),
            error=call.error_message,
            result=call,
        )
