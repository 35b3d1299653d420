"""
Lead Domain Models
"""
from pydantic import BaseModel
from typing import Optional, Dict, Any, List
from enum import Enum


class LeadStatus(str, Enum):
    """Lead lifecycle: new -> in_progress -> done | stopped"""
    NEW = "new"
    IN_PROGRESS = "in_progress"
    DONE = "done"
    STOPPED = "stopped"


class Lead(BaseModel):
    """Lead/contact for an agent to call"""
    id: str
    agent_id: str
    first_name: str
    phone_e164: str
    status: LeadStatus = LeadStatus.NEW
    custom_fields: Dict[str, Any] = {}
    schedule_at: Optional[str] = None
    attempts_count: int = 0
    disposition: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    is_verified: bool = False
    verification_method: Optional[str] = None  # "otp"
    verified_at: Optional[str] = None

    class Config:
        extra = "ignore"


class LeadList(BaseModel):
    """Paged lead list as cached per filter"""
    leads: List[Lead] = []
    total: int = 0
    page: int = 1
    per_page: int = 20


class LeadFilters(BaseModel):
    """Lead table filters (part of the list cache key)"""
    agent_id: Optional[str] = None
    status_filter: Optional[LeadStatus] = None
    search: Optional[str] = None
    page: Optional[int] = None
    per_page: Optional[int] = None


class LeadCreate(BaseModel):
    agent_id: str
    first_name: str
    phone_e164: str
    custom_fields: Optional[Dict[str, Any]] = None
    schedule_at: Optional[str] = None


class LeadUpdate(BaseModel):
    first_name: Optional[str] = None
    phone_e164: Optional[str] = None
    status: Optional[LeadStatus] = None
    custom_fields: Optional[Dict[str, Any]] = None
    schedule_at: Optional[str] = None
    disposition: Optional[str] = None


class CSVRowError(BaseModel):
    row: int
    error: str


class CSVImportResult(BaseModel):
    """Backend result of a CSV lead import"""
    success_count: int = 0
    error_count: int = 0
    errors: List[CSVRowError] = []
    total_processed: int = 0


class VerificationRequest(BaseModel):
    """OTP challenge issued for a lead"""
    verification_id: str
    message: str = ""
    expires_in_seconds: int = 300
