"""
Lead Endpoints
Leads table, CSV import, schedule-call and lead OTP verification
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from pydantic import BaseModel

from voiceai_console.api.v1.dependencies import require_session
from voiceai_console.context import ConsoleContext
from voiceai_console.domain.models.lead import (
    CSVImportResult,
    Lead,
    LeadCreate,
    LeadFilters,
    LeadList,
    LeadStatus,
    LeadUpdate,
)
from voiceai_console.domain.services.verification_flow import ScheduleResult, VerificationState

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/leads", tags=["leads"])


class VerifyRequest(BaseModel):
    otp_code: str


class StopRequest(BaseModel):
    disposition: Optional[str] = None


class VerificationStatus(BaseModel):
    """Verification dialog state for one lead"""
    lead_id: str
    state: VerificationState
    verification_id: Optional[str] = None
    expires_in_seconds: int = 0
    error: Optional[str] = None


@router.get("", response_model=LeadList)
async def list_leads(
    agent_id: Optional[str] = None,
    status_filter: Optional[LeadStatus] = None,
    search: Optional[str] = None,
    page: Optional[int] = Query(None, ge=1),
    per_page: Optional[int] = Query(None, ge=1, le=100),
    context: ConsoleContext = Depends(require_session)
):
    filters = LeadFilters(
        agent_id=agent_id,
        status_filter=status_filter,
        search=search,
        page=page,
        per_page=per_page,
    )
    return await context.leads.leads(filters)


@router.post("/import", response_model=CSVImportResult)
async def import_leads(
    agent_id: Optional[str] = Form(None),
    file: UploadFile = File(...),
    context: ConsoleContext = Depends(require_session)
):
    """
    Import leads for an agent from a CSV upload.

    Row failures come back in the result body, not as an error.
    """
    content = await file.read()
    return await context.leads.import_csv(agent_id, file.filename, content)


@router.get("/{lead_id}", response_model=Lead)
async def get_lead(lead_id: str, context: ConsoleContext = Depends(require_session)):
    return await context.leads.lead(lead_id)


@router.post("", response_model=Lead, status_code=201)
async def create_lead(data: LeadCreate, context: ConsoleContext = Depends(require_session)):
    return await context.leads.create(data)


@router.put("/{lead_id}", response_model=Lead)
async def update_lead(lead_id: str, data: LeadUpdate, context: ConsoleContext = Depends(require_session)):
    return await context.leads.update(lead_id, data)


@router.delete("/{lead_id}")
async def delete_lead(lead_id: str, context: ConsoleContext = Depends(require_session)):
    await context.leads.delete(lead_id)
    return {"id": lead_id, "deleted": True}


@router.post("/{lead_id}/stop", response_model=Lead)
async def stop_lead(lead_id: str, request: StopRequest, context: ConsoleContext = Depends(require_session)):
    return await context.leads.stop(lead_id, request.disposition)


@router.post("/{lead_id}/schedule", response_model=ScheduleResult)
async def schedule_call(lead_id: str, context: ConsoleContext = Depends(require_session)):
    """
    Schedule a call for a lead.

    Answers with outcome=verification_required (and the OTP details) when
    the lead has to be verified first.
    """
    return await context.schedule_call(lead_id)


@router.get("/{lead_id}/verification", response_model=VerificationStatus)
async def get_verification(lead_id: str, context: ConsoleContext = Depends(require_session)):
    flow = context.find_verification_flow(lead_id)
    if flow is None:
        lead = await context.leads.lead(lead_id)
        state = VerificationState.VERIFIED if lead.is_verified else VerificationState.UNVERIFIED
        return VerificationStatus(lead_id=lead_id, state=state)
    return VerificationStatus(
        lead_id=lead_id,
        state=flow.state,
        verification_id=flow.verification.verification_id if flow.verification else None,
        expires_in_seconds=flow.expires_in,
        error=flow.error,
    )


@router.post("/{lead_id}/verification/resend", response_model=ScheduleResult)
async def resend_code(lead_id: str, context: ConsoleContext = Depends(require_session)):
    return await context.verification_flow(lead_id).request_verification()


@router.post("/{lead_id}/verify", response_model=ScheduleResult)
async def verify_lead(lead_id: str, request: VerifyRequest, context: ConsoleContext = Depends(require_session)):
    """Submit the OTP; a correct code retries the schedule-call."""
    return await context.submit_verification_code(lead_id, request.otp_code)
