"""
CallIQ Endpoints
Sales call analytics: dashboard stats, call list and detail, insights,
team performance, deletion, export and audio upload
"""
import json
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Query, Response, UploadFile
from pydantic import BaseModel

from voiceai_console.api.v1.dependencies import require_session
from voiceai_console.context import ConsoleContext
from voiceai_console.core.errors import ValidationError
from voiceai_console.domain.models.calliq import (
    BulkUploadJob,
    CallIQCall,
    CallIQFilters,
    CallIQInsights,
    CallIQList,
    CallIQOutcome,
    CallIQStats,
    CallIQStatus,
    CallPattern,
    DateRange,
    RecordingUrl,
    RepPerformance,
    SimilarCall,
    UploadProgress,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/calliq", tags=["calliq"])

EXPORT_MEDIA_TYPES = {
    "csv": "text/csv",
    "json": "application/json",
    "pdf": "application/pdf",
}


class BulkDeleteRequest(BaseModel):
    call_ids: List[str]


class ExportRequest(BaseModel):
    call_ids: List[str]
    format: str = "csv"


class UploadResponse(BaseModel):
    """Finished upload plus every progress event emitted on the way"""
    call: CallIQCall
    progress: List[UploadProgress] = []


def date_range_from(start: Optional[str], end: Optional[str]) -> Optional[DateRange]:
    if start and end:
        return DateRange(start=start, end=end)
    return None


@router.get("/stats", response_model=CallIQStats)
async def get_stats(
    start: Optional[str] = None,
    end: Optional[str] = None,
    context: ConsoleContext = Depends(require_session)
):
    return await context.calliq.stats(date_range_from(start, end))


@router.get("/calls", response_model=CallIQList)
async def list_calls(
    start: Optional[str] = None,
    end: Optional[str] = None,
    status: List[CallIQStatus] = Query([]),
    reps: List[str] = Query([]),
    outcomes: List[CallIQOutcome] = Query([]),
    search: Optional[str] = None,
    sort_by: Optional[str] = None,
    sort_order: str = "desc",
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    context: ConsoleContext = Depends(require_session)
):
    filters = CallIQFilters(
        date_range=date_range_from(start, end),
        status=status,
        reps=reps,
        outcomes=outcomes,
        search=search,
        sort_by=sort_by,
        sort_order=sort_order,
    )
    return await context.calliq.calls(filters, page, page_size)


@router.get("/calls/{call_id}", response_model=CallIQCall)
async def get_call(call_id: str, context: ConsoleContext = Depends(require_session)):
    return await context.calliq.call(call_id)


@router.get("/calls/{call_id}/insights", response_model=CallIQInsights)
async def get_insights(call_id: str, context: ConsoleContext = Depends(require_session)):
    return await context.calliq.insights(call_id)


@router.get("/calls/{call_id}/similar", response_model=List[SimilarCall])
async def get_similar_calls(
    call_id: str,
    limit: int = Query(5, ge=1, le=50),
    context: ConsoleContext = Depends(require_session)
):
    return await context.calliq.similar_calls(call_id, limit)


@router.get("/calls/{call_id}/patterns", response_model=List[CallPattern])
async def get_patterns(call_id: str, context: ConsoleContext = Depends(require_session)):
    return await context.calliq.patterns(call_id)


@router.get("/calls/{call_id}/recording", response_model=RecordingUrl)
async def get_recording(call_id: str, context: ConsoleContext = Depends(require_session)):
    return await context.calliq.recording_url(call_id)


@router.get("/team", response_model=List[RepPerformance])
async def team_performance(
    start: Optional[str] = None,
    end: Optional[str] = None,
    context: ConsoleContext = Depends(require_session)
):
    return await context.calliq.team_performance(date_range_from(start, end))


@router.delete("/calls/{call_id}")
async def delete_call(call_id: str, context: ConsoleContext = Depends(require_session)):
    await context.calliq.delete(call_id)
    return {"id": call_id, "deleted": True}


@router.post("/calls/bulk-delete")
async def bulk_delete(request: BulkDeleteRequest, context: ConsoleContext = Depends(require_session)):
    await context.calliq.bulk_delete(request.call_ids)
    return {"deleted": len(request.call_ids)}


@router.post("/calls/export")
async def export_calls(request: ExportRequest, context: ConsoleContext = Depends(require_session)):
    media_type = EXPORT_MEDIA_TYPES.get(request.format)
    if media_type is None:
        raise ValidationError({"format": f"Unsupported export format: {request.format}"})

    content = await context.calliq.export(request.call_ids, request.format)
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="calliq-export.{request.format}"'},
    )


@router.post("/upload", response_model=UploadResponse)
async def upload_call(
    file: UploadFile = File(...),
    title: Optional[str] = Form(None),
    metadata: Optional[str] = Form(None),
    context: ConsoleContext = Depends(require_session)
):
    """
    Upload a call recording and wait for processing to finish.

    metadata is an optional JSON object sent as a form field.
    """
    try:
        parsed_metadata = json.loads(metadata) if metadata else None
    except json.JSONDecodeError:
        raise ValidationError({"metadata": "Metadata must be valid JSON"})

    events: List[UploadProgress] = []
    content = await file.read()
    call = await context.calliq.upload(
        file.filename or "",
        content,
        title=title,
        metadata=parsed_metadata,
        on_progress=events.append,
    )
    logger.info(f"Upload of {file.filename} finished as call {call.id} ({call.status.value})")
    return UploadResponse(call=call, progress=events)


@router.post("/upload/bulk", response_model=BulkUploadJob)
async def bulk_upload(file: UploadFile = File(...), context: ConsoleContext = Depends(require_session)):
    content = await file.read()
    return await context.calliq.bulk_upload(file.filename or "", content)
