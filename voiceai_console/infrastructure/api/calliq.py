"""
CallIQ API Adapter
Call analytics: stats, calls, insights, audio upload and export
"""
import io
import json
import logging
from typing import Any, Callable, Dict, List, Optional

from voiceai_console.domain.models.calliq import (
    BulkUploadJob,
    CallIQCall,
    CallIQFilters,
    CallIQInsights,
    CallIQList,
    CallIQStats,
    CallPattern,
    DateRange,
    RecordingUrl,
    RepPerformance,
    SimilarCall,
    UploadPhase,
    UploadProgress,
)
from voiceai_console.infrastructure.api.client import BackendClient

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[UploadProgress], None]

# Share of the progress bar used by the byte upload; processing fills the rest
UPLOAD_PROGRESS_SHARE = 50


class ProgressReader(io.BytesIO):
    """
    In-memory file that reports how many bytes the HTTP client has read.

    Args:
        content: File bytes
        on_read: Called with (bytes_read, total_bytes) after each read
    """

    def __init__(self, content: bytes, on_read: Callable[[int, int], None]):
        super().__init__(content)
        self.total = len(content)
        self._on_read = on_read

    def read(self, size: Optional[int] = -1) -> bytes:
        chunk = super().read(size)
        if chunk:
            self._on_read(self.tell(), self.total)
        return chunk


def _date_params(date_range: Optional[DateRange]) -> Dict[str, Any]:
    if date_range is None:
        return {}
    return {"start_date": date_range.start, "end_date": date_range.end}


class CallIQAPI:
    """Typed wrapper over /calliq"""

    def __init__(self, client: BackendClient):
        self.client = client

    async def get_stats(self, date_range: Optional[DateRange] = None) -> CallIQStats:
        body = await self.client.request_json(
            "GET", "calliq/stats",
            params=_date_params(date_range),
            error_message="Failed to fetch stats",
        )
        return CallIQStats.model_validate(body)

    async def get_calls(
        self,
        filters: Optional[CallIQFilters] = None,
        page: int = 1,
        page_size: int = 20
    ) -> CallIQList:
        """List calls; status, rep and outcome filters become repeated params."""
        params: Dict[str, Any] = {"page": page, "page_size": page_size}
        if filters:
            params.update(_date_params(filters.date_range))
            params["status"] = list(filters.status)
            params["rep"] = list(filters.reps)
            params["outcome"] = list(filters.outcomes)
            params["search"] = filters.search
            if filters.sort_by:
                params["sort_by"] = filters.sort_by
                params["sort_order"] = filters.sort_order or "desc"

        body = await self.client.request_json(
            "GET", "calliq/calls",
            params=params,
            error_message="Failed to fetch calls",
        )
        return CallIQList.model_validate(body)

    async def get_call(self, call_id: str) -> CallIQCall:
        body = await self.client.request_json("GET", f"calliq/calls/{call_id}", error_message="Failed to fetch call")
        return CallIQCall.model_validate(body)

    async def upload_audio(
        self,
        filename: str,
        content: bytes,
        title: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
        on_progress: Optional[ProgressCallback] = None
    ) -> CallIQCall:
        """
        Upload an audio file.

        Byte progress is reported on the 0-50% range; the returned call is in
        the "uploaded" state and still has to be polled.
        """
        def report(loaded: int, total: int) -> None:
            if on_progress and total:
                on_progress(UploadProgress(
                    status=UploadPhase.UPLOADING,
                    progress=round(loaded / total * UPLOAD_PROGRESS_SHARE),
                    message="Uploading file...",
                ))

        data: Dict[str, Any] = {}
        if title:
            data["title"] = title
        if metadata:
            data["metadata"] = json.dumps(metadata)

        if on_progress:
            on_progress(UploadProgress(status=UploadPhase.UPLOADING, progress=0, message="Uploading file..."))

        body = await self.client.request_json(
            "POST", "calliq/upload",
            data=data or None,
            files={"file": (filename, ProgressReader(content, report))},
            error_message="Upload failed",
        )
        call = CallIQCall.model_validate(body)
        logger.info(f"Uploaded {filename} as call {call.id}")
        return call

    async def bulk_upload(self, filename: str, content: bytes) -> BulkUploadJob:
        body = await self.client.request_json(
            "POST", "calliq/bulk-upload",
            files={"file": (filename, content, "text/csv")},
            error_message="Bulk upload failed",
        )
        return BulkUploadJob.model_validate(body)

    async def get_insights(self, call_id: str) -> CallIQInsights:
        body = await self.client.request_json(
            "GET", f"calliq/calls/{call_id}/insights",
            error_message="Failed to fetch insights",
        )
        return CallIQInsights.model_validate(body)

    async def get_similar_calls(self, call_id: str, limit: int = 5) -> List[SimilarCall]:
        body = await self.client.request_json(
            "GET", f"calliq/calls/{call_id}/similar",
            params={"limit": limit},
            error_message="Failed to fetch similar calls",
        )
        return [SimilarCall.model_validate(item) for item in body or []]

    async def get_patterns(self, call_id: str) -> List[CallPattern]:
        body = await self.client.request_json(
            "GET", f"calliq/calls/{call_id}/patterns",
            error_message="Failed to fetch patterns",
        )
        return [CallPattern.model_validate(item) for item in body or []]

    async def get_team_performance(self, date_range: Optional[DateRange] = None) -> List[RepPerformance]:
        body = await self.client.request_json(
            "GET", "calliq/team/performance",
            params=_date_params(date_range),
            error_message="Failed to fetch team performance",
        )
        return [RepPerformance.model_validate(item) for item in body or []]

    async def get_recording_url(self, call_id: str) -> RecordingUrl:
        body = await self.client.request_json(
            "GET", f"calliq/calls/{call_id}/recording-url",
            error_message="Failed to fetch recording",
        )
        return RecordingUrl.model_validate(body)

    async def delete_call(self, call_id: str) -> None:
        await self.client.request("DELETE", f"calliq/calls/{call_id}", error_message="Failed to delete call")

    async def bulk_delete(self, call_ids: List[str]) -> None:
        await self.client.request(
            "POST", "calliq/calls/bulk-delete",
            json={"call_ids": call_ids},
            error_message="Failed to delete calls",
        )

    async def export_calls(self, call_ids: List[str], export_format: str = "csv") -> bytes:
        response = await self.client.request(
            "POST", "calliq/export",
            json={"call_ids": call_ids, "format": export_format},
            error_message="Export failed",
        )
        return response.content
