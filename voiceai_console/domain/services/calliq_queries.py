"""
CallIQ Queries
Cached analytics reads, call deletion, export and the audio upload flow
"""
import asyncio
import logging
from typing import Awaitable, Callable, Iterable, List, Optional

from voiceai_console.core.validation import SUPPORTED_AUDIO_FORMATS, MAX_AUDIO_FILE_SIZE, validate_audio_file
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
from voiceai_console.domain.services.query_cache import OptimisticTransaction, QueryCache, QueryService
from voiceai_console.domain.services.query_keys import CallIQKeys
from voiceai_console.domain.services.upload_poller import (
    DEFAULT_MAX_ATTEMPTS,
    DEFAULT_POLL_INTERVAL,
    UploadPoller,
)
from voiceai_console.infrastructure.api.calliq import CallIQAPI, ProgressCallback, UPLOAD_PROGRESS_SHARE

logger = logging.getLogger(__name__)


def without_calls(call_list: CallIQList, call_ids: Iterable[str]) -> CallIQList:
    ids = set(call_ids)
    remaining = [c for c in call_list.calls if c.id not in ids]
    removed = len(call_list.calls) - len(remaining)
    return call_list.model_copy(update={"calls": remaining, "total": max(0, call_list.total - removed)})


class CallIQQueries(QueryService):
    """
    Args:
        cache: Shared QueryCache
        api: CallIQ adapter
        config: ConfigManager (cache policies and upload limits)
        sleep: Sleep used between upload status polls
    """
    resource = "calliq"

    def __init__(
        self,
        cache: QueryCache,
        api: CallIQAPI,
        config=None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
    ):
        super().__init__(cache, config)
        self.api = api
        self._sleep = sleep

    def _upload_setting(self, name: str, default):
        if self.config is None:
            return default
        return self.config.get(f"upload.{name}", default)

    # Reads

    async def stats(self, date_range: Optional[DateRange] = None) -> CallIQStats:
        return await self.cache.read(
            CallIQKeys.stats() + ((date_range.start, date_range.end) if date_range else (),),
            lambda: self.api.get_stats(date_range),
            **self.policy("stats")
        )

    async def calls(self, filters: Optional[CallIQFilters] = None, page: int = 1, page_size: int = 20) -> CallIQList:
        return await self.cache.read(
            CallIQKeys.list(filters, page, page_size),
            lambda: self.api.get_calls(filters, page, page_size),
            **self.policy("list")
        )

    async def call(self, call_id: str) -> CallIQCall:
        return await self.cache.read(
            CallIQKeys.detail(call_id),
            lambda: self.api.get_call(call_id),
            **self.policy("detail")
        )

    async def insights(self, call_id: str) -> CallIQInsights:
        return await self.cache.read(
            CallIQKeys.insights(call_id),
            lambda: self.api.get_insights(call_id),
            **self.policy("insights")
        )

    async def similar_calls(self, call_id: str, limit: int = 5) -> List[SimilarCall]:
        return await self.cache.read(
            CallIQKeys.similar(call_id, limit),
            lambda: self.api.get_similar_calls(call_id, limit),
            **self.policy("insights")
        )

    async def patterns(self, call_id: str) -> List[CallPattern]:
        return await self.cache.read(
            CallIQKeys.patterns(call_id),
            lambda: self.api.get_patterns(call_id),
            **self.policy("insights")
        )

    async def team_performance(self, date_range: Optional[DateRange] = None) -> List[RepPerformance]:
        return await self.cache.read(
            CallIQKeys.team_performance(date_range),
            lambda: self.api.get_team_performance(date_range),
            **self.policy("stats")
        )

    async def recording_url(self, call_id: str) -> RecordingUrl:
        # Signed URLs expire; never served from cache
        return await self.api.get_recording_url(call_id)

    # Mutations

    async def delete(self, call_id: str) -> None:
        def on_mutate(tx: OptimisticTransaction) -> None:
            tx.apply_all(CallIQKeys.lists(), lambda lst: without_calls(lst, [call_id]))
            tx.remove(CallIQKeys.detail(call_id))

        await self.cache.mutate(
            lambda: self.api.delete_call(call_id),
            on_mutate=on_mutate,
            invalidates=[CallIQKeys.lists(), CallIQKeys.stats()],
        )

    async def bulk_delete(self, call_ids: List[str]) -> None:
        def on_mutate(tx: OptimisticTransaction) -> None:
            tx.apply_all(CallIQKeys.lists(), lambda lst: without_calls(lst, call_ids))
            for call_id in call_ids:
                tx.remove(CallIQKeys.detail(call_id))

        await self.cache.mutate(
            lambda: self.api.bulk_delete(call_ids),
            on_mutate=on_mutate,
            invalidates=[CallIQKeys.lists(), CallIQKeys.stats()],
        )

    async def export(self, call_ids: List[str], export_format: str = "csv") -> bytes:
        return await self.api.export_calls(call_ids, export_format)

    async def bulk_upload(self, filename: str, content: bytes) -> BulkUploadJob:
        return await self.cache.mutate(
            lambda: self.api.bulk_upload(filename, content),
            invalidates=[CallIQKeys.lists(), CallIQKeys.stats()],
        )

    async def upload(
        self,
        filename: str,
        content: bytes,
        title: Optional[str] = None,
        metadata: Optional[dict] = None,
        on_progress: Optional[ProgressCallback] = None
    ) -> CallIQCall:
        """
        Upload an audio file and poll until processing finishes.

        Progress runs 0-50% while bytes are sent and 50-100% while the
        backend transcribes and analyzes.

        Raises:
            ValidationError: Unsupported format or file too large
            PollingTimeoutError: Processing did not finish within the poll budget
        """
        validate_audio_file(
            filename,
            len(content),
            self._upload_setting("supported_formats", SUPPORTED_AUDIO_FORMATS),
            self._upload_setting("max_file_size", MAX_AUDIO_FILE_SIZE),
        )

        def report(progress: UploadProgress) -> None:
            if on_progress:
                on_progress(progress)

        async def upload_and_poll() -> CallIQCall:
            uploaded = await self.api.upload_audio(filename, content, title, metadata, on_progress=report)
            report(UploadProgress(
                status=UploadPhase.PROCESSING,
                progress=UPLOAD_PROGRESS_SHARE,
                message="Processing audio...",
            ))
            poller = UploadPoller(
                self.api.get_call,
                max_attempts=self._upload_setting("max_attempts", DEFAULT_MAX_ATTEMPTS),
                interval=self._upload_setting("poll_interval", DEFAULT_POLL_INTERVAL),
                sleep=self._sleep,
            )
            return await poller.poll(uploaded.id, on_update=report)

        def on_error(error: Exception) -> None:
            message = getattr(error, "message", None) or "Upload failed"
            report(UploadProgress(status=UploadPhase.FAILED, progress=0, error=message))

        def on_success(call: CallIQCall) -> None:
            self.cache.set_query_data(CallIQKeys.detail(call.id), call)

        return await self.cache.mutate(
            upload_and_poll,
            on_success=on_success,
            on_error=on_error,
            invalidates=[CallIQKeys.lists(), CallIQKeys.stats()],
        )
