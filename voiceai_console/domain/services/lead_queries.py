"""
Lead Queries
Cached lead reads and lead mutations (schedule, stop, import, verify)
"""
import logging
from typing import Any, Callable, Dict, Optional

from voiceai_console.core.validation import (
    clean_phone,
    validate_csv_file,
    validate_lead_form,
    validate_otp_code,
    validate_required,
    FormValidator,
)
from voiceai_console.domain.models.call import ScheduleCallResult
from voiceai_console.domain.models.lead import (
    CSVImportResult,
    Lead,
    LeadCreate,
    LeadFilters,
    LeadList,
    LeadStatus,
    LeadUpdate,
    VerificationRequest,
)
from voiceai_console.domain.services.query_cache import OptimisticTransaction, QueryCache, QueryService
from voiceai_console.domain.services.query_keys import CallKeys, LeadKeys
from voiceai_console.infrastructure.api.calls import CallAPI
from voiceai_console.infrastructure.api.leads import LeadAPI

logger = logging.getLogger(__name__)


def map_lead(lead_list: LeadList, lead_id: str, fn: Callable[[Lead], Lead]) -> LeadList:
    """Replace one lead inside a list, leaving every other lead object untouched."""
    return lead_list.model_copy(update={
        "leads": [fn(lead) if lead.id == lead_id else lead for lead in lead_list.leads]
    })


def patch_lead(changes: Dict[str, Any]) -> Callable[[Lead], Lead]:
    return lambda lead: lead.model_copy(update=changes)


class LeadQueries(QueryService):
    """Lead list/detail plus lead mutations"""
    resource = "leads"

    def __init__(self, cache: QueryCache, api: LeadAPI, call_api: CallAPI, config=None):
        super().__init__(cache, config)
        self.api = api
        self.call_api = call_api

    def _patch_everywhere(self, tx: OptimisticTransaction, lead_id: str, changes: Dict[str, Any]) -> None:
        fn = patch_lead(changes)
        tx.apply(LeadKeys.detail(lead_id), fn)
        tx.apply_all(LeadKeys.lists(), lambda lst: map_lead(lst, lead_id, fn))

    def _write_everywhere(self, lead: Lead) -> None:
        self.cache.set_query_data(LeadKeys.detail(lead.id), lead)
        self.cache.set_queries_data(LeadKeys.lists(), lambda lst: map_lead(lst, lead.id, lambda _: lead))

    # Reads

    async def leads(self, filters: Optional[LeadFilters] = None) -> LeadList:
        filters = filters or LeadFilters()
        return await self.cache.read(
            LeadKeys.list(filters),
            lambda: self.api.list_leads(filters),
            **self.policy("list")
        )

    async def lead(self, lead_id: str) -> Lead:
        return await self.cache.read(
            LeadKeys.detail(lead_id),
            lambda: self.api.get_lead(lead_id),
            **self.policy("detail")
        )

    # Mutations

    async def create(self, data: LeadCreate) -> Lead:
        """
        Create a lead from the add-lead form.

        Raises:
            ValidationError: Missing name/agent or malformed phone, before any request
        """
        data = data.model_copy(update={"phone_e164": clean_phone(data.phone_e164)})
        validate_lead_form(data.first_name, data.agent_id, data.phone_e164)

        def on_success(lead: Lead) -> None:
            self.cache.set_query_data(LeadKeys.detail(lead.id), lead)
            logger.info(f"Created lead {lead.id}")

        return await self.cache.mutate(
            lambda: self.api.create_lead(data),
            on_success=on_success,
            invalidates=[LeadKeys.lists()],
        )

    async def update(self, lead_id: str, data: LeadUpdate) -> Lead:
        changes = data.model_dump(exclude_none=True)

        return await self.cache.mutate(
            lambda: self.api.update_lead(lead_id, data),
            on_mutate=lambda tx: self._patch_everywhere(tx, lead_id, changes),
            on_success=self._write_everywhere,
            invalidates=[LeadKeys.lists(), LeadKeys.detail(lead_id)],
        )

    async def delete(self, lead_id: str) -> None:
        await self.cache.mutate(
            lambda: self.api.delete_lead(lead_id),
            on_success=lambda _: self.cache.remove_queries(LeadKeys.detail(lead_id)),
            invalidates=[LeadKeys.lists()],
        )

    async def schedule_call(self, lead_id: str, optimistic: bool = True) -> ScheduleCallResult:
        """
        Schedule a call for a lead.

        With optimistic=True the lead shows in_progress in detail and every
        list until the backend answers. Lead lists, the detail and call
        history are invalidated either way.

        Raises:
            VerificationRequiredError: The backend only calls verified leads
        """
        def on_mutate(tx: OptimisticTransaction) -> None:
            if optimistic:
                self._patch_everywhere(tx, lead_id, {"status": LeadStatus.IN_PROGRESS})

        result = await self.cache.mutate(
            lambda: self.call_api.schedule_call(lead_id),
            on_mutate=on_mutate,
            invalidates=[LeadKeys.lists(), LeadKeys.detail(lead_id), CallKeys.ALL],
        )
        logger.info(f"Scheduled call for lead {lead_id}")
        return result

    async def import_csv(self, agent_id: Optional[str], filename: Optional[str], content: bytes) -> CSVImportResult:
        """
        Import leads from a CSV file.

        Row errors are part of the result; lead lists are invalidated
        whatever the error count.
        """
        validator = FormValidator()
        validator.check("agent_id", validate_required(agent_id, "Agent"))
        validator.raise_if_invalid()
        validate_csv_file(filename)

        result = await self.cache.mutate(
            lambda: self.api.import_csv(agent_id, filename, content),
            invalidates=[LeadKeys.lists()],
        )
        logger.info(f"CSV import for agent {agent_id}: {result.success_count} imported, {result.error_count} failed")
        return result

    async def stop(self, lead_id: str, disposition: Optional[str] = None) -> Lead:
        return await self.cache.mutate(
            lambda: self.api.stop_lead(lead_id, disposition),
            on_mutate=lambda tx: self._patch_everywhere(tx, lead_id, {"status": LeadStatus.STOPPED}),
            on_success=self._write_everywhere,
            invalidates=[LeadKeys.lists(), LeadKeys.detail(lead_id)],
        )

    async def request_verification(self, lead_id: str) -> VerificationRequest:
        """Send an OTP to the lead's phone."""
        return await self.api.request_verification(lead_id)

    async def verify(self, lead_id: str, verification_id: str, otp_code: str) -> Lead:
        """
        Submit an OTP code; the verified lead is written to detail and every list.

        Raises:
            ValidationError: Code is not 4-8 digits
        """
        validate_otp_code(otp_code)
        return await self.cache.mutate(
            lambda: self.api.verify_lead(lead_id, verification_id, otp_code.strip()),
            on_success=self._write_everywhere,
            invalidates=[LeadKeys.lists()],
        )
