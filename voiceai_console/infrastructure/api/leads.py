"""
Lead API Adapter
Lead CRUD, CSV import, stop and OTP verification
"""
from typing import Optional

from voiceai_console.domain.models.lead import (
    CSVImportResult,
    Lead,
    LeadCreate,
    LeadFilters,
    LeadList,
    LeadUpdate,
    VerificationRequest,
)
from voiceai_console.infrastructure.api.client import BackendClient


class LeadAPI:
    """Typed wrapper over /leads"""

    def __init__(self, client: BackendClient):
        self.client = client

    async def list_leads(self, filters: Optional[LeadFilters] = None) -> LeadList:
        filters = filters or LeadFilters()
        body = await self.client.request_json(
            "GET", "leads/",
            params=filters.model_dump(),
            error_message="Failed to fetch leads",
        )
        return LeadList.model_validate(body)

    async def get_lead(self, lead_id: str) -> Lead:
        body = await self.client.request_json("GET", f"leads/{lead_id}", error_message="Failed to fetch lead")
        return Lead.model_validate(body)

    async def create_lead(self, data: LeadCreate) -> Lead:
        body = await self.client.request_json(
            "POST", "leads/",
            json=data.model_dump(exclude_none=True),
            error_message="Failed to create lead",
        )
        return Lead.model_validate(body)

    async def update_lead(self, lead_id: str, data: LeadUpdate) -> Lead:
        body = await self.client.request_json(
            "PUT", f"leads/{lead_id}",
            json=data.model_dump(exclude_none=True, mode="json"),
            error_message="Failed to update lead",
        )
        return Lead.model_validate(body)

    async def delete_lead(self, lead_id: str) -> None:
        await self.client.request("DELETE", f"leads/{lead_id}", error_message="Failed to delete lead")

    async def import_csv(self, agent_id: str, filename: str, content: bytes) -> CSVImportResult:
        """Upload a CSV file; row-level problems come back in the result, not as errors."""
        body = await self.client.request_json(
            "POST", "leads/csv-import",
            params={"agent_id": agent_id},
            files={"file": (filename, content, "text/csv")},
            error_message="Failed to import CSV",
        )
        return CSVImportResult.model_validate(body)

    async def stop_lead(self, lead_id: str, disposition: Optional[str] = None) -> Lead:
        body = await self.client.request_json(
            "POST", f"leads/{lead_id}/stop",
            params={"disposition": disposition},
            error_message="Failed to stop lead",
        )
        return Lead.model_validate(body)

    async def request_verification(self, lead_id: str) -> VerificationRequest:
        body = await self.client.request_json(
            "POST", f"leads/{lead_id}/request-verification",
            error_message="Failed to request verification",
        )
        return VerificationRequest.model_validate(body)

    async def verify_lead(self, lead_id: str, verification_id: str, otp_code: str) -> Lead:
        body = await self.client.request_json(
            "POST", f"leads/{lead_id}/verify",
            json={"verification_id": verification_id, "otp_code": otp_code},
            error_message="Failed to verify lead",
        )
        return Lead.model_validate(body)
