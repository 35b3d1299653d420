"""
Demo API Adapter
Account stage and calling policy
"""
from voiceai_console.domain.models.demo import DemoStatus
from voiceai_console.infrastructure.api.client import BackendClient


class DemoAPI:

    def __init__(self, client: BackendClient):
        self.client = client

    async def get_status(self) -> DemoStatus:
        """Fetch the account policy (including verified_leads_only)."""
        body = await self.client.request_json("GET", "demo/status", error_message="Failed to fetch account status")
        return DemoStatus.model_validate(body)
