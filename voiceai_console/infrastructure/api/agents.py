"""
Agent API Adapter
Agent CRUD, status toggle, voices and wizard generators
"""
from typing import List, Optional

from voiceai_console.domain.models.agent import (
    Agent,
    AgentCreate,
    AgentList,
    AgentStatus,
    AgentUpdate,
    ConversationFlowResult,
    FAQResult,
    TaskResult,
    Voice,
    WebsiteScrapeResult,
)
from voiceai_console.infrastructure.api.client import BackendClient


class AgentAPI:
    """Typed wrapper over /agents"""

    def __init__(self, client: BackendClient):
        self.client = client

    async def list_agents(
        self,
        page: Optional[int] = None,
        per_page: Optional[int] = None,
        status_filter: Optional[AgentStatus] = None
    ) -> AgentList:
        body = await self.client.request_json(
            "GET", "agents/",
            params={"page": page, "per_page": per_page, "status_filter": status_filter},
            error_message="Failed to fetch agents",
        )
        return AgentList.model_validate(body)

    async def get_agent(self, agent_id: str) -> Agent:
        body = await self.client.request_json("GET", f"agents/{agent_id}", error_message="Failed to fetch agent")
        return Agent.model_validate(body)

    async def create_agent(self, data: AgentCreate) -> Agent:
        body = await self.client.request_json(
            "POST", "agents/",
            json=data.model_dump(exclude_none=True, mode="json"),
            error_message="Failed to create agent",
        )
        return Agent.model_validate(body)

    async def update_agent(self, agent_id: str, data: AgentUpdate) -> Agent:
        body = await self.client.request_json(
            "PUT", f"agents/{agent_id}",
            json=data.model_dump(exclude_none=True, mode="json"),
            error_message="Failed to update agent",
        )
        return Agent.model_validate(body)

    async def toggle_status(self, agent_id: str) -> AgentStatus:
        """Flip active/inactive on the backend and return the new status."""
        body = await self.client.request_json(
            "PATCH", f"agents/{agent_id}/status",
            error_message="Failed to toggle agent status",
        )
        return AgentStatus(body["status"])

    async def delete_agent(self, agent_id: str) -> None:
        await self.client.request("DELETE", f"agents/{agent_id}", error_message="Failed to delete agent")

    async def get_voices(self) -> List[Voice]:
        body = await self.client.request_json("GET", "agents/voices/", error_message="Failed to fetch voices")
        return [Voice.model_validate(v) for v in body or []]

    # Wizard generators

    async def scrape_website(self, url: str) -> WebsiteScrapeResult:
        body = await self.client.request_json(
            "POST", "agents/wizard/scrape-website",
            json={"url": url},
            error_message="Failed to read website",
        )
        return WebsiteScrapeResult.model_validate(body)

    async def generate_faqs(self, content: str, company_name: str = "") -> FAQResult:
        body = await self.client.request_json(
            "POST", "agents/wizard/generate-faqs",
            json={"content": content, "company_name": company_name},
            error_message="Failed to generate FAQs",
        )
        return FAQResult.model_validate(body)

    async def generate_tasks(self, role: str, industry: str, business_context: str = "") -> TaskResult:
        body = await self.client.request_json(
            "POST", "agents/wizard/generate-tasks",
            json={"role": role, "industry": industry, "business_context": business_context},
            error_message="Failed to generate tasks",
        )
        return TaskResult.model_validate(body)

    async def generate_conversation_flow(self, role: str, tasks: str, business_context: str = "") -> ConversationFlowResult:
        body = await self.client.request_json(
            "POST", "agents/wizard/generate-conversation-flow",
            json={"role": role, "tasks": tasks, "business_context": business_context},
            error_message="Failed to generate conversation flow",
        )
        return ConversationFlowResult.model_validate(body)
