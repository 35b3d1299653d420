"""
Agent Endpoints
Agents table, agent wizard submission, status toggle and wizard generators
"""
import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from voiceai_console.api.v1.dependencies import require_session
from voiceai_console.context import ConsoleContext
from voiceai_console.core.validation import validate_agent_basic_info
from voiceai_console.domain.models.agent import (
    Agent,
    AgentCreate,
    AgentList,
    AgentRegion,
    AgentStatus,
    AgentUpdate,
    ConversationFlowResult,
    FAQ,
    FAQResult,
    TaskResult,
    Voice,
    WebsiteScrapeResult,
)
from voiceai_console.domain.services import prompt_builder

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/agents", tags=["agents"])


class AgentWizardSubmission(BaseModel):
    """Everything the agent wizard collects across its steps"""
    agent_name: str = ""
    intended_role: str = ""
    target_industry: str = ""
    company_name: str = ""
    voice_id: Optional[str] = None
    prompt: Optional[str] = None
    welcome_message: Optional[str] = None
    business_context: str = ""
    tasks: str = ""
    conversation_flow: str = ""
    faqs: List[FAQ] = []
    functions: Optional[List[str]] = None
    region: Optional[AgentRegion] = None
    inbound_phone: Optional[str] = None
    outbound_phone: Optional[str] = None
    max_attempts: Optional[int] = None
    retry_delay_minutes: Optional[int] = None
    business_hours_start: Optional[str] = None
    business_hours_end: Optional[str] = None
    timezone: Optional[str] = None
    max_call_duration_minutes: Optional[int] = None


class ScrapeRequest(BaseModel):
    url: str


class FAQRequest(BaseModel):
    content: str
    company_name: str = ""


class TaskRequest(BaseModel):
    role: str
    industry: str
    business_context: str = ""


class ConversationFlowRequest(BaseModel):
    role: str
    tasks: str
    business_context: str = ""


def build_agent(submission: AgentWizardSubmission, voices: List[Voice]) -> AgentCreate:
    """
    Turn a validated wizard submission into an agent create request.

    The prompt is assembled from the wizard sections unless one was typed
    in; Hinglish voices get their extra instructions appended.
    """
    language = prompt_builder.language_from_voice(submission.voice_id, voices)
    prompt = (submission.prompt or "").strip() or prompt_builder.assemble_prompt(
        agent_name=submission.agent_name.strip(),
        use_case=submission.intended_role,
        company_name=submission.company_name.strip(),
        industry=submission.target_industry,
        language=language,
        business_context=submission.business_context,
        tasks=submission.tasks,
        conversation_flow=submission.conversation_flow,
        faqs=submission.faqs,
    )

    hidden = prompt_builder.hidden_language_instructions(submission.voice_id, voices)
    if hidden:
        prompt = f"{prompt}\n\n{hidden}"

    welcome = (submission.welcome_message or "").strip() or prompt_builder.generate_welcome_message(
        submission.agent_name, submission.company_name
    )
    variables: Dict[str, Any] = {name: "" for name in prompt_builder.extract_variables(prompt)}

    return AgentCreate(
        name=submission.agent_name.strip(),
        prompt=prompt,
        welcome_message=welcome,
        voice_id=submission.voice_id,
        variables=variables,
        **submission.model_dump(
            include={
                "functions", "region", "inbound_phone", "outbound_phone", "max_attempts",
                "retry_delay_minutes", "business_hours_start", "business_hours_end",
                "timezone", "max_call_duration_minutes",
            },
            exclude_none=True,
        ),
    )


@router.get("", response_model=AgentList)
async def list_agents(
    page: Optional[int] = Query(None, ge=1),
    per_page: Optional[int] = Query(None, ge=1, le=100),
    status_filter: Optional[AgentStatus] = None,
    context: ConsoleContext = Depends(require_session)
):
    return await context.agents.agents(page=page, per_page=per_page, status_filter=status_filter)


@router.get("/voices", response_model=List[Voice])
async def list_voices(context: ConsoleContext = Depends(require_session)):
    return await context.agents.voices()


@router.get("/{agent_id}", response_model=Agent)
async def get_agent(agent_id: str, context: ConsoleContext = Depends(require_session)):
    return await context.agents.agent(agent_id)


@router.post("", response_model=Agent, status_code=201)
async def create_agent(submission: AgentWizardSubmission, context: ConsoleContext = Depends(require_session)):
    """Agent wizard submission."""
    await context.account.ensure_agent_quota()
    validate_agent_basic_info(
        submission.agent_name,
        submission.intended_role,
        submission.target_industry,
        submission.company_name,
    )
    voices = await context.agents.voices() if submission.voice_id else []
    return await context.agents.create(build_agent(submission, voices))


@router.put("/{agent_id}", response_model=Agent)
async def update_agent(agent_id: str, data: AgentUpdate, context: ConsoleContext = Depends(require_session)):
    return await context.agents.update(agent_id, data)


@router.post("/{agent_id}/toggle")
async def toggle_agent(agent_id: str, context: ConsoleContext = Depends(require_session)):
    status = await context.agents.toggle_status(agent_id)
    return {"id": agent_id, "status": status.value}


@router.delete("/{agent_id}")
async def delete_agent(agent_id: str, context: ConsoleContext = Depends(require_session)):
    await context.agents.delete(agent_id)
    return {"id": agent_id, "deleted": True}


# Wizard generators

@router.post("/wizard/scrape-website", response_model=WebsiteScrapeResult)
async def scrape_website(request: ScrapeRequest, context: ConsoleContext = Depends(require_session)):
    return await context.agents.scrape_website(request.url)


@router.post("/wizard/generate-faqs", response_model=FAQResult)
async def generate_faqs(request: FAQRequest, context: ConsoleContext = Depends(require_session)):
    return await context.agents.generate_faqs(request.content, request.company_name)


@router.post("/wizard/generate-tasks", response_model=TaskResult)
async def generate_tasks(request: TaskRequest, context: ConsoleContext = Depends(require_session)):
    return await context.agents.generate_tasks(request.role, request.industry, request.business_context)


@router.post("/wizard/generate-conversation-flow", response_model=ConversationFlowResult)
async def generate_conversation_flow(request: ConversationFlowRequest, context: ConsoleContext = Depends(require_session)):
    return await context.agents.generate_conversation_flow(request.role, request.tasks, request.business_context)
