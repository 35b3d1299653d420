"""
Agent Domain Models
"""
from pydantic import BaseModel
from typing import Optional, List, Dict, Any
from enum import Enum


class AgentStatus(str, Enum):
    """Agent status"""
    ACTIVE = "active"
    INACTIVE = "inactive"

    def toggled(self) -> "AgentStatus":
        return AgentStatus.INACTIVE if self == AgentStatus.ACTIVE else AgentStatus.ACTIVE


class AgentRegion(str, Enum):
    INDIAN = "indian"
    INTERNATIONAL = "international"


class Agent(BaseModel):
    """AI calling agent"""
    id: str
    company_id: str = ""
    name: str
    status: AgentStatus = AgentStatus.ACTIVE
    prompt: str = ""
    welcome_message: str = ""
    voice_id: str = ""
    variables: Dict[str, Any] = {}
    functions: List[str] = []
    region: AgentRegion = AgentRegion.INTERNATIONAL
    inbound_phone: Optional[str] = None
    outbound_phone: Optional[str] = None
    # Retry and business-hour policy
    max_attempts: int = 3
    retry_delay_minutes: int = 60
    business_hours_start: str = "09:00"
    business_hours_end: str = "17:00"
    timezone: str = "UTC"
    max_call_duration_minutes: int = 10
    retell_agent_id: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    class Config:
        extra = "ignore"


class AgentList(BaseModel):
    """Paged agent list as cached for the agents table"""
    agents: List[Agent] = []
    total: int = 0
    page: int = 1
    per_page: int = 20


class AgentCreate(BaseModel):
    """Agent wizard submission"""
    name: str
    prompt: str
    welcome_message: Optional[str] = None
    voice_id: Optional[str] = None
    variables: Optional[Dict[str, Any]] = None
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


class AgentUpdate(BaseModel):
    """Partial agent update from the edit wizard"""
    name: Optional[str] = None
    prompt: Optional[str] = None
    welcome_message: Optional[str] = None
    voice_id: Optional[str] = None
    variables: Optional[Dict[str, Any]] = None
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


class Voice(BaseModel):
    """TTS voice available to agents"""
    id: str
    name: str
    gender: Optional[str] = None
    language: str = "en"
    accent: Optional[str] = None
    sample_url: Optional[str] = None


class WebsiteScrapeResult(BaseModel):
    content: str = ""


class FAQ(BaseModel):
    question: str
    answer: str


class FAQResult(BaseModel):
    faqs: List[FAQ] = []
    business_context: str = ""


class TaskResult(BaseModel):
    tasks: str = ""


class ConversationFlowResult(BaseModel):
    conversation_flow: str = ""
