"""Domain models"""

from .auth import (
    AuthTokens,
    AuthUser,
    AuthState,
    OnboardingData,
    Company,
    ApiKey,
    ApiKeyCreated,
)

from .agent import (
    AgentStatus,
    AgentRegion,
    Agent,
    AgentList,
    AgentCreate,
    AgentUpdate,
    Voice,
)

from .lead import (
    LeadStatus,
    Lead,
    LeadList,
    LeadFilters,
    LeadCreate,
    LeadUpdate,
    CSVImportResult,
    VerificationRequest,
)

from .call import (
    CallStatus,
    CallOutcome,
    CallRecord,
    CallHistory,
    CallHistoryFilters,
    CallMetrics,
)

from .calliq import (
    CallIQStatus,
    CallIQCall,
    CallIQList,
    CallIQFilters,
    CallIQStats,
    UploadPhase,
    UploadProgress,
)

from .demo import DemoStatus

__all__ = [
    # Auth
    "AuthTokens",
    "AuthUser",
    "AuthState",
    "OnboardingData",
    "Company",
    "ApiKey",
    "ApiKeyCreated",
    # Agents
    "AgentStatus",
    "AgentRegion",
    "Agent",
    "AgentList",
    "AgentCreate",
    "AgentUpdate",
    "Voice",
    # Leads
    "LeadStatus",
    "Lead",
    "LeadList",
    "LeadFilters",
    "LeadCreate",
    "LeadUpdate",
    "CSVImportResult",
    "VerificationRequest",
    # Calls
    "CallStatus",
    "CallOutcome",
    "CallRecord",
    "CallHistory",
    "CallHistoryFilters",
    "CallMetrics",
    # CallIQ
    "CallIQStatus",
    "CallIQCall",
    "CallIQList",
    "CallIQFilters",
    "CallIQStats",
    "UploadPhase",
    "UploadProgress",
    # Demo
    "DemoStatus",
]
