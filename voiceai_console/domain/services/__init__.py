"""
Domain Services
Query cache, per-resource query services, session and verification flows
"""
from voiceai_console.domain.services.query_cache import QueryCache, QueryService, OptimisticTransaction
from voiceai_console.domain.services.session_controller import SessionController
from voiceai_console.domain.services.upload_poller import UploadPoller
from voiceai_console.domain.services.verification_flow import LeadVerificationFlow

__all__ = [
    "QueryCache",
    "QueryService",
    "OptimisticTransaction",
    "SessionController",
    "UploadPoller",
    "LeadVerificationFlow",
]
