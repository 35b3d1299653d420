"""
Backend API Package
Typed adapters over the VoiceAI REST API
"""
from voiceai_console.infrastructure.api.client import BackendClient
from voiceai_console.infrastructure.api.auth import AuthAPI
from voiceai_console.infrastructure.api.agents import AgentAPI
from voiceai_console.infrastructure.api.leads import LeadAPI
from voiceai_console.infrastructure.api.calls import CallAPI
from voiceai_console.infrastructure.api.calliq import CallIQAPI
from voiceai_console.infrastructure.api.demo import DemoAPI

__all__ = ["BackendClient", "AuthAPI", "AgentAPI", "LeadAPI", "CallAPI", "CallIQAPI", "DemoAPI"]
