"""
Auth Endpoints
Login, onboarding, logout and current session state
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import RedirectResponse
from pydantic import BaseModel

from voiceai_console.api.v1.dependencies import get_context, require_session
from voiceai_console.context import ConsoleContext
from voiceai_console.domain.models.auth import AuthUser, OnboardingData

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])


class LoginRequest(BaseModel):
    credential: str


class LoginResponse(BaseModel):
    onboarded: bool
    redirect: str
    user: Optional[AuthUser] = None


class SessionResponse(BaseModel):
    is_authenticated: bool
    is_onboarded: bool
    user: Optional[AuthUser] = None
    error: Optional[str] = None


@router.get("/session", response_model=SessionResponse)
async def get_session(context: ConsoleContext = Depends(get_context)):
    session = context.session
    return SessionResponse(
        is_authenticated=session.is_authenticated,
        is_onboarded=session.is_onboarded,
        user=session.user,
        error=session.state.error,
    )


@router.post("/login", response_model=LoginResponse)
async def login(request: LoginRequest, context: ConsoleContext = Depends(get_context)):
    """
    Log in with an email (test login) or a Google ID token.

    Onboarded users go to the agents page, everyone else to onboarding.
    """
    onboarded = await context.session.login(request.credential)
    if not context.session.is_authenticated or context.session.state.error:
        raise HTTPException(status_code=400, detail=context.session.state.error or "Login failed")

    return LoginResponse(
        onboarded=onboarded,
        redirect="/agents" if onboarded else "/onboarding",
        user=context.session.user,
    )


@router.post("/onboarding", response_model=AuthUser)
async def complete_onboarding(data: OnboardingData, context: ConsoleContext = Depends(require_session)):
    return await context.session.complete_onboarding(data)


@router.post("/logout")
async def logout(context: ConsoleContext = Depends(get_context)):
    await context.session.logout()
    return RedirectResponse(url=context.session.redirect_to or "/", status_code=303)
