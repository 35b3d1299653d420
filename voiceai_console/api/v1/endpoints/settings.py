"""
Settings Endpoints
Company info, account policy and API key management
"""
from typing import List

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from voiceai_console.api.v1.dependencies import require_session
from voiceai_console.context import ConsoleContext
from voiceai_console.domain.models.auth import ApiKey, ApiKeyCreated, Company
from voiceai_console.domain.models.demo import DemoStatus

router = APIRouter(prefix="/settings", tags=["settings"])


class ApiKeyRequest(BaseModel):
    name: str = ""


@router.get("/company", response_model=Company)
async def get_company(context: ConsoleContext = Depends(require_session)):
    return await context.account.company()


@router.get("/account", response_model=DemoStatus)
async def get_account_status(context: ConsoleContext = Depends(require_session)):
    return await context.account.demo_status()


@router.get("/api-keys", response_model=List[ApiKey])
async def list_api_keys(context: ConsoleContext = Depends(require_session)):
    return await context.account.api_keys()


@router.post("/api-keys", response_model=ApiKeyCreated, status_code=201)
async def create_api_key(request: ApiKeyRequest, context: ConsoleContext = Depends(require_session)):
    """The full key is only ever returned here."""
    return await context.account.create_api_key(request.name)


@router.delete("/api-keys/{key_id}")
async def revoke_api_key(key_id: str, context: ConsoleContext = Depends(require_session)):
    await context.account.revoke_api_key(key_id)
    return {"id": key_id, "revoked": True}
