from fastapi import APIRouter, Depends, HTTPException, Response

from ..config import Settings
from ..deps import (
    LINK_GENERATOR_SUBJECT,
    get_link_credentials,
    get_settings,
    get_token_service,
    require_master_password,
)
from ..domain.token import PUBLIC_FAILURE_MESSAGE, RevocationOutcome, TokenKind
from ..logging_config import get_logger
from ..ports.credentials import CredentialCheck
from ..schemas.links import (
    DEFAULT_LINK_SUBJECT,
    LinkCreateRequest,
    LinkListResponse,
    LinkResponse,
    SweepResponse,
    link_to_response,
)
from ..services.token_service import TokenService

logger = get_logger(__name__)

router = APIRouter(prefix="/api/v1/links", tags=["links"])


@router.post("", response_model=LinkResponse, status_code=201)
async def create_link(
    req: LinkCreateRequest,
    svc: TokenService = Depends(get_token_service),
    credentials: CredentialCheck = Depends(get_link_credentials),
    settings: Settings = Depends(get_settings),
):
    if not await credentials.check(LINK_GENERATOR_SUBJECT, req.password):
        raise HTTPException(status_code=401, detail="Invalid master password")
    token = await svc.issue(req.subject or DEFAULT_LINK_SUBJECT, ttl=req.ttl_seconds, kind=TokenKind.LINK)
    return link_to_response(token, svc.clock.now(), settings.frontend_url)


@router.get("", response_model=LinkListResponse)
async def list_links(
    _auth: None = Depends(require_master_password),
    svc: TokenService = Depends(get_token_service),
    settings: Settings = Depends(get_settings),
):
    now = svc.clock.now()
    tokens = await svc.list_tokens(kind=TokenKind.LINK)
    links = [link_to_response(t, now, settings.frontend_url) for t in tokens]
    return LinkListResponse(links=links, total=len(links))


@router.post("/sweep", response_model=SweepResponse)
async def clear_expired_links(
    _auth: None = Depends(require_master_password),
    svc: TokenService = Depends(get_token_service),
):
    return SweepResponse(evicted=await svc.sweep())


@router.get("/{token_id}", response_model=LinkResponse)
async def open_link(
    token_id: str,
    svc: TokenService = Depends(get_token_service),
    settings: Settings = Depends(get_settings),
):
    result = await svc.redeem(token_id, kind=TokenKind.LINK)
    if not result.ok or result.token is None:
        raise HTTPException(status_code=404, detail=PUBLIC_FAILURE_MESSAGE)
    return link_to_response(result.token, svc.clock.now(), settings.frontend_url)


@router.delete("/{token_id}", status_code=204)
async def delete_link(
    token_id: str,
    _auth: None = Depends(require_master_password),
    svc: TokenService = Depends(get_token_service),
):
    if await svc.revoke(token_id) is RevocationOutcome.NOT_FOUND:
        raise HTTPException(status_code=404, detail=PUBLIC_FAILURE_MESSAGE)
    return Response(status_code=204)
