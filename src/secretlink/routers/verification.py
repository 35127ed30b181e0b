from fastapi import APIRouter, Depends, HTTPException

from ..deps import (
    get_login_credentials,
    get_notifier,
    get_token_service,
    require_rate_limit,
)
from ..domain.token import PUBLIC_FAILURE_MESSAGE, TokenKind
from ..logging_config import get_logger
from ..ports.credentials import CredentialCheck
from ..ports.notifier import Notifier
from ..schemas.verification import (
    SendVerificationRequest,
    SendVerificationResponse,
    VerifyLoginRequest,
    VerifyLoginResponse,
)
from ..services.token_service import TokenService
from ..utils.masking import mask_email

logger = get_logger(__name__)

router = APIRouter(prefix="/api/v1/auth", tags=["auth"])

# one budget per client across both endpoints
auth_rate_limit = require_rate_limit("auth")


@router.post("/send-verification", response_model=SendVerificationResponse)
async def send_verification(
    req: SendVerificationRequest,
    _rl: None = Depends(auth_rate_limit),
    svc: TokenService = Depends(get_token_service),
    credentials: CredentialCheck = Depends(get_login_credentials),
    notifier: Notifier = Depends(get_notifier),
):
    email = str(req.email)
    if not await credentials.check(email, req.password):
        logger.info("verification_credentials_rejected", email=mask_email(email))
        raise HTTPException(status_code=401, detail="Invalid email or password")

    # DeliveryError (token already revoked) is mapped to 502 by the app handler
    token = await svc.issue_and_notify(email, notifier, kind=TokenKind.CODE, supersede=True)
    return SendVerificationResponse(
        message="Verification code sent successfully",
        email=mask_email(email),
        expires_in_seconds=int((token.expires_at - token.created_at).total_seconds()),
    )


@router.post("/verify-login", response_model=VerifyLoginResponse)
async def verify_login(
    req: VerifyLoginRequest,
    _rl: None = Depends(auth_rate_limit),
    svc: TokenService = Depends(get_token_service),
):
    email = str(req.email)
    result = await svc.redeem(req.code.strip(), subject=email, kind=TokenKind.CODE)
    if not result.ok or result.token is None:
        raise HTTPException(status_code=400, detail=PUBLIC_FAILURE_MESSAGE)
    return VerifyLoginResponse(message="Login successful", email=email)
