from fastapi import APIRouter, Depends, HTTPException, status
from starlette.concurrency import run_in_threadpool

from app.features.verification.dependencies.store import get_verification_store
from app.features.verification.models.verification import VerificationOutcome
from app.features.verification.schemas.verification import (
    SendVerificationData,
    SendVerificationRequest,
    VerifyCodeData,
    VerifyCodeRequest,
)
from app.features.verification.services.code_store import VerificationCodeStore
from app.features.verification.services.verification import (
    VerificationDispatchError,
    check_verification_code,
    send_verification_code,
)
from app.platform.config import settings
from app.platform.response import api_response

router = APIRouter(prefix="/auth", tags=["Email Verification"])


@router.post(
    "/send-verification",
    response_model=dict,
    status_code=status.HTTP_200_OK,
    summary="Send an email verification code",
    description="Generate a 6-digit code for the email address and mail it"
)
async def send_verification(
    request: SendVerificationRequest,
    store: VerificationCodeStore = Depends(get_verification_store)
):
    """
    Send a verification code.
    - A new request replaces any code previously sent to the same address.
    - The code is valid for VERIFICATION_CODE_TTL_MINUTES minutes.
    """
    try:
        await run_in_threadpool(send_verification_code, store, request.email)
    except VerificationDispatchError:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to send code"
        )

    return api_response(
        data=SendVerificationData(
            email=request.email,
            expires_in_minutes=settings.VERIFICATION_CODE_TTL_MINUTES,
        ),
        message="Code sent successfully",
        status_code=status.HTTP_200_OK
    )


@router.post(
    "/verify-code",
    response_model=dict,
    status_code=status.HTTP_200_OK,
    summary="Verify an email verification code",
    description="Check a code previously sent with /auth/send-verification"
)
async def verify_code(
    request: VerifyCodeRequest,
    store: VerificationCodeStore = Depends(get_verification_store)
):
    outcome, status_code, message = check_verification_code(store, request.email, request.code)

    if outcome is VerificationOutcome.verified:
        data = VerifyCodeData(verified_email=request.email)
    else:
        data = {"outcome": outcome.value}

    return api_response(data=data, message=message, status_code=status_code)
