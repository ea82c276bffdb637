from typing import Tuple

from fastapi import status

from app.features.verification.models.verification import VerificationOutcome
from app.features.verification.services.code_store import VerificationCodeStore
from app.platform.config import settings
from app.platform.logger import get_logger
from app.platform.services.email import EmailDispatchError, render_template, send_email

logger = get_logger(__name__)

VERIFICATION_EMAIL_SUBJECT = "Email Verification Code"

OUTCOME_RESPONSES = {
    VerificationOutcome.verified: (
        status.HTTP_200_OK,
        "Email verified successfully!",
    ),
    VerificationOutcome.invalid_format: (
        status.HTTP_400_BAD_REQUEST,
        "Verification code must be exactly 6 characters.",
    ),
    VerificationOutcome.not_found: (
        status.HTTP_400_BAD_REQUEST,
        "No verification code found. Please request a new code.",
    ),
    VerificationOutcome.expired: (
        status.HTTP_400_BAD_REQUEST,
        "Verification code has expired. Please request a new code.",
    ),
    VerificationOutcome.mismatch: (
        status.HTTP_400_BAD_REQUEST,
        "Your OTP is wrong. Please try again.",
    ),
}


class VerificationDispatchError(Exception):
    """The code was stored but the email carrying it could not be sent."""


def send_verification_code(store: VerificationCodeStore, email: str) -> str:
    """
    Issue a code for email and mail it.

    The code stays in the store even if sending fails, so a later
    request simply replaces it.
    """
    code = store.issue(email)

    body = render_template(
        "verification_code.html",
        code=code,
        app_name=settings.MAIL_FROM_NAME,
        expires_in_minutes=settings.VERIFICATION_CODE_TTL_MINUTES,
    )

    try:
        send_email(to_email=email, subject=VERIFICATION_EMAIL_SUBJECT, body=body)
    except EmailDispatchError as e:
        logger.error(f"Failed to send verification code to {email}: {e}")
        raise VerificationDispatchError(str(e)) from e

    logger.info(f"Verification code sent to {email}")
    return code


def check_verification_code(
    store: VerificationCodeStore, email: str, code: str
) -> Tuple[VerificationOutcome, int, str]:
    """
    Verify code for email and return (outcome, status_code, message).

    Expired codes of other recipients are swept after the check, so this
    caller still sees its own code as expired rather than missing.
    """
    outcome = store.verify(email, code)
    if settings.VERIFICATION_SWEEP_ON_VERIFY:
        store.sweep_expired()

    status_code, message = OUTCOME_RESPONSES[outcome]

    if outcome is not VerificationOutcome.verified:
        logger.info(f"Verification failed for {email}: {outcome.value}")

    return outcome, status_code, message
