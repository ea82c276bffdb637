from fastapi import Request

from app.features.verification.services.code_store import VerificationCodeStore


def get_verification_store(request: Request) -> VerificationCodeStore:
    """
    Dependency returning the process-wide code store created in the app lifespan.
    Tests override it to get an isolated store per test.
    """
    return request.app.state.verification_store
