from pydantic import BaseModel, EmailStr


class SendVerificationRequest(BaseModel):
    email: EmailStr


class VerifyCodeRequest(BaseModel):
    email: EmailStr
    # Length is checked by the store so a wrong-length code gets a 400, not a 422.
    code: str


class SendVerificationData(BaseModel):
    email: EmailStr
    expires_in_minutes: int


class VerifyCodeData(BaseModel):
    verified_email: EmailStr
