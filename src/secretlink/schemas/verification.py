from pydantic import BaseModel, EmailStr


class SendVerificationRequest(BaseModel):
    email: EmailStr
    password: str


class SendVerificationResponse(BaseModel):
    message: str
    email: str  # masked
    expires_in_seconds: int


class VerifyLoginRequest(BaseModel):
    email: EmailStr
    code: str


class VerifyLoginResponse(BaseModel):
    message: str
    email: EmailStr
