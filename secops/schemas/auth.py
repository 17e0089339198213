from pydantic import BaseModel, EmailStr, Field


class OTPRequestPayload(BaseModel):
    email: EmailStr


class OTPVerifyPayload(BaseModel):
    email: EmailStr
    otp: str = Field(min_length=1, max_length=32)


class TokenOut(BaseModel):
    success: bool = True
    access_token: str
    token_type: str = "bearer"
