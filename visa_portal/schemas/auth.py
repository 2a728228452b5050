from pydantic import BaseModel, Field


class SendOtpRequest(BaseModel):
    phone: str = Field(..., min_length=1)


class VerifyOtpRequest(BaseModel):
    phone: str = Field(..., min_length=1)
    otp: str = Field(..., min_length=1)


class AdminLoginRequest(BaseModel):
    username: str
    password: str
