from pydantic import BaseModel, EmailStr
from typing import Optional, Literal


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user_id: str
    email: str


class RegisterRequest(BaseModel):
    email: EmailStr
    password: str
    display_name: Optional[str] = None


class RegisterResponse(BaseModel):
    user_id: str
    email: str
    message: str


class PasswordResetRequest(BaseModel):
    email: EmailStr
    redirect_to: Optional[str] = None


OAuthProvider = Literal["google", "facebook"]


class OAuthUrlResponse(BaseModel):
    provider: OAuthProvider
    url: str


class OAuthCallbackRequest(BaseModel):
    code: str
    code_verifier: Optional[str] = None
    redirect_to: Optional[str] = None
