import re
from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Optional, List, Literal, Any
from datetime import datetime

UserType = Literal["freelancer", "investor"]


def check_password_strength(password: str) -> str:
    if len(password) < 8:
        raise ValueError("Password must be at least 8 characters long")
    if not re.search(r"[A-Z]", password):
        raise ValueError("Password must contain at least one uppercase letter")
    if not re.search(r"[a-z]", password):
        raise ValueError("Password must contain at least one lowercase letter")
    if not re.search(r"\d", password):
        raise ValueError("Password must contain at least one number")
    return password


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class TokenResponse(BaseModel):
    access_token: str
    refresh_token: Optional[str] = None
    token_type: str = "bearer"
    user_id: str
    email: str
    user_type: UserType = "freelancer"


class RegisterRequest(BaseModel):
    email: EmailStr
    password: str
    user_type: UserType
    name: Optional[str] = None

    @field_validator("password")
    @classmethod
    def strong_password(cls, v: str) -> str:
        return check_password_strength(v)


class RegisterResponse(BaseModel):
    user_id: str
    email: str
    user_type: UserType
    message: str


class OAuthResponse(BaseModel):
    provider: str
    url: str


class PasswordResetRequest(BaseModel):
    email: EmailStr


class PasswordUpdateRequest(BaseModel):
    password: str

    @field_validator("password")
    @classmethod
    def strong_password(cls, v: str) -> str:
        return check_password_strength(v)


class EmailExistsResponse(BaseModel):
    email: str
    exists: bool


class CurrentUser(BaseModel):
    """Authenticated user as the UI sees it; minimal until the profile refresh lands."""
    id: str
    email: Optional[str] = None
    user_type: UserType = "freelancer"
    name: str = ""
    bio: str = ""
    profile_image: str = ""
    wallet_address: str = ""
    skills: List[str] = Field(default_factory=list)
    industries: List[str] = Field(default_factory=list)
    experience: List[Any] = Field(default_factory=list)
    education: List[Any] = Field(default_factory=list)
    portfolio: List[Any] = Field(default_factory=list)
    pending_matches: List[str] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    profile_loaded: bool = False
