import re
from pydantic import BaseModel, Field, field_validator
from typing import Optional, List, Any, Dict
from datetime import datetime

ETHEREUM_ADDRESS_RE = re.compile(r"^0x[a-fA-F0-9]{40}$")


def check_wallet_address(value: Optional[str]) -> Optional[str]:
    if value is None or value == "":
        return value
    if not ETHEREUM_ADDRESS_RE.match(value):
        raise ValueError("Invalid Ethereum wallet address")
    return value


class ProfileUpdate(BaseModel):
    """Fields to merge into the profile; unset fields are left untouched"""
    name: Optional[str] = None
    bio: Optional[str] = None
    profile_image: Optional[str] = None
    wallet_address: Optional[str] = None
    skills: Optional[List[str]] = None
    industries: Optional[List[str]] = None
    experience: Optional[List[Dict[str, Any]]] = None
    education: Optional[List[Dict[str, Any]]] = None
    portfolio: Optional[List[Dict[str, Any]]] = None

    @field_validator("wallet_address")
    @classmethod
    def valid_wallet(cls, v: Optional[str]) -> Optional[str]:
        return check_wallet_address(v)


class WalletUpdate(BaseModel):
    wallet_address: str

    @field_validator("wallet_address")
    @classmethod
    def valid_wallet(cls, v: str) -> str:
        return check_wallet_address(v)


class ProfileResponse(BaseModel):
    id: str
    name: Optional[str] = None
    bio: Optional[str] = None
    profile_image: Optional[str] = None
    wallet_address: Optional[str] = None
    skills: Optional[List[str]] = None
    industries: Optional[List[str]] = None
    experience: Optional[List[Any]] = None
    education: Optional[List[Any]] = None
    portfolio: Optional[List[Any]] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ProfileImageResponse(BaseModel):
    user_id: str
    url: str


class UserSummary(BaseModel):
    id: str
    email: Optional[str] = None
    user_type: Optional[str] = None
    name: str = ""
    bio: str = ""
    profile_image: str = ""
    wallet_address: str = ""
    skills: List[str] = Field(default_factory=list)
    industries: List[str] = Field(default_factory=list)
    created_at: Optional[datetime] = None


class FreelancerResponse(UserSummary):
    user_type: Optional[str] = "freelancer"
    experience: List[Any] = Field(default_factory=list)
    education: List[Any] = Field(default_factory=list)
    portfolio: List[Any] = Field(default_factory=list)
    completed_contracts: int = 0
    rating: float = 0


class InvestorResponse(UserSummary):
    user_type: Optional[str] = "investor"
    completed_investments: int = 0
    average_investment: float = 0


class UserDetailResponse(UserSummary):
    experience: List[Any] = Field(default_factory=list)
    education: List[Any] = Field(default_factory=list)
    portfolio: List[Any] = Field(default_factory=list)
    contracts: List[Dict[str, Any]] = Field(default_factory=list)
    completed_contracts: int = 0
    rating: float = 0
    ratings_count: int = 0
