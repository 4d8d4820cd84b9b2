from uuid import UUID
from pydantic import BaseModel, Field
from typing import Optional, Literal, List
from datetime import datetime

MatchStatus = Literal["pending", "accepted", "declined"]


class MatchRequest(BaseModel):
    user_id: UUID


class MatchResponse(BaseModel):
    id: str
    investor_id: str
    freelancer_id: str
    status: MatchStatus
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class MatchPartyResponse(BaseModel):
    """A match as seen by one side: the other party plus the match id"""
    id: str
    match_id: str
    name: str
    email: Optional[str] = None
    profile_image: Optional[str] = None
    status: MatchStatus
    requested_at: Optional[datetime] = None


class MatchStatusResponse(BaseModel):
    status: Literal["none", "pending", "accepted", "declined"]
    match_id: Optional[str] = None


class RecommendedUserResponse(BaseModel):
    id: str
    email: Optional[str] = None
    user_type: Optional[str] = None
    name: str = ""
    bio: str = ""
    profile_image: str = ""
    wallet_address: str = ""
    skills: List[str] = Field(default_factory=list)
    industries: List[str] = Field(default_factory=list)
    match_score: int
    created_at: Optional[datetime] = None
