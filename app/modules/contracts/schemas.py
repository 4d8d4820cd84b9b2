from pydantic import BaseModel
from typing import Optional, Literal
from datetime import datetime

ContractStatus = Literal["draft", "pending", "active", "completed", "cancelled"]


class ContractParty(BaseModel):
    id: str
    email: Optional[str] = None
    name: str = ""
    profile_image: str = ""


class ContractResponse(BaseModel):
    id: str
    title: Optional[str] = None
    description: Optional[str] = None
    value: Optional[float] = None
    status: ContractStatus
    rating: Optional[float] = None
    is_investor: bool
    smart_contract_address: Optional[str] = None
    investor: Optional[ContractParty] = None
    freelancer: Optional[ContractParty] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None


class ContractStatsResponse(BaseModel):
    total: int = 0
    completed: int = 0
    active: int = 0
    total_value: float = 0
    average_rating: float = 0
