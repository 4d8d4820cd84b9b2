from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime


class MessageCreate(BaseModel):
    message: str = Field(..., min_length=1)


class MessageResponse(BaseModel):
    id: str
    sender_id: str
    receiver_id: str
    message: str
    read: bool = False
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
