from uuid import UUID
from fastapi import APIRouter, Depends
from app.database.supabase_client import get_supabase
from app.modules.chat.schemas import MessageCreate, MessageResponse
from app.modules.chat.service import ChatService
from app.core.dependencies import get_current_user_id
from supabase import Client
from typing import List, Dict

router = APIRouter(prefix="/chat", tags=["chat"])


def get_chat_service(supabase: Client = Depends(get_supabase)) -> ChatService:
    return ChatService(supabase)


@router.get("/{other_user_id}", response_model=List[MessageResponse])
def get_chat_history(
    other_user_id: UUID,
    user_data: Dict = Depends(get_current_user_id),
    service: ChatService = Depends(get_chat_service)
):
    """Conversation with another user, oldest message first"""
    return service.get_chat_history(user_data["id"], str(other_user_id))


@router.post("/{other_user_id}", response_model=MessageResponse, status_code=201)
def send_message(
    other_user_id: UUID,
    body: MessageCreate,
    user_data: Dict = Depends(get_current_user_id),
    service: ChatService = Depends(get_chat_service)
):
    """Send a message to another user"""
    return service.send_message(user_data["id"], str(other_user_id), body.message)
