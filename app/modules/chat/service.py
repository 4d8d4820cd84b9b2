import logging
from datetime import datetime, timezone
from supabase import Client
from app.database.supabase_client import Tables
from app.modules.chat.schemas import MessageResponse
from typing import List
from fastapi import HTTPException

logger = logging.getLogger(__name__)


def conversation_filter(user_id: str, other_user_id: str) -> str:
    return (
        f"and(sender_id.eq.{user_id},receiver_id.eq.{other_user_id}),"
        f"and(sender_id.eq.{other_user_id},receiver_id.eq.{user_id})"
    )


class ChatService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def get_chat_history(self, user_id: str, other_user_id: str) -> List[MessageResponse]:
        """Messages between two users, oldest first. Empty on failure."""
        try:
            result = self.supabase.table(Tables.CHAT_MESSAGES)\
                .select("*")\
                .or_(conversation_filter(user_id, other_user_id))\
                .order("created_at")\
                .execute()
            return [MessageResponse(**m) for m in result.data or []]
        except Exception as e:
            logger.error(f"Error fetching chat history between {user_id} and {other_user_id}: {e}")
            return []

    def send_message(self, sender_id: str, receiver_id: str, message: str) -> MessageResponse:
        try:
            result = self.supabase.table(Tables.CHAT_MESSAGES).insert({
                "sender_id": sender_id,
                "receiver_id": receiver_id,
                "message": message,
                "read": False,
                "created_at": datetime.now(timezone.utc).isoformat(),
            }).execute()

            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to send message")

            return MessageResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error sending message: {e}")
            raise HTTPException(status_code=500, detail=str(e))
