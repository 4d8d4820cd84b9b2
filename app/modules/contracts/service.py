import logging
from supabase import Client
from app.database.supabase_client import Tables
from app.modules.contracts.schemas import ContractResponse, ContractParty, ContractStatsResponse
from app.modules.users.service import embedded_profile, average
from typing import List, Optional, Dict, Any

logger = logging.getLogger(__name__)

CONTRACT_SELECT = """
    *,
    investor:investor_id (
        id,
        email,
        profiles (name, profile_image)
    ),
    freelancer:freelancer_id (
        id,
        email,
        profiles (name, profile_image)
    )
"""


def party(row: Optional[Dict[str, Any]]) -> Optional[ContractParty]:
    if not row:
        return None
    profile = embedded_profile(row)
    return ContractParty(
        id=row["id"],
        email=row.get("email"),
        name=profile.get("name") or "",
        profile_image=profile.get("profile_image") or "",
    )


class ContractService:
    """Read-only view over contracts; used for listings and aggregate stats."""

    def __init__(self, supabase: Client):
        self.supabase = supabase

    def _fetch(self, user_id: str, status: Optional[str] = None, select: str = CONTRACT_SELECT) -> List[Dict[str, Any]]:
        query = self.supabase.table(Tables.CONTRACTS)\
            .select(select)\
            .or_(f"investor_id.eq.{user_id},freelancer_id.eq.{user_id}")
        if status:
            query = query.eq("status", status)
        result = query.order("created_at", desc=True).execute()
        return result.data or []

    def get_user_contracts(self, user_id: str, status: Optional[str] = None) -> List[ContractResponse]:
        try:
            rows = self._fetch(user_id, status)
        except Exception as e:
            logger.error(f"Error fetching contracts for {user_id}: {e}")
            return []
        return [
            ContractResponse(
                id=c["id"],
                title=c.get("title"),
                description=c.get("description"),
                value=c.get("value"),
                status=c["status"],
                rating=c.get("rating"),
                is_investor=c.get("investor_id") == user_id,
                smart_contract_address=c.get("smart_contract_address"),
                investor=party(c.get("investor")),
                freelancer=party(c.get("freelancer")),
                created_at=c.get("created_at"),
                updated_at=c.get("updated_at"),
                completed_at=c.get("completed_at"),
            )
            for c in rows
        ]

    def get_contract_stats(self, user_id: str) -> ContractStatsResponse:
        try:
            rows = self._fetch(user_id, select="id, status, value, rating")
        except Exception as e:
            logger.error(f"Error fetching contract stats for {user_id}: {e}")
            return ContractStatsResponse()
        completed = [c for c in rows if c.get("status") == "completed"]
        return ContractStatsResponse(
            total=len(rows),
            completed=len(completed),
            active=sum(1 for c in rows if c.get("status") == "active"),
            total_value=sum(c.get("value") or 0 for c in rows),
            average_rating=average(c["rating"] for c in completed if c.get("rating")),
        )
