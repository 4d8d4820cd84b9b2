import logging
from datetime import datetime, timezone
from supabase import Client
from app.database.supabase_client import Tables
from app.modules.matches.schemas import (
    MatchResponse, MatchPartyResponse, MatchStatusResponse, RecommendedUserResponse
)
from app.modules.matches.scoring import compute_match_score, rank_by_score
from app.modules.users.service import UserService, SUMMARY_SELECT, summary_fields, embedded_profile
from typing import List, Optional, Dict, Any
from fastapi import HTTPException

logger = logging.getLogger(__name__)

PARTY_SELECT = """
    id,
    status,
    created_at,
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


def pair_filter(user_id: str, other_user_id: str) -> str:
    """PostgREST or-filter matching the pair in either role"""
    return (
        f"and(investor_id.eq.{user_id},freelancer_id.eq.{other_user_id}),"
        f"and(investor_id.eq.{other_user_id},freelancer_id.eq.{user_id})"
    )


def role_field(user_type: str) -> str:
    return "investor_id" if user_type == "investor" else "freelancer_id"


def party_view(match: Dict[str, Any], user_type: str) -> MatchPartyResponse:
    other = (match.get("freelancer") if user_type == "investor" else match.get("investor")) or {}
    profile = embedded_profile(other)
    return MatchPartyResponse(
        id=other.get("id", ""),
        match_id=match["id"],
        name=profile.get("name") or other.get("email") or "Unknown",
        email=other.get("email"),
        profile_image=profile.get("profile_image") or None,
        status=match["status"],
        requested_at=match.get("created_at"),
    )


class MatchService:
    def __init__(self, supabase: Client, user_service: Optional[UserService] = None):
        self.supabase = supabase
        self.user_service = user_service or UserService(supabase)

    def get_recommended_users(self, user_id: str, limit: int = 10) -> List[RecommendedUserResponse]:
        """
        Counterparts of the opposite user type ranked by match score. The score
        always compares the freelancer's skills against the investor's industries,
        whichever side the current user is on.
        """
        current = self.user_service.get_user_by_id(user_id)
        if current is None:
            logger.warning(f"Cannot recommend users for unknown user {user_id}")
            return []
        is_investor = current.user_type == "investor"

        try:
            result = self.supabase.table(Tables.USERS)\
                .select(SUMMARY_SELECT)\
                .eq("user_type", "freelancer" if is_investor else "investor")\
                .limit(limit)\
                .execute()
        except Exception as e:
            logger.error(f"Error getting recommended users for {user_id}: {e}")
            return []

        recommended = []
        for row in result.data or []:
            candidate = summary_fields(row)
            if is_investor:
                score = compute_match_score(candidate["skills"], current.industries)
            else:
                score = compute_match_score(current.skills, candidate["industries"])
            recommended.append({**candidate, "match_score": score})

        return [RecommendedUserResponse(**r) for r in rank_by_score(recommended)]

    def _list_matches(self, user_id: str, user_type: str, status: str) -> List[MatchPartyResponse]:
        result = self.supabase.table(Tables.MATCHES)\
            .select(PARTY_SELECT)\
            .eq(role_field(user_type), user_id)\
            .eq("status", status)\
            .order("created_at", desc=True)\
            .execute()
        return [party_view(m, user_type) for m in result.data or []]

    def get_matches(self, user_id: str, user_type: str) -> List[MatchPartyResponse]:
        """Accepted matches, shown as the other party"""
        try:
            return self._list_matches(user_id, user_type, "accepted")
        except Exception as e:
            logger.error(f"Error fetching matches for {user_id}: {e}")
            return []

    def get_pending_matches(self, user_id: str, user_type: str) -> List[MatchPartyResponse]:
        """Pending match requests, shown as the other party"""
        try:
            return self._list_matches(user_id, user_type, "pending")
        except Exception as e:
            logger.error(f"Error fetching pending matches for {user_id}: {e}")
            return []

    def _find_pair(self, user_id: str, other_user_id: str) -> Optional[Dict[str, Any]]:
        result = self.supabase.table(Tables.MATCHES)\
            .select("*")\
            .or_(pair_filter(user_id, other_user_id))\
            .maybe_single()\
            .execute()
        return result.data if result and result.data else None

    def _get_user_type(self, user_id: str) -> Optional[str]:
        result = self.supabase.table(Tables.USERS)\
            .select("id, user_type")\
            .eq("id", user_id)\
            .maybe_single()\
            .execute()
        if not result or not result.data:
            return None
        return result.data.get("user_type")

    def request_match(self, user_id: str, user_type: str, other_user_id: str) -> MatchResponse:
        """Create a pending match with a user of the opposite type, or return the existing one"""
        if user_id == other_user_id:
            raise HTTPException(status_code=400, detail="Cannot request a match with yourself")
        try:
            other_type = self._get_user_type(other_user_id)
            if other_type is None:
                raise HTTPException(status_code=404, detail="User not found")
            if other_type == user_type:
                raise HTTPException(status_code=400, detail=f"Cannot match two {user_type}s")

            existing = self._find_pair(user_id, other_user_id)
            if existing:
                return MatchResponse(**existing)

            match_data = {
                "status": "pending",
                "requested_by": user_id,
                "created_at": datetime.now(timezone.utc).isoformat(),
            }
            if user_type == "investor":
                match_data["investor_id"] = user_id
                match_data["freelancer_id"] = other_user_id
            else:
                match_data["investor_id"] = other_user_id
                match_data["freelancer_id"] = user_id

            result = self.supabase.table(Tables.MATCHES).insert(match_data).execute()
            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to request match")

            logger.info(f"Match requested between {user_id} and {other_user_id}")
            return MatchResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error requesting match: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    def get_match_status(self, user_id: str, other_user_id: str) -> MatchStatusResponse:
        try:
            match = self._find_pair(user_id, other_user_id)
        except Exception as e:
            logger.error(f"Error checking match status: {e}")
            return MatchStatusResponse(status="none")
        if not match:
            return MatchStatusResponse(status="none")
        return MatchStatusResponse(status=match["status"], match_id=match["id"])

    def _set_status(self, match_id: str, status: str, user_id: str, user_type: str) -> MatchResponse:
        """Update a match the caller is a party to; anyone else gets 404"""
        field = role_field(user_type)
        try:
            found = self.supabase.table(Tables.MATCHES)\
                .select("*")\
                .eq("id", match_id)\
                .eq(field, user_id)\
                .maybe_single()\
                .execute()
            if not found or not found.data:
                raise HTTPException(status_code=404, detail="Match not found")
            if status == "accepted" and found.data.get("requested_by") == user_id:
                raise HTTPException(status_code=403, detail="Only the other party can accept a match request")

            result = self.supabase.table(Tables.MATCHES)\
                .update({"status": status, "updated_at": datetime.now(timezone.utc).isoformat()})\
                .eq("id", match_id)\
                .eq(field, user_id)\
                .execute()

            if not result.data:
                raise HTTPException(status_code=404, detail="Match not found")

            return MatchResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error setting match {match_id} to {status}: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    def accept_match(self, match_id: str, user_id: str, user_type: str) -> MatchResponse:
        return self._set_status(match_id, "accepted", user_id, user_type)

    def decline_match(self, match_id: str, user_id: str, user_type: str) -> MatchResponse:
        return self._set_status(match_id, "declined", user_id, user_type)
