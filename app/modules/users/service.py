import time
import logging
from datetime import datetime, timezone
from supabase import Client
from app.config import settings
from app.core.profile_cache import ProfileCache, profile_cache
from app.core.events import ProfileEventBus, ProfileEvent, PROFILE_UPDATED, profile_events
from app.database.supabase_client import Tables
from app.modules.users.schemas import (
    ProfileUpdate, ProfileResponse, ProfileImageResponse, UserSummary,
    FreelancerResponse, InvestorResponse, UserDetailResponse
)
from typing import List, Optional, Dict, Any, Iterable
from fastapi import HTTPException

logger = logging.getLogger(__name__)

FREELANCER_SELECT = """
    id,
    email,
    created_at,
    profiles (
        name,
        bio,
        profile_image,
        wallet_address,
        skills,
        experience,
        education,
        portfolio
    )
"""

INVESTOR_SELECT = """
    id,
    email,
    created_at,
    profiles (
        name,
        bio,
        profile_image,
        wallet_address,
        industries
    )
"""

SUMMARY_SELECT = """
    id,
    email,
    user_type,
    created_at,
    profiles (
        name,
        bio,
        profile_image,
        wallet_address,
        skills,
        industries
    )
"""


def embedded_profile(row: Dict[str, Any]) -> Dict[str, Any]:
    """PostgREST returns a one-to-one embed as an object, one-to-many as a list."""
    profile = row.get("profiles")
    if isinstance(profile, list):
        return profile[0] if profile else {}
    return profile or {}


def summary_fields(row: Dict[str, Any]) -> Dict[str, Any]:
    profile = embedded_profile(row)
    return {
        "id": row["id"],
        "email": row.get("email"),
        "user_type": row.get("user_type"),
        "name": profile.get("name") or "",
        "bio": profile.get("bio") or "",
        "profile_image": profile.get("profile_image") or "",
        "wallet_address": profile.get("wallet_address") or "",
        "skills": profile.get("skills") or [],
        "industries": profile.get("industries") or [],
        "created_at": row.get("created_at"),
    }


def average(values: Iterable[float]) -> float:
    values = list(values)
    if not values:
        return 0
    return sum(values) / len(values)


def _contains_all(have: List[str], wanted: List[str]) -> bool:
    lowered = {h.lower() for h in have}
    return all(w.lower() in lowered for w in wanted)


class UserService:
    def __init__(
        self,
        supabase: Client,
        cache: Optional[ProfileCache] = None,
        events: Optional[ProfileEventBus] = None,
    ):
        self.supabase = supabase
        self.cache = cache if cache is not None else profile_cache
        self.events = events if events is not None else profile_events

    def _apply_to_cache(self, user_id: str, row: Dict[str, Any]) -> None:
        fields = {k: v for k, v in row.items() if k not in ("id", "created_at", "updated_at") and v is not None}
        updated = self.cache.patch(user_id, fields)
        self.events.publish(ProfileEvent(kind=PROFILE_UPDATED, user_id=user_id, user=updated))

    def update_profile(self, user_id: str, profile_data: ProfileUpdate) -> ProfileResponse:
        """Create or update the user's profile (shallow merge upsert)"""
        try:
            fields = profile_data.model_dump(exclude_unset=True)
            upsert_data = {
                "id": user_id,
                **fields,
                "updated_at": datetime.now(timezone.utc).isoformat(),
            }
            result = self.supabase.table(Tables.PROFILES)\
                .upsert(upsert_data)\
                .execute()

            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to update profile")

            row = result.data[0]
            self._apply_to_cache(user_id, row)
            return ProfileResponse(**row)
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error updating profile for {user_id}: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    def upload_profile_image(
        self,
        user_id: str,
        filename: str,
        content: bytes,
        content_type: str = "image/png",
    ) -> ProfileImageResponse:
        """Store the image in the avatars bucket and point the profile at its public URL"""
        try:
            file_ext = filename.split(".")[-1]
            file_name = f"{user_id}-{int(time.time() * 1000)}.{file_ext}"
            file_path = f"{settings.profile_images_prefix}/{file_name}"

            bucket = self.supabase.storage.from_(settings.avatars_bucket)
            bucket.upload(file_path, content, {"content-type": content_type})
            public_url = bucket.get_public_url(file_path)
            logger.info(f"Uploaded profile image for {user_id} to {file_path}")
        except Exception as e:
            logger.error(f"Error uploading profile image for {user_id}: {e}")
            raise HTTPException(status_code=500, detail=f"Failed to upload profile image: {str(e)}")

        self.update_profile(user_id, ProfileUpdate(profile_image=public_url))
        return ProfileImageResponse(user_id=user_id, url=public_url)

    def update_wallet_address(self, user_id: str, wallet_address: str) -> ProfileResponse:
        """Link an Ethereum wallet address to the profile"""
        try:
            result = self.supabase.table(Tables.PROFILES)\
                .upsert({
                    "id": user_id,
                    "wallet_address": wallet_address,
                    "updated_at": datetime.now(timezone.utc).isoformat(),
                })\
                .execute()

            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to update wallet address")

            row = result.data[0]
            self._apply_to_cache(user_id, {"wallet_address": row.get("wallet_address", wallet_address)})
            return ProfileResponse(**row)
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error updating wallet address for {user_id}: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    def get_user_by_id(self, user_id: str) -> Optional[UserDetailResponse]:
        """User, profile and contract statistics; None if the user is unknown"""
        try:
            user_result = self.supabase.table(Tables.USERS)\
                .select("*")\
                .eq("id", user_id)\
                .maybe_single()\
                .execute()
            if not user_result or not user_result.data:
                return None
            user = user_result.data

            profile_result = self.supabase.table(Tables.PROFILES)\
                .select("*")\
                .eq("id", user_id)\
                .maybe_single()\
                .execute()
            profile = profile_result.data if profile_result and profile_result.data else {}
        except Exception as e:
            logger.error(f"Error fetching user {user_id}: {e}")
            return None

        contracts = self._get_contracts_for(user_id)
        completed = [c for c in contracts if c.get("status") == "completed"]
        ratings = [c["rating"] for c in completed if c.get("rating")]

        return UserDetailResponse(
            id=user_id,
            email=user.get("email"),
            user_type=user.get("user_type"),
            name=profile.get("name") or "",
            bio=profile.get("bio") or "",
            profile_image=profile.get("profile_image") or "",
            wallet_address=profile.get("wallet_address") or "",
            skills=profile.get("skills") or [],
            industries=profile.get("industries") or [],
            experience=profile.get("experience") or [],
            education=profile.get("education") or [],
            portfolio=profile.get("portfolio") or [],
            contracts=contracts,
            completed_contracts=len(completed),
            rating=average(ratings),
            ratings_count=len(ratings),
            created_at=user.get("created_at"),
        )

    def _get_contracts_for(self, user_id: str) -> List[Dict[str, Any]]:
        try:
            result = self.supabase.table(Tables.CONTRACTS)\
                .select("*")\
                .or_(f"investor_id.eq.{user_id},freelancer_id.eq.{user_id}")\
                .order("created_at", desc=True)\
                .execute()
            return result.data or []
        except Exception as e:
            logger.error(f"Error fetching contracts for {user_id}: {e}")
            return []

    def _count_contracts(self, field: str, user_id: str, status: Optional[str] = None) -> int:
        try:
            query = self.supabase.table(Tables.CONTRACTS)\
                .select("id", count="exact")\
                .eq(field, user_id)
            if status:
                query = query.eq("status", status)
            result = query.execute()
            return result.count or 0
        except Exception as e:
            logger.error(f"Error fetching contracts count for {user_id}: {e}")
            return 0

    def _contract_values(self, field: str, user_id: str, column: str) -> List[float]:
        try:
            result = self.supabase.table(Tables.CONTRACTS)\
                .select(column)\
                .eq(field, user_id)\
                .not_.is_(column, "null")\
                .execute()
            return [row.get(column) or 0 for row in result.data or []]
        except Exception as e:
            logger.error(f"Error fetching contract {column} values for {user_id}: {e}")
            return []

    def _list_by_type(self, user_type: str, select: str, limit: int, offset: int) -> List[Dict[str, Any]]:
        result = self.supabase.table(Tables.USERS)\
            .select(select)\
            .eq("user_type", user_type)\
            .order("created_at", desc=True)\
            .range(offset, offset + limit - 1)\
            .execute()
        return result.data or []

    def get_freelancers(self, limit: int = 100, offset: int = 0) -> List[FreelancerResponse]:
        """Freelancer profiles with completed contract count and average rating"""
        try:
            rows = self._list_by_type("freelancer", FREELANCER_SELECT, limit, offset)
        except Exception as e:
            logger.error(f"Error fetching freelancers: {e}")
            return []

        freelancers = []
        for row in rows:
            profile = embedded_profile(row)
            freelancers.append(FreelancerResponse(
                **summary_fields({**row, "user_type": "freelancer"}),
                experience=profile.get("experience") or [],
                education=profile.get("education") or [],
                portfolio=profile.get("portfolio") or [],
                completed_contracts=self._count_contracts("freelancer_id", row["id"], status="completed"),
                rating=average(self._contract_values("freelancer_id", row["id"], "rating")),
            ))
        return freelancers

    def get_investors(self, limit: int = 100, offset: int = 0) -> List[InvestorResponse]:
        """Investor profiles with contract count and average investment"""
        try:
            rows = self._list_by_type("investor", INVESTOR_SELECT, limit, offset)
        except Exception as e:
            logger.error(f"Error fetching investors: {e}")
            return []

        return [
            InvestorResponse(
                **summary_fields({**row, "user_type": "investor"}),
                completed_investments=self._count_contracts("investor_id", row["id"]),
                average_investment=average(self._contract_values("investor_id", row["id"], "value")),
            )
            for row in rows
        ]

    def search_users(
        self,
        query: Optional[str] = None,
        user_type: Optional[str] = None,
        skills: Optional[List[str]] = None,
        industries: Optional[List[str]] = None,
        limit: int = 100,
    ) -> List[UserSummary]:
        """Search by name/bio text, user type and required skills/industries"""
        try:
            request = self.supabase.table(Tables.USERS).select(SUMMARY_SELECT)
            if user_type:
                request = request.eq("user_type", user_type)
            result = request.order("created_at", desc=True).limit(limit).execute()
        except Exception as e:
            logger.error(f"Error searching users: {e}")
            return []

        needle = (query or "").strip().lower()
        users = []
        for row in result.data or []:
            user = summary_fields(row)
            if needle and needle not in user["name"].lower() and needle not in user["bio"].lower():
                continue
            if skills and not _contains_all(user["skills"], skills):
                continue
            if industries and not _contains_all(user["industries"], industries):
                continue
            users.append(UserSummary(**user))
        return users
