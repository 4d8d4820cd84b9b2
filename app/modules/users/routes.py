from uuid import UUID
from fastapi import APIRouter, Depends, HTTPException, Query, UploadFile, File, status
from app.config import settings
from app.database.supabase_client import get_supabase
from app.modules.users.schemas import (
    ProfileUpdate, WalletUpdate, ProfileResponse, ProfileImageResponse,
    UserSummary, FreelancerResponse, InvestorResponse, UserDetailResponse
)
from app.modules.users.service import UserService
from app.core.dependencies import get_current_user_id
from supabase import Client
from typing import List, Dict, Optional, Literal

router = APIRouter(prefix="/users", tags=["users"])


def get_user_service(supabase: Client = Depends(get_supabase)) -> UserService:
    return UserService(supabase)


@router.get("/freelancers", response_model=List[FreelancerResponse])
def list_freelancers(
    limit: int = Query(settings.default_page_size, ge=1),
    offset: int = Query(0, ge=0),
    user_data: Dict = Depends(get_current_user_id),
    service: UserService = Depends(get_user_service)
):
    """List freelancers, newest first, with contract stats"""
    return service.get_freelancers(limit=limit, offset=offset)


@router.get("/investors", response_model=List[InvestorResponse])
def list_investors(
    limit: int = Query(settings.default_page_size, ge=1),
    offset: int = Query(0, ge=0),
    user_data: Dict = Depends(get_current_user_id),
    service: UserService = Depends(get_user_service)
):
    """List investors, newest first, with investment stats"""
    return service.get_investors(limit=limit, offset=offset)


@router.get("/search", response_model=List[UserSummary])
def search_users(
    q: Optional[str] = None,
    user_type: Optional[Literal["freelancer", "investor"]] = None,
    skills: Optional[List[str]] = Query(None),
    industries: Optional[List[str]] = Query(None),
    limit: int = Query(settings.default_page_size, ge=1),
    user_data: Dict = Depends(get_current_user_id),
    service: UserService = Depends(get_user_service)
):
    """Search users by name/bio text with optional type, skills and industries filters"""
    return service.search_users(query=q, user_type=user_type, skills=skills, industries=industries, limit=limit)


@router.put("/me/profile", response_model=ProfileResponse)
def update_my_profile(
    profile_data: ProfileUpdate,
    user_data: Dict = Depends(get_current_user_id),
    service: UserService = Depends(get_user_service)
):
    """Create or update the current user's profile"""
    return service.update_profile(user_data["id"], profile_data)


@router.post("/me/profile-image", response_model=ProfileImageResponse, status_code=201)
async def upload_my_profile_image(
    file: UploadFile = File(...),
    user_data: Dict = Depends(get_current_user_id),
    service: UserService = Depends(get_user_service)
):
    """Upload a profile image and set it on the current user's profile"""
    if not file.filename or not (file.content_type or "").startswith("image/"):
        raise HTTPException(status_code=400, detail="Only image files are accepted")
    content = await file.read()
    return service.upload_profile_image(user_data["id"], file.filename, content, file.content_type)


@router.put("/me/wallet", response_model=ProfileResponse)
def update_my_wallet(
    wallet: WalletUpdate,
    user_data: Dict = Depends(get_current_user_id),
    service: UserService = Depends(get_user_service)
):
    """Link a wallet address to the current user's profile"""
    return service.update_wallet_address(user_data["id"], wallet.wallet_address)


@router.get("/{user_id}", response_model=UserDetailResponse)
def get_user(
    user_id: UUID,
    user_data: Dict = Depends(get_current_user_id),
    service: UserService = Depends(get_user_service)
):
    """Get a user's public profile and contract stats"""
    user = service.get_user_by_id(str(user_id))
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user
