from uuid import UUID
from fastapi import APIRouter, Depends, Query
from app.config import settings
from app.database.supabase_client import get_supabase
from app.modules.matches.schemas import (
    MatchRequest, MatchResponse, MatchPartyResponse, MatchStatusResponse, RecommendedUserResponse
)
from app.modules.matches.service import MatchService
from app.core.dependencies import get_current_user_id, get_user_type
from supabase import Client
from typing import List, Dict

router = APIRouter(prefix="/matches", tags=["matches"])


def get_match_service(supabase: Client = Depends(get_supabase)) -> MatchService:
    return MatchService(supabase)


@router.get("", response_model=List[MatchPartyResponse])
def list_matches(
    user_data: Dict = Depends(get_current_user_id),
    service: MatchService = Depends(get_match_service)
):
    """Accepted matches for the current user"""
    return service.get_matches(user_data["id"], get_user_type(user_data))


@router.get("/pending", response_model=List[MatchPartyResponse])
def list_pending_matches(
    user_data: Dict = Depends(get_current_user_id),
    service: MatchService = Depends(get_match_service)
):
    """Pending match requests for the current user"""
    return service.get_pending_matches(user_data["id"], get_user_type(user_data))


@router.get("/recommended", response_model=List[RecommendedUserResponse])
def list_recommended_users(
    limit: int = Query(settings.recommendation_limit, ge=1),
    user_data: Dict = Depends(get_current_user_id),
    service: MatchService = Depends(get_match_service)
):
    """Counterparts ranked by skill/industry match score"""
    return service.get_recommended_users(user_data["id"], limit=limit)


@router.get("/status/{other_user_id}", response_model=MatchStatusResponse)
def get_match_status(
    other_user_id: UUID,
    user_data: Dict = Depends(get_current_user_id),
    service: MatchService = Depends(get_match_service)
):
    """Match status between the current user and another user"""
    return service.get_match_status(user_data["id"], str(other_user_id))


@router.post("", response_model=MatchResponse, status_code=201)
def request_match(
    request: MatchRequest,
    user_data: Dict = Depends(get_current_user_id),
    service: MatchService = Depends(get_match_service)
):
    """Request a match with another user"""
    return service.request_match(user_data["id"], get_user_type(user_data), str(request.user_id))


@router.post("/{match_id}/accept", response_model=MatchResponse)
def accept_match(
    match_id: UUID,
    user_data: Dict = Depends(get_current_user_id),
    service: MatchService = Depends(get_match_service)
):
    return service.accept_match(str(match_id), user_data["id"], get_user_type(user_data))


@router.post("/{match_id}/decline", response_model=MatchResponse)
def decline_match(
    match_id: UUID,
    user_data: Dict = Depends(get_current_user_id),
    service: MatchService = Depends(get_match_service)
):
    return service.decline_match(str(match_id), user_data["id"], get_user_type(user_data))
