"""
Core dependencies for route protection and service wiring
"""

from fastapi import Depends, Security
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from app.config import settings
from app.database.supabase_client import get_supabase, SupabaseClient
from app.modules.auth.service import AuthService, normalize_user_type
from supabase import Client
from typing import Dict, Any, Optional
import logging

logger = logging.getLogger(__name__)

security = HTTPBearer()


def get_admin_supabase() -> Optional[Client]:
    """Service-role client, or None when no service role key is configured."""
    if not settings.supabase_service_role_key:
        return None
    return SupabaseClient.get_service_client()


def get_auth_service(
    supabase: Client = Depends(get_supabase),
    admin_supabase: Optional[Client] = Depends(get_admin_supabase),
) -> AuthService:
    return AuthService(supabase, admin_supabase=admin_supabase)


def get_current_token(
    credentials: HTTPAuthorizationCredentials = Security(security)
) -> str:
    """Extract JWT token from Authorization header"""
    return credentials.credentials


def get_current_user_id(
    token: str = Depends(get_current_token),
    auth_service: AuthService = Depends(get_auth_service)
) -> Dict[str, Any]:
    """Extract current session user info from JWT token"""
    return auth_service.get_session_user(token)


def get_user_type(user_data: Dict[str, Any]) -> str:
    """freelancer | investor, from the session user's metadata"""
    return normalize_user_type((user_data.get("user_metadata") or {}).get("user_type"))
