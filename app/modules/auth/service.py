import hashlib
import time
import logging
from supabase import Client
from app.modules.auth.schemas import (
    LoginRequest, RegisterRequest, TokenResponse, RegisterResponse,
    OAuthResponse, EmailExistsResponse, CurrentUser
)
from app.config.settings import settings
from app.core.profile_cache import ProfileCache, profile_cache
from app.core.events import ProfileEventBus, ProfileEvent, PROFILE_REFRESHED, profile_events
from app.database.supabase_client import Tables
from fastapi import BackgroundTasks, HTTPException
from typing import Dict, Any, List, Optional

logger = logging.getLogger(__name__)

# In-memory cache for get_session_user to reduce Supabase auth calls (e.g. many parallel requests with same token)
_AUTH_USER_CACHE: Dict[str, tuple] = {}
_AUTH_CACHE_TTL_SEC = 60
_AUTH_CACHE_MAX_SIZE = 500

SUPPORTED_OAUTH_PROVIDERS = ("google",)


def normalize_user_type(value: Optional[str]) -> str:
    return "investor" if value == "investor" else "freelancer"


def minimal_current_user(session_user: Dict[str, Any]) -> CurrentUser:
    """Build the session-only view of a user; profile fields stay empty."""
    metadata = session_user.get("user_metadata") or {}
    return CurrentUser(
        id=session_user["id"],
        email=session_user.get("email"),
        user_type=normalize_user_type(metadata.get("user_type")),
        name=metadata.get("name") or "",
        created_at=session_user.get("created_at"),
        profile_loaded=False,
    )


def profile_fields(profile: Dict[str, Any]) -> Dict[str, Any]:
    """Map a profiles row onto CurrentUser fields, dropping empty values."""
    fields = {}
    for key in ("name", "bio", "profile_image", "wallet_address"):
        if profile.get(key):
            fields[key] = profile[key]
    for key in ("skills", "industries", "experience", "education", "portfolio"):
        if profile.get(key):
            fields[key] = list(profile[key])
    return fields


class AuthService:
    def __init__(
        self,
        supabase: Client,
        admin_supabase: Optional[Client] = None,
        cache: Optional[ProfileCache] = None,
        events: Optional[ProfileEventBus] = None,
    ):
        self.supabase = supabase
        self.admin_supabase = admin_supabase
        self.cache = cache if cache is not None else profile_cache
        self.events = events if events is not None else profile_events

    def register(self, register_data: RegisterRequest) -> RegisterResponse:
        """Register a new freelancer or investor using Supabase Auth"""
        try:
            user_metadata = {"user_type": register_data.user_type}
            if register_data.name:
                user_metadata["name"] = register_data.name

            auth_response = self.supabase.auth.sign_up({
                "email": register_data.email,
                "password": register_data.password,
                "options": {
                    "data": user_metadata
                }
            })

            if not auth_response.user:
                raise HTTPException(status_code=400, detail="Failed to register user")

            logger.info(f"Registered {register_data.user_type} {auth_response.user.id}")
            return RegisterResponse(
                user_id=auth_response.user.id,
                email=auth_response.user.email or register_data.email,
                user_type=register_data.user_type,
                message="User registered successfully"
            )
        except HTTPException:
            raise
        except Exception as e:
            error_message = str(e)
            logger.error(f"Error registering: {error_message}")
            if "already registered" in error_message.lower() or "already exists" in error_message.lower():
                raise HTTPException(status_code=400, detail="User already exists")
            raise HTTPException(status_code=500, detail=f"Registration failed: {error_message}")

    def login(self, login_data: LoginRequest) -> TokenResponse:
        """Authenticate user using Supabase Auth"""
        try:
            auth_response = self.supabase.auth.sign_in_with_password({
                "email": login_data.email,
                "password": login_data.password
            })

            if not auth_response.user or not auth_response.session:
                raise HTTPException(status_code=401, detail="Invalid credentials")

            metadata = auth_response.user.user_metadata or {}
            return TokenResponse(
                access_token=auth_response.session.access_token,
                refresh_token=auth_response.session.refresh_token,
                token_type="bearer",
                user_id=auth_response.user.id,
                email=auth_response.user.email or login_data.email,
                user_type=normalize_user_type(metadata.get("user_type")),
            )
        except HTTPException:
            raise
        except Exception as e:
            error_message = str(e)
            logger.error(f"Error logging in: {error_message}")
            if "invalid" in error_message.lower() or "credentials" in error_message.lower():
                raise HTTPException(status_code=401, detail="Invalid email or password")
            raise HTTPException(status_code=500, detail=f"Login failed: {error_message}")

    def login_with_oauth(self, provider: str) -> OAuthResponse:
        """Start an OAuth sign-in; the UI follows the returned URL"""
        if provider not in SUPPORTED_OAUTH_PROVIDERS:
            raise HTTPException(status_code=400, detail=f"Unsupported OAuth provider: {provider}")
        try:
            response = self.supabase.auth.sign_in_with_oauth({
                "provider": provider,
                "options": {"redirect_to": settings.frontend_link("auth/callback")}
            })
            return OAuthResponse(provider=provider, url=response.url)
        except Exception as e:
            logger.error(f"Error logging in with {provider}: {e}")
            raise HTTPException(status_code=500, detail=f"OAuth sign-in failed: {str(e)}")

    def get_session_user(self, token: str) -> Dict[str, Any]:
        """Resolve a bearer token to the Supabase Auth user. Uses short TTL cache to reduce auth API calls."""
        try:
            cache_key = hashlib.sha256(token.encode()).hexdigest()
            now = time.monotonic()
            if cache_key in _AUTH_USER_CACHE:
                user_data, expiry = _AUTH_USER_CACHE[cache_key]
                if now < expiry:
                    return user_data
                del _AUTH_USER_CACHE[cache_key]
            user_response = self.supabase.auth.get_user(jwt=token)
            if not user_response or not user_response.user:
                raise HTTPException(status_code=401, detail="Invalid or expired token")
            user = user_response.user
            user_data = {
                "id": user.id,
                "email": user.email,
                "user_metadata": user.user_metadata or {},
                "app_metadata": user.app_metadata or {},
                "created_at": user.created_at,
                "updated_at": user.updated_at
            }
            if len(_AUTH_USER_CACHE) < _AUTH_CACHE_MAX_SIZE:
                _AUTH_USER_CACHE[cache_key] = (user_data, now + _AUTH_CACHE_TTL_SEC)
            return user_data
        except HTTPException:
            raise
        except Exception as e:
            error_msg = str(e)
            if "JWT" in error_msg or "expired" in error_msg.lower() or "invalid" in error_msg.lower():
                raise HTTPException(status_code=401, detail="Invalid or expired token")
            raise HTTPException(status_code=401, detail="Authentication failed")

    def get_current_user(
        self,
        session_user: Dict[str, Any],
        background_tasks: Optional[BackgroundTasks] = None,
    ) -> CurrentUser:
        """
        Return the cached profile for the session user, or a minimal one built from
        the session. On a miss the minimal object is cached and the full profile is
        loaded after the response via refresh_profile.
        """
        user_id = session_user["id"]
        cached = self.cache.get(user_id)
        if cached is not None:
            return cached
        minimal = minimal_current_user(session_user)
        self.cache.set(user_id, minimal)
        if background_tasks is not None:
            background_tasks.add_task(self.refresh_profile, minimal)
        return minimal

    def refresh_profile(self, minimal: CurrentUser) -> Optional[CurrentUser]:
        """Load profile fields for a cached user. Failures are logged and leave the cache as is."""
        try:
            result = self.supabase.table(Tables.PROFILES)\
                .select("*")\
                .eq("id", minimal.id)\
                .maybe_single()\
                .execute()
            profile = result.data if result and result.data else {}
        except Exception as e:
            logger.error(f"Error fetching user profile for {minimal.id}: {e}")
            return None

        update = profile_fields(profile)
        update["pending_matches"] = self._get_pending_match_ids(minimal.id, minimal.user_type)
        update["profile_loaded"] = True
        full = minimal.model_copy(update=update)
        if not self.cache.replace(minimal.id, minimal, full):
            logger.info(f"Dropping profile refresh for {minimal.id}: cache entry changed meanwhile")
            return None
        self.events.publish(ProfileEvent(kind=PROFILE_REFRESHED, user_id=minimal.id, user=full))
        return full

    def _get_pending_match_ids(self, user_id: str, user_type: str) -> List[str]:
        field = "investor_id" if user_type == "investor" else "freelancer_id"
        try:
            result = self.supabase.table(Tables.MATCHES)\
                .select("id")\
                .eq(field, user_id)\
                .eq("status", "pending")\
                .execute()
            return [m["id"] for m in result.data or []]
        except Exception as e:
            logger.error(f"Error fetching pending matches for {user_id}: {e}")
            return []

    def logout(self, token: str, user_id: Optional[str] = None) -> bool:
        """Logout user using Supabase Auth and drop their cached profile"""
        _AUTH_USER_CACHE.pop(hashlib.sha256(token.encode()).hexdigest(), None)
        if user_id:
            self.cache.invalidate(user_id)
        try:
            # Supabase Auth tokens are stateless JWTs; they expire on their own
            self.supabase.auth.sign_out()
            return True
        except Exception as e:
            logger.warning(f"Sign out failed: {e}")
            return False

    def reset_password(self, email: str) -> None:
        """Send a password reset email that links back to the UI reset page"""
        try:
            self.supabase.auth.reset_password_for_email(
                email, {"redirect_to": settings.frontend_link("reset-password")}
            )
        except Exception as e:
            logger.error(f"Error sending password reset: {e}")
            raise HTTPException(status_code=500, detail=f"Failed to send reset instructions: {str(e)}")

    def update_password(self, access_token: str, new_password: str) -> bool:
        """Set a new password for the user owning the reset-link access token"""
        if self.admin_supabase is None:
            raise HTTPException(
                status_code=500,
                detail="Service role key not configured. Cannot update password."
            )
        try:
            user_response = self.supabase.auth.get_user(jwt=access_token)
        except Exception as e:
            logger.error(f"Error validating reset token: {e}")
            raise HTTPException(status_code=401, detail="Invalid or expired reset link")
        if not user_response or not user_response.user:
            raise HTTPException(status_code=401, detail="Invalid or expired reset link")
        try:
            response = self.admin_supabase.auth.admin.update_user_by_id(
                user_response.user.id,
                {"password": new_password}
            )
            if not response.user:
                raise HTTPException(status_code=404, detail="User not found")
            return True
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error updating password: {e}")
            raise HTTPException(status_code=500, detail=f"Failed to update password: {str(e)}")

    def check_email_exists(self, email: str) -> EmailExistsResponse:
        try:
            result = self.supabase.rpc("check_email_exists", {"email_to_check": email}).execute()
            return EmailExistsResponse(email=email, exists=bool(result.data))
        except Exception as e:
            logger.error(f"Error checking email: {e}")
            raise HTTPException(status_code=500, detail=str(e))
