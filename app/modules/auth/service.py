import hashlib
import time
from supabase import Client
from app.modules.auth.schemas import (
    LoginRequest, RegisterRequest, TokenResponse, RegisterResponse,
    PasswordResetRequest, OAuthUrlResponse, OAuthCallbackRequest
)
from fastapi import HTTPException
from typing import Dict, Any, Optional
import logging

logger = logging.getLogger(__name__)

# In-memory cache for get_current_user to reduce Supabase auth calls (e.g. many parallel requests with same token)
_AUTH_USER_CACHE: Dict[str, tuple] = {}
_AUTH_CACHE_TTL_SEC = 60
_AUTH_CACHE_MAX_SIZE = 500

PASSWORD_RESET_MESSAGE = "If an account exists for this email, a password reset link has been sent"


def default_display_name(email: Optional[str]) -> str:
    if not email:
        return "User"
    return email.split("@")[0] or "User"


class AuthService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def _ensure_profile(self, user_id: str, email: Optional[str], metadata: Optional[Dict[str, Any]] = None) -> None:
        """Create the user_profiles row for a new auth user if it does not exist yet"""
        metadata = metadata or {}
        existing = self.supabase.table("user_profiles")\
            .select("id")\
            .eq("id", user_id)\
            .execute()
        if existing.data:
            return
        self.supabase.table("user_profiles").insert({
            "id": user_id,
            "email": email,
            "display_name": metadata.get("display_name") or metadata.get("full_name") or default_display_name(email),
            "photo_url": metadata.get("avatar_url") or metadata.get("picture"),
            "followers": [],
            "following": [],
        }).execute()
        logger.info(f"Created profile for user {user_id}")

    def register(self, register_data: RegisterRequest) -> RegisterResponse:
        """Register a new user using Supabase Auth"""
        try:
            display_name = register_data.display_name or default_display_name(register_data.email)
            auth_response = self.supabase.auth.sign_up({
                "email": register_data.email,
                "password": register_data.password,
                "options": {
                    "data": {"display_name": display_name}
                }
            })

            if not auth_response.user:
                raise HTTPException(status_code=400, detail="Failed to register user")

            email = auth_response.user.email or register_data.email
            self._ensure_profile(auth_response.user.id, email, {"display_name": display_name})

            return RegisterResponse(
                user_id=auth_response.user.id,
                email=email,
                message="User registered successfully"
            )
        except HTTPException:
            raise
        except Exception as e:
            error_message = str(e)
            if "already registered" in error_message.lower() or "already exists" in error_message.lower():
                raise HTTPException(status_code=400, detail="User already exists")
            if "password" in error_message.lower() and "weak" in error_message.lower():
                raise HTTPException(status_code=400, detail="Password is too weak")
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

            return TokenResponse(
                access_token=auth_response.session.access_token,
                token_type="bearer",
                user_id=auth_response.user.id,
                email=auth_response.user.email or login_data.email
            )
        except HTTPException:
            raise
        except Exception as e:
            error_message = str(e)
            if "invalid" in error_message.lower() or "credentials" in error_message.lower():
                raise HTTPException(status_code=401, detail="Invalid email or password")
            if "rate limit" in error_message.lower() or "too many" in error_message.lower():
                raise HTTPException(status_code=429, detail="Too many attempts. Please try again later.")
            raise HTTPException(status_code=500, detail=f"Login failed: {error_message}")

    def request_password_reset(self, reset_data: PasswordResetRequest) -> Dict[str, str]:
        """Send a password reset email. The answer is the same whether or not the account exists."""
        try:
            options = {"redirect_to": reset_data.redirect_to} if reset_data.redirect_to else {}
            self.supabase.auth.reset_password_for_email(reset_data.email, options)
        except Exception as e:
            logger.warning(f"Password reset request failed: {e}")
        return {"message": PASSWORD_RESET_MESSAGE}

    def oauth_url(self, provider: str, redirect_to: Optional[str] = None) -> OAuthUrlResponse:
        """Return the provider sign-in URL the client should open"""
        try:
            params: Dict[str, Any] = {"provider": provider}
            if redirect_to:
                params["options"] = {"redirect_to": redirect_to}
            response = self.supabase.auth.sign_in_with_oauth(params)
            return OAuthUrlResponse(provider=provider, url=response.url)
        except Exception as e:
            raise HTTPException(status_code=500, detail=f"{provider} sign-in failed: {str(e)}")

    def oauth_callback(self, callback: OAuthCallbackRequest) -> TokenResponse:
        """Exchange the OAuth code for a session and make sure the user has a profile"""
        try:
            params: Dict[str, Any] = {"auth_code": callback.code}
            if callback.code_verifier:
                params["code_verifier"] = callback.code_verifier
            if callback.redirect_to:
                params["redirect_to"] = callback.redirect_to
            auth_response = self.supabase.auth.exchange_code_for_session(params)
            if not auth_response.user or not auth_response.session:
                raise HTTPException(status_code=401, detail="Authentication popup was closed or expired. Please try again.")
            user = auth_response.user
            self._ensure_profile(user.id, user.email, user.user_metadata or {})
            return TokenResponse(
                access_token=auth_response.session.access_token,
                token_type="bearer",
                user_id=user.id,
                email=user.email or ""
            )
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=401, detail=f"OAuth sign-in failed: {str(e)}")

    def get_current_user(self, token: str) -> Dict[str, Any]:
        """Get current user details from Supabase Auth token. Uses short TTL cache to reduce auth API calls."""
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

    def logout(self, token: str) -> bool:
        """Logout user using Supabase Auth"""
        _AUTH_USER_CACHE.pop(hashlib.sha256(token.encode()).hexdigest(), None)
        try:
            # Supabase Auth tokens are stateless JWTs, they expire on their own
            self.supabase.auth.sign_out()
            return True
        except Exception as e:
            logger.warning(f"Sign out failed: {e}")
            return False
