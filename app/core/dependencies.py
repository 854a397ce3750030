"""
Core dependencies for route protection
"""

from fastapi import Depends, Security
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from app.core.exceptions import TokenInvalidError
from app.database.supabase_client import get_supabase
from app.modules.auth.schemas import AuthContext
from app.modules.auth.service import AuthService
from supabase import Client
from typing import Optional
import logging

logger = logging.getLogger(__name__)

# auto_error=False: each endpoint decides how a missing token is reported
security = HTTPBearer(auto_error=False)


def get_auth_service(supabase: Client = Depends(get_supabase)) -> AuthService:
    return AuthService(supabase)


def get_bearer_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security),
) -> Optional[str]:
    """Extract the token from an 'Authorization: Bearer <token>' header, if present"""
    if credentials is None or not credentials.credentials:
        return None
    return credentials.credentials


def require_bearer_token(token: Optional[str] = Depends(get_bearer_token)) -> str:
    if token is None:
        raise TokenInvalidError("Authentication token is required")
    return token


def get_current_session(
    token: str = Depends(require_bearer_token),
    auth_service: AuthService = Depends(get_auth_service),
) -> AuthContext:
    """Resolve the live session for the request; raises the matching auth error otherwise"""
    return auth_service.authenticate(token)


def get_current_user_id(context: AuthContext = Depends(get_current_session)) -> str:
    return context.user.id
