from fastapi import APIRouter, Depends, Request
from slowapi.util import get_remote_address
from app.core.dependencies import get_auth_service, get_bearer_token, get_current_session, require_bearer_token
from app.core.exceptions import ValidationError
from app.core.rate_limit import default_limiter, rate_limit
from app.core.timeutils import utcnow
from app.modules.auth.schemas import (
    AuthContext, LoginRequest, LoginResponse, LogoutData, LogoutResponse,
    RegisterRequest, RegisterResponse, UserPublic, VerifyResponse,
)
from app.modules.auth.service import AuthService
from typing import Optional

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=RegisterResponse, status_code=201)
@default_limiter.exempt
def register(
    register_data: RegisterRequest,
    _limit=Depends(rate_limit("register")),
    service: AuthService = Depends(get_auth_service)
):
    """Register a new user. The account stays inactive until an administrator activates it."""
    user = service.register(register_data)
    return RegisterResponse(
        message="User created. Wait for activation by an administrator.",
        data=user,
    )


@router.post("/login", response_model=LoginResponse)
@default_limiter.exempt
def login(
    login_data: LoginRequest,
    request: Request,
    _limit=Depends(rate_limit("login")),
    service: AuthService = Depends(get_auth_service)
):
    """Login and get a session token"""
    data = service.login(
        login_data,
        client_ip=get_remote_address(request),
        user_agent=request.headers.get("user-agent", ""),
    )
    return LoginResponse(message="Login successful", data=data)


@router.post("/logout", response_model=LogoutResponse)
@default_limiter.exempt
async def logout(
    _limit=Depends(rate_limit("logout")),
    token: Optional[str] = Depends(get_bearer_token),
    service: AuthService = Depends(get_auth_service)
):
    """Logout and invalidate the server-side session"""
    if token is None:
        raise ValidationError("Authentication token is required for logout")
    invalidated = service.logout(token)
    return LogoutResponse(
        message="Logout successful",
        data=LogoutData(session_invalidated=invalidated, timestamp=utcnow()),
    )


@router.api_route("/verify", methods=["GET", "POST"], response_model=VerifyResponse)
@default_limiter.exempt
async def verify(
    _limit=Depends(rate_limit("verify")),
    token: str = Depends(require_bearer_token),
    service: AuthService = Depends(get_auth_service)
):
    """Verify a token against its session and the live account"""
    return VerifyResponse(message="Token valid", data=service.authenticate(token))


@router.get("/me", response_model=UserPublic)
async def get_current_user(
    context: AuthContext = Depends(get_current_session),
):
    """Get the currently authenticated user"""
    return context.user
