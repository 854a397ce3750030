import logging
import math
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from supabase import Client

from app.config import settings
from app.core.exceptions import (
    AccountInactiveError, AccountLockedError, ConflictError, InternalError,
    InvalidCredentialsError, SessionExpiredError, SessionInvalidError,
    TokenExpiredError, TokenInvalidError, UserNotFoundError,
)
from app.core.security import (
    claim_time, decode_token, hash_password, issue_token, token_digest, verify_password,
)
from app.core.timeutils import parse_timestamp, utcnow
from app.core.validators import format_cpf, normalize_email
from app.database.supabase_client import first_row
from app.modules.auth.models import SESSION_COLUMNS, USER_LOGIN_COLUMNS, USER_PUBLIC_COLUMNS
from app.modules.auth.schemas import (
    AuthContext, LoginData, LoginRequest, RegisteredUser, RegisterRequest,
    SessionInfo, TokenInfo, UserPublic,
)

logger = logging.getLogger(__name__)

# Attempts at the compare-and-swap update of failed_login_count before giving up
_FAILED_LOGIN_CAS_RETRIES = 3


class AuthService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def register(self, register_data: RegisterRequest) -> RegisteredUser:
        """Create an inactive account; an administrator activates it later."""
        email = register_data.email
        cpf = format_cpf(register_data.cpf)

        existing = self.supabase.table("users").select("id").eq("email", email).limit(1).execute()
        if existing.data:
            raise ConflictError("This email is already in use", field="email")

        existing = self.supabase.table("users").select("id").eq("cpf", cpf).limit(1).execute()
        if existing.data:
            raise ConflictError("This CPF is already in use", field="cpf")

        try:
            result = self.supabase.table("users").insert({
                "name": register_data.name,
                "email": email,
                "cpf": cpf,
                "password_hash": hash_password(register_data.password),
                "active": False,
                "failed_login_count": 0,
            }).execute()
        except Exception as e:
            # Unique constraints catch registrations racing past the checks above
            if "23505" in str(e) or "duplicate" in str(e).lower():
                raise ConflictError("Email or CPF already in use")
            raise

        row = first_row(result)
        if not row:
            raise InternalError("Failed to create user")

        logger.info("User registered: %s", row["id"])
        return RegisteredUser(
            id=row["id"],
            name=row["name"],
            email=row["email"],
            cpf=row["cpf"],
            active=bool(row.get("active")),
            created_at=row.get("created_at"),
        )

    def login(self, login_data: LoginRequest, client_ip: Optional[str], user_agent: str) -> LoginData:
        """Check credentials against the lockout state machine and open a session."""
        email = normalize_email(login_data.email)
        user = first_row(
            self.supabase.table("users")
            .select(USER_LOGIN_COLUMNS)
            .eq("email", email)
            .limit(1)
            .execute()
        )
        if not user:
            logger.warning("Login failed: unknown email")
            raise InvalidCredentialsError()

        if not user.get("active"):
            raise AccountInactiveError()

        now = utcnow()
        locked_until = parse_timestamp(user.get("locked_until"))
        if locked_until and locked_until > now:
            minutes = math.ceil((locked_until - now).total_seconds() / 60)
            raise AccountLockedError(minutes)

        if not verify_password(login_data.password, user.get("password_hash")):
            attempts = self._record_failed_login(user, now)
            logger.warning("Login failed for user %s (%s attempts)", user["id"], attempts)
            raise InvalidCredentialsError(
                tentativas_restantes=max(0, settings.max_failed_logins - attempts)
            )

        self.supabase.table("users").update({
            "failed_login_count": 0,
            "locked_until": None,
            "last_login_at": now.isoformat(),
        }).eq("id", user["id"]).execute()

        issued = issue_token(user["id"], user["email"], user["name"], now=now)
        result = self.supabase.table("sessions").insert({
            "user_id": user["id"],
            "token_hash": token_digest(issued.token),
            "ip_address": client_ip,
            "user_agent": user_agent,
            "expires_at": issued.expires_at.isoformat(),
            "active": True,
        }).execute()
        if not result.data:
            raise InternalError("Failed to create session")

        self.purge_expired_sessions(user["id"])

        logger.info("Login succeeded for user %s", user["id"])
        return LoginData(
            token=issued.token,
            user=UserPublic(
                id=user["id"],
                name=user["name"],
                email=user["email"],
                cpf=user["cpf"],
                last_login_at=now,
            ),
            expires_in=issued.expires_in,
        )

    def _record_failed_login(self, user: Dict[str, Any], now: datetime) -> int:
        """Increment failed_login_count with a compare-and-swap, locking at the threshold."""
        current = user.get("failed_login_count")
        attempts = (current or 0) + 1
        for _ in range(_FAILED_LOGIN_CAS_RETRIES):
            attempts = (current or 0) + 1
            update_data = {"failed_login_count": attempts, "locked_until": None}
            if attempts >= settings.max_failed_logins:
                update_data["locked_until"] = (now + timedelta(minutes=settings.lockout_minutes)).isoformat()

            query = self.supabase.table("users").update(update_data).eq("id", user["id"])
            if current is None:
                query = query.is_("failed_login_count", "null")
            else:
                query = query.eq("failed_login_count", current)
            if query.execute().data:
                return attempts

            # Another request changed the counter first; reload and retry
            row = first_row(
                self.supabase.table("users")
                .select("failed_login_count")
                .eq("id", user["id"])
                .limit(1)
                .execute()
            )
            if row is None:
                break
            current = row.get("failed_login_count")

        logger.warning("Could not record failed login for user %s after retries", user["id"])
        return attempts

    def logout(self, token: str) -> bool:
        """Deactivate the session for token. Works for expired or tampered tokens too."""
        result = self.supabase.table("sessions")\
            .update({"active": False})\
            .eq("token_hash", token_digest(token))\
            .execute()
        invalidated = bool(result.data)
        if not invalidated:
            logger.info("Logout: session not found")

        try:
            claims = decode_token(token)
        except (TokenExpiredError, TokenInvalidError):
            claims = None

        if claims and claims.get("userId"):
            self.purge_expired_sessions(claims["userId"])
            logger.info("Logout for user %s", claims["userId"])
        return invalidated

    def authenticate(self, token: str) -> AuthContext:
        """Full token check: signature and expiry, server-side session, live account state."""
        claims = decode_token(token)
        now = utcnow()

        session = first_row(
            self.supabase.table("sessions")
            .select(SESSION_COLUMNS)
            .eq("token_hash", token_digest(token))
            .eq("active", True)
            .limit(1)
            .execute()
        )
        if not session or session.get("user_id") != claims.get("userId"):
            raise SessionInvalidError()

        session_expires_at = parse_timestamp(session["expires_at"])
        if session_expires_at <= now:
            self._deactivate_session(session["id"])
            raise SessionExpiredError()

        user = first_row(
            self.supabase.table("users")
            .select(USER_PUBLIC_COLUMNS)
            .eq("id", claims["userId"])
            .limit(1)
            .execute()
        )
        if not user:
            raise UserNotFoundError()

        if not user.get("active"):
            self._deactivate_session(session["id"])
            raise AccountInactiveError("Account was deactivated by an administrator")

        expires_at = claim_time(claims, "exp")
        return AuthContext(
            user=UserPublic(
                id=user["id"],
                name=user["name"],
                email=user["email"],
                cpf=user["cpf"],
                last_login_at=user.get("last_login_at"),
            ),
            session=SessionInfo(id=session["id"], expires_at=session_expires_at),
            token_info=TokenInfo(
                issued_at=claim_time(claims, "iat"),
                expires_at=expires_at,
                time_remaining=max(0, int((expires_at - now).total_seconds())),
            ),
        )

    def _deactivate_session(self, session_id: str) -> None:
        self.supabase.table("sessions").update({"active": False}).eq("id", session_id).execute()

    def purge_expired_sessions(self, user_id: str) -> int:
        """Delete the user's sessions past expiry. Best effort: failures are only logged."""
        try:
            result = self.supabase.table("sessions")\
                .delete()\
                .eq("user_id", user_id)\
                .lt("expires_at", utcnow().isoformat())\
                .execute()
            count = len(result.data or [])
            if count:
                logger.info(f"Purged {count} expired sessions for user {user_id}")
            return count
        except Exception as e:
            logger.error(f"Error purging expired sessions for user {user_id}: {e}")
            return 0
