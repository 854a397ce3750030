"""
Client-side session manager over Supabase Auth.

Keeps the signed-in user in memory, forwards auth state changes to
registered listeners and moves the user between the login page and the
application page. Input is format-checked here before any backend call;
the authoritative checks stay on the server.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from supabase import Client

from app.core.validators import MIN_PASSWORD_LENGTH, is_valid_email, normalize_email
from app.core.timeutils import utcnow

logger = logging.getLogger(__name__)

LOGIN_PAGE = "login.html"
APP_PAGE = "index.html"
RESET_PASSWORD_PAGE = "reset-password.html"

SIGNED_IN = "SIGNED_IN"
SIGNED_OUT = "SIGNED_OUT"

# Known backend messages and their localized text
ERROR_MESSAGES = {
    "Invalid login credentials": "Email ou senha incorretos",
    "Email not confirmed": "Email não confirmado. Verifique sua caixa de entrada.",
    "User already registered": "Este email já está registrado",
    "Password should be at least 6 characters": "Senha deve ter pelo menos 6 caracteres",
    "Unable to validate email address: invalid format": "Formato de email inválido",
    "signup_disabled": "Registro de novos usuários está desabilitado",
}

AuthListener = Callable[[str, Any], None]


@dataclass
class AuthResult:
    success: bool
    user: Any = None
    message: Optional[str] = None
    error: Optional[str] = None


def friendly_error_message(error: Any) -> str:
    """Localized text for a known backend error, else the raw message."""
    message = getattr(error, "message", None) or str(error)
    code = getattr(error, "code", None)
    return ERROR_MESSAGES.get(message) or ERROR_MESSAGES.get(code) or message or "Erro desconhecido"


def validate_credentials(email: Optional[str], password: Optional[str]) -> Optional[str]:
    """Return the joined validation errors, or None when the input looks valid."""
    errors = []
    if not email or not email.strip():
        errors.append("Email é obrigatório")
    elif not is_valid_email(email):
        errors.append("Email inválido")

    if not password:
        errors.append("Senha é obrigatória")
    elif len(password) < MIN_PASSWORD_LENGTH:
        errors.append(f"Senha deve ter pelo menos {MIN_PASSWORD_LENGTH} caracteres")

    return ", ".join(errors) or None


class AuthManager:
    def __init__(
        self,
        supabase: Client,
        navigate: Optional[Callable[[str], None]] = None,
        current_path: Optional[Callable[[], str]] = None,
        site_url: str = "",
    ):
        self.supabase = supabase
        self.navigate = navigate
        self.current_path = current_path or (lambda: "/")
        self.site_url = site_url.rstrip("/")
        self.current_user = None
        self._listeners: List[AuthListener] = []
        self._subscription = None

    def initialize(self) -> None:
        """Load any existing session and subscribe to auth state changes"""
        try:
            response = self.supabase.auth.get_user()
            self.current_user = response.user if response else None
            self._subscription = self.supabase.auth.on_auth_state_change(self._on_backend_event)
        except Exception as e:
            logger.error(f"Error initializing authentication: {e}")

    def close(self) -> None:
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None

    def _on_backend_event(self, event: str, session: Any) -> None:
        logger.info("Auth state changed: %s", event)
        self.current_user = getattr(session, "user", None) if session else None

        for callback in list(self._listeners):
            try:
                callback(event, session)
            except Exception as e:
                logger.error(f"Error in auth listener: {e}")

        self.handle_auth_state_change(event)

    def handle_auth_state_change(self, event: str) -> None:
        """Redirect between the login page and the app on sign-in/sign-out"""
        if self.navigate is None:
            return
        path = self.current_path()
        if event == SIGNED_IN:
            if LOGIN_PAGE in path or path == "/":
                self.navigate(APP_PAGE)
        elif event == SIGNED_OUT:
            if LOGIN_PAGE not in path:
                self.navigate(LOGIN_PAGE)

    def on_auth_state_change(self, callback: AuthListener) -> Callable[[], None]:
        """Register a listener; returns a function that removes it"""
        if callable(callback):
            self._listeners.append(callback)

        def unsubscribe() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe

    def sign_up(self, email: str, password: str, user_data: Optional[Dict[str, Any]] = None) -> AuthResult:
        error = validate_credentials(email, password)
        if error:
            return AuthResult(success=False, error=error)

        user_data = user_data or {}
        try:
            response = self.supabase.auth.sign_up({
                "email": normalize_email(email),
                "password": password,
                "options": {
                    "data": {
                        "full_name": user_data.get("full_name", ""),
                        "created_at": utcnow().isoformat(),
                    },
                },
            })
        except Exception as e:
            logger.error(f"Registration error: {e}")
            return AuthResult(success=False, error=friendly_error_message(e))

        user = response.user
        self._audit("user_registered", getattr(user, "id", None), email=normalize_email(email))
        return AuthResult(
            success=True,
            user=user,
            message="Usuário registrado com sucesso! Verifique seu email para confirmar a conta.",
        )

    def sign_in(self, email: str, password: str) -> AuthResult:
        error = validate_credentials(email, password)
        if error:
            return AuthResult(success=False, error=error)

        try:
            response = self.supabase.auth.sign_in_with_password({
                "email": normalize_email(email),
                "password": password,
            })
        except Exception as e:
            logger.warning(f"Login error: {e}")
            self._audit("login_failed", None, email=normalize_email(email))
            return AuthResult(success=False, error=friendly_error_message(e))

        self.current_user = response.user
        self._audit("login_success", getattr(response.user, "id", None))
        return AuthResult(success=True, user=response.user)

    def sign_out(self) -> AuthResult:
        user_id = getattr(self.current_user, "id", None)
        try:
            self.supabase.auth.sign_out()
        except Exception as e:
            logger.error(f"Logout error: {e}")
            return AuthResult(success=False, error="Erro ao fazer logout")

        self._audit("logout", user_id)
        self.current_user = None
        return AuthResult(success=True)

    def get_current_user(self) -> Any:
        if self.current_user is not None:
            return self.current_user
        try:
            response = self.supabase.auth.get_user()
        except Exception as e:
            logger.error(f"Error fetching current user: {e}")
            return None
        self.current_user = response.user if response else None
        return self.current_user

    def is_authenticated(self) -> bool:
        return self.current_user is not None

    def reset_password(self, email: str) -> AuthResult:
        if not email or not email.strip():
            return AuthResult(success=False, error="Email é obrigatório")

        try:
            self.supabase.auth.reset_password_for_email(
                normalize_email(email),
                {"redirect_to": f"{self.site_url}/{RESET_PASSWORD_PAGE}"},
            )
        except Exception as e:
            logger.error(f"Password reset error: {e}")
            return AuthResult(success=False, error=friendly_error_message(e))

        self._audit("password_reset_requested", None, email=normalize_email(email))
        return AuthResult(
            success=True,
            message="Email de recuperação enviado. Verifique sua caixa de entrada.",
        )

    def update_profile(self, updates: Dict[str, Any]) -> AuthResult:
        if self.current_user is None:
            return AuthResult(success=False, error="Usuário não autenticado")
        if not updates:
            return AuthResult(success=False, error="Nenhum dado para atualizar")

        try:
            response = self.supabase.auth.update_user({"data": updates})
        except Exception as e:
            logger.error(f"Profile update error: {e}")
            return AuthResult(success=False, error=friendly_error_message(e))

        self.current_user = response.user
        self._audit("profile_updated", getattr(response.user, "id", None), fields=sorted(updates))
        return AuthResult(success=True, user=response.user)

    def _audit(self, action: str, user_id: Optional[str], **details: Any) -> None:
        logger.info("audit action=%s user=%s details=%s", action, user_id, details)


def require_auth(manager: Optional[AuthManager]) -> bool:
    """Guard for pages that need a signed-in user; sends everyone else to the login page"""
    if manager is None or not manager.is_authenticated():
        if manager is not None and manager.navigate is not None:
            manager.navigate(LOGIN_PAGE)
        return False
    return True


def redirect_if_authenticated(manager: Optional[AuthManager]) -> bool:
    """On the login page, send an already signed-in user to the app"""
    if manager is not None and manager.is_authenticated():
        if manager.navigate is not None:
            manager.navigate(APP_PAGE)
        return True
    return False
