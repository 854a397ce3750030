from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional, List


class Settings(BaseSettings):
    # Supabase
    supabase_url: str = ""
    supabase_key: str = ""
    supabase_service_role_key: Optional[str] = None  # Required by admin scripts (activation)

    # Tokens and sessions. No default secret: startup fails when JWT_SECRET is unset.
    jwt_secret: str = Field(min_length=32)
    jwt_algorithm: str = "HS256"
    token_ttl_hours: int = 24

    # Passwords and lockout
    bcrypt_rounds: int = 12
    max_failed_logins: int = 5
    lockout_minutes: int = 30

    # Moving-window limits for auth endpoints (requests per window)
    rate_limit_window_seconds: int = 60
    rate_limit_register: int = 5
    rate_limit_login: int = 10
    rate_limit_verify: int = 30
    rate_limit_logout: int = 20

    # Storage
    receipts_bucket: str = "comprovantes"
    max_upload_bytes: int = 10 * 1024 * 1024

    # OpenAI key is only read by the receipt-extraction proxy, reported by /status
    openai_api_key: Optional[str] = None

    # App
    app_name: str = "nd-express"
    debug: bool = False
    environment: str = "development"  # development | staging | production
    log_level: str = "INFO"
    cors_origins: str = "*"
    rate_limit: str = "100/minute"  # slowapi format, default for data routes
    rate_limit_storage_uri: str = "memory://"  # limits storage URI used by both limiters

    @property
    def token_ttl_seconds(self) -> int:
        return self.token_ttl_hours * 60 * 60

    def get_cors_origins_list(self) -> List[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    def auth_rate_limit(self, endpoint: str) -> int:
        """Max requests per window for an auth endpoint (register, login, verify, logout)."""
        return getattr(self, f"rate_limit_{endpoint}")

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        env_prefix="",  # No prefix needed
        extra="ignore"
    )


settings = Settings()
