from typing import List, Literal, Optional, Union

from dotenv import load_dotenv
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()


class Settings(BaseSettings):
    # Database
    DATABASE_URL: str = "sqlite://./secops.db"
    # Security
    JWT_SECRET: str = "dev-jwt-secret-change-me-very-long-32-chars-minimum"
    ACCESS_TOKEN_EXPIRES_MIN: int = 60
    # App
    APP_ENV: str = "development"
    CORS_ORIGINS: Union[str, List[str]] = "http://localhost:3000,http://127.0.0.1:3000"

    # OTP
    OTP_TTL_MINUTES: int = 10

    # IP access policy. "allow" on a missing rule is fail-open.
    IP_DEFAULT_POLICY: Literal["allow", "deny"] = "allow"
    IP_ERROR_POLICY: Literal["error", "allow", "deny"] = "error"

    # Timeouts
    STORE_TIMEOUT_SECONDS: float = 5.0
    EMAIL_TIMEOUT_SECONDS: float = 10.0

    # Email (Resend)
    RESEND_API_KEY: Optional[str] = None
    RESEND_API_URL: str = "https://api.resend.com/emails"
    EMAIL_FROM: str = "SecOps Security <security@example.com>"

    # Rate limiting
    RATE_LIMIT_ENABLED: bool = True
    OTP_RATE_LIMIT: str = "10/minute"
    ATTACK_LOG_RATE_LIMIT: str = "60/minute"

    # Observability
    SENTRY_DSN: str = ""
    METRICS_ENABLED: bool = True

    @field_validator('CORS_ORIGINS', mode='before')
    @classmethod
    def parse_cors_origins(cls, v):
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(',') if origin.strip()]
        return v

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @property
    def is_production(self) -> bool:
        return (self.APP_ENV or "").strip().lower() == "production"


settings = Settings()

MODELS = [
    "secops.models.user",
    "secops.models.otp",
    "secops.models.ip_access",
    "secops.models.security",
    "aerich.models",
]

TORTOISE_ORM = {
    "connections": {
        "default": settings.DATABASE_URL
    },
    "apps": {
        "models": {
            "models": MODELS,
            "default_connection": "default",
        }
    },
    "use_tz": True,
    "timezone": "UTC",
}
