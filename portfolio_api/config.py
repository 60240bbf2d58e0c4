import os
from dataclasses import dataclass
from typing import List, Optional

from dotenv import load_dotenv

# Load a local .env file if present (never overrides real environment variables).
load_dotenv()


class ConfigError(RuntimeError):
    """Raised when the environment cannot produce a usable configuration."""


def _env_bool(name: str, default: Optional[bool] = None) -> Optional[bool]:
    """Parse a boolean environment variable.

    Returns:
      - True/False if the env var is set to a recognizable value
      - default if unset or unrecognized

    Accepted truthy: 1, true, yes, y, on
    Accepted falsy:  0, false, no, n, off
    """

    raw = os.environ.get(name)
    if raw is None:
        return default
    v = raw.strip().lower()
    if v in ("1", "true", "yes", "y", "on"):
        return True
    if v in ("0", "false", "no", "n", "off"):
        return False
    return default


def _env_str(name: str) -> Optional[str]:
    return (os.environ.get(name) or "").strip() or None


@dataclass(frozen=True)
class Config:
    """Runtime configuration.

    IMPORTANT: Provide secrets via environment variables or a .env file.
    Do not hardcode secrets in source code.
    """

    # -----------------
    # Core
    # -----------------
    MONGODB_URI: str = "mongodb://localhost:27017/portfolio"
    API_PREFIX: str = "/api"
    API_HOST: str = "0.0.0.0"
    PORT: int = 5000

    # "production" hides internal error messages and stack traces.
    APP_ENV: str = "development"
    LOG_LEVEL: str = "INFO"

    HEALTH_DB_TIMEOUT_SECONDS: float = 1.5

    # -----------------
    # Auth (JWT)
    # -----------------
    # No default: load_config() refuses to build a Config without it.
    JWT_SECRET: str = ""
    JWT_EXPIRES_MINUTES: int = 240  # 4 hours

    # Bootstrap admin. None means "not configured"; the bootstrap falls back to
    # admin/admin123 and warns loudly.
    ADMIN_USERNAME: Optional[str] = None
    ADMIN_PASSWORD: Optional[str] = None

    # POST /auth/register is admin-only unless this is enabled.
    AUTH_PUBLIC_REGISTRATION: bool = False

    # -----------------
    # Email (contact notifications)
    # -----------------
    SMTP_HOST: Optional[str] = None
    SMTP_PORT: int = 587
    SMTP_SECURE: bool = False  # implicit TLS (port 465); otherwise STARTTLS when offered
    SMTP_USER: Optional[str] = None
    SMTP_PASS: Optional[str] = None
    SMTP_FROM: str = "noreply@example.com"
    SMTP_TIMEOUT_SECONDS: float = 15.0
    ADMIN_EMAIL: Optional[str] = None

    # -----------------
    # CORS
    # -----------------
    CORS_ALLOW_ORIGINS: str = "http://localhost:3000,http://localhost:5173"

    @property
    def is_production(self) -> bool:
        return self.APP_ENV.strip().lower() == "production"

    @property
    def cors_origins(self) -> List[str]:
        return [o.strip() for o in (self.CORS_ALLOW_ORIGINS or "").split(",") if o.strip()]


def load_config() -> Config:
    """Build a Config from the environment.

    Raises ConfigError when JWT_SECRET is missing: the API must not start with a
    missing or guessable signing secret.
    """

    secret = (os.environ.get("JWT_SECRET") or "").strip()
    if not secret:
        raise ConfigError("JWT_SECRET is not set. Configure it in the environment or in .env")

    return Config(
        MONGODB_URI=os.environ.get("MONGODB_URI", Config.MONGODB_URI),
        API_PREFIX=os.environ.get("API_PREFIX", Config.API_PREFIX),
        API_HOST=os.environ.get("API_HOST", Config.API_HOST),
        PORT=int(os.environ.get("PORT", str(Config.PORT))),
        APP_ENV=os.environ.get("APP_ENV", Config.APP_ENV),
        LOG_LEVEL=os.environ.get("LOG_LEVEL", Config.LOG_LEVEL),
        HEALTH_DB_TIMEOUT_SECONDS=float(
            os.environ.get("HEALTH_DB_TIMEOUT_SECONDS", str(Config.HEALTH_DB_TIMEOUT_SECONDS))
        ),
        JWT_SECRET=secret,
        JWT_EXPIRES_MINUTES=int(os.environ.get("JWT_EXPIRES_MINUTES", str(Config.JWT_EXPIRES_MINUTES))),
        ADMIN_USERNAME=_env_str("ADMIN_USERNAME"),
        ADMIN_PASSWORD=_env_str("ADMIN_PASSWORD"),
        AUTH_PUBLIC_REGISTRATION=_env_bool("AUTH_PUBLIC_REGISTRATION", False) is True,
        SMTP_HOST=_env_str("SMTP_HOST"),
        SMTP_PORT=int(os.environ.get("SMTP_PORT", str(Config.SMTP_PORT))),
        SMTP_SECURE=_env_bool("SMTP_SECURE", False) is True,
        SMTP_USER=_env_str("SMTP_USER"),
        SMTP_PASS=_env_str("SMTP_PASS"),
        SMTP_FROM=_env_str("SMTP_FROM") or Config.SMTP_FROM,
        SMTP_TIMEOUT_SECONDS=float(os.environ.get("SMTP_TIMEOUT_SECONDS", str(Config.SMTP_TIMEOUT_SECONDS))),
        ADMIN_EMAIL=_env_str("ADMIN_EMAIL"),
        CORS_ALLOW_ORIGINS=os.environ.get("CORS_ALLOW_ORIGINS", Config.CORS_ALLOW_ORIGINS),
    )
