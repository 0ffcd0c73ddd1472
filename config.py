import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    v = raw.strip().lower()
    if v in ("1", "true", "yes", "y", "on"):
        return True
    if v in ("0", "false", "no", "n", "off"):
        return False
    return default


def _env_optional(name: str) -> Optional[str]:
    return (os.environ.get(name) or "").strip() or None


@dataclass(frozen=True)
class Config:
    """Runtime configuration, read from the environment (or a local .env file).

    Do not rely on the default TOKEN_SECRET_KEY outside development.
    """

    # Database
    DATABASE_URL: str = os.environ.get("DATABASE_URL", "sqlite:///./blog.sqlite")
    SQL_ECHO: bool = _env_bool("SQL_ECHO", False)

    # Tokens
    TOKEN_SECRET_KEY: str = os.environ.get("TOKEN_SECRET_KEY", "dev_change_me")
    TOKEN_ALGORITHM: str = os.environ.get("TOKEN_ALGORITHM", "HS256")
    TOKEN_EXPIRE_DAYS: int = int(os.environ.get("TOKEN_EXPIRE_DAYS", "30"))

    # Posts
    POSTS_HIDDEN_BY_DEFAULT: bool = _env_bool("POSTS_HIDDEN_BY_DEFAULT", False)

    # First admin, created on startup only when the users table is empty
    ADMIN_BOOTSTRAP_NAME: Optional[str] = _env_optional("ADMIN_BOOTSTRAP_NAME")
    ADMIN_BOOTSTRAP_EMAIL: Optional[str] = _env_optional("ADMIN_BOOTSTRAP_EMAIL")
    ADMIN_BOOTSTRAP_PASSWORD: Optional[str] = _env_optional("ADMIN_BOOTSTRAP_PASSWORD")

    # HTTP
    CORS_ALLOW_ORIGINS: str = os.environ.get("CORS_ALLOW_ORIGINS", "http://localhost:3000")
    LOG_LEVEL: str = os.environ.get("LOG_LEVEL", "INFO").upper()

    @property
    def cors_origins(self):
        return [o.strip() for o in self.CORS_ALLOW_ORIGINS.split(",") if o.strip()]


def load_config() -> Config:
    return Config()
