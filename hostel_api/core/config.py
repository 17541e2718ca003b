import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv


class Settings:
    """Centralised application configuration sourced from environment variables."""

    def __init__(self) -> None:
        load_dotenv()
        self.app_name = os.getenv("APP_NAME", "Hostel Hub")
        self.database_path = Path(os.getenv("DATABASE_PATH", "data/hostel.db")).resolve()
        self.redis_url = os.getenv("REDIS_URL") or None
        self.allow_memory_session_cache = self._get_bool("ALLOW_MEMORY_SESSION_CACHE", default=False)
        self.session_key_prefix = os.getenv("SESSION_KEY_PREFIX", "session:")

        self.activation_secret = self._get("ACTIVATION_SECRET")
        self.access_token_secret = self._get("ACCESS_TOKEN_SECRET")
        self.refresh_token_secret = self._get("REFRESH_TOKEN_SECRET")
        token_secrets = {self.activation_secret, self.access_token_secret, self.refresh_token_secret}
        if len(token_secrets) != 3:
            raise RuntimeError(
                "ACTIVATION_SECRET, ACCESS_TOKEN_SECRET and REFRESH_TOKEN_SECRET must all differ"
            )
        self.jwt_algorithm = os.getenv("JWT_ALGORITHM", "HS256")
        self.activation_token_exp_minutes = self._get_int("ACTIVATION_TOKEN_EXP_MINUTES", default=5)
        self.access_token_exp_minutes = self._get_int("ACCESS_TOKEN_EXP_MINUTES", default=60 * 24 * 3)
        self.refresh_token_exp_minutes = self._get_int("REFRESH_TOKEN_EXP_MINUTES", default=60 * 24 * 7)
        self.session_ttl_seconds = self._get_int("SESSION_TTL_SECONDS", default=604800)
        self.bcrypt_rounds = self._get_int("BCRYPT_ROUNDS", default=12)

        self.cookie_secure = self._get_bool("COOKIE_SECURE", default=False)
        self.cookie_samesite = os.getenv("COOKIE_SAMESITE", "lax").strip().lower()
        if self.cookie_samesite not in {"lax", "strict", "none"}:
            raise RuntimeError("Environment variable COOKIE_SAMESITE must be lax, strict or none")
        origins = os.getenv("ORIGIN")
        if origins:
            self.cors_allow_origins = [item.strip() for item in origins.split(",") if item.strip()]
        else:
            self.cors_allow_origins = ["*"]

    @staticmethod
    def _get(key: str) -> str:
        value = os.getenv(key)
        if not value:
            raise RuntimeError(f"Missing required environment variable: {key}")
        return value

    @staticmethod
    def _get_int(key: str, default: Optional[int] = None) -> int:
        value = os.getenv(key)
        if value is None:
            if default is None:
                raise RuntimeError(f"Missing required environment variable: {key}")
            return default
        try:
            return int(value)
        except ValueError as exc:
            raise RuntimeError(f"Environment variable {key} must be an integer") from exc

    @staticmethod
    def _get_bool(key: str, default: bool = False) -> bool:
        value = os.getenv(key)
        if value is None:
            return default
        return value.strip().lower() in {"1", "true", "yes", "on"}
