# staffpunch/core/config.py
import os
from typing import ClassVar
from pydantic import BaseModel, Field


def _default_database_url() -> str:
    data_dir = os.path.abspath(os.getenv("DATA_DIR", "./data"))
    os.makedirs(data_dir, exist_ok=True)
    return os.getenv("DATABASE_URL", f"sqlite:///{os.path.join(data_dir, 'attendance.db')}")


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


class Settings(BaseModel):
    # Constant (not a pydantic field)
    DATA_DIR: ClassVar[str] = os.path.abspath(os.getenv("DATA_DIR", "./data"))

    DATABASE_URL: str = Field(default_factory=_default_database_url)
    DB_TIMEOUT_SECONDS: float = Field(default_factory=lambda: float(os.getenv("DB_TIMEOUT_SECONDS", "5")))

    # shared with the external auth collaborator that issues access tokens
    SECRET_KEY: str = Field(default_factory=lambda: os.getenv("SECRET_KEY", "CHANGE_ME_SUPER_SECRET"))
    ALGORITHM: str = Field(default_factory=lambda: os.getenv("JWT_ALGORITHM", "HS256"))
    ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(default_factory=lambda: int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "30")))

    # punch policy
    GEOFENCE_RADIUS_METERS: float = Field(default_factory=lambda: float(os.getenv("GEOFENCE_RADIUS_METERS", "300")))
    CHECKIN_EARLY_MINUTES: int = Field(default_factory=lambda: int(os.getenv("CHECKIN_EARLY_MINUTES", "0")))
    CHECKOUT_GRACE_MINUTES: int = Field(default_factory=lambda: int(os.getenv("CHECKOUT_GRACE_MINUTES", "0")))
    PUNCH_MAX_ATTEMPTS: int = Field(default_factory=lambda: int(os.getenv("PUNCH_MAX_ATTEMPTS", "3")))
    TIMEZONE: str = Field(default_factory=lambda: os.getenv("TIMEZONE", "Asia/Tokyo"))

    RUN_MIGRATIONS_ON_STARTUP: bool = Field(default_factory=lambda: _env_bool("RUN_MIGRATIONS_ON_STARTUP", "true"))
    SEED_DEMO_DATA: bool = Field(default_factory=lambda: _env_bool("SEED_DEMO_DATA", "false"))
    LOG_LEVEL: str = Field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))


settings = Settings()
