import os
from functools import lru_cache

from dotenv import load_dotenv

load_dotenv()


class Settings:
    APP_VERSION: str = "0.4.0-autosave"
    SCHEMA_VERSION: str = "v2-sectioned-flat"

    # --- CONFIG ---
    ENV = os.getenv("ELDERCARE_ENV", "production")
    DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./eldercare.db")

    # --- AUTO-SAVE ---
    AUTOSAVE_ENABLED = os.getenv("AUTOSAVE_ENABLED", "1") not in ("0", "false", "False")
    AUTOSAVE_QUIET_SECONDS = float(os.getenv("AUTOSAVE_QUIET_SECONDS", "30"))

    # --- SAFETY LIMITS ---
    SESSION_LIMIT = int(os.getenv("SESSION_LIMIT", "500"))
    SESSION_IDLE_SECONDS = float(os.getenv("SESSION_IDLE_SECONDS", "3600"))


@lru_cache
def get_settings():
    return Settings()
