# backend/walkwallet/config.py
from __future__ import annotations
import os
from decimal import Decimal


def _env_flag(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/walkwallet.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///walkwallet.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # Calendar used for "today" / "this month" (dashboard, streak bonus)
    APP_TIMEZONE = os.environ.get("APP_TIMEZONE", "UTC")

    CORS_ALLOWED_ORIGINS = [
        o.strip()
        for o in os.environ.get(
            "CORS_ALLOWED_ORIGINS",
            "http://localhost:5173,http://127.0.0.1:5173,http://localhost:4173,http://127.0.0.1:4173",
        ).split(",")
        if o.strip()
    ]

    # Earnings
    WALK_RATE_PER_STEP = Decimal("0.01")
    WALK_TIME_BONUS = Decimal("5")
    WALK_TIME_BONUS_MINUTES = 30

    # Sessions
    SESSION_ABSOLUTE_TIMEOUT_HOURS = int(os.environ.get("SESSION_ABSOLUTE_TIMEOUT_HOURS", "24"))
    # Must outlast a walk between start and complete
    SESSION_IDLE_TIMEOUT_MINUTES = int(os.environ.get("SESSION_IDLE_TIMEOUT_MINUTES", "480"))

    # Streak
    STREAK_BONUS_AMOUNT = Decimal("5.00")
    STREAK_BONUS_ONCE_PER_DAY = _env_flag("STREAK_BONUS_ONCE_PER_DAY", False)
    STREAK_RESET_ON_MISS = _env_flag("STREAK_RESET_ON_MISS", False)

    # Purchases
    ENFORCE_SERVER_PRICING = _env_flag("ENFORCE_SERVER_PRICING", True)
    METRO_MAX_COIN_SHARE = Decimal(os.environ.get("METRO_MAX_COIN_SHARE", "1.00"))
    TICKET_VALIDITY_HOURS = 24
