# Overview: Service-layer operations for daily streaks and the streak bonus.

"""
Daily Streak

WHY: A streak counts consecutive days of completed walks and unlocks a
daily bonus once the user has walked today.

RULES:
- Default: every completed walk increments the streak by one.
- STREAK_RESET_ON_MISS: the streak counts calendar days instead; a second
  walk on the same day keeps it, the next day extends it, and a gap of more
  than one day restarts it at 1.
- Bonus: awarded when last_walk_date falls on today's calendar day.
  Repeat claims re-award unless STREAK_BONUS_ONCE_PER_DAY is set.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from flask import current_app

from ..extensions import db
from ..models import Transaction
from ..models.ledger import TX_BONUS
from walkwallet.money import money_str
from walkwallet.time_utils import utcnow, local_date, day_bounds
from .concurrency import run_with_retry
from .ledger_service import lock_user, credit


BONUS_DESCRIPTION = "Daily Streak Bonus"
MESSAGE_AWARDED = "Daily streak bonus awarded"
MESSAGE_UNAVAILABLE = "No bonus available today"
MESSAGE_ALREADY_CLAIMED = "Daily streak bonus already claimed today"


def next_streak(
    current: int,
    last_walk: datetime | None,
    walk_time: datetime,
    *,
    reset_on_miss: bool,
    tz_name: str,
) -> int:
    current = current or 0
    if not reset_on_miss:
        return current + 1

    if last_walk is None:
        return 1
    gap = (local_date(walk_time, tz_name) - local_date(last_walk, tz_name)).days
    if gap <= 0:
        return max(current, 1)
    if gap == 1:
        return current + 1
    return 1


def _bonus_claimed_today(user_id: str, now: datetime, tz_name: str) -> bool:
    start, end = day_bounds(now, tz_name)
    return db.session.query(Transaction.id).filter(
        Transaction.user_id == user_id,
        Transaction.type == TX_BONUS,
        Transaction.created_at >= start,
        Transaction.created_at < end,
    ).first() is not None


def claim_streak_bonus(user_id: str, *, now: datetime | None = None) -> dict:
    """
    Award the fixed daily bonus if the user completed a walk today.

    Returns {"awarded": bool, "message": str, "amount": str | None,
    "transaction": Transaction | None}.
    """
    cfg = current_app.config
    tz_name = cfg["APP_TIMEZONE"]
    amount = Decimal(cfg["STREAK_BONUS_AMOUNT"])
    once_per_day = cfg["STREAK_BONUS_ONCE_PER_DAY"]

    def _op():
        at = now or utcnow()
        user = lock_user(user_id)

        walked_today = (
            user.last_walk_date is not None
            and local_date(user.last_walk_date, tz_name) == local_date(at, tz_name)
        )
        if not walked_today:
            db.session.rollback()
            return {"awarded": False, "message": MESSAGE_UNAVAILABLE, "amount": None, "transaction": None}

        if once_per_day and _bonus_claimed_today(user.id, at, tz_name):
            db.session.rollback()
            return {"awarded": False, "message": MESSAGE_ALREADY_CLAIMED, "amount": None, "transaction": None}

        tx = credit(user, amount, tx_type=TX_BONUS, description=BONUS_DESCRIPTION)
        tx.created_at = at
        db.session.commit()
        return {"awarded": True, "message": MESSAGE_AWARDED, "amount": money_str(amount), "transaction": tx}

    return run_with_retry(_op)
