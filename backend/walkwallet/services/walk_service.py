# Overview: Service-layer operations for walk sessions; encapsulates business logic and database work.

"""
Walk Session Service

WHY: A walk is the only way coins enter the system. Completing a walk
credits earnings, updates lifetime totals and the streak, and records an
`earning` Transaction, all in one DB transaction.

EARNINGS:
    earnings = steps * WALK_RATE_PER_STEP
               + (WALK_TIME_BONUS if duration >= WALK_TIME_BONUS_MINUTES else 0)
With defaults: steps * 0.01 + 5 for walks of 30 minutes or more.

KNOWN GAPS (kept on purpose):
- Several open sessions per user are allowed.
- Completing the same session twice credits it twice.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from flask import current_app

from ..config import Config
from ..extensions import db
from ..models import WalkSession
from ..models.ledger import TX_EARNING
from walkwallet.errors import NotFoundError
from walkwallet.money import quantize
from walkwallet.time_utils import utcnow
from walkwallet.validation import MAX_AMOUNT, MAX_STEPS, ValidationError, to_json_text
from .concurrency import lock_for_update, run_with_retry
from .ledger_service import get_user, lock_user, credit
from .streak_service import next_streak


DEFAULT_SESSION_LIMIT = 10


def compute_duration_minutes(start: datetime, end: datetime) -> int:
    """Whole minutes between start and end (floored, never negative)."""
    seconds = (end - start).total_seconds()
    return max(int(seconds // 60), 0)


def compute_earnings(
    steps: int,
    duration_minutes: int,
    *,
    rate_per_step: Decimal = Config.WALK_RATE_PER_STEP,
    time_bonus: Decimal = Config.WALK_TIME_BONUS,
    bonus_minutes: int = Config.WALK_TIME_BONUS_MINUTES,
) -> Decimal:
    earnings = Decimal(steps) * Decimal(rate_per_step)
    if duration_minutes >= bonus_minutes:
        earnings += Decimal(time_bonus)
    return quantize(earnings)


def start_session(*, user_id: str, start_location=None, now: datetime | None = None) -> WalkSession:
    get_user(user_id)
    at = now or utcnow()

    session = WalkSession(
        user_id=user_id,
        start_time=at,
        completed=False,
        start_location=to_json_text("startLocation", start_location),
        created_at=at,
    )
    db.session.add(session)
    db.session.commit()
    return session


def complete_session(
    *,
    session_id: str,
    user_id: str,
    steps: int,
    distance: Decimal,
    end_location=None,
    now: datetime | None = None,
) -> WalkSession:
    """
    Finalize a walk and credit its earnings.

    Raises:
        NotFoundError: session missing or owned by someone else
        ValidationError: steps over MAX_STEPS, or totals past MAX_AMOUNT
    """
    if steps < 0 or steps > MAX_STEPS:
        raise ValidationError(f"steps must be between 0 and {MAX_STEPS}")

    cfg = current_app.config
    end_location_text = to_json_text("endLocation", end_location)
    distance = quantize(distance)

    def _op():
        end_time = now or utcnow()

        # Lock order: user row first, then the session
        user = lock_user(user_id)
        session = lock_for_update(
            db.session.query(WalkSession).filter_by(id=session_id, user_id=user_id)
        ).first()
        if not session:
            raise NotFoundError("Walk session not found")

        duration = compute_duration_minutes(session.start_time, end_time)
        earnings = compute_earnings(
            steps,
            duration,
            rate_per_step=cfg["WALK_RATE_PER_STEP"],
            time_bonus=cfg["WALK_TIME_BONUS"],
            bonus_minutes=cfg["WALK_TIME_BONUS_MINUTES"],
        )
        # Balance and lifetime totals share the Numeric(10, 2) range
        if (
            quantize(user.balance) + earnings > MAX_AMOUNT
            or quantize(user.total_earnings) + earnings > MAX_AMOUNT
            or quantize(user.total_distance) + distance > MAX_AMOUNT
        ):
            raise ValidationError("Walk would exceed the maximum balance")

        session.end_time = end_time
        session.duration = duration
        session.steps = steps
        session.distance = distance
        session.earnings = earnings
        session.completed = True
        if end_location_text is not None:
            session.end_location = end_location_text

        tx = credit(
            user,
            earnings,
            tx_type=TX_EARNING,
            description=f"30-min Walk Reward - {steps} steps",
            related_walk_id=session.id,
        )
        tx.created_at = end_time

        user.total_steps = (user.total_steps or 0) + steps
        user.total_distance = quantize(user.total_distance) + distance
        user.total_earnings = quantize(user.total_earnings) + earnings
        user.daily_streak = next_streak(
            user.daily_streak,
            user.last_walk_date,
            end_time,
            reset_on_miss=cfg["STREAK_RESET_ON_MISS"],
            tz_name=cfg["APP_TIMEZONE"],
        )
        user.last_walk_date = end_time

        db.session.commit()
        return session

    return run_with_retry(_op)


def list_sessions(user_id: str, limit: int = DEFAULT_SESSION_LIMIT) -> list[WalkSession]:
    return (
        db.session.query(WalkSession)
        .filter_by(user_id=user_id)
        .order_by(WalkSession.created_at.desc(), WalkSession.id.desc())
        .limit(limit)
        .all()
    )
