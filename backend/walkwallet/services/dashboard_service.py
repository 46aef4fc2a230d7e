# Overview: Read-only dashboard rollups over walk sessions and the ledger.

from __future__ import annotations

from datetime import datetime

from flask import current_app
from sqlalchemy import func

from walkwallet.extensions import db
from walkwallet.models import WalkSession, Transaction
from walkwallet.models.ledger import TX_EARNING
from walkwallet.money import money_str, quantize
from walkwallet.time_utils import utcnow, day_bounds, month_bounds
from .ledger_service import get_user


def today_totals(user_id: str, *, now: datetime, tz_name: str) -> dict:
    """Completed walks created in [start_of_today, start_of_tomorrow)."""
    start, end = day_bounds(now, tz_name)
    row = db.session.query(
        func.coalesce(func.sum(WalkSession.steps), 0).label("steps"),
        func.coalesce(func.sum(WalkSession.distance), 0).label("distance"),
        func.coalesce(func.sum(WalkSession.earnings), 0).label("earnings"),
    ).filter(
        WalkSession.user_id == user_id,
        WalkSession.completed.is_(True),
        WalkSession.created_at >= start,
        WalkSession.created_at < end,
    ).one()
    return {
        "steps": int(row.steps or 0),
        "distance": quantize(row.distance),
        "earnings": quantize(row.earnings),
    }


def monthly_earnings(user_id: str, *, now: datetime, tz_name: str):
    """Sum of `earning` transactions in the current calendar month."""
    start, end = month_bounds(now, tz_name)
    total = db.session.query(
        func.coalesce(func.sum(Transaction.amount), 0)
    ).filter(
        Transaction.user_id == user_id,
        Transaction.type == TX_EARNING,
        Transaction.created_at >= start,
        Transaction.created_at < end,
    ).scalar()
    return quantize(total)


def get_dashboard(user_id: str, *, now: datetime | None = None) -> dict:
    tz_name = current_app.config["APP_TIMEZONE"]
    at = now or utcnow()

    user = get_user(user_id)
    today = today_totals(user_id, now=at, tz_name=tz_name)
    month = monthly_earnings(user_id, now=at, tz_name=tz_name)

    return {
        "user": user.to_dict(),
        "todaySteps": today["steps"],
        "todayDistance": money_str(today["distance"]),
        "todayEarnings": money_str(today["earnings"]),
        "monthlyEarnings": money_str(month),
    }
