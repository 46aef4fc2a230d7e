# Overview: Service-layer operations for the balance ledger; encapsulates business logic and database work.

from __future__ import annotations

from decimal import Decimal

from flask import current_app
from sqlalchemy import func

from ..extensions import db
from ..models import User, Transaction
from ..models.ledger import VALID_TRANSACTION_TYPES
from walkwallet.errors import NotFoundError, InsufficientBalanceError
from walkwallet.money import quantize, ZERO
from walkwallet.time_utils import utcnow
from walkwallet.validation import to_json_text
from .concurrency import lock_for_update

"""
Ledger Invariants (authoritative)

- Transactions are append-only: never updated, never deleted.
- Every balance mutation appends exactly one Transaction whose signed amount
  equals the balance delta.
- Writes happen inside the caller's DB transaction with the user row locked;
  this module never commits.
- A debit is refused (InsufficientBalanceError) before anything is written.
"""

DEFAULT_TRANSACTION_LIMIT = 20


def get_user(user_id: str) -> User:
    user = db.session.query(User).filter_by(id=user_id).first()
    if not user:
        raise NotFoundError("User not found")
    return user


def lock_user(user_id: str) -> User:
    """Load the user row with SELECT ... FOR UPDATE."""
    user = lock_for_update(db.session.query(User).filter_by(id=user_id)).first()
    if not user:
        raise NotFoundError("User not found")
    return user


def append_transaction(
    *,
    user_id: str,
    tx_type: str,
    amount: Decimal,
    description: str,
    related_walk_id: str | None = None,
    metadata: dict | None = None,
) -> Transaction:
    if tx_type not in VALID_TRANSACTION_TYPES:
        raise ValueError(f"Invalid transaction type: {tx_type}")

    tx = Transaction(
        user_id=user_id,
        type=tx_type,
        amount=quantize(amount),
        description=description,
        related_walk_id=related_walk_id,
        metadata_json=to_json_text("metadata", metadata),
        created_at=utcnow(),
    )
    db.session.add(tx)
    db.session.flush()
    current_app.logger.info(
        "Ledger %s for user %s: %s (%s)", tx_type, user_id, tx.amount, description
    )
    return tx


def credit(
    user: User,
    amount: Decimal,
    *,
    tx_type: str,
    description: str,
    related_walk_id: str | None = None,
    metadata: dict | None = None,
) -> Transaction:
    """Add `amount` to the (locked) user's balance and record it."""
    amount = quantize(amount)
    if amount < 0:
        raise ValueError("credit amount must be >= 0")

    user.balance = quantize(user.balance) + amount
    return append_transaction(
        user_id=user.id,
        tx_type=tx_type,
        amount=amount,
        description=description,
        related_walk_id=related_walk_id,
        metadata=metadata,
    )


def debit(
    user: User,
    amount: Decimal,
    *,
    tx_type: str,
    description: str,
    metadata: dict | None = None,
) -> Transaction:
    """
    Subtract `amount` from the (locked) user's balance and record a
    negative Transaction. Raises InsufficientBalanceError first if needed.
    """
    amount = quantize(amount)
    if amount < 0:
        raise ValueError("debit amount must be >= 0")

    balance = quantize(user.balance)
    if balance < amount:
        raise InsufficientBalanceError(balance=balance, required=amount)

    user.balance = balance - amount
    return append_transaction(
        user_id=user.id,
        tx_type=tx_type,
        amount=-amount,
        description=description,
        metadata=metadata,
    )


def list_transactions(user_id: str, limit: int = DEFAULT_TRANSACTION_LIMIT) -> list[Transaction]:
    return (
        db.session.query(Transaction)
        .filter_by(user_id=user_id)
        .order_by(Transaction.created_at.desc(), Transaction.id.desc())
        .limit(limit)
        .all()
    )


def ledger_total(user_id: str) -> Decimal:
    total = db.session.query(
        func.coalesce(func.sum(Transaction.amount), 0)
    ).filter(Transaction.user_id == user_id).scalar()
    return quantize(total or ZERO)


def verify_user_ledger(user_id: str) -> dict:
    """Compare stored balance with the ledger sum for one user."""
    user = get_user(user_id)
    balance = quantize(user.balance)
    total = ledger_total(user_id)
    return {
        "user_id": user.id,
        "email": user.email,
        "balance": balance,
        "ledger_total": total,
        "ok": balance == total,
    }


def verify_all_ledgers() -> list[dict]:
    user_ids = [row.id for row in db.session.query(User.id).order_by(User.created_at).all()]
    return [verify_user_ledger(user_id) for user_id in user_ids]
