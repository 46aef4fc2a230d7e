# Overview: Service-layer operations for metro tickets; encapsulates business logic and database work.

"""
Metro Ticketing Service

WHY: Walkers spend coins on metro journeys. The coin share is debited from
the balance; the remainder (cash_amount) is paid outside the app.

DESIGN PRINCIPLES:
- Fare computed server-side from the catalog (ENFORCE_SERVER_PRICING).
  A submitted totalAmount must match it.
- Balance check, ticket creation, debit and ledger row are one DB
  transaction with the user row locked.
- Tickets are created ACTIVE and expire TICKET_VALIDITY_HOURS later.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from decimal import Decimal

from flask import current_app

from ..extensions import db
from ..models import MetroTicket
from ..models.ledger import TX_METRO_PAYMENT
from ..models.purchases import TICKET_STATUS_ACTIVE, VALID_TICKET_TYPES
from walkwallet.identifiers import new_id, generate_code, CODE_PREFIX_METRO
from walkwallet.money import quantize
from walkwallet.time_utils import utcnow
from walkwallet.validation import ValidationError
from . import catalog
from .concurrency import run_with_retry
from .ledger_service import lock_user, debit


def quote_ticket(from_station: str, to_station: str, ticket_type: str) -> dict:
    total = catalog.ticket_price(from_station, to_station, ticket_type)
    max_share = Decimal(current_app.config["METRO_MAX_COIN_SHARE"])
    return {
        "fromStation": from_station,
        "toStation": to_station,
        "ticketType": ticket_type,
        "totalAmount": f"{total:.2f}",
        "maxCoinsUsable": f"{quantize(total * max_share):.2f}",
    }


def _resolve_total(
    from_station: str,
    to_station: str,
    ticket_type: str,
    submitted_total: Decimal | None,
    enforce_pricing: bool,
) -> Decimal:
    if not enforce_pricing:
        if submitted_total is None:
            raise ValidationError("totalAmount is required")
        if ticket_type not in VALID_TICKET_TYPES:
            raise ValidationError(f"Invalid ticket type: {ticket_type}. Must be one of {list(VALID_TICKET_TYPES)}")
        return quantize(submitted_total)

    fare = catalog.ticket_price(from_station, to_station, ticket_type)
    if submitted_total is not None and quantize(submitted_total) != fare:
        raise ValidationError(f"totalAmount does not match current fare ({fare:.2f})")
    return fare


def purchase_ticket(
    *,
    user_id: str,
    from_station: str,
    to_station: str,
    ticket_type: str,
    coins_used: Decimal,
    total_amount: Decimal | None = None,
    now: datetime | None = None,
) -> MetroTicket:
    """
    Buy a metro ticket, paying `coins_used` from the balance.

    Raises:
        ValidationError: unknown station/type, fare mismatch, coin share too large
        InsufficientBalanceError: balance < coins_used
        NotFoundError: user missing
    """
    cfg = current_app.config
    coins_used = quantize(coins_used)
    total = _resolve_total(from_station, to_station, ticket_type, total_amount, cfg["ENFORCE_SERVER_PRICING"])

    if coins_used > total:
        raise ValidationError("coinsUsed cannot exceed totalAmount")
    if cfg["ENFORCE_SERVER_PRICING"]:
        max_coins = quantize(total * Decimal(cfg["METRO_MAX_COIN_SHARE"]))
        if coins_used > max_coins:
            raise ValidationError(f"coinsUsed cannot exceed {max_coins:.2f} for this ticket")

    def _op():
        at = now or utcnow()
        user = lock_user(user_id)

        ticket = MetroTicket(
            id=new_id(),
            user_id=user.id,
            from_station=from_station,
            to_station=to_station,
            ticket_type=ticket_type,
            total_amount=total,
            coins_used=coins_used,
            cash_amount=total - coins_used,
            status=TICKET_STATUS_ACTIVE,
            qr_code=generate_code(CODE_PREFIX_METRO),
            expires_at=at + timedelta(hours=cfg["TICKET_VALIDITY_HOURS"]),
            created_at=at,
        )

        # debit() checks the balance before writing anything
        tx = debit(
            user,
            coins_used,
            tx_type=TX_METRO_PAYMENT,
            description=f"Metro ticket: {from_station} → {to_station}",
            metadata={"ticketId": ticket.id, "ticketType": ticket_type},
        )
        tx.created_at = at

        db.session.add(ticket)
        db.session.commit()
        return ticket

    return run_with_retry(_op)


def list_tickets(user_id: str) -> list[MetroTicket]:
    return (
        db.session.query(MetroTicket)
        .filter_by(user_id=user_id)
        .order_by(MetroTicket.created_at.desc(), MetroTicket.id.desc())
        .all()
    )
