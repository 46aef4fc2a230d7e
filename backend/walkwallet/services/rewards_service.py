# Overview: Service-layer operations for reward redemptions; encapsulates business logic and database work.

"""
Reward Redemption Service

WHY: Walkers trade coins for discounted third-party rewards (music and OTT
subscriptions, movie tickets). Same accounting shape as metro tickets:
check balance, create the redemption, debit, append ledger row, one unit.

PRICING: with ENFORCE_SERVER_PRICING the offer is resolved from the catalog
and its prices/coin cost are authoritative; submitted values must agree.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from flask import current_app

from ..extensions import db
from ..models import RewardRedemption
from ..models.ledger import TX_REWARD_REDEMPTION
from ..models.purchases import REDEMPTION_STATUS_PENDING, VALID_REWARD_TYPES
from walkwallet.identifiers import new_id, generate_code, CODE_PREFIX_REWARD
from walkwallet.money import quantize
from walkwallet.time_utils import utcnow
from walkwallet.validation import ValidationError, to_json_text
from . import catalog
from .concurrency import run_with_retry
from .ledger_service import lock_user, debit


@dataclass(frozen=True)
class RedemptionTerms:
    reward_type: str
    provider: str
    original_price: Decimal
    discount_amount: Decimal
    final_price: Decimal
    coins: Decimal
    metadata: dict | str | None


def _check_matches(field: str, submitted: Decimal | None, expected: Decimal) -> None:
    if submitted is not None and quantize(submitted) != quantize(expected):
        raise ValidationError(f"{field} does not match the current offer ({quantize(expected):.2f})")


def resolve_terms(
    *,
    reward_id: str | None,
    reward_type: str | None,
    provider: str | None,
    original_price: Decimal | None,
    discount_amount: Decimal | None,
    final_price: Decimal | None,
    coins: Decimal | None,
    metadata,
    enforce_pricing: bool,
) -> RedemptionTerms:
    if not enforce_pricing:
        missing = [
            name for name, value in (
                ("rewardType", reward_type), ("provider", provider), ("originalPrice", original_price),
                ("discountAmount", discount_amount), ("finalPrice", final_price), ("coinsUsed", coins),
            ) if value is None
        ]
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")
        if reward_type not in VALID_REWARD_TYPES:
            raise ValidationError(f"Invalid reward type: {reward_type}. Must be one of {list(VALID_REWARD_TYPES)}")
        return RedemptionTerms(
            reward_type=reward_type,
            provider=provider,
            original_price=quantize(original_price),
            discount_amount=quantize(discount_amount),
            final_price=quantize(final_price),
            coins=quantize(coins),
            metadata=metadata,
        )

    if reward_id:
        offer = catalog.get_offer(reward_id)
    else:
        offer = catalog.find_offer(provider=provider, reward_type=reward_type, original_price=original_price)
    if offer is None:
        raise ValidationError("Unknown reward offer")

    if reward_type is not None and reward_type != offer.reward_type:
        raise ValidationError("rewardType does not match the current offer")
    if provider is not None and provider != offer.provider:
        raise ValidationError("provider does not match the current offer")
    _check_matches("originalPrice", original_price, offer.original_price)
    _check_matches("discountAmount", discount_amount, offer.discount_amount)
    _check_matches("finalPrice", final_price, offer.final_price)
    _check_matches("coinsUsed", coins, offer.coins_required)

    return RedemptionTerms(
        reward_type=offer.reward_type,
        provider=offer.provider,
        original_price=quantize(offer.original_price),
        discount_amount=offer.discount_amount,
        final_price=offer.final_price,
        coins=quantize(offer.coins_required),
        metadata=metadata if metadata is not None else offer.default_metadata(),
    )


def redeem_reward(
    *,
    user_id: str,
    reward_id: str | None = None,
    reward_type: str | None = None,
    provider: str | None = None,
    original_price: Decimal | None = None,
    discount_amount: Decimal | None = None,
    final_price: Decimal | None = None,
    coins: Decimal | None = None,
    metadata=None,
    now: datetime | None = None,
) -> RewardRedemption:
    """
    Redeem a reward offer for coins.

    Raises:
        ValidationError: unknown offer or mismatching prices
        InsufficientBalanceError: balance < coins required
        NotFoundError: user missing
    """
    terms = resolve_terms(
        reward_id=reward_id,
        reward_type=reward_type,
        provider=provider,
        original_price=original_price,
        discount_amount=discount_amount,
        final_price=final_price,
        coins=coins,
        metadata=metadata,
        enforce_pricing=current_app.config["ENFORCE_SERVER_PRICING"],
    )
    metadata_text = to_json_text("metadata", terms.metadata)

    def _op():
        at = now or utcnow()
        user = lock_user(user_id)

        redemption = RewardRedemption(
            id=new_id(),
            user_id=user.id,
            reward_type=terms.reward_type,
            provider=terms.provider,
            original_price=terms.original_price,
            discount_amount=terms.discount_amount,
            final_price=terms.final_price,
            coins_used=terms.coins,
            status=REDEMPTION_STATUS_PENDING,
            redemption_code=generate_code(CODE_PREFIX_REWARD),
            metadata_json=metadata_text,
            created_at=at,
        )

        tx = debit(
            user,
            terms.coins,
            tx_type=TX_REWARD_REDEMPTION,
            description=f"Reward: {terms.provider} {terms.reward_type.replace('_', ' ')}",
            metadata={
                "redemptionId": redemption.id,
                "provider": terms.provider,
                "rewardType": terms.reward_type,
            },
        )
        tx.created_at = at

        db.session.add(redemption)
        db.session.commit()
        return redemption

    return run_with_retry(_op)


def list_redemptions(user_id: str) -> list[RewardRedemption]:
    return (
        db.session.query(RewardRedemption)
        .filter_by(user_id=user_id)
        .order_by(RewardRedemption.created_at.desc(), RewardRedemption.id.desc())
        .all()
    )
