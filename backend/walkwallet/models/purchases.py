from __future__ import annotations

from ..extensions import db
from walkwallet.identifiers import new_id
from walkwallet.money import money_str
from walkwallet.time_utils import to_utc_z, utcnow
from walkwallet.validation import from_json_text


TICKET_SINGLE = "single"
TICKET_RETURN = "return"
TICKET_DAY_PASS = "day_pass"
VALID_TICKET_TYPES = (TICKET_SINGLE, TICKET_RETURN, TICKET_DAY_PASS)

# Only ACTIVE is ever written here; used/expired transitions happen elsewhere.
TICKET_STATUS_ACTIVE = "active"
TICKET_STATUS_USED = "used"
TICKET_STATUS_EXPIRED = "expired"

REWARD_SPOTIFY = "spotify"
REWARD_MOVIE_TICKET = "movie_ticket"
REWARD_OTT_SUBSCRIPTION = "ott_subscription"
VALID_REWARD_TYPES = (REWARD_SPOTIFY, REWARD_MOVIE_TICKET, REWARD_OTT_SUBSCRIPTION)

REDEMPTION_STATUS_PENDING = "pending"
REDEMPTION_STATUS_CONFIRMED = "confirmed"
REDEMPTION_STATUS_DELIVERED = "delivered"


class MetroTicket(db.Model):
    """
    Purchased metro journey.

    total_amount = coins_used + cash_amount. The coin part is debited from
    the user's balance in the same transaction that creates the ticket.
    """
    __tablename__ = "metro_tickets"
    __table_args__ = (
        db.Index("ix_metro_tickets_user_created", "user_id", "created_at"),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    user_id = db.Column(db.String(36), db.ForeignKey("users.id"), nullable=False, index=True)

    from_station = db.Column(db.String(128), nullable=False)
    to_station = db.Column(db.String(128), nullable=False)
    ticket_type = db.Column(db.String(16), nullable=False)

    total_amount = db.Column(db.Numeric(10, 2), nullable=False)
    coins_used = db.Column(db.Numeric(10, 2), nullable=False)
    cash_amount = db.Column(db.Numeric(10, 2), nullable=False)

    status = db.Column(db.String(16), nullable=False, default=TICKET_STATUS_ACTIVE)
    qr_code = db.Column(db.String(64), nullable=True, unique=True)
    expires_at = db.Column(db.DateTime, nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    user = db.relationship("User", backref=db.backref("metro_tickets", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "userId": self.user_id,
            "fromStation": self.from_station,
            "toStation": self.to_station,
            "ticketType": self.ticket_type,
            "totalAmount": money_str(self.total_amount),
            "coinsUsed": money_str(self.coins_used),
            "cashAmount": money_str(self.cash_amount),
            "status": self.status,
            "qrCode": self.qr_code,
            "expiresAt": to_utc_z(self.expires_at),
            "createdAt": to_utc_z(self.created_at),
        }


class RewardRedemption(db.Model):
    """
    Purchased third-party reward (streaming subscription, movie ticket).

    Created PENDING; confirmation/delivery is handled by the provider side.
    """
    __tablename__ = "reward_redemptions"
    __table_args__ = (
        db.Index("ix_reward_redemptions_user_created", "user_id", "created_at"),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    user_id = db.Column(db.String(36), db.ForeignKey("users.id"), nullable=False, index=True)

    reward_type = db.Column(db.String(32), nullable=False)
    provider = db.Column(db.String(64), nullable=False)

    original_price = db.Column(db.Numeric(10, 2), nullable=False)
    discount_amount = db.Column(db.Numeric(10, 2), nullable=False)
    final_price = db.Column(db.Numeric(10, 2), nullable=False)
    coins_used = db.Column(db.Numeric(10, 2), nullable=False)

    status = db.Column(db.String(16), nullable=False, default=REDEMPTION_STATUS_PENDING)
    redemption_code = db.Column(db.String(64), nullable=True, unique=True)
    metadata_json = db.Column("metadata", db.Text, nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    user = db.relationship("User", backref=db.backref("reward_redemptions", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "userId": self.user_id,
            "rewardType": self.reward_type,
            "provider": self.provider,
            "originalPrice": money_str(self.original_price),
            "discountAmount": money_str(self.discount_amount),
            "finalPrice": money_str(self.final_price),
            "coinsUsed": money_str(self.coins_used),
            "status": self.status,
            "redemptionCode": self.redemption_code,
            "metadata": from_json_text(self.metadata_json),
            "createdAt": to_utc_z(self.created_at),
        }
