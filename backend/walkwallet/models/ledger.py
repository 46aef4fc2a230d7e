from __future__ import annotations

from ..extensions import db
from walkwallet.identifiers import new_id
from walkwallet.money import money_str
from walkwallet.time_utils import to_utc_z, utcnow
from walkwallet.validation import from_json_text


TX_EARNING = "earning"
TX_BONUS = "bonus"
TX_REDEMPTION = "redemption"
TX_METRO_PAYMENT = "metro_payment"
TX_REWARD_REDEMPTION = "reward_redemption"

VALID_TRANSACTION_TYPES = (
    TX_EARNING,
    TX_BONUS,
    TX_REDEMPTION,
    TX_METRO_PAYMENT,
    TX_REWARD_REDEMPTION,
)


class Transaction(db.Model):
    """
    Append-only ledger of balance changes.

    Amount sign follows the type: earnings/bonuses are positive, spends
    (metro_payment, reward_redemption, redemption) are negative.

    IMMUTABLE: Records are never updated or deleted. The sum of a user's
    amounts equals their balance.
    """
    __tablename__ = "transactions"
    __table_args__ = (
        db.Index("ix_transactions_user_created", "user_id", "created_at"),
        db.Index("ix_transactions_user_type_created", "user_id", "type", "created_at"),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    user_id = db.Column(db.String(36), db.ForeignKey("users.id"), nullable=False, index=True)

    type = db.Column(db.String(32), nullable=False)
    amount = db.Column(db.Numeric(10, 2), nullable=False)
    description = db.Column(db.Text, nullable=False)

    related_walk_id = db.Column(db.String(36), db.ForeignKey("walk_sessions.id"), nullable=True, index=True)
    # "metadata" is reserved on declarative classes
    metadata_json = db.Column("metadata", db.Text, nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    user = db.relationship("User", backref=db.backref("transactions", lazy=True))
    related_walk = db.relationship("WalkSession")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "userId": self.user_id,
            "type": self.type,
            "amount": money_str(self.amount),
            "description": self.description,
            "relatedWalkId": self.related_walk_id,
            "metadata": from_json_text(self.metadata_json),
            "createdAt": to_utc_z(self.created_at),
        }
