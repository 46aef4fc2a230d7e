from __future__ import annotations

from ..extensions import db
from walkwallet.identifiers import new_id
from walkwallet.money import money_str
from walkwallet.time_utils import to_utc_z, utcnow
from walkwallet.validation import from_json_text


class WalkSession(db.Model):
    """
    One timed walk.

    LIFECYCLE: created on start (completed=False), finalized on complete.
    Re-completion is not blocked at the store level; each completion
    credits earnings again.
    """
    __tablename__ = "walk_sessions"
    __table_args__ = (
        db.Index("ix_walk_sessions_user_created", "user_id", "created_at"),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    user_id = db.Column(db.String(36), db.ForeignKey("users.id"), nullable=False, index=True)

    start_time = db.Column(db.DateTime, nullable=False)
    end_time = db.Column(db.DateTime, nullable=True)
    duration = db.Column(db.Integer, nullable=True)  # whole minutes

    steps = db.Column(db.Integer, nullable=False, default=0)
    distance = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    earnings = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    completed = db.Column(db.Boolean, nullable=False, default=False)

    # JSON snapshots ({"lat": .., "lng": ..})
    start_location = db.Column(db.Text, nullable=True)
    end_location = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow, index=True)

    user = db.relationship("User", backref=db.backref("walk_sessions", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "userId": self.user_id,
            "startTime": to_utc_z(self.start_time),
            "endTime": to_utc_z(self.end_time),
            "duration": self.duration,
            "steps": self.steps,
            "distance": money_str(self.distance),
            "earnings": money_str(self.earnings),
            "completed": self.completed,
            "startLocation": from_json_text(self.start_location),
            "endLocation": from_json_text(self.end_location),
            "createdAt": to_utc_z(self.created_at),
        }
