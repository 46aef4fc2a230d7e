"""
Walk session tests.

Verifies:
- Earnings formula (per-step rate plus the 30-minute bonus)
- Completion credits the balance and appends one earning transaction
- Lifetime totals and streak updates
- Ownership: another user's session is not found
"""

from datetime import datetime, timedelta
from decimal import Decimal

import pytest

from walkwallet.config import Config
from walkwallet.errors import NotFoundError
from walkwallet.models import Transaction, WalkSession
from walkwallet.money import quantize
from walkwallet.services import walk_service
from walkwallet.services.walk_service import compute_duration_minutes, compute_earnings
from walkwallet.validation import MAX_STEPS, ValidationError


T0 = datetime(2026, 3, 10, 8, 0, 0)


class TestEarningsFormula:

    def test_thirty_minute_walk_gets_bonus(self):
        assert compute_earnings(1000, 30) == Decimal("15.00")

    def test_short_walk_has_no_bonus(self):
        assert compute_earnings(1000, 29) == Decimal("10.00")

    def test_zero_steps_long_walk(self):
        assert compute_earnings(0, 45) == Decimal("5.00")

    def test_custom_rates(self):
        assert compute_earnings(
            200, 10, rate_per_step=Decimal("0.05"), time_bonus=Decimal("2"), bonus_minutes=10
        ) == Decimal("12.00")

    def test_defaults_come_from_config(self):
        assert compute_earnings(100, Config.WALK_TIME_BONUS_MINUTES) == quantize(
            100 * Config.WALK_RATE_PER_STEP + Config.WALK_TIME_BONUS
        )

    def test_duration_floors_to_minutes(self):
        assert compute_duration_minutes(T0, T0 + timedelta(minutes=29, seconds=59)) == 29
        assert compute_duration_minutes(T0, T0 + timedelta(minutes=30)) == 30

    def test_duration_never_negative(self):
        assert compute_duration_minutes(T0, T0 - timedelta(minutes=5)) == 0


class TestCompleteSession:

    def test_thirty_minute_walk_credits_fifteen(self, user, reload_user, db_session):
        session = walk_service.start_session(user_id=user.id, now=T0)
        walk_service.complete_session(
            session_id=session.id,
            user_id=user.id,
            steps=1000,
            distance=Decimal("0.8"),
            now=T0 + timedelta(minutes=30),
        )

        fresh = reload_user(user.id)
        assert fresh.balance == Decimal("15.00")
        assert fresh.total_steps == 1000
        assert fresh.total_distance == Decimal("0.80")
        assert fresh.total_earnings == Decimal("15.00")
        assert fresh.daily_streak == 1
        assert fresh.last_walk_date == T0 + timedelta(minutes=30)

        walk = db_session.get(WalkSession, session.id)
        assert walk.completed is True
        assert walk.duration == 30
        assert walk.earnings == Decimal("15.00")

        txs = db_session.query(Transaction).filter_by(user_id=user.id).all()
        assert len(txs) == 1
        assert txs[0].type == "earning"
        assert txs[0].amount == Decimal("15.00")
        assert txs[0].related_walk_id == session.id
        assert txs[0].description == "30-min Walk Reward - 1000 steps"

    def test_other_users_session_not_found(self, user, other_user, reload_user):
        session = walk_service.start_session(user_id=user.id, now=T0)

        with pytest.raises(NotFoundError):
            walk_service.complete_session(
                session_id=session.id,
                user_id=other_user.id,
                steps=500,
                distance=Decimal("0.4"),
                now=T0 + timedelta(minutes=30),
            )

        assert reload_user(other_user.id).balance == Decimal("0.00")

    def test_two_walks_accumulate(self, user, reload_user):
        for offset in (0, 60):
            start = T0 + timedelta(minutes=offset)
            session = walk_service.start_session(user_id=user.id, now=start)
            walk_service.complete_session(
                session_id=session.id,
                user_id=user.id,
                steps=500,
                distance=Decimal("0.5"),
                now=start + timedelta(minutes=10),
            )

        fresh = reload_user(user.id)
        assert fresh.balance == Decimal("10.00")
        assert fresh.total_steps == 1000
        assert fresh.daily_streak == 2


    def test_configured_rates_apply(self, user, reload_user, set_config):
        set_config(WALK_RATE_PER_STEP=Decimal("0.02"), WALK_TIME_BONUS=Decimal("10"), WALK_TIME_BONUS_MINUTES=20)
        session = walk_service.start_session(user_id=user.id, now=T0)
        walk_service.complete_session(
            session_id=session.id,
            user_id=user.id,
            steps=1000,
            distance=Decimal("0.8"),
            now=T0 + timedelta(minutes=20),
        )
        assert reload_user(user.id).balance == Decimal("30.00")


class TestWalkRoutes:

    def test_start_and_complete(self, client, headers):
        resp = client.post("/api/walks/start", json={"startLocation": {"lat": 12.97, "lng": 77.59}}, headers=headers)
        assert resp.status_code == 201
        assert resp.json["completed"] is False
        assert resp.json["startLocation"] == {"lat": 12.97, "lng": 77.59}
        session_id = resp.json["id"]

        resp = client.put(
            f"/api/walks/{session_id}/complete",
            json={"steps": 1200, "distance": 1.1, "endLocation": {"lat": 12.98, "lng": 77.6}},
            headers=headers,
        )
        assert resp.status_code == 200
        assert resp.json["completed"] is True
        assert resp.json["steps"] == 1200
        assert resp.json["distance"] == "1.10"
        # Completed immediately, so no duration bonus
        assert resp.json["earnings"] == "12.00"

        me = client.get("/api/auth/user", headers=headers)
        assert me.json["balance"] == "12.00"
        assert me.json["dailyStreak"] == 1

    def test_start_without_body(self, client, headers):
        resp = client.post("/api/walks/start", headers=headers)
        assert resp.status_code == 201
        assert resp.json["startLocation"] is None

    def test_complete_other_users_session_404(self, client, headers, other_headers):
        session_id = client.post("/api/walks/start", headers=headers).json["id"]

        resp = client.put(
            f"/api/walks/{session_id}/complete",
            json={"steps": 100, "distance": 0.1},
            headers=other_headers,
        )
        assert resp.status_code == 404
        assert resp.json["error"] == "Walk session not found"

    def test_complete_unknown_session_404(self, client, headers):
        resp = client.put(
            "/api/walks/does-not-exist/complete",
            json={"steps": 100, "distance": 0.1},
            headers=headers,
        )
        assert resp.status_code == 404

    @pytest.mark.parametrize("body", [
        {"distance": 0.5},
        {"steps": 100},
        {"steps": "abc", "distance": 0.5},
        {"steps": -5, "distance": 0.5},
        {"steps": 10.5, "distance": 0.5},
        {"steps": 100, "distance": -1},
        {"steps": 100, "distance": "far"},
    ])
    def test_complete_rejects_bad_input(self, client, headers, body):
        session_id = client.post("/api/walks/start", headers=headers).json["id"]
        resp = client.put(f"/api/walks/{session_id}/complete", json=body, headers=headers)
        assert resp.status_code == 400

    def test_list_walks_newest_first_with_limit(self, client, headers, user):
        for i in range(3):
            walk_service.start_session(user_id=user.id, now=T0 + timedelta(minutes=i))

        resp = client.get("/api/walks", headers=headers)
        assert resp.status_code == 200
        assert len(resp.json) == 3
        starts = [w["startTime"] for w in resp.json]
        assert starts == sorted(starts, reverse=True)

        resp = client.get("/api/walks?limit=2", headers=headers)
        assert len(resp.json) == 2

    def test_list_walks_bad_limit(self, client, headers):
        resp = client.get("/api/walks?limit=zero", headers=headers)
        assert resp.status_code == 400

    def test_list_walks_only_own(self, client, headers, other_user):
        walk_service.start_session(user_id=other_user.id, now=T0)
        resp = client.get("/api/walks", headers=headers)
        assert resp.json == []


class TestWalkLimits:

    @pytest.mark.parametrize("steps", [10**19, 10**12, 1_000_001])
    def test_oversized_steps_rejected(self, client, headers, steps):
        session_id = client.post("/api/walks/start", headers=headers).json["id"]
        resp = client.put(
            f"/api/walks/{session_id}/complete",
            json={"steps": steps, "distance": 1},
            headers=headers,
        )
        assert resp.status_code == 400

        me = client.get("/api/auth/user", headers=headers)
        assert me.json["balance"] == "0.00"
        assert me.json["totalSteps"] == 0

    def test_max_steps_accepted(self, client, headers):
        session_id = client.post("/api/walks/start", headers=headers).json["id"]
        resp = client.put(
            f"/api/walks/{session_id}/complete",
            json={"steps": MAX_STEPS, "distance": 1},
            headers=headers,
        )
        assert resp.status_code == 200
        assert resp.json["earnings"] == "10000.00"

    def test_service_rejects_oversized_steps(self, user):
        session = walk_service.start_session(user_id=user.id, now=T0)
        with pytest.raises(ValidationError):
            walk_service.complete_session(
                session_id=session.id,
                user_id=user.id,
                steps=MAX_STEPS + 1,
                distance=Decimal("1"),
                now=T0 + timedelta(minutes=30),
            )

    def test_balance_ceiling_rejected(self, client, headers, user, fund, reload_user, db_session):
        fund(user.id, Decimal("99999990.00"))
        session_id = client.post("/api/walks/start", headers=headers).json["id"]

        resp = client.put(
            f"/api/walks/{session_id}/complete",
            json={"steps": 1000, "distance": 1},
            headers=headers,
        )
        assert resp.status_code == 400
        assert resp.json["error"] == "Walk would exceed the maximum balance"

        assert reload_user(user.id).balance == Decimal("99999990.00")
        assert db_session.query(Transaction).filter_by(user_id=user.id, type="earning").count() == 0
        assert db_session.get(WalkSession, session_id).completed is False
