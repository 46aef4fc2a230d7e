"""
Metro ticket and reward redemption tests.

Verifies:
- Coin debit, ticket/redemption creation and ledger row happen together
- Insufficient balance writes nothing
- Server-side fares and offer terms reject tampered client values
- Legacy client-priced mode still works when enforcement is off
"""

from decimal import Decimal

import pytest

from walkwallet.models import MetroTicket, RewardRedemption, Transaction


SCENARIO_TICKET = {
    "fromStation": "Central Metro Station",
    "toStation": "Medical Center",
    "ticketType": "single",
    "totalAmount": 60,
    "coinsUsed": 50,
}


def _spends(db_session, user_id):
    return db_session.query(Transaction).filter(
        Transaction.user_id == user_id,
        Transaction.amount < 0,
    ).all()


# =============================================================================
# METRO
# =============================================================================


class TestMetroPurchase:

    def test_partial_coin_purchase(self, client, headers, user, fund, reload_user, db_session):
        fund(user.id, 50)

        resp = client.post("/api/metro/purchase", json=SCENARIO_TICKET, headers=headers)
        assert resp.status_code == 201
        ticket = resp.json
        assert ticket["totalAmount"] == "60.00"
        assert ticket["coinsUsed"] == "50.00"
        assert ticket["cashAmount"] == "10.00"
        assert ticket["status"] == "active"
        assert ticket["qrCode"].startswith("METRO-")
        assert ticket["expiresAt"] is not None

        assert reload_user(user.id).balance == Decimal("0.00")

        spends = _spends(db_session, user.id)
        assert len(spends) == 1
        assert spends[0].type == "metro_payment"
        assert spends[0].amount == Decimal("-50.00")
        assert spends[0].description == "Metro ticket: Central Metro Station → Medical Center"

        history = client.get("/api/metro/tickets", headers=headers).json
        assert [t["id"] for t in history] == [ticket["id"]]

    def test_total_amount_optional(self, client, headers, user, fund):
        fund(user.id, 100)
        body = dict(SCENARIO_TICKET)
        del body["totalAmount"]

        resp = client.post("/api/metro/purchase", json=body, headers=headers)
        assert resp.status_code == 201
        assert resp.json["totalAmount"] == "60.00"

    def test_insufficient_balance_writes_nothing(self, client, headers, user, fund, reload_user, db_session):
        fund(user.id, 20)
        body = dict(SCENARIO_TICKET, coinsUsed=30)

        resp = client.post("/api/metro/purchase", json=body, headers=headers)
        assert resp.status_code == 400
        assert resp.json["error"] == "Insufficient balance"

        assert reload_user(user.id).balance == Decimal("20.00")
        assert db_session.query(MetroTicket).count() == 0
        assert _spends(db_session, user.id) == []

    def test_tampered_total_rejected(self, client, headers, user, fund, reload_user):
        fund(user.id, 50)
        body = dict(SCENARIO_TICKET, totalAmount=10, coinsUsed=10)

        resp = client.post("/api/metro/purchase", json=body, headers=headers)
        assert resp.status_code == 400
        assert "does not match" in resp.json["error"]
        assert reload_user(user.id).balance == Decimal("50.00")

    def test_client_total_trusted_when_enforcement_off(self, client, headers, user, fund, set_config):
        set_config(ENFORCE_SERVER_PRICING=False)
        fund(user.id, 50)
        body = dict(SCENARIO_TICKET, totalAmount=10, coinsUsed=10)

        resp = client.post("/api/metro/purchase", json=body, headers=headers)
        assert resp.status_code == 201
        assert resp.json["totalAmount"] == "10.00"
        assert resp.json["cashAmount"] == "0.00"

    def test_coins_cannot_exceed_total(self, client, headers, user, fund):
        fund(user.id, 100)
        body = dict(SCENARIO_TICKET, coinsUsed=61)

        resp = client.post("/api/metro/purchase", json=body, headers=headers)
        assert resp.status_code == 400

    def test_coin_share_cap(self, client, headers, user, fund, set_config):
        set_config(METRO_MAX_COIN_SHARE=Decimal("0.50"))
        fund(user.id, 100)

        resp = client.post("/api/metro/purchase", json=SCENARIO_TICKET, headers=headers)
        assert resp.status_code == 400
        assert "30.00" in resp.json["error"]

        body = dict(SCENARIO_TICKET, coinsUsed=30)
        resp = client.post("/api/metro/purchase", json=body, headers=headers)
        assert resp.status_code == 201
        assert resp.json["cashAmount"] == "30.00"

    @pytest.mark.parametrize("override", [
        {"fromStation": "Atlantis"},
        {"toStation": "Central Metro Station"},
        {"ticketType": "monthly"},
        {"coinsUsed": -1},
        {"coinsUsed": None},
    ])
    def test_invalid_purchase_input(self, client, headers, user, fund, override):
        fund(user.id, 100)
        body = dict(SCENARIO_TICKET)
        body.update(override)
        body.pop("totalAmount")

        resp = client.post("/api/metro/purchase", json=body, headers=headers)
        assert resp.status_code == 400

    def test_zero_coin_ticket(self, client, headers):
        body = dict(SCENARIO_TICKET, coinsUsed=0)
        resp = client.post("/api/metro/purchase", json=body, headers=headers)
        assert resp.status_code == 201
        assert resp.json["cashAmount"] == "60.00"


class TestMetroCatalog:

    def test_stations(self, client, headers):
        resp = client.get("/api/metro/stations", headers=headers)
        assert resp.status_code == 200
        assert len(resp.json["stations"]) == 12
        assert resp.json["ticketPrices"]["single"] == {"base": "25.00", "perStation": "5.00"}

    def test_quote(self, client, headers):
        resp = client.get(
            "/api/metro/quote",
            query_string={"from": "Central Metro Station", "to": "Medical Center", "ticketType": "return"},
            headers=headers,
        )
        assert resp.status_code == 200
        assert resp.json["totalAmount"] == "101.00"
        assert resp.json["maxCoinsUsable"] == "101.00"

    def test_quote_unknown_station(self, client, headers):
        resp = client.get(
            "/api/metro/quote", query_string={"from": "Nowhere", "to": "City Center"}, headers=headers
        )
        assert resp.status_code == 400


# =============================================================================
# REWARDS
# =============================================================================


class TestRewardRedemption:

    def test_redeem_by_offer_id(self, client, headers, user, fund, reload_user, db_session):
        fund(user.id, 30)

        resp = client.post("/api/rewards/redeem", json={"rewardId": "spotify-premium-1month"}, headers=headers)
        assert resp.status_code == 201
        redemption = resp.json
        assert redemption["provider"] == "spotify"
        assert redemption["originalPrice"] == "119.00"
        assert redemption["discountAmount"] == "29.75"
        assert redemption["finalPrice"] == "89.25"
        assert redemption["coinsUsed"] == "30.00"
        assert redemption["status"] == "pending"
        assert redemption["redemptionCode"].startswith("RWD-")
        assert redemption["metadata"]["title"] == "Spotify Premium"

        assert reload_user(user.id).balance == Decimal("0.00")
        spends = _spends(db_session, user.id)
        assert len(spends) == 1
        assert spends[0].type == "reward_redemption"
        assert spends[0].amount == Decimal("-30.00")

        history = client.get("/api/rewards/redemptions", headers=headers).json
        assert [r["id"] for r in history] == [redemption["id"]]

    def test_redeem_with_client_fields(self, client, headers, user, fund):
        fund(user.id, 100)
        resp = client.post("/api/rewards/redeem", json={
            "rewardType": "movie_ticket",
            "provider": "bookmyshow",
            "originalPrice": 250,
            "discountAmount": 100,
            "finalPrice": 150,
            "coinsRequired": 100,
        }, headers=headers)
        assert resp.status_code == 201
        assert resp.json["coinsUsed"] == "100.00"

    def test_insufficient_balance(self, client, headers, user, fund, reload_user, db_session):
        fund(user.id, 29)
        resp = client.post("/api/rewards/redeem", json={"rewardId": "spotify-premium-1month"}, headers=headers)
        assert resp.status_code == 400
        assert resp.json["error"] == "Insufficient balance"
        assert reload_user(user.id).balance == Decimal("29.00")
        assert db_session.query(RewardRedemption).count() == 0

    def test_tampered_coin_cost_rejected(self, client, headers, user, fund):
        fund(user.id, 100)
        resp = client.post("/api/rewards/redeem", json={
            "rewardId": "pvr-premium-movie",
            "coinsUsed": 1,
        }, headers=headers)
        assert resp.status_code == 400

    def test_unknown_offer(self, client, headers, user, fund):
        fund(user.id, 100)
        resp = client.post("/api/rewards/redeem", json={"rewardId": "free-lunch"}, headers=headers)
        assert resp.status_code == 400

    def test_legacy_mode_trusts_client(self, client, headers, user, fund, set_config):
        set_config(ENFORCE_SERVER_PRICING=False)
        fund(user.id, 10)
        resp = client.post("/api/rewards/redeem", json={
            "rewardType": "spotify",
            "provider": "spotify",
            "originalPrice": 119,
            "discountAmount": 100,
            "finalPrice": 19,
            "coinsUsed": 10,
        }, headers=headers)
        assert resp.status_code == 201
        assert resp.json["finalPrice"] == "19.00"

    def test_offers_catalog(self, client, headers):
        resp = client.get("/api/rewards/offers", headers=headers)
        assert resp.status_code == 200
        assert len(resp.json) == 8
        ids = {o["id"] for o in resp.json}
        assert "spotify-premium-1month" in ids
