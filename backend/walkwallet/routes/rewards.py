# Overview: Flask API routes for reward redemptions; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify, g, current_app

from ..services import catalog
from ..services import rewards_service
from ..decorators import require_auth
from walkwallet.errors import NotFoundError, InsufficientBalanceError
from walkwallet.validation import ValidationError, coerce_amount, require_json_object


rewards_bp = Blueprint("rewards", __name__, url_prefix="/api/rewards")


def _optional_amount(data: dict, key: str):
    value = data.get(key)
    return coerce_amount(key, value) if value is not None else None


@rewards_bp.get("/offers")
@require_auth
def list_offers_route():
    return jsonify([offer.to_dict() for offer in catalog.REWARD_OFFERS]), 200


@rewards_bp.get("/redemptions")
@require_auth
def list_redemptions_route():
    try:
        redemptions = rewards_service.list_redemptions(g.current_user.id)
        return jsonify([r.to_dict() for r in redemptions]), 200
    except Exception:
        current_app.logger.exception("Failed to list reward redemptions")
        return jsonify({"error": "Internal server error"}), 500


@rewards_bp.post("/redeem")
@require_auth
def redeem_route():
    """
    Redeem a reward for coins.

    Request body (either rewardId or rewardType + provider):
    {
        "rewardId": "spotify-premium-1month",
        "rewardType": "spotify",
        "provider": "spotify",
        "originalPrice": 119,
        "discountAmount": 29.75,
        "finalPrice": 89.25,
        "coinsUsed": 30,
        "metadata": {"title": "Spotify Premium"}
    }

    coinsRequired is accepted as an alias of coinsUsed.

    Returns:
        201: redemption
        400: unknown offer, price mismatch or insufficient balance
    """
    try:
        data = require_json_object(request.get_json(silent=True))
        coins_key = "coinsUsed" if data.get("coinsUsed") is not None else "coinsRequired"

        redemption = rewards_service.redeem_reward(
            user_id=g.current_user.id,
            reward_id=data.get("rewardId"),
            reward_type=data.get("rewardType"),
            provider=data.get("provider"),
            original_price=_optional_amount(data, "originalPrice"),
            discount_amount=_optional_amount(data, "discountAmount"),
            final_price=_optional_amount(data, "finalPrice"),
            coins=_optional_amount(data, coins_key),
            metadata=data.get("metadata"),
        )
        return jsonify(redemption.to_dict()), 201

    except InsufficientBalanceError as e:
        return jsonify({"error": str(e)}), 400
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to redeem reward")
        return jsonify({"error": "Internal server error"}), 500
