# Overview: Flask API routes for the transaction history and the streak bonus.

from flask import Blueprint, request, jsonify, g, current_app

from ..services import ledger_service
from ..services import streak_service
from ..decorators import require_auth
from walkwallet.errors import NotFoundError
from walkwallet.validation import ValidationError, parse_limit


wallet_bp = Blueprint("wallet", __name__, url_prefix="/api")


@wallet_bp.get("/transactions")
@require_auth
def list_transactions_route():
    """Ledger entries, newest first. Query: ?limit= (default 20)."""
    try:
        limit = parse_limit(request.args.get("limit"), ledger_service.DEFAULT_TRANSACTION_LIMIT)
        transactions = ledger_service.list_transactions(g.current_user.id, limit=limit)
        return jsonify([tx.to_dict() for tx in transactions]), 200

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to list transactions")
        return jsonify({"error": "Internal server error"}), 500


@wallet_bp.post("/bonus/streak")
@require_auth
def claim_streak_bonus_route():
    """
    Claim the daily streak bonus.

    Always 200; "awarded" tells whether coins were credited:
    {
        "awarded": true,
        "message": "Daily streak bonus awarded",
        "amount": "5.00",
        "transaction": {...}
    }
    """
    try:
        result = streak_service.claim_streak_bonus(g.current_user.id)
        tx = result["transaction"]
        return jsonify({
            "awarded": result["awarded"],
            "message": result["message"],
            "amount": result["amount"],
            "transaction": tx.to_dict() if tx else None,
        }), 200

    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to claim streak bonus")
        return jsonify({"error": "Internal server error"}), 500
