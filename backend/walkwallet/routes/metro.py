# Overview: Flask API routes for metro ticketing; parses input and returns JSON responses.

# backend/walkwallet/routes/metro.py
"""
Metro Ticketing API Routes

WHY: Walkers pay for metro journeys partly or fully with coins.

DESIGN:
- Station list and fare table are public catalog data
- Quote returns the server-computed fare before purchase
- Purchase debits coinsUsed; the rest is the cash part of the fare
"""

from flask import Blueprint, request, jsonify, g, current_app

from ..services import catalog
from ..services import metro_service
from ..decorators import require_auth
from walkwallet.errors import NotFoundError, InsufficientBalanceError
from walkwallet.validation import (
    ValidationError,
    coerce_amount,
    require_fields,
    require_json_object,
    require_string,
)


metro_bp = Blueprint("metro", __name__, url_prefix="/api/metro")


@metro_bp.get("/stations")
@require_auth
def list_stations_route():
    return jsonify(catalog.stations_payload()), 200


@metro_bp.get("/quote")
@require_auth
def quote_route():
    """Query: ?from=&to=&ticketType= (ticketType defaults to single)."""
    try:
        quote = metro_service.quote_ticket(
            require_string("from", request.args.get("from")),
            require_string("to", request.args.get("to")),
            request.args.get("ticketType", "single"),
        )
        return jsonify(quote), 200

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to quote metro ticket")
        return jsonify({"error": "Internal server error"}), 500


@metro_bp.get("/tickets")
@require_auth
def list_tickets_route():
    try:
        tickets = metro_service.list_tickets(g.current_user.id)
        return jsonify([t.to_dict() for t in tickets]), 200
    except Exception:
        current_app.logger.exception("Failed to list metro tickets")
        return jsonify({"error": "Internal server error"}), 500


@metro_bp.post("/purchase")
@require_auth
def purchase_route():
    """
    Purchase a metro ticket.

    Request body:
    {
        "fromStation": "Central Metro Station",
        "toStation": "Medical Center",
        "ticketType": "single",
        "totalAmount": 60,     (optional when server pricing is enforced)
        "coinsUsed": 50
    }

    Returns:
        201: ticket
        400: invalid input, fare mismatch or insufficient balance
    """
    try:
        data = require_json_object(request.get_json(silent=True))
        require_fields(data, "fromStation", "toStation", "ticketType", "coinsUsed")

        total_raw = data.get("totalAmount")
        ticket = metro_service.purchase_ticket(
            user_id=g.current_user.id,
            from_station=require_string("fromStation", data.get("fromStation")),
            to_station=require_string("toStation", data.get("toStation")),
            ticket_type=require_string("ticketType", data.get("ticketType")),
            coins_used=coerce_amount("coinsUsed", data.get("coinsUsed")),
            total_amount=coerce_amount("totalAmount", total_raw) if total_raw is not None else None,
        )
        return jsonify(ticket.to_dict()), 201

    except InsufficientBalanceError as e:
        return jsonify({"error": str(e)}), 400
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to purchase metro ticket")
        return jsonify({"error": "Internal server error"}), 500
