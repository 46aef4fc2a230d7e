# Overview: Flask API route for the dashboard summary.

from flask import Blueprint, jsonify, g, current_app

from ..services import dashboard_service
from ..decorators import require_auth
from walkwallet.errors import NotFoundError


dashboard_bp = Blueprint("dashboard", __name__, url_prefix="/api/dashboard")


@dashboard_bp.get("")
@require_auth
def get_dashboard_route():
    """
    User record plus today's and this month's aggregates.

    Response:
    {
        "user": {...},
        "todaySteps": 1000,
        "todayDistance": "0.80",
        "todayEarnings": "15.00",
        "monthlyEarnings": "120.00"
    }
    """
    try:
        return jsonify(dashboard_service.get_dashboard(g.current_user.id)), 200
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to load dashboard")
        return jsonify({"error": "Internal server error"}), 500
