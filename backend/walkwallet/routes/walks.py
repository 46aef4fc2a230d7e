# Overview: Flask API routes for walk sessions; parses input and returns JSON responses.

# backend/walkwallet/routes/walks.py
"""
Walk Session API Routes

- Start a walk (records start time and optional location)
- Complete a walk (computes duration and earnings, credits the balance)
- List recent walks
"""

from flask import Blueprint, request, jsonify, g, current_app

from ..services import walk_service
from ..decorators import require_auth
from walkwallet.errors import NotFoundError
from walkwallet.validation import (
    MAX_STEPS,
    ValidationError,
    coerce_amount,
    coerce_int,
    parse_limit,
    require_fields,
    require_json_object,
)


walks_bp = Blueprint("walks", __name__, url_prefix="/api/walks")


@walks_bp.post("/start")
@require_auth
def start_walk_route():
    """
    Begin a walk session.

    Request body (optional):
    {
        "startLocation": {"lat": 12.97, "lng": 77.59}
    }

    Returns:
        201: the new session
    """
    try:
        data = require_json_object(request.get_json(silent=True))
        session = walk_service.start_session(
            user_id=g.current_user.id,
            start_location=data.get("startLocation"),
        )
        return jsonify(session.to_dict()), 201

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to start walk session")
        return jsonify({"error": "Internal server error"}), 500


@walks_bp.put("/<session_id>/complete")
@require_auth
def complete_walk_route(session_id: str):
    """
    Finalize a walk session and credit its earnings.

    Request body:
    {
        "steps": 1000,
        "distance": 0.8,
        "endLocation": {"lat": 12.98, "lng": 77.60}   (optional)
    }

    Returns:
        200: the completed session
        400: invalid steps/distance
        404: session not found (or owned by another user)
    """
    try:
        data = require_json_object(request.get_json(silent=True))
        require_fields(data, "steps", "distance")

        session = walk_service.complete_session(
            session_id=session_id,
            user_id=g.current_user.id,
            steps=coerce_int("steps", data.get("steps"), minimum=0, maximum=MAX_STEPS),
            distance=coerce_amount("distance", data.get("distance")),
            end_location=data.get("endLocation"),
        )
        return jsonify(session.to_dict()), 200

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to complete walk session")
        return jsonify({"error": "Internal server error"}), 500


@walks_bp.get("")
@require_auth
def list_walks_route():
    """Most recent walk sessions first. Query: ?limit= (default 10)."""
    try:
        limit = parse_limit(request.args.get("limit"), walk_service.DEFAULT_SESSION_LIMIT)
        sessions = walk_service.list_sessions(g.current_user.id, limit=limit)
        return jsonify([s.to_dict() for s in sessions]), 200

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to list walk sessions")
        return jsonify({"error": "Internal server error"}), 500
