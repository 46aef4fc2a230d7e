# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

# backend/walkwallet/routes/auth.py
"""
Authentication API routes

- Self-registration with password strength validation
- Session management with token-based auth
- Current-user lookup for the dashboard shell
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..services import auth_service
from ..services import session_service
from ..services.auth_service import PasswordValidationError
from ..decorators import require_auth
from walkwallet.validation import ValidationError, ConflictError, require_json_object


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


def _session_response(user, status: int, message: str):
    session, token = session_service.create_session(
        user_id=user.id,
        user_agent=request.headers.get("User-Agent"),
        ip_address=request.remote_addr,
    )
    return jsonify({
        "user": user.to_dict(),
        "token": token,
        "session": session.to_dict(),
        "message": message,
    }), status


@auth_bp.post("/register")
def register_route():
    """
    Create a walker account and log it in.

    Request body:
    {
        "email": "walker@example.com",
        "password": "Password123!",
        "firstName": "Asha",   (optional)
        "lastName": "Rao"      (optional)
    }

    Returns:
        201: user + token
        400: invalid email or weak password
        409: email already registered
    """
    try:
        data = require_json_object(request.get_json(silent=True))
        email = data.get("email")
        password = data.get("password")

        if not all([email, password]):
            return jsonify({"error": "email and password required"}), 400

        user = auth_service.create_user(
            email=email,
            password=password,
            first_name=data.get("firstName"),
            last_name=data.get("lastName"),
        )
        return _session_response(user, 201, "Registration successful")

    except PasswordValidationError as e:
        return jsonify({"error": str(e)}), 400
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except Exception:
        current_app.logger.exception("Failed to register user")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.post("/login")
def login_route():
    """
    Authenticate user and create session token.

    Token must be included in Authorization header for protected routes.
    """
    try:
        data = require_json_object(request.get_json(silent=True))
        email = data.get("email")
        password = data.get("password")

        if not all([email, password]):
            return jsonify({"error": "email and password required"}), 400

        user = auth_service.authenticate(email, password)
        if not user:
            return jsonify({"error": "Invalid credentials"}), 401

        return _session_response(user, 200, "Login successful")

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to login user")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.post("/logout")
@require_auth
def logout_route():
    """Revoke the session token used for this request."""
    try:
        session_service.revoke_session(g.session_token)
        return jsonify({"message": "Logout successful"}), 200
    except Exception:
        current_app.logger.exception("Failed to logout user")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.get("/user")
@require_auth
def current_user_route():
    return jsonify(g.current_user.to_dict()), 200
