# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

# backend/ordertrack/routes/auth.py
"""
Authentication API routes

- POST /signup   create an account and start a session
- POST /login    start a session
- POST /logout   revoke the presented token
- GET  /me       the authenticated user
"""

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import bearer_token, require_auth
from ..services import auth_service, session_service
from ..services.auth_service import AccountError, PasswordValidationError


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


def _credentials():
    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        return None, None
    return data.get("email"), data.get("password")


def _start_session(user):
    return session_service.create_session(
        user_id=user.id,
        user_agent=request.headers.get("User-Agent"),
        ip_address=request.remote_addr,
    )


@auth_bp.post("/signup")
def signup_route():
    """
    Create an account.

    Request body: {"email": "...", "password": "..."}
    Returns 201 {user, token, session}.
    """
    email, password = _credentials()
    if not email or not password:
        return jsonify({"error": "email and password required"}), 400

    try:
        user = auth_service.create_user(email, password)
        session, token = _start_session(user)
    except PasswordValidationError as e:
        return jsonify({"error": str(e), "field": "password"}), 400
    except AccountError as e:
        return jsonify({"error": str(e), "field": "email"}), 400
    except Exception:
        current_app.logger.exception("Failed to sign up user")
        return jsonify({"error": "Internal server error"}), 500

    current_app.logger.info("User signed up: user=%s", user.id)
    return jsonify({
        "user": user.to_dict(),
        "token": token,
        "session": session.to_dict(),
        "message": "Signup successful",
    }), 201


@auth_bp.post("/login")
def login_route():
    """
    Authenticate user and create session token.

    Token must be included as "Authorization: Bearer <token>" on protected routes.
    """
    email, password = _credentials()
    if not email or not password:
        return jsonify({"error": "email and password required"}), 400

    try:
        user = auth_service.authenticate(email, password)
        if not user:
            return jsonify({"error": "Invalid credentials"}), 401

        session, token = _start_session(user)
    except Exception:
        current_app.logger.exception("Failed to login user")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({
        "user": user.to_dict(),
        "token": token,
        "session": session.to_dict(),
        "message": "Login successful",
    }), 200


@auth_bp.post("/logout")
def logout_route():
    """Revoke session token (logout)."""
    token = bearer_token()
    if not token:
        return jsonify({"error": "Authorization header required"}), 401

    try:
        revoked = session_service.revoke_session(token, reason="User logout")
    except Exception:
        current_app.logger.exception("Failed to logout user")
        return jsonify({"error": "Internal server error"}), 500

    if not revoked:
        return jsonify({"error": "Invalid or expired token"}), 401

    return jsonify({"message": "Logout successful"}), 200


@auth_bp.get("/me")
@require_auth
def me_route():
    return jsonify({"user": g.current_user.to_dict()})
