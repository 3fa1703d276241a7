from flask import Blueprint, current_app, jsonify, request
from akvora.auth import admin_required
from akvora.exceptions import AkvoraError
from akvora.extensions import db
from akvora.services import UserService

admin_bp = Blueprint("admin", __name__)


@admin_bp.route("/login", methods=["POST"])
def login():
    """Issue a short-lived admin token"""
    try:
        data = request.get_json(silent=True) or {}
        email = data.get("email")
        password = data.get("password")
        if not email or not password:
            return jsonify({"error": "Email and password are required"}), 400

        result = UserService.admin_login(email, password)
        return jsonify({"success": True, "message": "Admin login successful", **result})
    except AkvoraError as e:
        return jsonify({"error": str(e)}), e.status_code
    except Exception as e:
        current_app.logger.error(f"Admin login error: {str(e)}")
        return jsonify({"error": "Login failed"}), 500


@admin_bp.route("/users", methods=["GET"])
@admin_required
def get_all_users():
    """Get all users (admin only)"""
    try:
        users = UserService.list_users()
        return jsonify({"success": True, "users": [user.to_dict() for user in users]})
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Failed to retrieve users: {str(e)}")
        return jsonify({"error": "Failed to retrieve users"}), 500
