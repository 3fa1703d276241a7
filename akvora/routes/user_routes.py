from flask import Blueprint, current_app, g, jsonify, request
from akvora.auth import identity_required
from akvora.exceptions import AkvoraError
from akvora.extensions import db
from akvora.services import UserService

user_bp = Blueprint("users", __name__)


@user_bp.route("/profile", methods=["GET"])
@identity_required
def get_profile():
    try:
        user = UserService.get_or_create_profile(g.identity)
        return jsonify({"success": True, "user": user.to_dict()})
    except AkvoraError as e:
        return jsonify({"error": str(e)}), e.status_code
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Get profile error: {str(e)}")
        return jsonify({"error": "Failed to fetch profile"}), 500


@user_bp.route("/profile", methods=["POST", "PUT"])
@identity_required
def create_or_update_profile():
    try:
        data = request.get_json(silent=True) or {}
        user = UserService.create_or_update_profile(g.identity, data)
        return jsonify({"success": True, "user": user.to_dict()})
    except AkvoraError as e:
        return jsonify({"error": str(e)}), e.status_code
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Create/Update profile error: {str(e)}")
        return jsonify({"error": "Failed to create/update profile"}), 500


@user_bp.route("/akvora-id/<clerk_id>", methods=["GET"])
@identity_required
def get_akvora_id(clerk_id):
    try:
        akvora_id = UserService.get_akvora_id(clerk_id)
        return jsonify({"success": True, "akvora_id": akvora_id})
    except AkvoraError as e:
        return jsonify({"error": str(e)}), e.status_code
    except Exception as e:
        current_app.logger.error(f"Get AKVORA ID error: {str(e)}")
        return jsonify({"error": "Failed to get AKVORA ID"}), 500
