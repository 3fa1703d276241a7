from flask import Blueprint, current_app, g, jsonify, request
from akvora.auth import admin_required, identity_required
from akvora.exceptions import AkvoraError, MissingFieldsError, ValidationError
from akvora.extensions import db
from akvora.models.enums import RegistrationStatus
from akvora.services import RegistrationService, UserService

registration_bp = Blueprint("registrations", __name__)


@registration_bp.route("", methods=["POST"])
@identity_required
def submit_registration():
    try:
        data = request.get_json(silent=True)
        if not data:
            return jsonify({"error": "No data provided"}), 400

        required_fields = ["event_id", "name_on_certificate"]
        missing_fields = [field for field in required_fields if not data.get(field)]
        if missing_fields:
            raise MissingFieldsError(missing_fields)

        try:
            event_id = int(data["event_id"])
        except (TypeError, ValueError):
            raise ValidationError("event_id must be an integer")

        user = UserService.get_or_create_profile(g.identity)
        registration = RegistrationService.submit_registration(
            user.id,
            event_id,
            data["name_on_certificate"],
            data.get("payment_reference"),
        )

        message = (
            "Registration confirmed."
            if registration.status == RegistrationStatus.APPROVED
            else "Registration submitted successfully. Pending verification."
        )
        return (
            jsonify(
                {
                    "success": True,
                    "message": message,
                    "registration": registration.to_dict(),
                }
            ),
            201,
        )
    except MissingFieldsError as e:
        return jsonify({"error": str(e), "missing_fields": e.fields}), 400
    except AkvoraError as e:
        return jsonify({"error": str(e)}), e.status_code
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Workshop registration error: {str(e)}")
        return jsonify({"error": "Failed to submit registration"}), 500


@registration_bp.route("/my", methods=["GET"])
@identity_required
def get_my_registrations():
    try:
        user = UserService.get_or_create_profile(g.identity)
        registrations = RegistrationService.get_registrations_for_user(user.id)
        return jsonify({"success": True, "registrations": registrations})
    except AkvoraError as e:
        return jsonify({"error": str(e)}), e.status_code
    except Exception as e:
        current_app.logger.error(f"Get my registrations error: {str(e)}")
        return jsonify({"error": "Failed to fetch registrations"}), 500


@registration_bp.route("/history", methods=["GET"])
@identity_required
def get_participation_history():
    try:
        user = UserService.get_or_create_profile(g.identity)
        history = RegistrationService.get_participation_history(user.id)
        return jsonify({"success": True, "history": history})
    except AkvoraError as e:
        return jsonify({"error": str(e)}), e.status_code
    except Exception as e:
        current_app.logger.error(f"Get participation history error: {str(e)}")
        return jsonify({"error": "Failed to fetch participation history"}), 500


@registration_bp.route("/event/<int:event_id>", methods=["GET"])
@admin_required
def get_event_registrations(event_id):
    try:
        registrations = RegistrationService.get_registrations_for_event(event_id)
        return jsonify({"success": True, "registrations": registrations})
    except AkvoraError as e:
        return jsonify({"error": str(e)}), e.status_code
    except Exception as e:
        current_app.logger.error(f"Get workshop registrations error: {str(e)}")
        return jsonify({"error": "Failed to fetch registrations"}), 500


@registration_bp.route("/<int:registration_id>/status", methods=["PUT"])
@admin_required
def update_registration_status(registration_id):
    try:
        data = request.get_json(silent=True) or {}
        registration = RegistrationService.set_registration_status(
            registration_id, data.get("status"), data.get("rejection_reason")
        )
        return jsonify(
            {
                "success": True,
                "message": f"Registration {registration.status.value} successfully",
                "registration": registration.to_dict(),
            }
        )
    except AkvoraError as e:
        return jsonify({"error": str(e)}), e.status_code
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Update registration status error: {str(e)}")
        return jsonify({"error": "Failed to update registration status"}), 500
