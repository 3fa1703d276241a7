from flask import Blueprint, current_app, g, jsonify, request
from akvora.auth import admin_required, identity_required
from akvora.exceptions import AkvoraError, MissingFieldsError
from akvora.extensions import db
from akvora.services import EventService, ParticipantService, UserService

event_bp = Blueprint("events", __name__)


@event_bp.route("", methods=["POST"])
@admin_required
def create_event():
    try:
        data = request.get_json(silent=True)
        if not data:
            return jsonify({"error": "No data provided"}), 400

        event = EventService.create_event(data, g.admin_id)
        return (
            jsonify(
                {
                    "success": True,
                    "message": "Event created successfully",
                    "event": event.to_dict(include_meeting_link=True),
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
        current_app.logger.error(f"Create event error: {str(e)}")
        return jsonify({"error": "Failed to create event"}), 500


@event_bp.route("", methods=["GET"])
@admin_required
def get_events():
    try:
        events = EventService.list_events(request.args.get("type"), request.args.get("status"))
        return jsonify(
            {
                "success": True,
                "events": [event.to_dict(include_meeting_link=True) for event in events],
            }
        )
    except AkvoraError as e:
        return jsonify({"error": str(e)}), e.status_code
    except Exception as e:
        current_app.logger.error(f"Get events error: {str(e)}")
        return jsonify({"error": "Failed to fetch events"}), 500


@event_bp.route("/<int:event_id>", methods=["GET"])
@admin_required
def get_event(event_id):
    try:
        event = EventService.get_event(event_id)
        return jsonify(
            {
                "success": True,
                "event": event.to_dict(include_meeting_link=True, include_participants=True),
            }
        )
    except AkvoraError as e:
        return jsonify({"error": str(e)}), e.status_code
    except Exception as e:
        current_app.logger.error(f"Get event error: {str(e)}")
        return jsonify({"error": "Failed to fetch event"}), 500


@event_bp.route("/<int:event_id>", methods=["PUT"])
@admin_required
def update_event(event_id):
    try:
        data = request.get_json(silent=True)
        if not data:
            return jsonify({"error": "No data provided"}), 400

        event = EventService.update_event(event_id, data, g.admin_id)
        return jsonify(
            {
                "success": True,
                "message": "Event updated successfully",
                "event": event.to_dict(include_meeting_link=True),
            }
        )
    except AkvoraError as e:
        return jsonify({"error": str(e)}), e.status_code
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Update event error: {str(e)}")
        return jsonify({"error": "Failed to update event"}), 500


@event_bp.route("/<int:event_id>", methods=["DELETE"])
@admin_required
def delete_event(event_id):
    try:
        EventService.delete_event(event_id, g.admin_id)
        return jsonify({"success": True, "message": "Event deleted successfully"})
    except AkvoraError as e:
        return jsonify({"error": str(e)}), e.status_code
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Delete event error: {str(e)}")
        return jsonify({"error": "Failed to delete event"}), 500


@event_bp.route("/<int:event_id>/register", methods=["POST"])
@identity_required
def register_for_event(event_id):
    try:
        data = request.get_json(silent=True) or {}
        user = UserService.get_or_create_profile(g.identity)
        participant = ParticipantService.register_for_event(event_id, user, data.get("name"))

        message = (
            "Successfully registered for event"
            if participant.is_approved
            else "Registration submitted. Pending approval."
        )
        return (
            jsonify(
                {
                    "success": True,
                    "message": message,
                    "participant": participant.to_dict(),
                    "participant_count": participant.event.participants.count(),
                    "status": participant.status.value,
                }
            ),
            201,
        )
    except AkvoraError as e:
        return jsonify({"error": str(e)}), e.status_code
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Event registration error: {str(e)}")
        return jsonify({"error": "Failed to register for event"}), 500


@event_bp.route("/<int:event_id>/unregister", methods=["DELETE"])
@identity_required
def unregister_from_event(event_id):
    try:
        remaining = ParticipantService.unregister_from_event(event_id, g.identity.external_id)
        return jsonify(
            {
                "success": True,
                "message": "Successfully unregistered from event",
                "participant_count": remaining,
            }
        )
    except AkvoraError as e:
        return jsonify({"error": str(e)}), e.status_code
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Event unregistration error: {str(e)}")
        return jsonify({"error": "Failed to unregister from event"}), 500


@event_bp.route("/<int:event_id>/participants/<user_id>/status", methods=["PUT"])
@admin_required
def update_participant_status(event_id, user_id):
    try:
        data = request.get_json(silent=True) or {}
        participant = ParticipantService.set_participant_status(
            event_id, user_id, data.get("status"), data.get("rejection_reason")
        )
        return jsonify(
            {
                "success": True,
                "message": f"Participant status updated to {participant.status.value}",
                "participant": participant.to_dict(),
            }
        )
    except AkvoraError as e:
        return jsonify({"error": str(e)}), e.status_code
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Update participant status error: {str(e)}")
        return jsonify({"error": "Failed to update participant status"}), 500


@event_bp.route("/stats/dashboard", methods=["GET"])
@admin_required
def get_stats():
    try:
        return jsonify({"success": True, "stats": EventService.get_stats()})
    except Exception as e:
        current_app.logger.error(f"Get stats error: {str(e)}")
        return jsonify({"error": "Failed to fetch statistics"}), 500
