from flask import Blueprint, current_app, jsonify, request
from akvora.exceptions import AkvoraError
from akvora.services import EventService

public_event_bp = Blueprint("public_events", __name__)


@public_event_bp.route("", methods=["GET"])
def get_public_events():
    try:
        events = EventService.list_events(
            request.args.get("type"),
            request.args.get("status"),
            request.args.get("search"),
        )
        return jsonify({"success": True, "events": [event.to_dict() for event in events]})
    except AkvoraError as e:
        return jsonify({"error": str(e)}), e.status_code
    except Exception as e:
        current_app.logger.error(f"Get public events error: {str(e)}")
        return jsonify({"error": "Failed to fetch events"}), 500


@public_event_bp.route("/<int:event_id>", methods=["GET"])
def get_public_event(event_id):
    try:
        event = EventService.get_event(event_id)
        return jsonify({"success": True, "event": event.to_dict()})
    except AkvoraError as e:
        return jsonify({"error": str(e)}), e.status_code
    except Exception as e:
        current_app.logger.error(f"Get public event error: {str(e)}")
        return jsonify({"error": "Failed to fetch event"}), 500
