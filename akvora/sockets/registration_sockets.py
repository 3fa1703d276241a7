from flask import request
from flask_socketio import join_room
from akvora.auth import admin_claims, get_identity_resolver
from akvora.exceptions import AuthError
from akvora.extensions import socketio, logger
from akvora.notifier import ADMIN_CHANNEL, user_channel


def _extract_token(auth):
    """Token from the auth payload, the query string, or the Authorization header."""
    if isinstance(auth, dict) and auth.get("token"):
        return auth["token"]
    if isinstance(auth, str) and auth:
        return auth
    if request.args.get("token"):
        return request.args.get("token")
    auth_header = request.headers.get("Authorization")
    if auth_header and auth_header.startswith("Bearer "):
        return auth_header.split(" ", 1)[1]
    return None


@socketio.on("connect")
def handle_connect(auth=None):
    """Authenticate the socket and subscribe it to its notification room."""
    token = _extract_token(auth)
    if not token:
        logger.error("Socket connection rejected: No token found in any location")
        return False

    if admin_claims(token):
        join_room(ADMIN_CHANNEL)
        logger.info(f"Socket {request.sid} joined room {ADMIN_CHANNEL}")
        return True

    try:
        identity = get_identity_resolver().resolve_identity(token)
    except AuthError as e:
        logger.error(f"Socket connection rejected: {str(e)}")
        return False

    room = user_channel(identity.external_id)
    join_room(room)
    logger.info(f"Socket {request.sid} joined room {room}")
    return True


@socketio.on("disconnect")
def handle_disconnect(*args):
    logger.info(f"Socket {request.sid} disconnected")
