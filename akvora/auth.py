"""
Request authentication.

User requests carry a bearer token issued by the external identity provider;
an identity resolver turns it into an :class:`Identity`. Admin requests carry
a short-lived JWT minted by ``/api/admin/login`` with a ``role=admin`` claim.
Both are read per request and kept on :data:`flask.g`.
"""
from dataclasses import dataclass
from functools import wraps
from typing import Optional
from flask import current_app, g, jsonify, request
from flask_jwt_extended import decode_token, get_jwt, get_jwt_identity, verify_jwt_in_request
from akvora.exceptions import AuthError
from akvora.models.enums import UserRole
import logging

logger = logging.getLogger(__name__)

RESOLVER_KEY = "akvora.identity_resolver"


@dataclass(frozen=True)
class Identity:
    external_id: str
    email: Optional[str] = None


class JWTIdentityResolver:
    """Resolves identities from JWTs signed with the app's ``JWT_SECRET_KEY``."""

    def resolve_identity(self, token: str) -> Identity:
        try:
            claims = decode_token(token)
        except Exception as e:
            logger.warning(f"Token verification error: {str(e)}")
            raise AuthError("Invalid or expired token")

        external_id = claims.get("sub")
        if not external_id:
            raise AuthError("Invalid token: no user ID found")
        return Identity(external_id=str(external_id), email=claims.get("email"))


def get_identity_resolver():
    return current_app.extensions[RESOLVER_KEY]


def bearer_token(headers=None) -> str:
    auth_header = (headers if headers is not None else request.headers).get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        raise AuthError("No token provided")
    return auth_header.split(" ", 1)[1].strip()


def admin_claims(token: str) -> Optional[dict]:
    """Claims of a valid admin token, or None for anything else."""
    try:
        claims = decode_token(token)
    except Exception:
        return None
    return claims if claims.get("role") == UserRole.ADMIN.value else None


def identity_required(view_func):
    """Resolve the caller's identity into ``g.identity`` or answer 401."""

    @wraps(view_func)
    def wrapper(*args, **kwargs):
        try:
            g.identity = get_identity_resolver().resolve_identity(bearer_token())
        except AuthError as e:
            return jsonify({"error": str(e)}), e.status_code
        return view_func(*args, **kwargs)

    return wrapper


def admin_required(view_func):
    """Require an admin JWT; the admin's user id ends up in ``g.admin_id``."""

    @wraps(view_func)
    def wrapper(*args, **kwargs):
        try:
            verify_jwt_in_request()
        except Exception as e:
            logger.warning(f"Admin token rejected: {str(e)}")
            return jsonify({"error": "Invalid token."}), 401

        if get_jwt().get("role") != UserRole.ADMIN.value:
            return jsonify({"error": "Access denied. Admin role required."}), 403

        g.admin_id = int(get_jwt_identity())
        return view_func(*args, **kwargs)

    return wrapper
