from flask import Flask, jsonify
from flask_cors import CORS
from dotenv import load_dotenv
import os
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from akvora.extensions import db, migrate, jwt, socketio
from akvora.utils.email import mail
from akvora.auth import JWTIdentityResolver, RESOLVER_KEY
from datetime import timedelta
import logging

# Load environment variables
load_dotenv()


def create_app(test_config=None):
    app = Flask(__name__)

    # Set testing mode from environment variable
    app.config["TESTING"] = os.getenv("FLASK_ENV") in ["development", "testing"]

    # Configure logging
    logging.basicConfig(level=logging.INFO)
    app.logger.setLevel(logging.INFO)

    # Configure database
    app.config["SQLALCHEMY_DATABASE_URI"] = os.getenv(
        "DATABASE_URL", "postgresql://localhost/akvora"
    )
    app.config["SQLALCHEMY_TRACK_MODIFICATIONS"] = False

    # Configure JWT (admin credentials; also the default user identity tokens)
    app.config["JWT_SECRET_KEY"] = os.getenv("JWT_SECRET_KEY", "your-secret-key")
    app.config["JWT_ACCESS_TOKEN_EXPIRES"] = timedelta(days=1)
    app.config["JWT_TOKEN_LOCATION"] = ["headers"]
    app.config["JWT_HEADER_NAME"] = "Authorization"
    app.config["JWT_HEADER_TYPE"] = "Bearer"
    app.config["ADMIN_TOKEN_EXPIRES_MINUTES"] = int(os.getenv("ADMIN_TOKEN_EXPIRES_MINUTES", 60))

    # Email configuration
    app.config["MAIL_SERVER"] = os.getenv("MAIL_SERVER")
    app.config["MAIL_PORT"] = int(os.getenv("MAIL_PORT", 587))
    app.config["MAIL_USE_TLS"] = os.getenv("MAIL_USE_TLS", "true").lower() in ["true", "1", "t"]
    app.config["MAIL_USERNAME"] = os.getenv("MAIL_USERNAME")
    app.config["MAIL_PASSWORD"] = os.getenv("MAIL_PASSWORD")
    app.config["CLIENT_URL"] = os.getenv("CLIENT_URL", "http://localhost:3000")

    if test_config:
        app.config.update(test_config)

    # Implement rate limiting using flask-limiter
    Limiter(
        get_remote_address,
        app=app,
        default_limits=["150 per minute, 10000 per hour, 100000 per day"],
        storage_uri=os.getenv("LIMITER_DATABASE_URL", "memory://"),
        strategy="fixed-window",
    )

    cors_origins = os.getenv(
        "CORS_ORIGINS",
        "http://localhost:3000,http://127.0.0.1:3000,http://localhost:5173",
    ).split(",")
    app.logger.info(f"Initializing CORS with origins: {cors_origins}")

    # Initialize Flask extensions
    db.init_app(app)
    migrate.init_app(app, db)
    jwt.init_app(app)
    mail.init_app(app)

    # Handlers must be registered before the Socket.IO server is created
    from akvora.sockets import registration_sockets  # noqa: F401

    socketio.init_app(app, cors_allowed_origins=cors_origins)

    app.extensions[RESOLVER_KEY] = app.config.get("IDENTITY_RESOLVER") or JWTIdentityResolver()

    # Make sure every model is mapped before the first request
    from akvora import models  # noqa: F401

    # Register blueprints
    from akvora.routes.registration_routes import registration_bp
    from akvora.routes.event_routes import event_bp
    from akvora.routes.public_event_routes import public_event_bp
    from akvora.routes.admin_routes import admin_bp
    from akvora.routes.user_routes import user_bp

    app.register_blueprint(registration_bp, url_prefix="/api/registrations")
    app.register_blueprint(event_bp, url_prefix="/api/events")
    app.register_blueprint(public_event_bp, url_prefix="/api/public-events")
    app.register_blueprint(admin_bp, url_prefix="/api/admin")
    app.register_blueprint(user_bp, url_prefix="/api/users")

    CORS(
        app,
        resources={
            r"/api/*": {"origins": cors_origins},
        },
        supports_credentials=True,
        methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "Accept"],
        expose_headers=["Content-Type"],
    )

    @app.route("/api/health")
    def health():
        return jsonify({"status": "OK", "message": "Server is running"})

    return app
