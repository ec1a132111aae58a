from flask import Flask
from flasgger import Swagger
from flask_cors import CORS

from .config import get_config, validate_config
from .errors import register_error_handlers
from models import storage  # DBStorage singleton (scoped_session)
from models.session_store import RefreshSessionStore
from services.credentials import CredentialVerifier
from services.lifecycle import TokenLifecycleManager
from utils.security import TokenCodec, utcnow

# Minimal Swagger config: exposes /swagger.json and UI at /apidocs
SWAGGER_TEMPLATE = {
    "swagger": "2.0.0",
    "info": {
        "title": "Session Issuer API",
        "version": "1.0.0",
        "description": "Issues access tokens and cookie-borne refresh tokens for login/password credentials.",
    },
    "basePath": "/",
    "schemes": ["http"],
    "securityDefinitions": {
        "Bearer": {
            "type": "apiKey",
            "name": "Authorization",
            "in": "header",
            "description": "Enter the token with the `Bearer ` prefix, e.g. \"Bearer abcde12345\"."
        }
    }
}

SWAGGER_CONFIG = {
    "headers": [],
    "specs": [
        {
            "endpoint": "apispec_1",
            "route": "/swagger.json",
            "rule_filter": lambda rule: True,   # include all endpoints
            "model_filter": lambda tag: True,   # include all models
        }
    ],
    "static_url_path": "/flasgger_static",
    "swagger_ui": True,
    "specs_route": "/apidocs/",
}

EXTENSION_KEY = "token_lifecycle"


def build_lifecycle(config, clock=utcnow) -> TokenLifecycleManager:
    """Wire codecs, store and verifier from a loaded Flask config."""
    access_codec = TokenCodec(
        config["ACCESS_TOKEN_SECRET"],
        config["ACCESS_TOKEN_TTL"],
        algorithm=config["JWT_ALGORITHM"],
        issuer=config["JWT_ISSUER"],
        clock=clock,
    )
    refresh_codec = TokenCodec(
        config["REFRESH_TOKEN_SECRET"],
        config["REFRESH_TOKEN_TTL"],
        algorithm=config["JWT_ALGORITHM"],
        issuer=config["JWT_ISSUER"],
        clock=clock,
    )
    return TokenLifecycleManager(
        access_codec,
        refresh_codec,
        store=RefreshSessionStore(storage),
        verifier=CredentialVerifier(storage),
        clock=clock,
    )


def create_app(config_name: str | None = None, clock=None) -> Flask:
    """
    Application factory: creates and configures the Flask app.
    `clock` replaces the UTC wall clock for every token and session check.
    """
    app = Flask(__name__)

    app.config.from_object(get_config(config_name))
    validate_config(app.config)

    # Refresh cookie is sent cross-origin only when credentials are allowed
    CORS(
        app,
        resources={r"/*": {"origins": app.config["CORS_ORIGINS"]}},
        supports_credentials=True,
    )

    Swagger(app, template=SWAGGER_TEMPLATE, config=SWAGGER_CONFIG)

    register_error_handlers(app)

    app.extensions[EXTENSION_KEY] = build_lifecycle(app.config, clock or utcnow)

    from .health import bp as health_bp
    from .auth import bp as auth_bp
    from .users import bp as users_bp
    from .commands import register_commands

    app.register_blueprint(health_bp, url_prefix="/api/v1")
    app.register_blueprint(auth_bp, url_prefix="/api/v1/auth")
    app.register_blueprint(users_bp, url_prefix="/api/v1")
    register_commands(app)

    # Ensure the DB session is removed at the end of each request/app context
    @app.teardown_appcontext
    def remove_session(exception=None):
        storage.close()

    @app.route("/")
    def root():
        return {
            "message": "Welcome to Session Issuer API",
            "docs": "/apidocs/",
            "health": "/api/v1/health",
        }, 200

    return app
