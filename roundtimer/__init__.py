from flask import Flask
from flask_cors import CORS
import click
from roundtimer.config import Config
from roundtimer.extensions import db, migrate, jwt, limiter, socketio
import logging


def create_app(config_class=Config):
    app = Flask(__name__)
    app.config.from_object(config_class)

    # Configure logging
    logging.basicConfig(level=logging.INFO)
    app.logger.setLevel(logging.INFO)

    # Initialize Flask extensions
    db.init_app(app)
    migrate.init_app(app, db)
    jwt.init_app(app)
    limiter.init_app(app)

    cors_origins = app.config["CORS_ORIGINS"]
    app.logger.info(f"Initializing CORS with origins: {cors_origins}")
    socketio.init_app(app, cors_allowed_origins=cors_origins)

    # Register blueprints
    from roundtimer.routes.timer_routes import timer_bp

    app.register_blueprint(timer_bp, url_prefix="/api")

    # Socket.IO handlers bind to the shared socketio instance on import
    import roundtimer.sockets.timer_sockets  # noqa: F401

    CORS(
        app,
        resources={
            r"/api/*": {"origins": cors_origins},
        },
        supports_credentials=True,
        methods=["GET", "POST", "PUT", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "Accept"],
        expose_headers=["Content-Type"],
    )

    @app.cli.command("sweep-timers")
    def sweep_timers_command():
        """End every round whose time has run out."""
        from roundtimer.services.expiry_sweeper import sweep_expired_rounds

        count = sweep_expired_rounds(app)
        click.echo(f"Expired {count} round(s)")

    return app
