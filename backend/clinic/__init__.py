import os
import logging
from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from flask_bcrypt import Bcrypt
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_restx import Api
from config import DevConfig, ProdConfig, REQUIRED_SETTINGS

db = SQLAlchemy()
migrate = Migrate()
bcrypt = Bcrypt()
cors = CORS()
limiter = Limiter(key_func=get_remote_address)

logger = logging.getLogger(__name__)


def configure_logging(app):
    logging.basicConfig(
        level=app.config.get("LOG_LEVEL", "INFO"),
        format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
    )


def create_app(config_class=None):
    """Build the clinic API.

    Without an explicit ``config_class`` the configuration is picked from
    ``FLASK_ENV``. Startup fails with ``RuntimeError`` when a required
    setting (secret key, database URL) is missing.
    """
    app = Flask(__name__)
    if config_class is None:
        env = os.getenv("FLASK_ENV", "development")
        config_class = ProdConfig if env == "production" else DevConfig
    app.config.from_object(config_class)

    missing = [env for key, env in REQUIRED_SETTINGS.items() if not app.config.get(key)]
    if missing:
        raise RuntimeError(f"Missing required configuration: {', '.join(missing)}")

    configure_logging(app)

    # Extensions
    db.init_app(app)
    migrate.init_app(app, db)
    bcrypt.init_app(app)
    cors.init_app(app, resources={r"/api/*": {"origins": app.config["CORS_ORIGINS"]}})
    limiter.init_app(app)

    api = Api(
        app,
        version="1.0",
        title="Clinic API",
        description="Patients, appointments, medical records and staff profiles",
    )

    from .auth import auth_ns
    from .staff import staff_ns
    from .patients import patients_ns
    from .appointments import appointments_ns
    from .records import records_ns
    from .dashboard import dashboard_ns

    api.add_namespace(auth_ns, path="/api/auth")
    api.add_namespace(staff_ns, path="/api/staff")
    api.add_namespace(patients_ns, path="/api/patients")
    api.add_namespace(appointments_ns, path="/api/appointments")
    api.add_namespace(records_ns, path="/api/records")
    api.add_namespace(dashboard_ns, path="/api/dashboard")

    logger.info("Clinic API created (%s)", config_class.__name__)
    return app
