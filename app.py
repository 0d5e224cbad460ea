import logging
import os
import sys

from dotenv import load_dotenv
load_dotenv()

from flask import Flask, jsonify, request

from commands import register_commands
from config import config_dict
from extensions import cors, mail, migrate
from models import db
from routes.assignments import assignment_bp
from routes.authentication import auth_bp
from routes.courses import course_bp
from routes.enrollments import enrollment_bp
from routes.health import health_bp
from routes.users import user_bp
from utils.errors import register_error_handlers

logger = logging.getLogger(__name__)


def setup_logging(level):
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    logging.getLogger().setLevel(level)


def create_app(config_name=None):
    config_name = config_name or os.environ.get("FLASK_ENV", "production")
    app = Flask(__name__)
    app.config.from_object(config_dict.get(config_name, config_dict["production"]))
    app.config["ENV_NAME"] = config_name

    setup_logging(app.config["LOG_LEVEL"])

    cors.init_app(app, resources={r"/api/*": {"origins": app.config["CORS_ORIGIN"]}}, supports_credentials=True)
    db.init_app(app)
    mail.init_app(app)
    migrate.init_app(app, db)

    app.register_blueprint(auth_bp, url_prefix="/api/auth")
    app.register_blueprint(course_bp, url_prefix="/api/courses")
    app.register_blueprint(enrollment_bp, url_prefix="/api/enrollments")
    app.register_blueprint(assignment_bp, url_prefix="/api/assignments")
    app.register_blueprint(user_bp, url_prefix="/api/users")
    app.register_blueprint(health_bp, url_prefix="/api/health")

    register_error_handlers(app)
    register_commands(app)

    @app.route("/")
    def home():
        return jsonify({"message": "Course Platform API", "health": "/api/health"})

    @app.after_request
    def log_request(response):
        logger.info("%s %s -> %s", request.method, request.path, response.status_code)
        return response

    logger.info("App created with %s configuration", config_name)
    return app


if __name__ == "__main__":
    app = create_app()
    app.run(debug=app.config.get("DEBUG", False))
