import logging

from flask import Blueprint, current_app, jsonify
from sqlalchemy import func, select, text
from sqlalchemy.exc import SQLAlchemyError

from models import db
from utils.helpers import utcnow

logger = logging.getLogger(__name__)

health_bp = Blueprint("health_bp", __name__)


# Liveness
@health_bp.route("", methods=["GET"])
def health():
    return jsonify({
        "status": "online",
        "server": "running",
        "timestamp": utcnow().isoformat(),
        "environment": current_app.config.get("ENV_NAME", "production"),
    }), 200


# Readiness: the store answers and every table is queryable
@health_bp.route("/db", methods=["GET"])
def database_health():
    try:
        db.session.execute(text("SELECT 1"))
        tables = {
            name: db.session.execute(select(func.count()).select_from(table)).scalar()
            for name, table in sorted(db.metadata.tables.items())
        }
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error("Database health check failed: %s", e)
        return jsonify({
            "success": False,
            "message": "Error checking database health",
            "error": str(e.__cause__ or e),
        }), 500

    return jsonify({"success": True, "message": "Database connection is healthy", "tables": tables}), 200
