from flask import Blueprint, jsonify
from sqlalchemy import text

from loyalty_auth.api.container import get_container

bp_health = Blueprint("health", __name__, url_prefix="/health")


@bp_health.get("")
def health():
    return jsonify({"status": "ok"}), 200


@bp_health.get("/db")
def health_db():
    with get_container().db_session() as session:
        session.execute(text("select 1"))
    return jsonify({"db": "ok"}), 200
