import platform
from flask import Blueprint, jsonify, Response

from al_selector import __version__
from al_selector.api import config, state

monitoring_bp = Blueprint('monitoring', __name__)


@monitoring_bp.route("/metrics", methods=["GET"])
def metrics():
    from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
    return Response(generate_latest(), mimetype=CONTENT_TYPE_LATEST)


@monitoring_bp.route("/version", methods=["GET"])
def version():
    return jsonify({
        "version": config.APP_VERSION,
        "package": __version__,
        "env": config.APP_ENV,
        "python": platform.python_version(),
    })


@monitoring_bp.route("/api/health", methods=["GET"])
def health():
    with state.SESSIONS_LOCK:
        active = len(state.SESSIONS)
    return jsonify({"status": "ok", "sessions": active, "max_sessions": config.MAX_SESSIONS}), 200
