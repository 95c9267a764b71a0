"""
api.routes_health - /api/v1/health liveness probe.
"""

from flask import jsonify

from api import api_bp, get_database
from import_engine.errors import ConfigurationError


@api_bp.route("/health")
def health():
    try:
        get_database().check()
    except ConfigurationError as exc:
        return jsonify({"ok": False, "error": str(exc)}), 503
    return jsonify({"ok": True})
