"""
api.routes_events - /api/v1/events/storage notification endpoint.
"""

from flask import request, jsonify

from api import api_bp, get_database, get_store
from import_engine import handle_storage_event
from import_engine.errors import StreamError, StructuralInputError


@api_bp.route("/events/storage", methods=["POST"])
def storage_event():
    """
    POST /api/v1/events/storage   {"bucket": "...", "name": "..."}

    Imports the object when its name identifies an entity.
    """
    event = request.get_json(silent=True)
    if not isinstance(event, dict):
        return jsonify({"error": "JSON object body required"}), 400

    try:
        report = handle_storage_event(get_database(), get_store(), event)
    except StructuralInputError as exc:
        return jsonify({"error": str(exc)}), 400
    except StreamError as exc:
        return jsonify({"error": str(exc)}), 404

    if report is None:
        return jsonify({"status": "ignored", "name": event.get("name")})
    return jsonify({"status": "imported", "report": report.to_dict()})
