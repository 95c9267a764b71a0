"""
api.routes_import - /api/v1/import/<entity> endpoint.

Accepts CSV via multipart file upload or raw request body.
"""

from flask import request, jsonify

from api import api_bp, get_database
from import_engine import IMPORTERS, run_import


@api_bp.route("/import/<entity>", methods=["POST"])
def api_import_csv(entity):
    """
    POST /api/v1/import/carrier|driver|vehicle

    Multipart: field name 'csv_file'
    Or: raw CSV as request body (Content-Type: text/csv).
    """
    if entity not in IMPORTERS:
        return jsonify({"error": f"unknown entity '{entity}'"}), 404

    file_name = None
    if request.content_type and "multipart" in request.content_type:
        f = request.files.get("csv_file")
        if not f:
            return jsonify({"error": "no csv_file in upload"}), 400
        file_name = f.filename
        content = f.read()
    else:
        content = request.get_data()

    if not content:
        return jsonify({"error": "empty body"}), 400

    report = run_import(get_database(), entity, content, file_name=file_name)
    return jsonify(report.to_dict())
