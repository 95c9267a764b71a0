"""
api.errors - JSON error handlers for the API blueprint.

Loader errors that escape a route are mapped to a status code by kind;
everything else falls through to the generic 500 handler.
"""

import logging

from flask import jsonify

from api import api_bp
from import_engine.errors import (
    ConfigurationError, LoaderError, ReferentialError, StreamError,
)

logger = logging.getLogger(__name__)

_STATUS_BY_KIND = {
    ConfigurationError: 503,
    StreamError:        502,
    ReferentialError:   409,
}


@api_bp.errorhandler(LoaderError)
def api_loader_error(e):
    status = next((code for kind, code in _STATUS_BY_KIND.items()
                   if isinstance(e, kind)), 400)
    logger.error("%s: %s", e.kind, e)
    return jsonify({"error": str(e), "kind": e.kind}), status


@api_bp.errorhandler(404)
def api_not_found(_e):
    return jsonify({"error": "not found"}), 404


@api_bp.errorhandler(400)
def api_bad_request(_e):
    return jsonify({"error": "bad request"}), 400


@api_bp.errorhandler(405)
def api_method_not_allowed(_e):
    return jsonify({"error": "method not allowed"}), 405


@api_bp.errorhandler(500)
def api_server_error(_e):
    return jsonify({"error": "internal server error"}), 500
