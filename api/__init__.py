"""
api - REST API layer.

All route modules register on a single Flask Blueprint
with url_prefix /api/v1.  The app factory puts the Database and the
object store in app.extensions; routes fetch them with the helpers
below.
"""

from flask import Blueprint, current_app

api_bp = Blueprint("api", __name__, url_prefix="/api/v1")

DB_EXTENSION = "fleetload_db"
STORE_EXTENSION = "fleetload_store"


def get_database():
    return current_app.extensions[DB_EXTENSION]


def get_store():
    return current_app.extensions[STORE_EXTENSION]


# Import route modules so their @api_bp decorators execute
from api import routes_import     # noqa: F401, E402
from api import routes_events     # noqa: F401, E402
from api import routes_health     # noqa: F401, E402
from api import errors            # noqa: F401, E402
