"""
import_engine - Transactional CSV loader for carriers, drivers and vehicles.

Public API:
    run_import(database, entity, source, file_name=None) → ImportReport
    handle_storage_event(database, store, event)          → ImportReport | None
    entity_for(object_name)                               → entity | None
"""

from import_engine.importer import run_import, IMPORTERS       # noqa: F401
from import_engine.report import ImportReport                  # noqa: F401
from import_engine.dispatcher import entity_for, handle_storage_event   # noqa: F401
