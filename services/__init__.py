"""
services - Storage and inbox plumbing sitting in front of the import engine.
"""

from services.storage_service import LocalObjectStore   # noqa: F401
from services.inbox_service import ingest_inbox         # noqa: F401
