#!/usr/bin/env python3
"""
FleetLoad - Carrier / driver / vehicle CSV loader
==================================================

    python main.py serve                      HTTP API
    python main.py import vehicle file.csv    one file, report on stdout
    python main.py event <bucket> <name>      replay a storage notification
    python main.py ingest-inbox               inbox → store → import
    python main.py init-db                    create tables

See config.py for all environment-variable tunables.
"""

import argparse
import json
import logging
import sys
from typing import Optional

from flask import Flask, jsonify

import config
from db import init_db
from import_engine import IMPORTERS, handle_storage_event, run_import
from import_engine.errors import ConfigurationError, StreamError
from services import LocalObjectStore, ingest_inbox

logger = logging.getLogger("fleetload")


def configure_logging(level: Optional[str] = None) -> None:
    logging.basicConfig(
        level=level or config.LOG_LEVEL,
        format=config.LOG_FORMAT,
        stream=sys.stderr,
        force=True,
    )


def create_app(db_url: Optional[str] = None, store: Optional[LocalObjectStore] = None) -> Flask:
    """Flask application factory."""
    from api import api_bp, DB_EXTENSION, STORE_EXTENSION

    app = Flask(__name__)

    # ── Database + object store ─────────────────────────────────────
    database = init_db(db_url)
    app.extensions[DB_EXTENSION] = database
    app.extensions[STORE_EXTENSION] = store or LocalObjectStore()
    logger.info("Database: %s", database.url.render_as_string(hide_password=True))

    # ── Register blueprints ─────────────────────────────────────────
    app.register_blueprint(api_bp)

    # ── Error handlers ──────────────────────────────────────────────
    @app.errorhandler(404)
    def _404(e):
        return jsonify({"error": "not found"}), 404

    @app.errorhandler(500)
    def _500(e):
        return jsonify({"error": "internal server error"}), 500

    return app


# ── CLI commands ───────────────────────────────────────────────────────

def _print_report(report) -> None:
    print(f"  {report.entity}: {report.summary()}")
    if report.errors:
        print(f"  First errors (max {config.REPORT_ERROR_PREVIEW}):")
        for err in report.errors[:config.REPORT_ERROR_PREVIEW]:
            print(f"    Row {err['row']} [{err['kind']}] {err['key']}: {err['reason']}")
    if report.fatal:
        print(f"  FATAL: {report.fatal}")


def cmd_serve(args) -> int:
    app = create_app()
    print(f"\n  http://{config.HOST}:{config.PORT}")
    app.run(host=config.HOST, port=config.PORT, debug=config.DEBUG)
    return 0


def cmd_import(args) -> int:
    database = init_db()
    try:
        with open(args.path, "rb") as fh:
            report = run_import(database, args.entity, fh, file_name=args.path)
    finally:
        database.dispose()
    if args.json:
        print(json.dumps(report.to_dict(), ensure_ascii=False, indent=2))
    else:
        _print_report(report)
    return 0 if report.ok else 1


def cmd_event(args) -> int:
    database = init_db()
    try:
        report = handle_storage_event(database, LocalObjectStore(),
                                      {"bucket": args.bucket, "name": args.name})
    finally:
        database.dispose()
    if report is None:
        print(f"  {args.name}: ignored")
        return 0
    _print_report(report)
    return 0 if report.ok else 1


def cmd_ingest_inbox(args) -> int:
    database = None if args.no_import else init_db()
    try:
        names = ingest_inbox(LocalObjectStore(), database=database)
    finally:
        if database is not None:
            database.dispose()
    print(f"  {len(names)} files ingested")
    return 0


def cmd_init_db(args) -> int:
    database = init_db()
    database.dispose()
    print("  Tables created")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="fleetload", description=__doc__.splitlines()[1])
    parser.add_argument("--log-level", default=None, help="override FLEETLOAD_LOG_LEVEL")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("serve", help="run the HTTP API")
    p.set_defaults(func=cmd_serve)

    p = sub.add_parser("import", help="import one CSV file")
    p.add_argument("entity", choices=sorted(IMPORTERS))
    p.add_argument("path")
    p.add_argument("--json", action="store_true", help="print the report as JSON")
    p.set_defaults(func=cmd_import)

    p = sub.add_parser("event", help="handle a storage notification")
    p.add_argument("bucket")
    p.add_argument("name")
    p.set_defaults(func=cmd_event)

    p = sub.add_parser("ingest-inbox", help="copy new inbox files into the store")
    p.add_argument("--no-import", action="store_true", help="copy only, do not import")
    p.set_defaults(func=cmd_ingest_inbox)

    p = sub.add_parser("init-db", help="create the tables")
    p.set_defaults(func=cmd_init_db)
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)

    try:
        config.check_required("DB_URL")
        return args.func(args)
    except ConfigurationError as exc:
        logger.critical("FATAL: %s", exc)
        return 2
    except StreamError as exc:
        logger.error("%s", exc)
        return 1


if __name__ == "__main__":
    sys.exit(main())
