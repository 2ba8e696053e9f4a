from __future__ import annotations
import logging
import os
from importlib import import_module
from flask import Flask
from config import config_map
from extensions import db, migrate
from repository import init_repository
from sqlalchemy import inspect

log = logging.getLogger(__name__)

def _seed_from_config(app):
    if not app.config.get("SEED_DEMO_DATA"):
        return
    with app.app_context():
        # tables may not exist yet (before `flask db upgrade`)
        if not inspect(db.engine).has_table("subjects"):
            return
        from seed import seed_demo  # local import: seed imports create_app
        repo = app.extensions["attendance_repository"]
        if seed_demo(repo):
            log.info("demo data seeded", extra={"event": "demo_seeded"})

def register_blueprints(app: Flask) -> None:
    # core first: it installs logging and the error handlers
    import_module("blueprints.core.routes")
    from blueprints.core import bp as core_bp, api_bp as core_api_bp
    from blueprints.timetable import api_bp as timetable_api_bp
    from blueprints.term import api_bp as term_api_bp
    from blueprints.attendance import api_bp as attendance_api_bp
    from blueprints.import_export import api_bp as import_export_api_bp

    # core without prefix: '/health' at the root
    app.register_blueprint(core_bp)
    app.register_blueprint(core_api_bp, url_prefix="/api/v1")
    app.register_blueprint(timetable_api_bp, url_prefix="/api/v1")
    app.register_blueprint(term_api_bp, url_prefix="/api/v1")
    app.register_blueprint(attendance_api_bp, url_prefix="/api/v1")
    app.register_blueprint(import_export_api_bp, url_prefix="/api/v1")

def create_app(config_name: str | None = None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    cfg_name = config_name or os.getenv("FLASK_CONFIG", "default")
    app.config.from_object(config_map[cfg_name])
    # archive tables keep their declared order
    app.json.sort_keys = app.config.get("JSON_SORT_KEYS", False)
    # pytest always sets PYTEST_CURRENT_TEST: keep every test on its own in-memory database
    if os.environ.get("PYTEST_CURRENT_TEST"):
        app.config["SQLALCHEMY_DATABASE_URI"] = "sqlite:///:memory:"
        app.config.setdefault("SQLALCHEMY_ENGINE_OPTIONS", {"connect_args": {"check_same_thread": False}})

    try:
        os.makedirs(app.instance_path, exist_ok=True)
    except OSError:
        pass
    db.init_app(app)
    migrate.init_app(app, db)
    init_repository(app, db)
    register_blueprints(app)
    _seed_from_config(app)
    return app
