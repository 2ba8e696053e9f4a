from __future__ import annotations
import json, logging
from datetime import datetime

from flask import g, request
from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError
from werkzeug.exceptions import HTTPException
from werkzeug.wrappers.response import Response

from engine.errors import EngineError
from extensions import db

from . import bp, api_bp
from .helpers import error, ok, pydantic_errors_safe

log = logging.getLogger(__name__)

class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "ts": datetime.utcnow().isoformat(timespec="milliseconds") + "Z",
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        for key in ("event", "path", "method", "status", "duration_ms", "code",
                    "subject_id", "combined_slot_id", "extra_class_id"):
            if hasattr(record, key):
                payload[key] = getattr(record, key)
        return json.dumps(payload, ensure_ascii=False, default=str)

def _setup_structured_logging(app):
    level = logging.getLevelName(str(app.config.get("LOG_LEVEL", "INFO")).upper())
    if not isinstance(level, int):
        level = logging.INFO
    root = logging.getLogger()
    if app.config.get("JSON_LOGS", True):
        has_json = any(
            isinstance(h, logging.StreamHandler)
            and isinstance(getattr(h, "formatter", None), JSONFormatter)
            for h in root.handlers
        )
        if not has_json:
            handler = logging.StreamHandler()
            handler.setFormatter(JSONFormatter())
            root.addHandler(handler)
    root.setLevel(level)
    app.logger.setLevel(level)

@bp.before_app_request
def _start_timer():
    g._req_start = datetime.utcnow()

@bp.after_app_request
def _log_request(response: Response):
    start = getattr(g, "_req_start", None)
    duration_ms = int((datetime.utcnow() - start).total_seconds() * 1000) if start else None
    extra = {
        "event": "http_request",
        "path": request.path,
        "method": request.method,
        "status": response.status_code,
        "duration_ms": duration_ms,
    }
    logging.getLogger().info("request handled", extra=extra)
    return response

# ---------- error handlers ----------
@bp.app_errorhandler(EngineError)
def _engine_error(ex: EngineError):
    log.info("request rejected", extra={"event": "engine_error", "code": ex.code})
    return ok(ex.to_dict(), ex.status_code)

@bp.app_errorhandler(ValidationError)
def _validation_error(ex: ValidationError):
    return ok({"error": "Invalid payload", "code": "VALIDATION_ERROR", "details": {"errors": pydantic_errors_safe(ex)}}, 422)

@bp.app_errorhandler(IntegrityError)
def _integrity_error(ex: IntegrityError):
    db.session.rollback()
    return error("Unique constraint violation", status=409, code="UNIQUE_CONSTRAINT")

@bp.app_errorhandler(HTTPException)
def _http_error(ex: HTTPException):
    # JSON everywhere: there is no HTML surface
    return error(ex.description or ex.name, status=ex.code or 500, code=ex.name.upper().replace(" ", "_"))

@bp.record_once
def _on_register(state):
    _setup_structured_logging(state.app)

@bp.get("/health")
def health():
    return ok({
        "status": "ok",
        "ts": datetime.utcnow().isoformat(timespec="seconds") + "Z",
    })

@api_bp.get("/health")
def api_health():
    db.session.execute(db.text("SELECT 1"))
    return ok({"status": "ok", "database": "ok"})
