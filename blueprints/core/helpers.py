# blueprints/core/helpers.py
from __future__ import annotations
from datetime import date
from typing import Any, Type, TypeVar

from flask import jsonify, request
from pydantic import BaseModel, ValidationError

from engine.errors import InvalidInput
from repository import Repository, get_repository

T = TypeVar("T", bound=BaseModel)


def ok(data: Any, status: int = 200):
    return jsonify(data), status

def created(data: Any, location: str | None = None):
    resp = jsonify(data)
    resp.status_code = 201
    if location:
        resp.headers["Location"] = location
    return resp

def error(msg: str, status: int = 400, code: str | None = None, details: dict | None = None):
    payload: dict[str, Any] = {"error": msg}
    if code: payload["code"] = code
    if details: payload["details"] = details
    return jsonify(payload), status

def pydantic_errors_safe(ve: ValidationError) -> list[dict]:
    errs = ve.errors(include_url=False)
    for e in errs:
        if "ctx" in e and isinstance(e["ctx"], dict):
            e["ctx"] = {k: str(v) for k, v in e["ctx"].items()}
        if "input" in e:
            e["input"] = str(e["input"])
    return errs

def repo() -> Repository:
    return get_repository()

def parse_body(schema: Type[T]) -> T:
    # ValidationError propagates to the core 422 handler
    payload = request.get_json(silent=True)
    if payload is None:
        payload = {}
    return schema.model_validate(payload)

def parse_date(value: str | None, field: str, *, required: bool = True) -> date | None:
    if not value:
        if required:
            raise InvalidInput(f"{field} is required", code="MISSING_FIELD", details={"field": field})
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise InvalidInput(f"{field} must be an ISO date (YYYY-MM-DD)", code="BAD_DATE",
                           details={"field": field, "value": value})

def today_arg() -> date:
    """The single 'today' reference of a request: ?today=YYYY-MM-DD or the local date."""
    return parse_date(request.args.get("today"), "today", required=False) or date.today()

def bool_arg(name: str, default: bool = False) -> bool:
    raw = request.args.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")
