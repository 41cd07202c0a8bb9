from __future__ import annotations

import csv
import io
import logging
from datetime import date, time
from functools import wraps
from typing import Any, Dict, Iterable, Mapping, Optional, Sequence

from flask import Flask, jsonify, request, session
from werkzeug.exceptions import HTTPException

from ..core.constants import GRADING_CONFIG_KEY
from ..core.context import RequestContext
from ..core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConfigurationError,
    DomainError,
    ScopeUnavailableError,
    ValidationError,
)
from ..grading.model import GradingConfiguration
from ..users.repository import UserRepository
from .datetime_utils import parse_hhmm, parse_iso_date

logger = logging.getLogger(__name__)

# (status, code) per exception type; most specific first.
ERROR_STATUS = (
    (ValidationError, 400, "validation_error"),
    (AuthenticationError, 401, "authentication_error"),
    (AuthorizationError, 403, "authorization_error"),
    (ScopeUnavailableError, 409, "scope_unavailable"),
    (ConfigurationError, 500, "configuration_error"),
)


def error_response(status: int, code: str, message: str):
    return jsonify({"success": False, "code": code, "message": message}), status


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def handle_domain_error(e: DomainError):
        for exc_type, status, code in ERROR_STATUS:
            if isinstance(e, exc_type):
                if status >= 409:
                    logger.warning("%s on %s: %s", code, request.path, e)
                return error_response(status, code, str(e))
        return error_response(400, "domain_error", str(e))

    @app.errorhandler(Exception)
    def handle_unexpected(e: Exception):
        if isinstance(e, HTTPException):
            return e
        logger.exception("unhandled error on %s", request.path)
        message = f"Error del sistema: {e}" if app.config.get("DEBUG") else "Error del sistema"
        return error_response(500, "internal_error", message)


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            return error_response(401, "authentication_error", "Por favor, inicia sesión para continuar")
        return view(*args, **kwargs)

    return wrapper


def current_context(users: UserRepository) -> RequestContext:
    """Rebuild the caller's identity on every request; the grading config comes from the session."""

    user = users.get_by_id(int(session["user_id"]))
    if not user or not user.is_active:
        session.clear()
        raise AuthenticationError("Tu sesión ya no es válida")
    config = GradingConfiguration.from_mapping(session.get(GRADING_CONFIG_KEY))
    return RequestContext(user=user, grading_config=config)


def json_body() -> Dict[str, Any]:
    data = request.get_json(silent=True)
    if data is None:
        data = request.form.to_dict()
    if not isinstance(data, dict):
        raise ValidationError("Cuerpo de la petición no válido")
    return data


def optional_int(value: Any, field_name: str) -> Optional[int]:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} no es válido")


def required_date(value: Any, field_name: str) -> date:
    try:
        return parse_iso_date(str(value or ""))
    except ValueError:
        raise ValidationError(f"{field_name}: formato de fecha no válido (AAAA-MM-DD)")


def optional_date(value: Any, field_name: str) -> Optional[date]:
    if not value:
        return None
    return required_date(value, field_name)


def required_time(value: Any, field_name: str) -> time:
    try:
        return parse_hhmm(str(value or ""))
    except ValueError:
        raise ValidationError(f"{field_name}: formato de hora no válido (HH:MM)")


def ok(**payload):
    return jsonify({"success": True, **payload})


def csv_response(app: Flask, *, fieldnames: Sequence[str], rows: Iterable[Mapping[str, Any]], filename: str):
    """CSV download; BOM-prefixed so spreadsheet tools pick up UTF-8."""

    out = io.StringIO()
    writer = csv.DictWriter(out, fieldnames=list(fieldnames))
    writer.writeheader()
    for row in rows:
        writer.writerow(row)

    return app.response_class(
        out.getvalue().encode("utf-8-sig"),
        mimetype="text/csv",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )
