"""HTTP handlers for account management and grid-code searches.

The handlers expect ``flask.g.db`` to hold an open SQLAlchemy session and the
application config to hold the signing key under ``JWT_KEY``.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Callable, Iterable, Mapping
from datetime import datetime, timedelta, timezone
from typing import Any

import jwt
from flask import current_app, g, jsonify, request
from sqlalchemy.exc import SQLAlchemyError

from . import models

log = logging.getLogger(__name__)

TOKEN_LIFETIME = timedelta(hours=24)
JWT_ALGORITHM = "HS256"

_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1
_INTEGER = re.compile(r"[+-]?[0-9]+")

_USER_FIELDS = ("username", "email", "password")
_LOGIN_FIELDS = ("username", "password")


class _InvalidInput(ValueError):
    """The request body could not be bound to the expected fields."""


def _parse_int(text: str) -> int:
    """Parse a signed decimal integer that fits in 64 bits."""
    if not _INTEGER.fullmatch(text):
        raise ValueError(f'parsing "{text}": invalid syntax')
    number = int(text)
    if not _INT64_MIN <= number <= _INT64_MAX:
        raise ValueError(f'parsing "{text}": value out of range')
    return number


def _read_json() -> Mapping[str, Any]:
    raw = request.get_data()
    if not raw.strip():
        raise _InvalidInput("empty request body")
    try:
        parsed = json.loads(raw)
    except (ValueError, UnicodeDecodeError) as exc:
        raise _InvalidInput(str(exc)) from exc
    if parsed is None:
        return {}
    if not isinstance(parsed, dict):
        raise _InvalidInput("request body is not an object")
    return parsed


def _request_payload() -> Mapping[str, Any]:
    """Read the body as JSON or as form data, depending on its content type."""
    if request.mimetype == "application/json":
        return _read_json()
    return request.form


def _bind(payload: Mapping[str, Any], names: Iterable[str]) -> dict[str, str]:
    """Pick string fields out of a payload, matching keys without regard to case."""
    wanted = {name.casefold(): name for name in names}
    fields = {name: "" for name in wanted.values()}
    for key, value in payload.items():
        name = wanted.get(str(key).casefold())
        if name is None:
            continue
        if value is None:
            continue
        if not isinstance(value, str):
            raise _InvalidInput(f"field {key!r} must be a string")
        fields[name] = value
    return fields


def generate_jwt(user: models.User, key: str | bytes) -> str:
    """Sign an HS256 token naming the user as issuer, valid for 24 hours."""
    expires = datetime.now(timezone.utc) + TOKEN_LIFETIME
    claims = {"exp": int(expires.timestamp()), "iss": f"{user.id}"}
    try:
        return jwt.encode(claims, key, algorithm=JWT_ALGORITHM)
    except (jwt.PyJWTError, TypeError, ValueError) as exc:
        log.error("Error signing token: %s", exc)
        raise


def register_user():
    """Create an account from JSON or form fields."""
    try:
        fields = _bind(_request_payload(), _USER_FIELDS)
    except _InvalidInput:
        return jsonify(error="Invalid input"), 400

    user = models.User(**fields)
    try:
        models.create_user(g.db, user)
    except (SQLAlchemyError, ValueError) as exc:
        return jsonify(error=str(exc)), 500

    return jsonify(
        message="Registration successful",
        username=user.username,
        email=user.email,
    )


def login():
    """Check a username and password and answer with a signed token."""
    try:
        fields = _bind(_read_json(), _LOGIN_FIELDS)
    except _InvalidInput:
        return jsonify(error="Invalid input"), 400

    try:
        user = models.get_user_by_username(g.db, fields["username"])
    except SQLAlchemyError:
        return jsonify(error="Invalid username or password"), 401

    if not user.verify_password(fields["password"]):
        return jsonify(error="Invalid username or password"), 401

    try:
        token = generate_jwt(user, current_app.config["JWT_KEY"])
    except (jwt.PyJWTError, TypeError, ValueError):
        return jsonify(error="Failed to generate token"), 500

    return jsonify(message="Login successful", token=token)


def _search(lookup: Callable[[Any, int], list]):
    text = request.args.get("gridcode", "")
    if not text:
        return jsonify(code=400, message="gridcode参数不能为空"), 400

    try:
        gridcode = _parse_int(text)
    except ValueError as exc:
        return jsonify(code=400, message="无效的gridcode格式", error=str(exc)), 400

    try:
        rows = lookup(g.db, gridcode)
    except SQLAlchemyError as exc:
        return jsonify(code=500, message="查询数据失败", error=str(exc)), 500

    return jsonify(
        code=200,
        message="查询成功",
        count=len(rows),
        data=[row.to_dict() for row in rows],
    )


def risk_usage_by_gridcode():
    """List the combined risk/usage polygons for the ``gridcode`` query value."""
    return _search(models.get_risk_usage_by_gridcode)


def risks_by_gridcode():
    """List the risk polygons for the ``gridcode`` query value."""
    return _search(models.get_risks_by_gridcode)


def usages_by_gridcode():
    """List the land-use polygons for the ``gridcode`` query value."""
    return _search(models.get_usages_by_gridcode)