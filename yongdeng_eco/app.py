"""Web application wiring: CORS, static pages, downloads and the JSON API."""

from __future__ import annotations

import argparse
import os
from collections.abc import Callable
from pathlib import Path

from flask import Flask, g, jsonify, request, send_from_directory
from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from . import controllers

DEFAULT_JWT_KEY = "secret"
DEFAULT_PORT = 8080

_CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, PUT, DELETE, OPTIONS",
    "Access-Control-Allow-Headers": "Origin, Content-Type, Accept, Authorization",
    "Access-Control-Expose-Headers": "Content-Length",
    "Access-Control-Allow-Credentials": "true",
}


def create_app(
    session_factory: Callable[[], Session],
    frontend_dir: str | os.PathLike[str] = "frontend",
    jwt_key: str | bytes = DEFAULT_JWT_KEY,
) -> Flask:
    """Build the application around a session factory and a frontend directory."""
    frontend = Path(frontend_dir).resolve()
    static = frontend / "static"

    app = Flask(__name__, static_folder=str(static), static_url_path="/static")
    app.json.ensure_ascii = False
    app.config["JWT_KEY"] = jwt_key

    @app.before_request
    def _preflight():
        if request.method == "OPTIONS":
            return "", 204
        return None

    @app.after_request
    def _cors(response):
        response.headers.update(_CORS_HEADERS)
        return response

    @app.before_request
    def _open_session():
        g.db = session_factory()

    @app.teardown_request
    def _close_session(_exc):
        session = g.pop("db", None)
        if session is not None:
            session.close()

    @app.get("/")
    def index():
        return send_from_directory(frontend, "page.html")

    @app.get("/yongdeng_boundary.json")
    def boundary():
        return send_from_directory(static, "yongdeng_boundary.json")

    def _pdf_view(name: str):
        def view():
            if not (frontend / name).exists():
                return jsonify(error=f"{name} not found"), 404
            return send_from_directory(frontend, name)

        return view

    for pdf in ("usage.pdf", "risk.pdf"):
        app.add_url_rule(f"/{pdf}", endpoint=pdf, view_func=_pdf_view(pdf))

    app.add_url_rule(
        "/api/auth/register", view_func=controllers.register_user, methods=["POST"]
    )
    app.add_url_rule("/api/auth/login", view_func=controllers.login, methods=["POST"])
    app.add_url_rule(
        "/api/riskusage/gridcode", view_func=controllers.risk_usage_by_gridcode
    )
    app.add_url_rule("/api/risks/gridcode", view_func=controllers.risks_by_gridcode)
    app.add_url_rule("/api/usages/gridcode", view_func=controllers.usages_by_gridcode)

    return app


def main(argv: list[str] | None = None) -> None:
    """Run the server."""
    parser = argparse.ArgumentParser(
        prog="yongdeng-eco",
        description="Serve the ecology map and its grid-code search API.",
    )
    parser.add_argument(
        "--database-url",
        default=os.environ.get("DATABASE_URL"),
        help="SQLAlchemy database URL (default: $DATABASE_URL)",
    )
    parser.add_argument("--frontend", default="frontend", help="frontend directory")
    parser.add_argument("--host", default="0.0.0.0")
    parser.add_argument("--port", type=int, default=DEFAULT_PORT)
    parser.add_argument(
        "--jwt-key",
        default=os.environ.get("JWT_KEY", DEFAULT_JWT_KEY),
        help="token signing key (default: $JWT_KEY)",
    )
    args = parser.parse_args(argv)

    if not args.database_url:
        parser.error("no database URL given (use --database-url or DATABASE_URL)")

    try:
        engine = create_engine(args.database_url)
    except (SQLAlchemyError, ImportError) as exc:
        raise SystemExit(f"Failed to load config: {exc}") from exc

    app = create_app(sessionmaker(bind=engine), args.frontend, args.jwt_key)
    app.run(host=args.host, port=args.port)