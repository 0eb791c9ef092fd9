# baoleme/utils/debug_routes.py
import os

from flask import jsonify

SAFE_ENV_KEYS = {"PYTHON_VERSION", "LOG_LEVEL"}


def register_debug_routes(app):
    """
    Introspection endpoints, only when DEBUG_ROUTES=1.
    Never enable in production.
    """
    if os.getenv("DEBUG_ROUTES") != "1" and not app.config.get("DEBUG_ROUTES"):
        return

    @app.get("/api/_routes")
    def _routes():
        out = []
        for rule in app.url_map.iter_rules():
            methods = sorted(m for m in rule.methods if m in {
                "GET", "POST", "PUT", "DELETE", "PATCH"
            })
            out.append({"rule": str(rule), "endpoint": rule.endpoint, "methods": methods})
        out.sort(key=lambda r: r["rule"])
        return jsonify(out)

    @app.get("/api/health/full")
    def _health_full():
        bps = sorted(app.blueprints.keys())
        env = {k: os.getenv(k) for k in SAFE_ENV_KEYS if os.getenv(k)}
        db_backend = app.config["SQLALCHEMY_DATABASE_URI"].split(":", 1)[0]
        return jsonify({"status": "ok", "blueprints": bps, "database": db_backend, "env": env})
