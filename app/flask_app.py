"""Flask application factory and bootstrap.

This module provides the create_app() factory function for initializing
the tool API with its blueprints, error handlers and TTLock session.
"""
from __future__ import annotations
from typing import Optional

from flask import Flask

from app.config import AppConfig, load_settings
from app.core.access_service import AccessControlService


# ─────────────────────────────────────────────────────────────────────────────
# Application Factory
# ─────────────────────────────────────────────────────────────────────────────
def create_app(cfg: Optional[AppConfig] = None, service: Optional[AccessControlService] = None) -> Flask:
    """Create and configure Flask application.

    Args:
        cfg: Settings (loaded from the environment by default)
        service: Service layer to expose (built from cfg by default)
    """
    cfg = cfg or load_settings()

    app = Flask(__name__)

    # Store config and the process-wide TTLock session for routes
    app.config["APP_CONFIG"] = cfg
    app.config["ACCESS_SERVICE"] = service or AccessControlService.from_config(cfg)

    # Register blueprints
    from app.api import health, errors, tools

    app.register_blueprint(health.bp)
    app.register_blueprint(tools.bp, url_prefix="/tools")

    # Register error handlers
    errors.register_error_handlers(app)

    # Log startup info
    print(f"[flask_app] {cfg.server_name}: {len(tools.TOOLS)} tools registered at /tools (api={cfg.api_base})")
    if cfg.has_default_credentials:
        print("[flask_app] Implicit login enabled (TTLOCK_USERNAME / TTLOCK_PASSWORD_MD5)")
    else:
        print("[flask_app] No default credentials - callers must use the auth.login tool")

    return app


if __name__ == "__main__":
    create_app().run(host="0.0.0.0", port=5000, debug=True, threaded=False)
