"""Gunicorn configuration file for the TTLock tool gateway.

A single sync worker with a single thread is used: the TTLock token pair
lives in process memory, and one process means one session whose calls are
issued one at a time.

Secrets (TTLOCK_CLIENT_SECRET, TTLOCK_PASSWORD_MD5) are read by
app/config/settings.py from /run/secrets first, then from the environment.
"""
import os
from pathlib import Path

wsgi_app = "app.flask_app:create_app()"
bind = os.environ.get("GUNICORN_BIND", "0.0.0.0:5000")
workers = 1
threads = 1
# bulk card tools sleep delayMs between items
timeout = int(os.environ.get("GUNICORN_TIMEOUT", "120"))


def post_fork(server, worker):
    """Called just after a worker has been forked; reports where secrets come from."""
    secrets_dir = Path("/run/secrets")
    if secrets_dir.exists() and secrets_dir.is_dir():
        secret_files = list(secrets_dir.glob("ttlock_*"))
        if secret_files:
            worker.log.info(f"Found {len(secret_files)} TTLock secrets in /run/secrets")
            return

    if not os.environ.get("TTLOCK_CLIENT_SECRET"):
        worker.log.error("TTLOCK_CLIENT_SECRET not found in /run/secrets or environment")
        return

    worker.log.info("Using TTLock secrets from environment")
