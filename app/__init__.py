"""TTLock Gateway Application Package.

To use the Flask app:
    from app.flask_app import create_app

To use the TTLock client directly:
    from app.core.ttlock import TTLockClient, SessionManager, LockService

To use the service layer (guard, bulk operations, audit):
    from app.core.access_service import AccessControlService
"""
# Note: We don't import flask_app by default to avoid Flask dependency
# for CLI scripts that only use app.core
