"""Core Business Logic Module

This module provides the TTLock access-control logic, independent of
HTTP frameworks.

Module Structure:
    - ttlock/           : TTLock cloud client, session guard, lock/card/record services
    - batch.py          : Serial batch runner with per-item reports
    - access_service.py : Service layer shared by the tool API and the CLI
    - validators.py     : Tool and CLI argument validation

Usage Pattern:
    These modules are NOT auto-imported to avoid Flask dependencies
    when using only the TTLock client standalone.

    Import explicitly when needed:
        from app.core.access_service import AccessControlService
        from app.core.batch import run_batch
        from app.core.validators import validate_card_entries
"""
