"""Tool endpoints exposing TTLock operations.

Each tool takes a JSON object of arguments and answers with a JSON result:

    POST /tools/cards.bulkAdd
    {"lockId": 100, "cards": [{"cardNumber": "123456"}], "delayMs": 250}

Arguments are validated before any call reaches TTLock; invalid arguments
answer 400. Privileged tools run the session guard through the service layer.
"""
from __future__ import annotations
import logging
from typing import Any, Callable, Dict

from flask import Blueprint, current_app, jsonify, request

from app.core.access_service import AccessControlService
from app.core.validators import (
    MAX_DELAY_MS,
    MAX_PAGE_SIZE,
    optional_int,
    optional_str,
    require_bool,
    require_int,
    require_str,
    validate_card_entries,
    validate_card_ids,
    validate_card_number,
    validate_delete_type,
    validate_password_md5,
)

logger = logging.getLogger(__name__)

bp = Blueprint("tools", __name__)

ToolHandler = Callable[[AccessControlService, Dict[str, Any]], Any]
TOOLS: Dict[str, ToolHandler] = {}


class UnknownToolError(LookupError):
    """Requested tool name is not registered."""
    pass


def tool(name: str):
    """Register a handler under a tool name."""
    def decorator(fn: ToolHandler) -> ToolHandler:
        TOOLS[name] = fn
        return fn
    return decorator


def get_service() -> AccessControlService:
    return current_app.config["ACCESS_SERVICE"]


def _page_args(args: dict) -> tuple[int, int]:
    return (
        require_int(args, "pageNo", default=1, minimum=1),
        require_int(args, "pageSize", default=50, minimum=1, maximum=MAX_PAGE_SIZE),
    )


def _batch_args(args: dict) -> tuple[int, bool]:
    return (
        require_int(args, "delayMs", default=0, minimum=0, maximum=MAX_DELAY_MS),
        require_bool(args, "continueOnError", default=True),
    )


# ─────────────────────────────────────────────────────────────────────────────
# Tools
# ─────────────────────────────────────────────────────────────────────────────
@tool("ping")
def ping(service, args):
    return {"pong": True, "echo": require_str(args, "text", default="pong")}


@tool("auth.login")
def auth_login(service, args):
    username = require_str(args, "username")
    password_md5 = validate_password_md5(args.get("passwordMd5"))
    return service.login(username, password_md5)


@tool("auth.refresh")
def auth_refresh(service, args):
    return service.refresh()


@tool("locks.list")
def locks_list(service, args):
    page_no, page_size = _page_args(args)
    return service.list_locks(page_no, page_size)


@tool("locks.detail")
def locks_detail(service, args):
    return service.lock_detail(require_int(args, "lockId"))


@tool("locks.unlock")
def locks_unlock(service, args):
    return service.unlock(require_int(args, "lockId"))


@tool("locks.lock")
def locks_lock(service, args):
    return service.lock(require_int(args, "lockId"))


@tool("cards.list")
def cards_list(service, args):
    lock_id = require_int(args, "lockId")
    page_no, page_size = _page_args(args)
    return service.list_cards(lock_id, page_no, page_size)


@tool("cards.add")
def cards_add(service, args):
    return service.add_card(
        require_int(args, "lockId"),
        validate_card_number(args.get("cardNumber")),
        optional_str(args, "cardName"),
        optional_int(args, "startDate", minimum=0),
        optional_int(args, "endDate", minimum=0),
    )


@tool("cards.bulkAdd")
def cards_bulk_add(service, args):
    lock_id = require_int(args, "lockId")
    cards = validate_card_entries(args.get("cards"))
    delay_ms, continue_on_error = _batch_args(args)
    return service.bulk_add_cards(lock_id, cards, delay_ms=delay_ms, continue_on_error=continue_on_error)


@tool("cards.delete")
def cards_delete(service, args):
    return service.delete_card(
        require_int(args, "lockId"),
        require_int(args, "cardId"),
        validate_delete_type(args),
    )


@tool("cards.bulkDelete")
def cards_bulk_delete(service, args):
    lock_id = require_int(args, "lockId")
    card_ids = validate_card_ids(args.get("cardIds"))
    delete_type = validate_delete_type(args)
    delay_ms, continue_on_error = _batch_args(args)
    return service.bulk_delete_cards(
        lock_id,
        card_ids,
        delete_type=delete_type,
        delay_ms=delay_ms,
        continue_on_error=continue_on_error,
    )


@tool("cards.clear")
def cards_clear(service, args):
    return service.clear_cards(require_int(args, "lockId"), require_bool(args, "confirm", default=False))


@tool("records.list")
def records_list(service, args):
    lock_id = require_int(args, "lockId")
    page_no, page_size = _page_args(args)
    return service.list_unlock_records(
        lock_id,
        page_no,
        page_size,
        optional_int(args, "startDate", minimum=0),
        optional_int(args, "endDate", minimum=0),
    )


# ─────────────────────────────────────────────────────────────────────────────
# Routes
# ─────────────────────────────────────────────────────────────────────────────
@bp.route("", methods=["GET"])
def list_tools():
    cfg = current_app.config.get("APP_CONFIG")
    return jsonify({
        "server": cfg.server_name if cfg else "ttlock-gateway",
        "tools": sorted(TOOLS),
    })


@bp.route("/<name>", methods=["POST"])
def call_tool(name: str):
    handler = TOOLS.get(name)
    if handler is None:
        raise UnknownToolError(f"Unknown tool: {name}")

    args = request.get_json(silent=True)
    if args is None:
        if request.get_data():
            raise ValueError("Tool arguments must be valid JSON")
        args = {}
    if not isinstance(args, dict):
        raise ValueError("Tool arguments must be a JSON object")

    logger.info("Tool call: %s", name)
    return jsonify(handler(get_service(), args))
