"""Command-line access to TTLock locks, IC cards and unlock records.

This module serves as a CLI wrapper around app.core.access_service.
Results are printed as JSON on stdout; errors go to stderr with exit code 1.
"""
from __future__ import annotations
import argparse
import getpass
import json
import logging
import sys
from pathlib import Path

SCRIPT_DIR = Path(__file__).parent
PROJECT_ROOT = SCRIPT_DIR.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from app.config import load_settings
from app.core.access_service import AccessControlService
from app.core.ttlock.exceptions import RemoteServiceError, TransportError, TTLockError
from app.core.validators import (
    MAX_DELAY_MS,
    MAX_PAGE_SIZE,
    hash_password,
    parse_card_line,
    validate_password_md5,
)


def _bounded_int(minimum: int, maximum: int | None = None):
    def parse(raw: str) -> int:
        try:
            value = int(raw)
        except ValueError:
            raise argparse.ArgumentTypeError(f"invalid integer: {raw!r}") from None
        if value < minimum or (maximum is not None and value > maximum):
            upper = maximum if maximum is not None else "inf"
            raise argparse.ArgumentTypeError(f"must be between {minimum} and {upper}")
        return value
    return parse


def read_cards_file(path: str) -> list[dict]:
    """Read ``cardNumber[,cardName[,startDate[,endDate]]]`` lines from a file."""
    cards = []
    with open(path, "r", encoding="utf-8") as f:
        for number, line in enumerate(f, start=1):
            try:
                card = parse_card_line(line)
            except ValueError as e:
                raise ValueError(f"{path}:{number}: {e}") from e
            if card:
                cards.append(card)
    if not cards:
        raise ValueError(f"{path}: no cards found")
    return cards


def describe_error(error: TTLockError) -> str:
    """One-line description keeping the error kind (and TTLock code)."""
    if isinstance(error, RemoteServiceError):
        return f"RemoteServiceError [{error.code}]: {error.message}"
    if isinstance(error, TransportError):
        status = f" (HTTP {error.status_code})" if error.status_code else ""
        return f"TransportError{status}: {error.message}"
    return f"{type(error).__name__}: {error}"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="TTLock lock and IC card helper")
    parser.add_argument("--username", help="Log in explicitly instead of using TTLOCK_USERNAME")
    parser.add_argument("--password-md5", help="MD5 digest of the password (prompted when --username is given without it)")
    parser.add_argument("--operator", help="Operator identifier for audit logs (default: AUDIT_OPERATOR)")
    parser.add_argument("--no-audit", action="store_true", help="Do not write the audit trail")
    parser.add_argument("-v", "--verbose", action="store_true")

    sub = parser.add_subparsers(dest="cmd")

    hp = sub.add_parser("hash-password", help="Print the MD5 digest TTLock expects")
    hp.add_argument("--password", help="Plain password (prompted when omitted)")

    sub.add_parser("login-check", help="Authenticate and report success")

    sl = sub.add_parser("locks")
    sl.add_argument("--page-no", type=_bounded_int(1), default=1)
    sl.add_argument("--page-size", type=_bounded_int(1, MAX_PAGE_SIZE), default=50)

    for name in ("lock-detail", "lock", "unlock", "clear-cards"):
        sp = sub.add_parser(name)
        sp.add_argument("--lock-id", type=int, required=True)
        if name == "clear-cards":
            sp.add_argument("--confirm", action="store_true", help="Required: removes every card")

    sc = sub.add_parser("cards")
    sc.add_argument("--lock-id", type=int, required=True)
    sc.add_argument("--page-no", type=_bounded_int(1), default=1)
    sc.add_argument("--page-size", type=_bounded_int(1, MAX_PAGE_SIZE), default=50)

    sa = sub.add_parser("add-card")
    sa.add_argument("--lock-id", type=int, required=True)
    sa.add_argument("--card-number", required=True)
    sa.add_argument("--card-name")
    sa.add_argument("--start-date", type=_bounded_int(0), help="Epoch ms (0 = no restriction)")
    sa.add_argument("--end-date", type=_bounded_int(0), help="Epoch ms (0 = no restriction)")

    sd = sub.add_parser("delete-card")
    sd.add_argument("--lock-id", type=int, required=True)
    sd.add_argument("--card-id", type=int, required=True)
    sd.add_argument("--delete-type", type=int, choices=[1, 2, 3], default=2,
                    help="1 = BLE, 2 = gateway, 3 = NB-IoT")

    sba = sub.add_parser("bulk-add")
    sba.add_argument("--lock-id", type=int, required=True)
    sba.add_argument("--file", required=True, help="One cardNumber[,cardName[,startDate[,endDate]]] per line")
    sba.add_argument("--delay-ms", type=_bounded_int(0, MAX_DELAY_MS), default=0)
    sba.add_argument("--stop-on-error", action="store_true")

    sbd = sub.add_parser("bulk-delete")
    sbd.add_argument("--lock-id", type=int, required=True)
    sbd.add_argument("--card-id", type=int, nargs="+", required=True, dest="card_ids")
    sbd.add_argument("--delete-type", type=int, choices=[1, 2, 3], default=2)
    sbd.add_argument("--delay-ms", type=_bounded_int(0, MAX_DELAY_MS), default=0)
    sbd.add_argument("--stop-on-error", action="store_true")

    sr = sub.add_parser("records")
    sr.add_argument("--lock-id", type=int, required=True)
    sr.add_argument("--page-no", type=_bounded_int(1), default=1)
    sr.add_argument("--page-size", type=_bounded_int(1, MAX_PAGE_SIZE), default=50)
    sr.add_argument("--start-date", type=_bounded_int(0))
    sr.add_argument("--end-date", type=_bounded_int(0))

    return parser


def run_command(service: AccessControlService, args: argparse.Namespace) -> dict:
    """Dispatch a parsed command to the service layer."""
    if args.cmd == "login-check":
        service.session.ensure_authenticated()
        return {"ok": True}
    if args.cmd == "locks":
        return service.list_locks(args.page_no, args.page_size)
    if args.cmd == "lock-detail":
        return service.lock_detail(args.lock_id)
    if args.cmd == "lock":
        return service.lock(args.lock_id)
    if args.cmd == "unlock":
        return service.unlock(args.lock_id)
    if args.cmd == "cards":
        return service.list_cards(args.lock_id, args.page_no, args.page_size)
    if args.cmd == "add-card":
        return service.add_card(args.lock_id, args.card_number, args.card_name, args.start_date, args.end_date)
    if args.cmd == "delete-card":
        return service.delete_card(args.lock_id, args.card_id, args.delete_type)
    if args.cmd == "clear-cards":
        return service.clear_cards(args.lock_id, confirm=args.confirm)
    if args.cmd == "bulk-add":
        cards = read_cards_file(args.file)
        return service.bulk_add_cards(
            args.lock_id, cards, delay_ms=args.delay_ms, continue_on_error=not args.stop_on_error
        )
    if args.cmd == "bulk-delete":
        return service.bulk_delete_cards(
            args.lock_id,
            args.card_ids,
            delete_type=args.delete_type,
            delay_ms=args.delay_ms,
            continue_on_error=not args.stop_on_error,
        )
    if args.cmd == "records":
        return service.list_unlock_records(
            args.lock_id, args.page_no, args.page_size, args.start_date, args.end_date
        )
    raise ValueError(f"Unknown command: {args.cmd}")


def _failed(result: dict) -> bool:
    """True for refused clears and batches with any failed item."""
    if result.get("ok") is False:
        return True
    return "abortedOn" in result or bool(result.get("failure"))


def main(argv: list[str] | None = None) -> None:
    """Command-line entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.cmd:
        parser.print_help()
        return

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.cmd == "hash-password":
        plain = args.password if args.password is not None else getpass.getpass("TTLock password: ")
        print(hash_password(plain))
        return

    try:
        cfg = load_settings()
    except (RuntimeError, ValueError) as e:
        parser.error(str(e))

    service = AccessControlService.from_config(cfg, audit_enabled=not args.no_audit)
    if args.operator:
        service.operator = args.operator

    try:
        if args.username:
            password_md5 = args.password_md5 or hash_password(getpass.getpass("TTLock password: "))
            service.login(args.username, validate_password_md5(password_md5, "--password-md5"))
        result = run_command(service, args)
    except TTLockError as e:
        print(f"[{args.cmd}] Error: {describe_error(e)}", file=sys.stderr)
        sys.exit(1)
    except (ValueError, OSError) as e:
        print(f"[{args.cmd}] Error: {e}", file=sys.stderr)
        sys.exit(1)

    print(json.dumps(result, indent=2, ensure_ascii=False))
    if _failed(result):
        sys.exit(1)


if __name__ == "__main__":
    main()
