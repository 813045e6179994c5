"""Command line entry point for inspectrec.

Usage:
    inspectrec list                              # All records
    inspectrec add I021 ABC0021 "Ada Byron" 1/9/2025
    inspectrec search abc1234                    # Exact, case-insensitive
    inspectrec search abc --substring            # Substring match
    inspectrec update I001 --owner "John Roe"    # Omitted fields are kept
    inspectrec delete I001                       # Asks Y/n unless --yes
    inspectrec menu                              # Interactive menu
    inspectrec audit --last 10                   # Recent audit entries
    inspectrec --json search I001                # JSON output
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Any, List, Optional

from inspectrec.config import ConfigError, Grammar, Settings, load_settings
from inspectrec.display import Colors, confirm_action, format_table, paint
from inspectrec.logs.audit import AuditLog
from inspectrec.records.models import FieldKind, InspectionRecord, OperationResult
from inspectrec.records.service import RecordService

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="inspectrec",
        description="Manage vehicle inspection records stored in a flat file",
    )
    parser.add_argument("--data", default=None, metavar="PATH", help="Data file (default: ~/.config/inspectrec/users_data.csv)")
    parser.add_argument("--config", default=None, metavar="PATH", help="YAML settings file")
    parser.add_argument(
        "--grammar",
        default=None,
        choices=[g.value for g in Grammar],
        help="Identifier/registration grammar (default: strict)",
    )
    parser.add_argument("--capacity", type=int, default=None, help="Maximum number of records")
    parser.add_argument("--audit-log", default=None, metavar="PATH", help="Append mutations to this JSONL file")
    parser.add_argument("--no-lock", action="store_true", help="Do not take the advisory file lock")
    parser.add_argument("--json", action="store_true", dest="as_json", help="Output as JSON")
    parser.add_argument("-v", "--verbose", action="count", default=0, help="More logging (-vv for debug)")

    sub = parser.add_subparsers(dest="action")

    sub.add_parser("list", help="Show all records")

    sp_add = sub.add_parser("add", help="Add a record")
    sp_add.add_argument("inspection_id")
    sp_add.add_argument("car_reg")
    sp_add.add_argument("owner")
    sp_add.add_argument("date", help="D/M/YYYY")
    sp_add.add_argument("-y", "--yes", action="store_true", help="Do not ask for confirmation")

    sp_search = sub.add_parser("search", help="Find records by InspectionID or CarRegNumber")
    sp_search.add_argument("key")
    sp_search.add_argument("--substring", action="store_true", help="Match part of the ID/registration")

    sp_update = sub.add_parser("update", help="Change fields of one record")
    sp_update.add_argument("key", help="InspectionID or CarRegNumber of the record")
    sp_update.add_argument("--id", dest="inspection_id", default=None)
    sp_update.add_argument("--reg", dest="car_reg", default=None)
    sp_update.add_argument("--owner", default=None)
    sp_update.add_argument("--date", default=None)
    sp_update.add_argument("-y", "--yes", action="store_true", help="Do not ask for confirmation")

    sp_delete = sub.add_parser("delete", help="Delete one record")
    sp_delete.add_argument("key", help="InspectionID or CarRegNumber of the record")
    sp_delete.add_argument("-y", "--yes", action="store_true", help="Do not ask for confirmation")

    sub.add_parser("menu", help="Interactive menu")

    sp_audit = sub.add_parser("audit", help="Show recent audit log entries")
    sp_audit.add_argument("--last", type=int, default=20, help="Number of entries (default: 20)")

    return parser


def _configure_logging(verbosity: int) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


def _emit(result: OperationResult, as_json: bool, settings: Settings) -> int:
    if as_json:
        print(json.dumps(result.model_dump(mode="json"), indent=2, ensure_ascii=False))
    elif result.ok:
        if result.records:
            print(format_table(result.records, settings.limits))
        print(paint(result.reason, Colors.GREEN))
    else:
        print(paint(result.reason, Colors.RED), file=sys.stderr)
    return 0 if result.ok else 1


def _cmd_list(service: RecordService, settings: Settings, as_json: bool) -> int:
    records = service.list_records()
    if as_json:
        print(json.dumps([r.to_dict() for r in records], indent=2, ensure_ascii=False))
        return 0
    print(f"---- All inspections ({len(records)}) ----")
    print(format_table(records, settings.limits))
    return 0


def _cmd_add(service: RecordService, settings: Settings, args: argparse.Namespace) -> int:
    values = {
        FieldKind.INSPECTION_ID: args.inspection_id,
        FieldKind.CAR_REG: args.car_reg,
        FieldKind.OWNER: args.owner,
        FieldKind.DATE: args.date,
    }
    if not args.yes:
        capacity = service.check_capacity()
        if not capacity.ok:
            return _emit(capacity, args.as_json, settings)
        for kind, value in values.items():
            reason = service.validators.field_error(kind, value.strip())
            if reason:
                print(paint(reason, Colors.RED), file=sys.stderr)
                return 1
        _, date = service.validators.validate_date(args.date.strip())
        preview = InspectionRecord(args.inspection_id.strip(), args.car_reg.strip(), args.owner.strip(), date)
        print("About to add record:")
        print(format_table([preview], settings.limits))
        if not confirm_action("Confirm add?"):
            print("Add cancelled.")
            return 1
    result = service.add(args.inspection_id, args.car_reg, args.owner, args.date)
    return _emit(result, args.as_json, settings)


def _cmd_update(service: RecordService, settings: Settings, args: argparse.Namespace) -> int:
    if not args.yes:
        current = service.get(args.key)
        if current is None:
            print(paint(f"No record found for '{args.key}'.", Colors.RED), file=sys.stderr)
            return 1
        print("Found record:")
        print(format_table([current], settings.limits))
        if not confirm_action("Save these changes?"):
            print("Update cancelled.")
            return 1
    result = service.update(
        args.key,
        inspection_id=args.inspection_id,
        car_reg=args.car_reg,
        owner=args.owner,
        date=args.date,
    )
    return _emit(result, args.as_json, settings)


def _cmd_delete(service: RecordService, settings: Settings, args: argparse.Namespace) -> int:
    if not args.yes:
        current = service.get(args.key)
        if current is None:
            print(paint(f"No record found for '{args.key}'.", Colors.RED), file=sys.stderr)
            return 1
        print("Found record:")
        print(format_table([current], settings.limits))
        if not confirm_action("Are you sure you want to delete this record?"):
            print("Delete cancelled.")
            return 1
    result = service.delete(args.key)
    return _emit(result, args.as_json, settings)


def _cmd_audit(settings: Settings, last: int, as_json: bool) -> int:
    if settings.audit_path is None:
        print("No audit log configured (set INSPECTREC_AUDIT_PATH or --audit-log).", file=sys.stderr)
        return 1
    entries: List[dict[str, Any]] = AuditLog(path=str(settings.audit_path)).tail(last)
    if as_json:
        print(json.dumps(entries, indent=2, ensure_ascii=False))
        return 0
    if not entries:
        print("Audit log is empty.")
        return 0
    for e in entries:
        status = "ok" if e.get("ok") else e.get("code", "?")
        print(f"{e.get('ts', '?')}  {e.get('operation', '?'):<7} {e.get('key', ''):<20} {status}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point for ``inspectrec``."""
    parser = _build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)

    if not args.action:
        parser.print_help()
        return 0

    try:
        settings = load_settings(
            args.config,
            data_path=args.data,
            grammar=args.grammar,
            capacity=args.capacity,
            audit_path=args.audit_log,
            lock=False if args.no_lock else None,
        )
    except ConfigError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 2

    service = RecordService.from_settings(settings)
    logger.debug("Using %r with %s grammar", service.store, settings.grammar.value)

    if args.action == "list":
        return _cmd_list(service, settings, args.as_json)
    if args.action == "add":
        return _cmd_add(service, settings, args)
    if args.action == "search":
        return _emit(service.search(args.key, substring=args.substring), args.as_json, settings)
    if args.action == "update":
        return _cmd_update(service, settings, args)
    if args.action == "delete":
        return _cmd_delete(service, settings, args)
    if args.action == "menu":
        from inspectrec.menu import run_menu

        return run_menu(service, settings)
    if args.action == "audit":
        return _cmd_audit(settings, args.last, args.as_json)

    parser.print_help()
    return 0


if __name__ == "__main__":
    sys.exit(main())
