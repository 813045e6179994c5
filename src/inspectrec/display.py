"""Terminal output helpers shared by the CLI and the interactive menu."""

from __future__ import annotations

import os
import sys
from typing import Callable, Iterable, Mapping, Optional, Union

from inspectrec.config import FieldLimits
from inspectrec.records.models import InspectionRecord

InputFn = Callable[[str], str]
RowLike = Union[InspectionRecord, Mapping[str, str]]

HEADERS = ("InspectionID", "CarRegNumber", "OwnerName", "InspectionDate")


# ANSI colors
class Colors:
    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"
    CYAN = "\033[36m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    RED = "\033[31m"


def _use_color() -> bool:
    return sys.stdout.isatty() and not os.getenv("NO_COLOR")


def paint(text: str, color: str) -> str:
    if not _use_color():
        return text
    return f"{color}{text}{Colors.RESET}"


def _row(record: RowLike) -> tuple[str, str, str, str]:
    if isinstance(record, InspectionRecord):
        return record.fields()
    return (record["inspection_id"], record["car_reg"], record["owner"], record["date"])


def format_table(records: Iterable[RowLike], limits: FieldLimits) -> str:
    """Fixed-width table; columns are at least as wide as their field limit."""
    widths = (
        max(limits.id_max_len, len(HEADERS[0])),
        max(limits.reg_max_len, len(HEADERS[1])),
        max(limits.owner_max_len, len(HEADERS[2])),
        max(limits.date_max_len, len(HEADERS[3])),
    )
    sep = "-" * (sum(widths) + 3 * 3)

    def line(cells: Iterable[str]) -> str:
        return " | ".join(f"{c:<{w}}" for c, w in zip(cells, widths)).rstrip()

    out = [line(HEADERS), sep]
    out.extend(line(_row(r)) for r in records)
    out.append(sep)
    return "\n".join(out)


def confirm_action(message: str, input_fn: Optional[InputFn] = None) -> bool:
    """Ask until the answer is exactly ``Y`` (yes) or ``n`` (no).

    EOF or Ctrl-C counts as no.
    """
    while True:
        try:
            answer = (input_fn or input)(f"{message} (Y/n): ").strip()
        except (EOFError, KeyboardInterrupt):
            print()
            return False
        if answer == "Y":
            return True
        if answer == "n":
            return False
        print("Invalid input. Please enter Y or n.")
