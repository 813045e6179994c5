"""Interactive menu for ``inspectrec menu``.

Typing ``0`` at any prompt (or sending EOF) goes back to the main menu.
Fields are re-asked until they are valid, so the service call at the end of
each flow only fails on a storage error or a concurrent change.
"""

from __future__ import annotations

import logging
from typing import Optional

from inspectrec.config import Settings
from inspectrec.display import Colors, InputFn, confirm_action, format_table, paint
from inspectrec.records.lookup import find_conflict, find_exact
from inspectrec.records.models import FieldKind, InspectionRecord, OperationResult
from inspectrec.records.service import RecordService

logger = logging.getLogger(__name__)

BACK = "0"

MENU_TEXT = """
-----------------------------------------------------
           VEHICLE INSPECTION RECORDS
-----------------------------------------------------
  1. Add record
  2. Search record
  3. Update record
  4. Delete record
  5. Display all records
  6. Exit
"""

_PROMPTS = {
    FieldKind.INSPECTION_ID: "InspectionID",
    FieldKind.CAR_REG: "CarRegNumber",
    FieldKind.OWNER: "OwnerName",
    FieldKind.DATE: "InspectionDate (DD/MM/YYYY)",
}


class Menu:
    def __init__(self, service: RecordService, settings: Settings, input_fn: Optional[InputFn] = None):
        self.service = service
        self.settings = settings
        self.input_fn = input_fn or input

    def ask(self, prompt: str) -> Optional[str]:
        """Read one line; ``None`` means go back."""
        try:
            raw = self.input_fn(prompt)
        except (EOFError, KeyboardInterrupt):
            print()
            return None
        value = raw.strip()
        if value == BACK:
            return None
        return value

    def _table(self, records: list[InspectionRecord]) -> None:
        print(format_table(records, self.settings.limits))

    def _report(self, result: OperationResult) -> None:
        color = Colors.GREEN if result.ok else Colors.RED
        print(paint(result.reason, color))

    def _ask_field(
        self,
        kind: FieldKind,
        records: list[InspectionRecord],
        current: Optional[str] = None,
        exclude: Optional[int] = None,
    ) -> Optional[str]:
        """Prompt until *kind* is valid and unique; blank keeps *current*."""
        label = _PROMPTS[kind]
        prompt = f"New {label} (current: {current}): " if current is not None else f"{label}: "
        validators = self.service.validators
        while True:
            value = self.ask(prompt)
            if value is None:
                return None
            if not value and current is not None:
                return current
            reason = validators.field_error(kind, value)
            if reason:
                print(paint(reason, Colors.RED))
                continue
            if kind in (FieldKind.INSPECTION_ID, FieldKind.CAR_REG):
                if find_conflict(records, value, exclude=exclude) is not None:
                    print(paint(f"'{value}' already exists as an InspectionID or CarRegNumber.", Colors.RED))
                    continue
            if kind is FieldKind.DATE:
                return validators.validate_date(value)[1]
            return value

    # ── flows ────────────────────────────────────────────────────────

    def add(self) -> None:
        capacity = self.service.check_capacity()
        if not capacity.ok:
            self._report(capacity)
            return
        records = self.service.list_records()
        print("--- Add new inspection (type 0 to go back at any prompt) ---")
        values: list[str] = []
        for kind in FieldKind:
            value = self._ask_field(kind, records)
            if value is None:
                return
            values.append(value)
        preview = InspectionRecord(*values)
        print("\nAbout to add record:")
        self._table([preview])
        if not confirm_action("Confirm add?", self.input_fn):
            print("Add cancelled.")
            return
        self._report(self.service.add(*values))

    def search(self) -> None:
        key = self.ask("Enter key (InspectionID or CarRegNumber): ")
        if not key:
            return
        result = self.service.search(key)
        if result.ok:
            self._table([InspectionRecord(**r) for r in result.records])
        self._report(result)

    def _pick(self, verb: str) -> Optional[tuple[list[InspectionRecord], int, str]]:
        """Ask for a key until it matches; returns records, index and the key."""
        records = self.service.list_records()
        if not records:
            print(f"No records available to {verb}.")
            return None
        self._table(records)
        while True:
            key = self.ask(f"\nEnter InspectionID or CarRegNumber to {verb}: ")
            if not key:
                return None
            idx = find_exact(records, key)
            if idx is not None:
                return records, idx, key
            print(f"No record found for '{key}'. Please try again.")

    def update(self) -> None:
        picked = self._pick("edit")
        if picked is None:
            return
        records, idx, key = picked
        current = records[idx]
        print("\nFound record:")
        self._table([current])
        if not confirm_action("Confirm to edit this record?", self.input_fn):
            print("Update cancelled.")
            return
        print("\nPress Enter to keep the current data.")
        new_values: list[str] = []
        for kind, old in zip(FieldKind, current.fields()):
            value = self._ask_field(kind, records, current=old, exclude=idx)
            if value is None:
                return
            new_values.append(value)
        print("\nPreview of updated record:")
        self._table([InspectionRecord(*new_values)])
        if not confirm_action("Save these changes?", self.input_fn):
            print("Update cancelled.")
            return
        changed = [new if new != old else None for new, old in zip(new_values, current.fields())]
        self._report(self.service.update(key, *changed))

    def delete(self) -> None:
        picked = self._pick("delete")
        if picked is None:
            return
        records, idx, key = picked
        print("\nFound record:")
        self._table([records[idx]])
        if not confirm_action("Are you sure you want to delete this record?", self.input_fn):
            print("Delete cancelled.")
            return
        self._report(self.service.delete(key))

    def display_all(self) -> None:
        records = self.service.list_records()
        print(f"\n---- All inspections ({len(records)}) ----")
        self._table(records)

    def run(self) -> int:
        actions = {
            "1": self.add,
            "2": self.search,
            "3": self.update,
            "4": self.delete,
            "5": self.display_all,
        }
        while True:
            print(MENU_TEXT)
            try:
                choice = self.input_fn("Select an option: ").strip()
            except (EOFError, KeyboardInterrupt):
                print()
                return 0
            if choice == "6":
                return 0
            action = actions.get(choice)
            if action is None:
                print("Invalid choice.")
                continue
            action()


def run_menu(service: RecordService, settings: Settings, input_fn: Optional[InputFn] = None) -> int:
    return Menu(service, settings, input_fn).run()
