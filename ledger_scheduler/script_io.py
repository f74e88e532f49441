from __future__ import annotations

import csv
import json
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Iterable, List, Optional

from .errors import LedgerSchedulerError

OPERATIONS = ("create", "deposit", "withdraw", "balance")


@dataclass
class ScriptStep:
    """
    One line of a transaction script.

    ``create`` uses customer_id and amount (initial balance); ``deposit`` and
    ``withdraw`` use account_id and amount; ``balance`` uses account_id.
    """

    op: str
    account_id: Optional[int] = None
    customer_id: Optional[int] = None
    amount: Optional[Decimal] = None


def load_script(path: str | Path) -> List[ScriptStep]:
    """
    Load a transaction script from a JSON or CSV file into ScriptStep objects.
    """
    path = Path(path)
    suffix = path.suffix.lower()

    if suffix == ".json":
        return _load_json(path)
    if suffix == ".csv":
        return _load_csv(path)

    raise ValueError(f"Unsupported script format: {suffix} (use .json or .csv)")


def _load_json(path: Path) -> List[ScriptStep]:
    with path.open("r", encoding="utf-8") as f:
        raw = json.load(f)

    if not isinstance(raw, Iterable) or isinstance(raw, (str, dict)):
        raise ValueError("JSON script must be a list of step objects")

    return [_step_from_mapping(entry) for entry in raw]


def _load_csv(path: Path) -> List[ScriptStep]:
    steps: List[ScriptStep] = []
    with path.open("r", encoding="utf-8", newline="") as f:
        reader = csv.DictReader(f)
        for row in reader:
            steps.append(_step_from_mapping(row))
    return steps


def _optional_int(value) -> Optional[int]:
    return int(value) if value not in (None, "") else None


def _optional_amount(value) -> Optional[Decimal]:
    return Decimal(str(value)) if value not in (None, "") else None


def _step_from_mapping(mapping) -> ScriptStep:
    try:
        op = str(mapping["op"]).strip().lower()
        step = ScriptStep(
            op=op,
            account_id=_optional_int(mapping.get("account_id")),
            customer_id=_optional_int(mapping.get("customer_id")),
            amount=_optional_amount(mapping.get("amount")),
        )
    except (KeyError, TypeError, ValueError, AttributeError, InvalidOperation) as exc:
        raise ValueError(f"Invalid script entry: {mapping!r}") from exc

    if op not in OPERATIONS:
        raise ValueError(f"Unknown operation {op!r} in script entry: {mapping!r}")
    if op == "create" and (step.customer_id is None or step.amount is None):
        raise ValueError(f"'create' needs customer_id and amount: {mapping!r}")
    if op in ("deposit", "withdraw") and (step.account_id is None or step.amount is None):
        raise ValueError(f"'{op}' needs account_id and amount: {mapping!r}")
    if op == "balance" and step.account_id is None:
        raise ValueError(f"'balance' needs account_id: {mapping!r}")

    return step


def run_script(coordinator, steps: List[ScriptStep]) -> List[str]:
    """
    Replay ``steps`` against a TransactionCoordinator and return one
    human-readable outcome line per step.
    """
    lines: List[str] = []
    for step in steps:
        try:
            if step.op == "create":
                # An explicit account_id pins the slot; otherwise the next free one is used.
                slot = step.account_id - 1 if step.account_id else None
                account_id = coordinator.create_account(step.customer_id, step.amount, slot)
                lines.append(f"Account created: ID={account_id}, CustomerID={step.customer_id}, Balance={step.amount:.2f}")
            elif step.op == "deposit":
                lines.append(coordinator.deposit(step.account_id, step.amount).message)
            elif step.op == "withdraw":
                lines.append(coordinator.withdraw(step.account_id, step.amount).message)
            else:
                balance = coordinator.check_balance(step.account_id)
                lines.append(f"Balance: Account ID={step.account_id}, Balance={balance:.2f}")
        except (LedgerSchedulerError, ValueError) as exc:
            lines.append(f"{step.op.capitalize()} failed: {exc}")
    return lines
