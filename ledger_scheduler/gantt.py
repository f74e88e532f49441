from __future__ import annotations

from typing import Dict, Iterable, List

from rich import box
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .models import Account, ProcessRecord, ProcessStatus, ScheduleResult, ScheduledSlice

_STATUS_STYLES = {
    ProcessStatus.PENDING: "yellow",
    ProcessStatus.RUNNING: "cyan",
    ProcessStatus.COMPLETED: "green",
    ProcessStatus.FAILED: "red",
}


def render_gantt(slices: List[ScheduledSlice]) -> str:
    """
    Plain-text Gantt chart, one character per time unit.
    """
    if not slices:
        return "(no execution)"

    slices = sorted(slices, key=lambda s: (s.start_time, s.end_time))

    origin = slices[0].start_time
    line = "|"
    labels = " "
    time_marks = str(origin)
    last_time = origin

    for sl in slices:
        idle_gap = sl.start_time - last_time
        if idle_gap > 0:
            line += "." * idle_gap
            labels += " " * idle_gap
            last_time = sl.start_time
            time_marks += f"{last_time:>3}"

        width = max(1, sl.end_time - sl.start_time)
        line += "=" * width
        labels += sl.label[:width].ljust(width)
        last_time = sl.end_time
        time_marks += f"{last_time:>3}"

    line += "|"

    return "\n".join(
        [
            "Gantt Chart:",
            line,
            labels,
            time_marks,
        ]
    )


def build_rich_gantt(slices: List[ScheduledSlice]) -> tuple[Panel, str]:
    """
    Build a Rich Panel containing a colored Gantt chart and a string with time marks.
    """
    if not slices:
        panel = Panel("No execution", title="Gantt Chart")
        return panel, ""

    slices = sorted(slices, key=lambda s: (s.start_time, s.end_time))

    colors = ["red", "green", "yellow", "blue", "magenta", "cyan"]
    tid_to_color: Dict[int, str] = {}

    def tid_color(tid: int) -> str:
        if tid not in tid_to_color:
            idx = len(tid_to_color) % len(colors)
            tid_to_color[tid] = colors[idx]
        return tid_to_color[tid]

    timeline = Text()
    labels = Text()
    time_marks = str(slices[0].start_time)
    last_time = slices[0].start_time

    for sl in slices:
        idle_gap = sl.start_time - last_time
        if idle_gap > 0:
            timeline.append(" " * idle_gap)
            labels.append(" " * idle_gap)
            last_time = sl.start_time
            time_marks += f"{last_time:>3}"

        width = max(1, sl.end_time - sl.start_time)
        color = tid_color(sl.transaction_id)

        timeline.append(" " * width, style=f"on {color}")
        labels.append(sl.label[:width].ljust(width), style="bold")

        last_time = sl.end_time
        time_marks += f"{last_time:>3}"

    table = Table.grid(padding=(0, 0))
    table.add_row(timeline)
    table.add_row(labels)

    panel = Panel.fit(table, title="Gantt Chart (Round Robin)")
    return panel, time_marks


def build_metrics_table(result: ScheduleResult) -> Table:
    headers = ["Transaction", "Arrival", "Execution", "Remaining", "Completion", "Turnaround", "Waiting"]

    table = Table(title="Per-transaction metrics", box=box.SIMPLE_HEAVY)
    for h in headers:
        table.add_column(h, justify="center" if h == "Transaction" else "right")

    for t in result.transactions:
        table.add_row(
            f"T{t.transaction_id}",
            str(t.arrival_time),
            str(t.execution_time),
            str(t.remaining_time),
            str(t.completion_time),
            str(t.turnaround_time),
            str(t.waiting_time),
        )
    return table


def build_process_table(records: Iterable[ProcessRecord]) -> Table:
    table = Table(title="Process table", box=box.SIMPLE_HEAVY)
    table.add_column("ID", justify="center")
    table.add_column("Account ID", justify="right")
    table.add_column("Kind")
    table.add_column("Amount", justify="right")
    table.add_column("Status")
    table.add_column("Execution", justify="right")

    for r in records:
        style = _STATUS_STYLES.get(r.status, "")
        table.add_row(
            str(r.process_id),
            str(r.account_id),
            r.kind.value,
            f"{r.amount:.2f}",
            f"[{style}]{r.status.value}[/{style}]" if style else r.status.value,
            str(r.execution_time),
        )
    return table


def build_accounts_table(accounts: Iterable[Account]) -> Table:
    table = Table(title="Accounts", box=box.SIMPLE_HEAVY)
    table.add_column("Account ID", justify="center")
    table.add_column("Customer ID", justify="right")
    table.add_column("Balance", justify="right")

    for a in accounts:
        table.add_row(str(a.account_id), str(a.customer_id), f"{a.balance:.2f}")
    return table
