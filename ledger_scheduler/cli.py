from __future__ import annotations

import argparse
import time
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Optional

from rich import box
from rich.console import Console
from rich.table import Table

from .config import SimulationConfig, build_coordinator, load_config
from .coordinator import TransactionCoordinator
from .errors import LedgerSchedulerError
from .gantt import build_accounts_table, build_metrics_table, build_process_table, build_rich_gantt
from .logging_config import configure_logging
from .metrics import summarize_transaction_metrics
from .models import ScheduleResult
from .notifications import ConsoleChannel
from .script_io import load_script, run_script


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ledger-scheduler",
        description="Banking ledger whose transactions are scheduled like CPU jobs (round robin).",
    )
    parser.add_argument(
        "--config",
        "-c",
        default=None,
        help="Path to a JSON config file (max_accounts, max_processes, quantum, ...).",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Seed for the simulated execution times (default: random).",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level for the ledger_scheduler loggers (default: WARNING).",
    )
    parser.add_argument(
        "--log-json",
        action="store_true",
        help="Emit log records as JSON lines instead of rich console output.",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser("run", help="Replay a transaction script and show the schedule.")
    run_parser.add_argument(
        "--script",
        "-s",
        required=True,
        help="Path to JSON or CSV transaction script.",
    )
    run_parser.add_argument(
        "--quantum",
        "-q",
        type=int,
        default=None,
        help="Time quantum for round robin (default: from config, 2).",
    )
    run_parser.add_argument(
        "--step",
        action="store_true",
        help="Show a simple time-stepped simulation in the terminal.",
    )
    run_parser.add_argument(
        "--step-delay",
        type=float,
        default=0.3,
        help="Seconds to wait between steps when --step is used (default: 0.3).",
    )

    menu_parser = subparsers.add_parser(
        "menu",
        help="Interactive banking menu.",
    )
    menu_parser.add_argument(
        "--quantum",
        "-q",
        type=int,
        default=None,
        help="Time quantum for round robin (default: from config, 2).",
    )

    return parser


def _print_schedule(result: ScheduleResult, console: Console) -> None:
    console.print(f"[bold]Algorithm:[/bold] {result.algorithm}")
    if result.quantum is not None:
        console.print(f"[bold]Quantum:[/bold] {result.quantum}")

    console.print()

    panel, time_marks = build_rich_gantt(result.timeline)
    console.print(panel)
    if time_marks:
        console.print(time_marks)

    console.print()
    console.print(build_metrics_table(result))
    console.print()

    summary = summarize_transaction_metrics(result.transactions)
    if result.system:
        sys = result.system
        sys_table = Table(title="System metrics", box=box.SIMPLE_HEAVY)
        sys_table.add_column("Metric")
        sys_table.add_column("Value", justify="right")

        sys_table.add_row("Avg waiting", f"{summary['avg_waiting']:.2f}")
        sys_table.add_row("Avg turnaround", f"{summary['avg_turnaround']:.2f}")
        sys_table.add_row("Throughput (txn/time)", f"{sys.throughput:.3f}")
        sys_table.add_row("CPU utilization", f"{sys.cpu_utilization*100:.1f}%")

        console.print(sys_table)


def _animate_result(result: ScheduleResult, delay: float, console: Console) -> None:
    """
    Simple time-stepped textual simulation using the computed schedule.
    """
    timeline = sorted(result.timeline, key=lambda s: (s.start_time, s.end_time))
    if not timeline:
        console.print("[red]No execution to animate.[/red]")
        return

    start = timeline[0].start_time
    end = max(s.end_time for s in timeline)
    console.print(f"[bold]Simulating {result.algorithm}[/bold] (t={start}..{end})")
    console.print("[dim]Press Ctrl+C to skip animation.[/dim]")

    for t in range(start, end):
        running = None
        bar = ""
        for sl in timeline:
            if sl.start_time <= t < sl.end_time:
                running = sl.label
                bar = f"[green]{'#' * (t - sl.start_time + 1)}[/green]"
                break
        msg = f"t={t:2d}: " + (running or "[idle]")
        console.print(msg + (" " + bar if bar else ""))
        time.sleep(delay)


def _ask_int(prompt: str) -> Optional[int]:
    raw = input(prompt).strip()
    try:
        return int(raw)
    except ValueError:
        return None


def _ask_amount(prompt: str) -> Optional[Decimal]:
    raw = input(prompt).strip()
    try:
        return Decimal(raw)
    except InvalidOperation:
        return None


def _interactive_menu(coordinator: TransactionCoordinator, quantum: int, console: Console) -> None:
    console.print("[bold cyan]Welcome to the Banking System![/bold cyan]")

    while True:
        console.print(
            "\n[yellow]1[/yellow]. Create Account\n"
            "[yellow]2[/yellow]. Deposit Money\n"
            "[yellow]3[/yellow]. Withdraw Money\n"
            "[yellow]4[/yellow]. Check Balance\n"
            "[yellow]5[/yellow]. Show Gantt Chart\n"
            "[yellow]6[/yellow]. Show Accounts\n"
            "[yellow]7[/yellow]. Show Process Table\n"
            "[yellow]8[/yellow]. Exit"
        )
        choice = input("Enter your choice: ").strip().lower()

        try:
            if choice == "1":
                customer_id = _ask_int("Enter Customer ID: ")
                amount = _ask_amount("Enter Initial Balance: ")
                if customer_id is None or amount is None:
                    console.print("[red]Invalid input.[/red]")
                    continue
                account_id = coordinator.create_account(customer_id, amount)
                console.print(f"[green]Account Created: ID={account_id}, CustomerID={customer_id}, Balance={amount:.2f}[/green]")

            elif choice in {"2", "3"}:
                account_id = _ask_int("Enter Account ID: ")
                verb = "Deposit" if choice == "2" else "Withdraw"
                amount = _ask_amount(f"Enter Amount to {verb}: ")
                if account_id is None or amount is None:
                    console.print("[red]Invalid input.[/red]")
                    continue
                if choice == "2":
                    outcome = coordinator.deposit(account_id, amount)
                else:
                    outcome = coordinator.withdraw(account_id, amount)
                color = "green" if outcome.success else "red"
                console.print(f"[{color}]{outcome.message}[/{color}]")
                if outcome.notification_error is not None:
                    console.print(f"[yellow]{outcome.notification_error}[/yellow]")

            elif choice == "4":
                account_id = _ask_int("Enter Account ID: ")
                if account_id is None:
                    console.print("[red]Invalid input.[/red]")
                    continue
                balance = coordinator.check_balance(account_id)
                console.print(f"Balance: Account ID={account_id}, Balance={balance:.2f}")

            elif choice == "5":
                _print_schedule(coordinator.schedule(quantum), console)

            elif choice == "6":
                console.print(build_accounts_table(coordinator.ledger.accounts()))

            elif choice == "7":
                console.print(build_process_table(coordinator.process_table.list_all()))

            elif choice in {"8", "q", "quit", "exit"}:
                return

            else:
                console.print("[red]Invalid choice. Try again.[/red]")

        except (LedgerSchedulerError, ValueError) as exc:
            console.print(f"[red]Error: {exc}[/red]")


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    configure_logging(level=args.log_level, json_output=args.log_json)
    console = Console()

    config = load_config(Path(args.config)) if args.config else SimulationConfig()
    config = config.with_overrides(seed=args.seed, quantum=args.quantum)

    if args.command == "run":
        steps = load_script(Path(args.script))
        with build_coordinator(config) as coordinator:
            for line in run_script(coordinator, steps):
                console.print(line)
            console.print()
            console.print(build_process_table(coordinator.process_table.list_all()))
            result = coordinator.schedule(config.quantum)
        if args.step:
            try:
                _animate_result(result, delay=args.step_delay, console=console)
            except KeyboardInterrupt:
                console.print("[yellow]Animation skipped.[/yellow]")
        _print_schedule(result, console)
        return 0

    if args.command == "menu":
        with build_coordinator(config, channel=ConsoleChannel(console)) as coordinator:
            _interactive_menu(coordinator, config.quantum, console)
        return 0

    parser.error(f"Unknown command: {args.command}")
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
