"""
Ledger scheduler package.

A banking ledger whose deposits and withdrawals are tracked as processes
and scheduled round robin, with a command-line interface for driving it
and inspecting the resulting schedule.
"""

__all__ = ["cli"]
