"""Bookdrop CLI — Typer-based command-line interface.

Provides the ``bookdrop`` command with subcommands for running the bot,
inspecting the delivery log, and setting destinations as an operator.

All output uses Rich for formatted terminal display.
"""
