"""Eventrouter CLI — Typer-based command-line interface.

Provides the ``eventrouter`` command: ``run`` starts routing, ``sinks``
lists sink keys, ``config`` prints the effective settings.  Terminal
output uses Rich.
"""
