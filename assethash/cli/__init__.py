"""assethash CLI, Typer-based command-line interface.

Provides the ``assethash`` command with subcommands for running a hashing
pass over a build directory and for inspecting what the scanner detects.

All output uses Rich for formatted terminal display.
"""
