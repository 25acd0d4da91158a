"""
CLI Module - Command-line interface for Cora Analyzer.
======================================================

Provides CLI commands for:
- Analyzing a course/professor pair
- Inspecting and clearing the result cache
- Reading the model audit log
- Looking up enrollment history

Usage:
    cora --help
    cora analyze "CS 2130" --professor "Jane Doe"
    cora cache-stats
    cora logs --limit 20

Components:
- main: Typer CLI application
"""

from cora_analyzer.cli.main import app, cli

__all__ = ["app", "cli"]
