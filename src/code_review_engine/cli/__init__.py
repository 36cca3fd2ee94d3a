"""Command-line interface for the code review engine."""
