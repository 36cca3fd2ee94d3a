"""Reporters for outputting review results in various formats."""

from .console import ConsoleReporter
from .markdown import render_markdown

__all__ = ["ConsoleReporter", "render_markdown"]
