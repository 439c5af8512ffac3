"""Execution of generator-requested tools."""

from symlog.tools.dispatcher import ToolDispatcher, ToolOutcome, format_entry

__all__ = ["ToolDispatcher", "ToolOutcome", "format_entry"]
