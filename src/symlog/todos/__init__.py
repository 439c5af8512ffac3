"""Queue of secondary subjects awaiting their own conversation."""

from symlog.todos.queue import TodoQueue

__all__ = ["TodoQueue"]
