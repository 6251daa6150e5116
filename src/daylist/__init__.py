"""daylist: a bounded, prioritized daily task list with a 100-point budget."""

__version__ = "0.1.0"
