# KBSync Output Module
# Rich console output

from kbsync.output.console import Console, create_console

__all__ = [
    "Console",
    "create_console",
]
