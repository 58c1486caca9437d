"""Interactive terminal practice session."""

from .session import PracticeREPL, ascii_preview
from .commands import COMMANDS, get_command_help, parse_points

__all__ = ['PracticeREPL', 'ascii_preview', 'COMMANDS', 'get_command_help', 'parse_points']
