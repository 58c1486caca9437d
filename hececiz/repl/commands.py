#!/usr/bin/env python3
"""
Command definitions for the practice REPL.
"""

from typing import List, Tuple


COMMANDS = {
    # Drawing
    'draw': {
        'help': 'Draw one stroke through the given points (surface coordinates)',
        'usage': 'draw <x,y> <x,y> ...',
        'examples': ['draw 40,40 40,160', 'draw 80,100 120,60 160,100'],
    },
    'pen': {
        'help': 'Switch to the pen for the next stroke',
        'usage': 'pen',
        'examples': ['pen'],
    },
    'eraser': {
        'help': 'Switch to the eraser for the next stroke',
        'usage': 'eraser',
        'examples': ['eraser'],
    },
    'clear': {
        'help': 'Wipe the drawing and go back to the pen',
        'usage': 'clear',
        'examples': ['clear'],
    },

    # Turn
    'hint': {
        'help': 'Show or hide the written syllable (counts as a hint)',
        'usage': 'hint',
        'examples': ['hint'],
    },
    'skip': {
        'help': 'Move on to the next syllable without checking',
        'usage': 'skip',
        'examples': ['skip'],
    },
    'listen': {
        'help': 'Hear the syllable again',
        'usage': 'listen',
        'examples': ['listen'],
    },
    'check': {
        'help': 'Send the drawing to be checked',
        'usage': 'check',
        'examples': ['check'],
    },

    # Inspection
    'show': {
        'help': 'Print a coarse text preview of the drawing',
        'usage': 'show',
        'examples': ['show'],
    },
    'save': {
        'help': 'Write the drawing as a JPEG',
        'usage': 'save <path>',
        'examples': ['save attempt.jpg'],
    },
    'score': {
        'help': 'Show this session\'s score and the profile totals',
        'usage': 'score',
        'examples': ['score'],
    },

    # Utilities
    'help': {
        'help': 'Show available commands',
        'usage': 'help [command]',
        'examples': ['help', 'help draw'],
    },
    'exit': {
        'help': 'End the practice session',
        'usage': 'exit',
        'examples': ['exit', 'quit'],
    },
    'quit': {
        'help': 'End the practice session (alias for exit)',
        'usage': 'quit',
        'examples': ['quit'],
    },
}


def get_command_help(command: str = None) -> str:
    """Get help text for a command or all commands"""
    if command and command in COMMANDS:
        cmd = COMMANDS[command]
        lines = [
            f"  {command}: {cmd['help']}",
            f"  Usage: {cmd['usage']}",
        ]
        if cmd.get('examples'):
            lines.append(f"  Examples: {', '.join(cmd['examples'])}")
        return '\n'.join(lines)

    groups = {
        'Drawing': ['draw', 'pen', 'eraser', 'clear'],
        'Turn': ['hint', 'skip', 'listen', 'check'],
        'Inspection': ['show', 'save', 'score'],
        'Utilities': ['help', 'exit'],
    }

    lines = ["Available commands:\n"]
    for group, cmds in groups.items():
        lines.append(f"  {group}:")
        for cmd in cmds:
            lines.append(f"    {cmd:8} - {COMMANDS[cmd]['help']}")
        lines.append("")

    lines.append("Type 'help <command>' for detailed help on a specific command.")
    return '\n'.join(lines)


def parse_points(args: str) -> List[Tuple[float, float]]:
    """Parse 'x,y x,y ...' into coordinate pairs; raises ValueError on bad input"""
    points = []
    for token in args.split():
        parts = token.split(',')
        if len(parts) != 2:
            raise ValueError(f"Expected x,y but got '{token}'")
        points.append((float(parts[0]), float(parts[1])))
    if not points:
        raise ValueError("A stroke needs at least one point")
    return points
