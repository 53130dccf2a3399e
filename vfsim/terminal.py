"""
Terminal session

Keeps the state a terminal front end needs between command lines: the
current snapshot, the commands typed so far and the output shown so far.
"""

import logging
from collections import deque
from typing import Deque, List, Optional

from .commands import execute_command
from .models import FileSystem
from .nodes import absolute_path
from .state import switch_user

logger = logging.getLogger('VFSIM.terminal')

BANNER = (
    'Virtual File System Simulator v1.0',
    'Type "help" for a list of available commands.',
    '',
)


class Terminal:
    """A command line session over a filesystem snapshot"""

    def __init__(self, filesystem: FileSystem, history_size: int = 1000):
        self.filesystem = filesystem
        self.command_history: Deque[str] = deque(maxlen=history_size)
        self.output_history: List[str] = list(BANNER)
        self.history_index = -1

    @property
    def prompt(self) -> str:
        user = self.filesystem.users.get(self.filesystem.current_user)
        username = user.username if user else 'user'
        return f"{username}:{absolute_path(self.filesystem, self.filesystem.current_directory)}$ "

    def run(self, line: str) -> str:
        """
        Execute a command line and record it

        Blank lines are ignored. ``clear`` wipes the output history instead
        of producing output.

        Returns:
            The command's output text
        """
        if not line.strip():
            return ''

        self.remember(line)

        if line.strip() == 'clear':
            self.output_history = []
            return ''

        result = execute_command(self.filesystem, line)
        self.filesystem = result.filesystem
        self.output_history.append(f"$ {line}")
        if result.output:
            self.output_history.extend(result.output.split('\n'))
        self.output_history.append('')
        return result.output

    def remember(self, line: str) -> None:
        """Add a line to the command history without executing it"""
        self.command_history.append(line)
        self.history_index = -1

    def switch_user(self, username: str) -> None:
        self.filesystem = switch_user(self.filesystem, username)

    def previous(self) -> Optional[str]:
        """Step back through the command history, newest first"""
        if not self.command_history:
            return None
        if self.history_index < len(self.command_history) - 1:
            self.history_index += 1
        return self.command_history[len(self.command_history) - 1 - self.history_index]

    def next(self) -> str:
        """Step forward through the command history; empty past the newest entry"""
        self.history_index = self.history_index - 1 if self.history_index > 0 else -1
        if self.history_index < 0:
            return ''
        return self.command_history[len(self.command_history) - 1 - self.history_index]
