"""
Interactive shell for the filesystem simulator
"""

import cmd
import logging

from rich.console import Console
from rich.table import Table

from .commands import COMMANDS
from .disk import check_integrity, describe_node, disk_usage
from .exceptions import VFSError
from .nodes import resolve_path
from .terminal import BANNER, Terminal

logger = logging.getLogger('VFSIM.shell')

SHELL_COMMANDS = {
    'df': ('df', 'Show disk block usage'),
    'fsck': ('fsck', 'Check filesystem integrity'),
    'stat': ('stat <path>', 'Show details of a file or directory'),
    'su': ('su <user>', 'Switch the current user'),
    'history': ('history', 'Show command history'),
    'exit': ('exit', 'Leave the simulator'),
}


class VFSShell(cmd.Cmd):
    """Command loop driving a Terminal session"""

    intro = '\n'.join(BANNER)

    def __init__(self, terminal: Terminal, console: Console = None, **kwargs):
        super().__init__(**kwargs)
        self.terminal = terminal
        self.console = console or Console()
        self.prompt = self.terminal.prompt

    def _print(self, text: str):
        if text:
            self.console.print(text, markup=False, highlight=False)

    def postcmd(self, stop, line):
        # Simulator commands are recorded by Terminal.run
        name = self.parseline(line)[0]
        if name in SHELL_COMMANDS:
            self.terminal.remember(line)
        self.prompt = self.terminal.prompt
        return stop

    def emptyline(self):
        """Do nothing on empty line"""
        pass

    def default(self, line):
        """Hand every simulator command to the terminal session"""
        self._print(self.terminal.run(line))

    def do_help(self, arg):
        """Display this help message"""
        self.terminal.run('help')
        table = Table(title="Available commands")
        table.add_column("Command", style="cyan")
        table.add_column("Usage")
        table.add_column("Description")
        for command in COMMANDS.values():
            table.add_row(command.name, command.usage, command.description)
        for name, (usage, description) in SHELL_COMMANDS.items():
            table.add_row(name, usage, description)
        self.console.print(table)

    def do_clear(self, arg):
        """Clear terminal output"""
        self.terminal.run('clear')
        self.console.clear()

    def do_df(self, arg):
        """Show disk block usage"""
        usage = disk_usage(self.terminal.filesystem)
        table = Table(title="Disk usage")
        table.add_column("Blocks", justify="right")
        table.add_column("Used", justify="right")
        table.add_column("Free", justify="right")
        table.add_column("Use%", justify="right")
        table.add_column("Largest free run", justify="right")
        table.add_row(
            str(usage['total_blocks']),
            str(usage['used_blocks']),
            str(usage['free_blocks']),
            f"{usage['usage_percent']:.0f}%",
            str(usage['largest_free_run']),
        )
        self.console.print(table)

    def do_fsck(self, arg):
        """Check filesystem integrity"""
        issues = check_integrity(self.terminal.filesystem)
        if not issues:
            self.console.print("Filesystem integrity check passed", style="green")
            return
        for issue in issues:
            self.console.print(issue, style="red", markup=False)

    def do_stat(self, arg):
        """Show details of a file or directory
        Usage: stat <path>"""
        if not arg:
            self._print("stat: missing operand")
            return
        node = resolve_path(self.terminal.filesystem, arg.strip())
        if node is None:
            self._print(f"stat: {arg}: No such file or directory")
            return
        table = Table(show_header=False)
        table.add_column("Field", style="cyan")
        table.add_column("Value")
        for field, value in describe_node(self.terminal.filesystem, node.id).items():
            table.add_row(field.capitalize(), str(value))
        self.console.print(table)

    def do_su(self, arg):
        """Switch the current user
        Usage: su <user>"""
        if not arg:
            self._print("su: missing operand")
            return
        try:
            self.terminal.switch_user(arg.strip())
        except VFSError as e:
            self._print(f"su: {e}")

    def do_history(self, arg):
        """Show command history"""
        for number, line in enumerate(self.terminal.command_history, 1):
            self._print(f"{number:>5}  {line}")

    def do_exit(self, arg):
        """Leave the simulator"""
        self.console.print("Goodbye!")
        return True

    def do_quit(self, arg):
        """Leave the simulator"""
        return self.do_exit(arg)

    def do_EOF(self, arg):
        """Handle Ctrl+D"""
        self.console.print()
        return self.do_exit(arg)
