"""
Command Interpreter

Parses a shell-like command line and dispatches it to one of the
registered command handlers. Every handler takes the argument list and the
current snapshot and returns a ``CommandResult`` holding the text output
and the resulting snapshot. Failures never raise out of
``execute_command``: they come back as a diagnostic prefixed with the
command name, together with the snapshot the command was given.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, NamedTuple, Tuple

from .exceptions import (
    IsADirectory, MissingOperand, NotADirectory, NotFound, PermissionDenied,
    UnknownCommand, VFSError
)
from .models import FileSystem, PermissionKind
from .nodes import (
    absolute_path, children_of, create_directory, create_file, remove_node,
    resolve_path
)
from .permissions import has_permission, permission_string
from .state import root_of
from .utils import format_listing_date

logger = logging.getLogger('VFSIM.commands')

EMPTY_DIRECTORY = '(empty directory)'
RECURSIVE_FLAGS = ('-r', '-rf')


class CommandResult(NamedTuple):
    output: str
    filesystem: FileSystem


@dataclass(frozen=True)
class Command:
    """A registered command"""
    name: str
    description: str
    usage: str
    execute: Callable[[List[str], FileSystem], CommandResult]


COMMANDS: Dict[str, Command] = {}


def command(name: str, description: str, usage: str = None):
    """Register the decorated function as the handler for ``name``"""
    def register(func):
        COMMANDS[name] = Command(name, description, usage or name, func)
        return func
    return register


def parse_command(line: str) -> Tuple[str, List[str]]:
    """Split a line on whitespace into the command name and its arguments"""
    parts = line.split()
    if not parts:
        return '', []
    return parts[0], parts[1:]


def get_command(name: str) -> Command:
    try:
        return COMMANDS[name]
    except KeyError:
        raise UnknownCommand(name)


def execute_command(fs: FileSystem, line: str) -> CommandResult:
    """
    Run one command line against a snapshot

    Args:
        fs: Snapshot the command operates on
        line: Raw command line

    Returns:
        Output text and the resulting snapshot (``fs`` itself on failure)
    """
    name, args = parse_command(line)
    try:
        handler = get_command(name)
        logger.debug(f"Executing {name} with {args}")
        return handler.execute(args, fs)
    except UnknownCommand as e:
        return CommandResult(str(e), fs)
    except VFSError as e:
        logger.debug(f"{name} failed: {e}")
        return CommandResult(f"{name}: {e}", fs)


def help_text() -> str:
    lines = ['Available commands:']
    lines.extend(f"  {cmd.name:<8} - {cmd.description}" for cmd in COMMANDS.values())
    return '\n'.join(lines)


def format_entry(node) -> str:
    """One ``ls`` line: permissions, size, modification date and name"""
    name = node.name + ('/' if node.is_directory else '')
    return (f"{permission_string(node)} {node.metadata.size:>6} "
            f"{format_listing_date(node.metadata.modified_at)} {name}")


def _create_each(args: List[str], fs: FileSystem, label: str, create) -> CommandResult:
    """Create every named node in the current directory, stopping at the first failure"""
    if not args:
        raise MissingOperand()

    current = fs
    for name in args:
        try:
            current = create(current, current.current_directory, name)
        except VFSError as e:
            logger.debug(f"{label} stopped at {name}: {e}")
            return CommandResult(f"{label}: {e}", current)
    return CommandResult('', current)


@command('ls', 'List directory contents', 'ls [path]')
def cmd_ls(args: List[str], fs: FileSystem) -> CommandResult:
    dir_id = fs.current_directory

    if args:
        node = resolve_path(fs, args[0])
        if node is None:
            raise NotFound(f"{args[0]}: No such file or directory")
        if not node.is_directory:
            return CommandResult(node.name, fs)
        dir_id = node.id

    if not has_permission(fs, dir_id, PermissionKind.READ):
        raise PermissionDenied()

    lines = [format_entry(child) for child in children_of(fs, dir_id)]
    return CommandResult('\n'.join(lines) or EMPTY_DIRECTORY, fs)


@command('cd', 'Change directory', 'cd [path]')
def cmd_cd(args: List[str], fs: FileSystem) -> CommandResult:
    if not args:
        root = root_of(fs)
        if root is None:
            raise NotFound("No root directory found")
        return CommandResult('', fs.model_copy(update={'current_directory': root.id}))

    path = args[0]
    if path == '..':
        current = fs.nodes.get(fs.current_directory)
        if current is None or current.parent_id is None:
            return CommandResult('', fs)
        target_id = current.parent_id
    else:
        node = resolve_path(fs, path)
        if node is None:
            raise NotFound(f"{path}: No such file or directory")
        if not node.is_directory:
            raise NotADirectory(f"{path}: Not a directory")
        target_id = node.id

    if not has_permission(fs, target_id, PermissionKind.EXECUTE):
        raise PermissionDenied()

    return CommandResult('', fs.model_copy(update={'current_directory': target_id}))


@command('pwd', 'Print working directory')
def cmd_pwd(args: List[str], fs: FileSystem) -> CommandResult:
    return CommandResult(absolute_path(fs, fs.current_directory), fs)


@command('mkdir', 'Create a new directory', 'mkdir <name>...')
def cmd_mkdir(args: List[str], fs: FileSystem) -> CommandResult:
    return _create_each(args, fs, 'mkdir', create_directory)


@command('touch', 'Create a new empty file', 'touch <name>...')
def cmd_touch(args: List[str], fs: FileSystem) -> CommandResult:
    return _create_each(args, fs, 'touch', create_file)


@command('cat', 'Display file contents', 'cat <path>')
def cmd_cat(args: List[str], fs: FileSystem) -> CommandResult:
    if not args:
        raise MissingOperand()

    node = resolve_path(fs, args[0])
    if node is None:
        raise NotFound(f"{args[0]}: No such file or directory")
    if node.is_directory:
        raise IsADirectory(f"{args[0]}: Is a directory")
    if not has_permission(fs, node.id, PermissionKind.READ):
        raise PermissionDenied()

    return CommandResult(node.content, fs)


@command('rm', 'Remove files or directories', 'rm [-r|-rf] <path>...')
def cmd_rm(args: List[str], fs: FileSystem) -> CommandResult:
    recursive = bool(args) and args[0] in RECURSIVE_FLAGS
    paths = args[1:] if recursive else args
    if not paths:
        raise MissingOperand()

    current = fs
    errors = []
    for path in paths:
        try:
            current = remove_node(current, path, recursive)
        except VFSError as e:
            errors.append(f"rm: {path}: {e}")

    return CommandResult('\n'.join(errors), current)


@command('clear', 'Clear terminal output')
def cmd_clear(args: List[str], fs: FileSystem) -> CommandResult:
    # Output history lives in the terminal; nothing to change here
    return CommandResult('', fs)


@command('help', 'Display this help message')
def cmd_help(args: List[str], fs: FileSystem) -> CommandResult:
    return CommandResult(help_text(), fs)
