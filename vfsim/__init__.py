"""
Virtual File System Simulator

An in-memory model of directories, files, users, permissions and disk
block allocation, driven by a small shell-like command language.
"""

__version__ = '1.0.0'

from .commands import COMMANDS, CommandResult, execute_command, parse_command
from .config import SimulatorConfig, load_config
from .disk import check_integrity, describe_node, disk_usage
from .exceptions import (
    AlreadyExists, CommandError, ConfigError, DirectoryNotEmpty, FileSystemError,
    InvalidMove, InvalidName, IsADirectory, MissingOperand, NotADirectory, NotFound,
    OutOfSpace, PermissionDenied, RemovalFailed, RootRemoval, UnknownCommand,
    UnsupportedStrategy, UserNotFound, VFSError
)
from .models import (
    AllocationStrategy, Block, BlockAllocation, DirectoryNode, FileNode, FileSystem,
    Permission, PermissionKind, User
)
from .nodes import (
    absolute_path, children_of, create_directory, create_file, move_node,
    remove_node, resolve_path
)
from .permissions import grant_permission, has_permission, permission_string
from .state import initialize_filesystem, switch_user, user_by_name
from .terminal import Terminal

__all__ = [
    # Snapshot and records
    'FileSystem', 'DirectoryNode', 'FileNode', 'Block', 'BlockAllocation',
    'User', 'Permission', 'PermissionKind', 'AllocationStrategy',

    # State
    'initialize_filesystem', 'switch_user', 'user_by_name',

    # Node repository
    'resolve_path', 'absolute_path', 'children_of', 'create_directory',
    'create_file', 'move_node', 'remove_node',

    # Permissions
    'has_permission', 'permission_string', 'grant_permission',

    # Commands and terminal
    'COMMANDS', 'CommandResult', 'execute_command', 'parse_command', 'Terminal',

    # Reporting and configuration
    'disk_usage', 'check_integrity', 'describe_node', 'SimulatorConfig', 'load_config',

    # Exceptions
    'VFSError', 'FileSystemError', 'NotFound', 'PermissionDenied', 'AlreadyExists',
    'NotADirectory', 'IsADirectory', 'DirectoryNotEmpty', 'InvalidMove', 'InvalidName',
    'OutOfSpace', 'RootRemoval', 'RemovalFailed', 'UnsupportedStrategy',
    'CommandError', 'MissingOperand', 'UnknownCommand', 'UserNotFound', 'ConfigError',
]
