class VFSError(Exception):
    """Base exception for the filesystem simulator"""
    default_message = "Filesystem error"

    def __init__(self, message: str = None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message

class FileSystemError(VFSError):
    """Base exception for filesystem operations"""
    pass

class NotFound(FileSystemError):
    """Raised when a path or node does not exist"""
    default_message = "No such file or directory"

class PermissionDenied(FileSystemError):
    """Raised when the current user lacks a read/write/execute grant"""
    default_message = "Permission denied"

class AlreadyExists(FileSystemError):
    """Raised when a sibling with the same name already exists"""
    default_message = "File exists"

class NotADirectory(FileSystemError):
    """Raised when path is not a directory"""
    default_message = "Not a directory"

class IsADirectory(FileSystemError):
    """Raised when path is a directory but file operation is attempted"""
    default_message = "Is a directory"

class DirectoryNotEmpty(FileSystemError):
    """Raised when a populated directory is removed without recursion"""
    default_message = "Directory not empty"

class InvalidMove(FileSystemError):
    """Raised when a node would be moved under itself"""
    default_message = "Cannot move a directory into its own subdirectory"

class InvalidName(FileSystemError):
    """Raised when a node name cannot be used inside a directory"""
    default_message = "Invalid name"

class OutOfSpace(FileSystemError):
    """Raised when the disk has no room for the requested blocks"""
    default_message = "Not enough disk space"

class RootRemoval(FileSystemError):
    """Raised when removal of the root directory is attempted"""
    default_message = "Cannot remove root directory"

class RemovalFailed(FileSystemError):
    """Raised when descendants of a recursive removal cannot be removed"""

    def __init__(self, failures):
        self.failures = list(failures)
        super().__init__(
            "Cannot remove: " + ", ".join(f"{path}: {reason}" for path, reason in self.failures)
        )

# Block allocation related exceptions
class AllocationError(VFSError):
    """Base exception for block allocation errors"""
    pass

class UnsupportedStrategy(AllocationError):
    """Raised when an allocation strategy has no allocator"""

    def __init__(self, strategy):
        self.strategy = strategy
        super().__init__(f"Unsupported allocation strategy: {strategy}")

# Command related exceptions
class CommandError(VFSError):
    """Base exception for command interpreter errors"""
    pass

class MissingOperand(CommandError):
    """Raised when a command is called without required arguments"""
    default_message = "missing operand"

class UnknownCommand(CommandError):
    """Raised when a command name is not registered"""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Command not found: {name}")

class UserNotFound(VFSError):
    """Raised when user is not found"""
    default_message = "No such user"

class ConfigError(VFSError):
    """Raised when configuration is invalid"""
    default_message = "Invalid configuration"
