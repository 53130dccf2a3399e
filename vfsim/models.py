"""
Filesystem Simulator Data Models

This module defines the Pydantic models for every record the engine works
with: users, permission grants, directory and file nodes, disk blocks and
the filesystem snapshot that aggregates them.

All models are frozen. A snapshot is never changed after it has been
handed out; operations derive a new one with ``model_copy(update=...)``,
so node records and blocks that an operation does not touch are shared
between the old and the new snapshot.
"""

from datetime import datetime
from enum import Enum
from typing import Dict, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field
from typing_extensions import Annotated, Literal


class AllocationStrategy(str, Enum):
    """Disk block allocation strategies"""
    CONTIGUOUS = "contiguous"  # Single run of consecutive blocks
    LINKED = "linked"          # Blocks chained through next_block
    INDEXED = "indexed"        # Index block lists the data blocks


class PermissionKind(str, Enum):
    """Access kinds checked by the permission model"""
    READ = "read"
    WRITE = "write"
    EXECUTE = "execute"


class FrozenModel(BaseModel):
    model_config = ConfigDict(frozen=True)


class User(FrozenModel):
    """A simulator user; admins bypass every permission check"""
    id: str
    username: str
    is_admin: bool = False


class Permission(FrozenModel):
    """Read/write/execute grant held by one user on one node"""
    read: bool = False
    write: bool = False
    execute: bool = False

    def allows(self, kind: Union[PermissionKind, str]) -> bool:
        return getattr(self, PermissionKind(kind).value)


class NodeMetadata(FrozenModel):
    created_at: datetime
    modified_at: datetime
    size: int = 0
    type: str = "directory"


class BaseNode(FrozenModel):
    """Fields shared by directories and files"""
    id: str
    name: str
    parent_id: Optional[str] = None
    owner: str
    permissions: Dict[str, Permission] = Field(default_factory=dict)
    metadata: NodeMetadata

    @property
    def is_directory(self) -> bool:
        return self.kind == "directory"

    @property
    def is_root(self) -> bool:
        return self.parent_id is None


class DirectoryNode(BaseNode):
    kind: Literal["directory"] = "directory"
    children: Tuple[str, ...] = ()


class BlockAllocation(FrozenModel):
    """Where a file's content lives on disk

    ``blocks`` lists the data blocks in content order. For the indexed
    strategy ``start_block`` is the index block, which is owned by the file
    but holds no content of its own.
    """
    strategy: AllocationStrategy = AllocationStrategy.CONTIGUOUS
    start_block: Optional[int] = None
    blocks: Tuple[int, ...] = ()

    @property
    def owned_blocks(self) -> Tuple[int, ...]:
        if self.strategy == AllocationStrategy.INDEXED and self.start_block is not None:
            return (self.start_block,) + self.blocks
        return self.blocks


class FileNode(BaseNode):
    kind: Literal["file"] = "file"
    content: str = ""
    block_allocation: BlockAllocation = Field(default_factory=BlockAllocation)


Node = Annotated[Union[DirectoryNode, FileNode], Field(discriminator="kind")]


class Block(FrozenModel):
    """One fixed-size disk block; free when ``file_id`` is None"""
    id: int
    file_id: Optional[str] = None
    next_block: Optional[int] = None
    content: bytes = b""

    @property
    def is_free(self) -> bool:
        return self.file_id is None


class FileSystem(FrozenModel):
    """One complete, immutable filesystem state"""
    nodes: Dict[str, Node]
    users: Dict[str, User]
    current_user: str
    current_directory: str
    blocks: Tuple[Block, ...]
    block_size: int
    total_blocks: int
    allocation_strategy: AllocationStrategy = AllocationStrategy.CONTIGUOUS
