"""
Snapshot plumbing for the filesystem simulator

Every mutation of the simulator goes through the helpers in this module.
They never change a snapshot in place: new node tables and block tuples
are assembled from the previous ones and wrapped in a fresh snapshot, so
callers holding an older snapshot keep seeing exactly what they saw.
"""

import logging
import uuid
from datetime import datetime
from typing import Dict, Iterable, Mapping, Optional, Tuple, Union

from .exceptions import UserNotFound
from .models import (
    AllocationStrategy, Block, DirectoryNode, FileSystem, NodeMetadata,
    Permission, User
)

logger = logging.getLogger('VFSIM.state')

DEFAULT_BLOCK_SIZE = 1024
DEFAULT_TOTAL_BLOCKS = 50
DEFAULT_ADMIN = 'admin'


def new_id() -> str:
    """Return a fresh opaque node/user identifier"""
    return str(uuid.uuid4())


def initialize_filesystem(block_size: int = DEFAULT_BLOCK_SIZE,
                          total_blocks: int = DEFAULT_TOTAL_BLOCKS,
                          allocation_strategy: Union[AllocationStrategy, str] = AllocationStrategy.CONTIGUOUS,
                          admin_username: str = DEFAULT_ADMIN,
                          users: Optional[Mapping[str, bool]] = None) -> FileSystem:
    """
    Create a filesystem with an empty root directory and an admin user

    Args:
        block_size: Bytes stored per block
        total_blocks: Number of blocks on the simulated disk
        allocation_strategy: Strategy used for new files
        admin_username: Name of the admin user owning the root
        users: Extra users to create, username -> is_admin

    Returns:
        The initial snapshot, with the admin as current user and the root
        as current directory
    """
    if block_size <= 0:
        raise ValueError(f"block_size must be positive, got {block_size}")
    if total_blocks <= 0:
        raise ValueError(f"total_blocks must be positive, got {total_blocks}")

    admin = User(id=new_id(), username=admin_username, is_admin=True)
    user_table: Dict[str, User] = {admin.id: admin}
    for username, is_admin in (users or {}).items():
        if username == admin_username:
            raise ValueError(f"Duplicate username: {username}")
        user = User(id=new_id(), username=username, is_admin=bool(is_admin))
        user_table[user.id] = user

    now = datetime.now()
    root = DirectoryNode(
        id=new_id(),
        name='/',
        parent_id=None,
        owner=admin.id,
        permissions={admin.id: Permission(read=True, write=True, execute=True)},
        metadata=NodeMetadata(created_at=now, modified_at=now, size=0, type='directory'),
    )

    filesystem = FileSystem(
        nodes={root.id: root},
        users=user_table,
        current_user=admin.id,
        current_directory=root.id,
        blocks=tuple(Block(id=index) for index in range(total_blocks)),
        block_size=block_size,
        total_blocks=total_blocks,
        allocation_strategy=AllocationStrategy(allocation_strategy),
    )
    logger.info(f"Filesystem initialized: {total_blocks} blocks of {block_size} bytes, "
                f"{len(user_table)} user(s), {filesystem.allocation_strategy.value} allocation")
    return filesystem


def root_of(fs: FileSystem):
    """Return the root directory node, or None for a rootless table"""
    return next((node for node in fs.nodes.values() if node.parent_id is None), None)


def current_user(fs: FileSystem) -> Optional[User]:
    return fs.users.get(fs.current_user)


def user_by_name(fs: FileSystem, username: str) -> Optional[User]:
    return next((user for user in fs.users.values() if user.username == username), None)


def switch_user(fs: FileSystem, user: str) -> FileSystem:
    """Make another user current; ``user`` may be an id or a username"""
    target = fs.users.get(user) or user_by_name(fs, user)
    if target is None:
        raise UserNotFound(f"No such user: {user}")
    logger.debug(f"Current user switched to {target.username}")
    return fs.model_copy(update={'current_user': target.id})


def touched(node, **changes):
    """Return a copy of ``node`` with a fresh modification time"""
    metadata = node.metadata.model_copy(update={'modified_at': datetime.now()})
    return node.model_copy(update=dict(changes, metadata=metadata))


def commit(fs: FileSystem,
           updated: Iterable = (),
           removed: Iterable[str] = (),
           blocks: Optional[Tuple[Block, ...]] = None,
           **changes) -> FileSystem:
    """
    Derive a new snapshot from ``fs``

    Args:
        fs: Snapshot to derive from; left untouched
        updated: Node records to add or replace, keyed by their id
        removed: Node ids to drop from the node table
        blocks: Replacement block tuple, if blocks changed
        changes: Other snapshot fields to replace

    Returns:
        New snapshot sharing every unchanged record with ``fs``
    """
    nodes = dict(fs.nodes)
    for node_id in removed:
        nodes.pop(node_id, None)
    for node in updated:
        nodes[node.id] = node

    update = dict(changes, nodes=nodes)
    if blocks is not None:
        update['blocks'] = tuple(blocks)
    return fs.model_copy(update=update)
