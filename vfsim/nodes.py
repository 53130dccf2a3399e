"""
Node Repository

Directory/file tree operations over a filesystem snapshot. Reads return
nodes or plain values; mutations return a new snapshot and raise a
``FileSystemError`` subclass, leaving the given snapshot untouched, when
they cannot be carried out.
"""

import logging
from datetime import datetime
from typing import List, Optional

from .blocks import allocate_blocks, release_blocks, store_content
from .exceptions import (
    AlreadyExists, DirectoryNotEmpty, InvalidMove, InvalidName, NotADirectory,
    NotFound, PermissionDenied, RemovalFailed, RootRemoval
)
from .models import DirectoryNode, FileNode, FileSystem, NodeMetadata, PermissionKind
from .permissions import FILE_ACCESS, FULL_ACCESS, has_permission
from .state import commit, new_id, root_of, touched

logger = logging.getLogger('VFSIM.nodes')

PATH_SEPARATOR = '/'
RESERVED_NAMES = ('.', '..')


def resolve_path(fs: FileSystem, path: str):
    """
    Resolve an absolute path, starting from the root

    Empty segments are ignored, so ``//a///b`` is ``/a/b``. The walk stops
    at the first segment that names no child, or as soon as it reaches a
    node that is not a directory.

    Returns:
        The node, or None if the path does not resolve
    """
    node = root_of(fs)
    if node is None or path == PATH_SEPARATOR:
        return node

    for part in (p for p in path.split(PATH_SEPARATOR) if p):
        if not node.is_directory:
            return None
        node = find_child(fs, node, part)
        if node is None:
            return None

    return node


def absolute_path(fs: FileSystem, node_id: str) -> str:
    """Build the ``/``-joined path of a node by walking up to the root"""
    node = fs.nodes.get(node_id)
    if node is None:
        return ''
    if node.parent_id is None:
        return PATH_SEPARATOR

    parts = []
    while node is not None and node.parent_id is not None:
        parts.append(node.name)
        node = fs.nodes.get(node.parent_id)
    return PATH_SEPARATOR + PATH_SEPARATOR.join(reversed(parts))


def children_of(fs: FileSystem, dir_id: str) -> List:
    """Child nodes of a directory in insertion order; empty for non-directories"""
    directory = fs.nodes.get(dir_id)
    if directory is None or not directory.is_directory:
        return []
    return [fs.nodes[child_id] for child_id in directory.children if child_id in fs.nodes]


def find_child(fs: FileSystem, directory, name: str):
    for child_id in directory.children:
        child = fs.nodes.get(child_id)
        if child is not None and child.name == name:
            return child
    return None


def _validate_name(name: str) -> None:
    if not name or name in RESERVED_NAMES or PATH_SEPARATOR in name:
        raise InvalidName(f"Invalid name: '{name}'")


def _writable_parent(fs: FileSystem, parent_id: str, name: str) -> DirectoryNode:
    """Check that ``name`` may be created under ``parent_id`` and return the parent"""
    _validate_name(name)

    if not has_permission(fs, parent_id, PermissionKind.WRITE):
        raise PermissionDenied()

    parent = fs.nodes.get(parent_id)
    if parent is None or not parent.is_directory:
        raise NotADirectory("Parent is not a directory")

    if find_child(fs, parent, name) is not None:
        raise AlreadyExists(f'A file or directory named "{name}" already exists')

    return parent


def create_directory(fs: FileSystem, parent_id: str, name: str) -> FileSystem:
    """Create an empty directory owned by the current user"""
    parent = _writable_parent(fs, parent_id, name)

    now = datetime.now()
    directory = DirectoryNode(
        id=new_id(),
        name=name,
        parent_id=parent.id,
        owner=fs.current_user,
        permissions={fs.current_user: FULL_ACCESS},
        metadata=NodeMetadata(created_at=now, modified_at=now, size=0, type='directory'),
    )

    logger.debug(f"Created directory {name} under {parent.name}")
    return commit(fs, updated=[
        directory,
        touched(parent, children=parent.children + (directory.id,)),
    ])


def create_file(fs: FileSystem, parent_id: str, name: str,
                content: str = '', type: str = 'text/plain') -> FileSystem:
    """
    Create a file and store its content on disk

    Args:
        fs: Snapshot to derive from
        parent_id: Directory receiving the file
        name: File name, unique among the directory's children
        content: Text content, stored UTF-8 encoded
        type: MIME type recorded in the metadata

    Returns:
        New snapshot holding the file and its allocated blocks

    Raises:
        OutOfSpace: The allocator found no room; nothing was created
    """
    parent = _writable_parent(fs, parent_id, name)

    data = content.encode('utf-8')
    file_id = new_id()
    allocation = allocate_blocks(fs, len(data))

    now = datetime.now()
    file = FileNode(
        id=file_id,
        name=name,
        parent_id=parent.id,
        owner=fs.current_user,
        permissions={fs.current_user: FILE_ACCESS},
        content=content,
        block_allocation=allocation,
        metadata=NodeMetadata(created_at=now, modified_at=now, size=len(data), type=type),
    )

    logger.debug(f"Created file {name} ({len(data)} bytes, blocks {list(allocation.blocks)})")
    return commit(
        fs,
        updated=[file, touched(parent, children=parent.children + (file.id,))],
        blocks=store_content(fs.blocks, allocation, file_id, data, fs.block_size),
    )


def move_node(fs: FileSystem, node_id: str, new_parent_id: str) -> FileSystem:
    """
    Move a node into another directory

    Raises:
        NotFound: The node does not exist
        NotADirectory: The destination is missing or not a directory
        PermissionDenied: No write access on the old or the new parent
        InvalidMove: The destination is the node itself or below it
        AlreadyExists: The destination already has a child of that name
    """
    node = fs.nodes.get(node_id)
    if node is None:
        raise NotFound("Source node not found")
    if node.parent_id is None:
        raise InvalidMove("Cannot move the root directory")

    new_parent = fs.nodes.get(new_parent_id)
    if new_parent is None or not new_parent.is_directory:
        raise NotADirectory("Target is not a valid directory")

    if (not has_permission(fs, node.parent_id, PermissionKind.WRITE)
            or not has_permission(fs, new_parent_id, PermissionKind.WRITE)):
        raise PermissionDenied()

    ancestor = new_parent
    while ancestor is not None:
        if ancestor.id == node.id:
            raise InvalidMove()
        ancestor = fs.nodes.get(ancestor.parent_id) if ancestor.parent_id else None

    if find_child(fs, new_parent, node.name) is not None:
        raise AlreadyExists(f'A file or directory named "{node.name}" already exists in the destination')

    old_parent = fs.nodes[node.parent_id]
    logger.debug(f"Moved {node.name} from {old_parent.name} to {new_parent.name}")
    return commit(fs, updated=[
        node.model_copy(update={'parent_id': new_parent_id}),
        touched(old_parent, children=tuple(c for c in old_parent.children if c != node_id)),
        touched(new_parent, children=new_parent.children + (node_id,)),
    ])


def subtree(fs: FileSystem, node) -> List:
    """The node followed by all of its descendants, depth-first"""
    nodes = []
    stack = [node]
    while stack:
        current = stack.pop()
        nodes.append(current)
        if current.is_directory:
            stack.extend(reversed(children_of(fs, current.id)))
    return nodes


def remove_node(fs: FileSystem, path: str, recursive: bool = False) -> FileSystem:
    """
    Remove the node at ``path`` and free its blocks

    A recursive removal first checks every descendant. If the current user
    lacks write access on any of them, nothing is removed and
    ``RemovalFailed`` lists every offending path.

    Raises:
        NotFound: The path does not resolve
        PermissionDenied: No write access on the node
        DirectoryNotEmpty: Populated directory and ``recursive`` is False
        RootRemoval: The path is the root
        RemovalFailed: Descendants that may not be removed
    """
    node = resolve_path(fs, path)
    if node is None:
        raise NotFound()

    if not has_permission(fs, node.id, PermissionKind.WRITE):
        raise PermissionDenied()

    if node.is_directory and node.children and not recursive:
        raise DirectoryNotEmpty()

    if node.parent_id is None:
        raise RootRemoval()

    doomed = subtree(fs, node)
    failures = [
        (absolute_path(fs, descendant.id), PermissionDenied.default_message)
        for descendant in doomed[1:]
        if not has_permission(fs, descendant.id, PermissionKind.WRITE)
    ]
    if failures:
        logger.debug(f"Recursive removal of {path} refused for {len(failures)} node(s)")
        raise RemovalFailed(failures)

    blocks = fs.blocks
    for victim in doomed:
        if not victim.is_directory:
            blocks = release_blocks(blocks, victim.block_allocation)

    removed = [victim.id for victim in doomed]
    changes = {}
    if fs.current_directory in removed:
        changes['current_directory'] = node.parent_id

    parent = fs.nodes[node.parent_id]
    logger.debug(f"Removed {path} ({len(doomed)} node(s))")
    return commit(
        fs,
        updated=[touched(parent, children=tuple(c for c in parent.children if c != node.id))],
        removed=removed,
        blocks=blocks,
        **changes
    )
