"""Permission model: per-node, per-user read/write/execute grants"""

import logging
from typing import Union

from .exceptions import NotFound, PermissionDenied, UserNotFound
from .models import FileSystem, Permission, PermissionKind
from .state import commit, touched

logger = logging.getLogger('VFSIM.permissions')

FULL_ACCESS = Permission(read=True, write=True, execute=True)
FILE_ACCESS = Permission(read=True, write=True, execute=False)
NO_ACCESS = Permission()


def has_permission(fs: FileSystem, node_id: str, kind: Union[PermissionKind, str]) -> bool:
    """
    Check whether the current user holds ``kind`` access on a node

    Admins always pass. Other users need an explicit grant on the node
    itself; grants on parent directories are not inherited. A missing node
    or missing current user yields False.
    """
    node = fs.nodes.get(node_id) if node_id is not None else None
    user = fs.users.get(fs.current_user)
    if node is None or user is None:
        return False

    if user.is_admin:
        return True

    grant = node.permissions.get(user.id)
    return grant is not None and grant.allows(kind)


def permission_string(node) -> str:
    """
    Format a node's permissions the way ``ls -l`` does

    The owner's bits are used for all three triads; group and other
    permissions are not modelled, so they mirror the owner.
    """
    grant = node.permissions.get(node.owner, NO_ACCESS)
    triad = ''.join(flag if allowed else '-' for flag, allowed in (
        ('r', grant.read), ('w', grant.write), ('x', grant.execute)))
    return ('d' if node.is_directory else '-') + triad * 3


def grant_permission(fs: FileSystem, node_id: str, user_id: str, permission: Permission) -> FileSystem:
    """Set ``user_id``'s grant on a node; only its owner or an admin may do so"""
    node = fs.nodes.get(node_id)
    if node is None:
        raise NotFound()
    if user_id not in fs.users:
        raise UserNotFound(f"No such user: {user_id}")

    actor = fs.users.get(fs.current_user)
    if actor is None or not (actor.is_admin or actor.id == node.owner):
        raise PermissionDenied()

    permissions = dict(node.permissions)
    permissions[user_id] = permission
    logger.debug(f"Granted {permission} on {node.name} to {fs.users[user_id].username}")
    return commit(fs, updated=[touched(node, permissions=permissions)])
