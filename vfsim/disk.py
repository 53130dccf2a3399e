"""
Disk usage and integrity reporting for filesystem snapshots
"""
import logging
from typing import Any, Dict, List, Optional

from cachetools import LRUCache, cached

from .blocks import INDEX_SEPARATOR, block_chain, blocks_needed, read_file_blocks
from .models import AllocationStrategy, FileSystem
from .nodes import absolute_path
from .permissions import NO_ACCESS
from .utils import format_date, format_size

logger = logging.getLogger('VFSIM.disk')


def largest_free_run(blocks) -> int:
    """Length of the longest run of consecutive free blocks"""
    longest = current = 0
    for block in blocks:
        current = current + 1 if block.is_free else 0
        longest = max(longest, current)
    return longest


@cached(cache=LRUCache(maxsize=128))
def _usage(blocks, block_size: int) -> Dict[str, Any]:
    total = len(blocks)
    used = sum(1 for block in blocks if not block.is_free)
    return {
        'total_blocks': total,
        'used_blocks': used,
        'free_blocks': total - used,
        'block_size': block_size,
        'total_bytes': total * block_size,
        'used_bytes': used * block_size,
        'free_bytes': (total - used) * block_size,
        'usage_percent': (used / total) * 100 if total > 0 else 0,
        'largest_free_run': largest_free_run(blocks),
    }


def disk_usage(fs: FileSystem) -> Dict[str, Any]:
    """Block usage statistics; cached per distinct block table"""
    return dict(_usage(fs.blocks, fs.block_size))


def check_integrity(fs: FileSystem) -> List[str]:
    """
    Check a snapshot against the filesystem invariants

    Returns:
        Human readable description of every violation; empty if healthy
    """
    issues = []
    roots = [node for node in fs.nodes.values() if node.parent_id is None]
    if len(roots) != 1:
        issues.append(f"Expected exactly one root, found {len(roots)}")
    elif not roots[0].is_directory:
        issues.append("Root is not a directory")

    current = fs.nodes.get(fs.current_directory)
    if current is None or not current.is_directory:
        issues.append(f"Current directory {fs.current_directory} is not an existing directory")

    _check_tree(fs, issues)
    _check_blocks(fs, issues)

    if issues:
        logger.warning(f"Integrity check found {len(issues)} issue(s)")
    return issues


def _check_tree(fs: FileSystem, issues: List[str]):
    parent_of = {}
    for node in fs.nodes.values():
        if not node.is_directory:
            continue
        names = set()
        for child_id in node.children:
            child = fs.nodes.get(child_id)
            if child is None:
                issues.append(f"Directory {node.name} lists missing child {child_id}")
                continue
            if child_id in parent_of:
                issues.append(f"Node {child.name} is listed by more than one directory")
            parent_of[child_id] = node.id
            if child.parent_id != node.id:
                issues.append(f"Node {child.name} does not point back to {node.name}")
            if child.name in names:
                issues.append(f"Duplicate name {child.name} in {node.name}")
            names.add(child.name)

    for node in fs.nodes.values():
        if node.parent_id is not None and node.id not in parent_of:
            issues.append(f"Node {node.name} is not listed by its parent")
        seen = set()
        current = node
        while current is not None and current.parent_id is not None:
            if current.id in seen:
                issues.append(f"Cycle detected above {node.name}")
                break
            seen.add(current.id)
            current = fs.nodes.get(current.parent_id)


def _check_blocks(fs: FileSystem, issues: List[str]):
    claimed = {}
    for node in fs.nodes.values():
        if node.is_directory:
            continue
        allocation = node.block_allocation
        size = len(node.content.encode('utf-8'))
        found = len(issues)
        if len(allocation.blocks) != blocks_needed(size, fs.block_size):
            issues.append(f"File {node.name} holds {len(allocation.blocks)} block(s) for {size} bytes")
        for block_id in allocation.owned_blocks:
            if not 0 <= block_id < fs.total_blocks:
                issues.append(f"File {node.name} references block {block_id} outside the disk")
                continue
            if block_id in claimed:
                issues.append(f"Block {block_id} is claimed by more than one file")
            claimed[block_id] = node.id
            if fs.blocks[block_id].file_id != node.id:
                issues.append(f"Block {block_id} is not marked as owned by {node.name}")
        if len(issues) == found:
            chain_issue = _check_chain(fs, node)
            if chain_issue:
                issues.append(chain_issue)
        if len(issues) != found:
            continue
        if list(allocation.blocks) != block_chain(fs, node):
            issues.append(f"Block chain of {node.name} does not match its allocation")
        elif read_file_blocks(fs, node) != node.content:
            issues.append(f"Stored content of {node.name} differs from its blocks")

    for block in fs.blocks:
        if block.file_id is not None and claimed.get(block.id) != block.file_id:
            issues.append(f"Block {block.id} is owned by {block.file_id} without an allocation")


def _check_chain(fs: FileSystem, node) -> Optional[str]:
    """Validate the links and index entries a file's block chain is read from"""
    allocation = node.block_allocation
    start = allocation.start_block
    if start is None:
        return None

    if allocation.strategy == AllocationStrategy.LINKED:
        current = start
        for _ in range(fs.total_blocks):
            if current is None:
                return None
            if not 0 <= current < fs.total_blocks:
                return f"Block chain of {node.name} points outside the disk at block {current}"
            current = fs.blocks[current].next_block
        return None if current is None else f"Block chain of {node.name} does not terminate"

    if allocation.strategy == AllocationStrategy.INDEXED:
        if not 0 <= start < fs.total_blocks:
            return f"Index block {start} of {node.name} is outside the disk"
        entries = [entry for entry in fs.blocks[start].content.split(INDEX_SEPARATOR) if entry]
        if not all(entry.isdigit() for entry in entries):
            return f"Index block {start} of {node.name} is unreadable"

    return None


def describe_node(fs: FileSystem, node_id: str) -> Dict[str, Any]:
    """Details of a node for presentation layers"""
    node = fs.nodes[node_id]
    owner = fs.users.get(node.owner)
    grant = node.permissions.get(node.owner, NO_ACCESS)
    granted = [label for label, allowed in (
        ('Read', grant.read), ('Write', grant.write), ('Execute', grant.execute)) if allowed]

    details = {
        'name': node.name,
        'path': absolute_path(fs, node.id),
        'type': 'Directory' if node.is_directory else node.metadata.type,
        'owner': owner.username if owner else node.owner,
        'created': format_date(node.metadata.created_at),
        'modified': format_date(node.metadata.modified_at),
        'size': format_size(node.metadata.size),
        'permissions': ', '.join(granted) or 'None',
    }
    if node.is_directory:
        details['items'] = len(node.children)
    else:
        allocation = node.block_allocation
        details['strategy'] = allocation.strategy.value
        details['blocks'] = len(allocation.blocks)
        if allocation.strategy == AllocationStrategy.CONTIGUOUS and allocation.blocks:
            details['range'] = f"{allocation.blocks[0]} - {allocation.blocks[-1]}"
        elif allocation.blocks:
            details['range'] = ', '.join(str(block_id) for block_id in allocation.blocks)
    return details
