"""
Block Allocator

The simulated disk is a fixed tuple of ``total_blocks`` blocks of
``block_size`` bytes each. Files claim blocks through one of three
strategies:

- contiguous: first-fit, lowest address run of free blocks
- linked: the lowest free blocks, chained through ``next_block``
- indexed: one index block listing the data blocks, then the data blocks

Every function here returns new values; the block tuple of a snapshot is
never modified.
"""

import logging
import math
from typing import List, Optional, Sequence, Tuple, Union

from .exceptions import OutOfSpace, UnsupportedStrategy
from .models import AllocationStrategy, Block, BlockAllocation, FileNode, FileSystem

logger = logging.getLogger('VFSIM.blocks')

INDEX_SEPARATOR = b','


def blocks_needed(size: int, block_size: int) -> int:
    """Number of blocks required to store ``size`` bytes"""
    return math.ceil(size / block_size)


def free_block_ids(fs: FileSystem) -> List[int]:
    return [block.id for block in fs.blocks if block.is_free]


def allocate_contiguous(fs: FileSystem, size: int) -> Optional[List[int]]:
    """
    Find the lowest run of free blocks large enough for ``size`` bytes

    Args:
        fs: Snapshot whose blocks are scanned
        size: Content length in bytes

    Returns:
        Block indices of the run in order, or None if no run fits
    """
    needed = blocks_needed(size, fs.block_size)

    for start in range(0, fs.total_blocks - needed + 1):
        if all(fs.blocks[start + offset].is_free for offset in range(needed)):
            return list(range(start, start + needed))

    return None


def allocate_linked(fs: FileSystem, size: int) -> Optional[List[int]]:
    """Pick the lowest free blocks, in any position, for ``size`` bytes"""
    needed = blocks_needed(size, fs.block_size)
    free = free_block_ids(fs)
    if len(free) < needed:
        return None
    return free[:needed]


def allocate_indexed(fs: FileSystem, size: int) -> Optional[Tuple[Optional[int], List[int]]]:
    """
    Pick an index block plus data blocks for ``size`` bytes

    Returns:
        ``(index_block, data_blocks)``, ``(None, [])`` for empty content,
        or None when the disk cannot hold the file
    """
    needed = blocks_needed(size, fs.block_size)
    if needed == 0:
        return None, []

    free = free_block_ids(fs)
    if len(free) < needed + 1:
        return None
    return free[0], free[1:needed + 1]


def allocate_blocks(fs: FileSystem, size: int,
                    strategy: Union[AllocationStrategy, str, None] = None) -> BlockAllocation:
    """
    Allocate blocks for ``size`` bytes with the snapshot's strategy

    Raises:
        OutOfSpace: No suitable free blocks
        UnsupportedStrategy: The strategy has no allocator
    """
    strategy = fs.allocation_strategy if strategy is None else strategy
    try:
        strategy = AllocationStrategy(strategy)
    except ValueError:
        raise UnsupportedStrategy(strategy)

    if strategy == AllocationStrategy.INDEXED:
        result = allocate_indexed(fs, size)
        if result is None:
            logger.debug(f"Indexed allocation of {size} bytes failed")
            raise OutOfSpace()
        index_block, data_blocks = result
        return BlockAllocation(strategy=strategy, start_block=index_block, blocks=tuple(data_blocks))

    if strategy == AllocationStrategy.LINKED:
        data_blocks = allocate_linked(fs, size)
    else:
        data_blocks = allocate_contiguous(fs, size)

    if data_blocks is None:
        logger.debug(f"{strategy.value.capitalize()} allocation of {size} bytes failed")
        raise OutOfSpace()

    start_block = data_blocks[0] if data_blocks else None
    return BlockAllocation(strategy=strategy, start_block=start_block, blocks=tuple(data_blocks))


def store_content(blocks: Sequence[Block], allocation: BlockAllocation, file_id: str,
                  data: bytes, block_size: int) -> Tuple[Block, ...]:
    """
    Write ``data`` into the allocated blocks and mark them owned by ``file_id``

    Returns:
        New block tuple; ``blocks`` itself is left as it was
    """
    updated = list(blocks)
    chain = allocation.blocks
    linked = allocation.strategy == AllocationStrategy.LINKED

    for position, block_id in enumerate(chain):
        next_block = None
        if linked and position + 1 < len(chain):
            next_block = chain[position + 1]
        updated[block_id] = updated[block_id].model_copy(update={
            'file_id': file_id,
            'next_block': next_block,
            'content': data[position * block_size:(position + 1) * block_size],
        })

    if allocation.strategy == AllocationStrategy.INDEXED and allocation.start_block is not None:
        index_content = INDEX_SEPARATOR.join(str(block_id).encode() for block_id in chain)
        updated[allocation.start_block] = updated[allocation.start_block].model_copy(update={
            'file_id': file_id,
            'next_block': None,
            'content': index_content,
        })

    return tuple(updated)


def release_blocks(blocks: Sequence[Block], allocation: BlockAllocation) -> Tuple[Block, ...]:
    """Return a block tuple with every block owned through ``allocation`` freed"""
    updated = list(blocks)
    for block_id in allocation.owned_blocks:
        updated[block_id] = Block(id=block_id)
    return tuple(updated)


def block_chain(fs: FileSystem, file: FileNode) -> List[int]:
    """
    Data block indices of a file, discovered from the disk itself

    Contiguous files are read in allocation order, linked files by
    following ``next_block`` from the start block and indexed files
    through the block numbers stored in their index block.
    """
    allocation = file.block_allocation
    if allocation.start_block is None:
        return []

    if allocation.strategy == AllocationStrategy.LINKED:
        chain = []
        current = allocation.start_block
        while current is not None and len(chain) < fs.total_blocks:
            chain.append(current)
            current = fs.blocks[current].next_block
        return chain

    if allocation.strategy == AllocationStrategy.INDEXED:
        index = fs.blocks[allocation.start_block].content
        return [int(number) for number in index.split(INDEX_SEPARATOR) if number]

    return list(allocation.blocks)


def read_file_blocks(fs: FileSystem, file: FileNode) -> str:
    """Reassemble a file's content from its blocks"""
    data = b''.join(fs.blocks[block_id].content for block_id in block_chain(fs, file))
    return data.decode('utf-8')
