#!/usr/bin/env python3

"""
Virtual File System Simulator - Main Entry Point
"""

import argparse
import logging
import sys
from typing import List, Optional

from .config import load_config
from .exceptions import ConfigError
from .shell import VFSShell
from .terminal import Terminal

logger = logging.getLogger('VFSIM')

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def setup_logging(level: str = 'WARNING', log_file: Optional[str] = None):
    """Send simulator logs to stderr and, optionally, to a file"""
    handlers = [logging.StreamHandler()]
    if log_file:
        handlers.append(logging.FileHandler(log_file))
    logging.basicConfig(level=getattr(logging, level), format=LOG_FORMAT, handlers=handlers, force=True)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog='vfsim', description='Virtual file system simulator')
    parser.add_argument('--config', help='YAML configuration file')
    parser.add_argument('--block-size', type=int, help='bytes per block')
    parser.add_argument('--total-blocks', type=int, help='number of blocks on the disk')
    parser.add_argument('--strategy', choices=['contiguous', 'linked', 'indexed'],
                        help='block allocation strategy')
    parser.add_argument('--log-level', help='logging level')
    parser.add_argument('-c', '--command', action='append', dest='commands', default=[],
                        help='run a command line and exit; may be repeated')
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Initialize the simulator and start the shell"""
    args = build_parser().parse_args(argv)

    try:
        config = load_config(args.config)
        overrides = {
            'block_size': args.block_size,
            'total_blocks': args.total_blocks,
            'allocation_strategy': args.strategy,
            'log_level': args.log_level,
        }
        overrides = {key: value for key, value in overrides.items() if value is not None}
        if overrides:
            config = config.with_overrides(**overrides)
        filesystem = config.create_filesystem()
    except ConfigError as e:
        print(f"vfsim: {e}", file=sys.stderr)
        return 2

    setup_logging(config.log_level, config.log_file)
    logger.info("Starting filesystem simulator")

    terminal = Terminal(filesystem, history_size=config.history_size)
    if args.commands:
        for line in args.commands:
            output = terminal.run(line)
            if output:
                print(output)
        return 0

    try:
        VFSShell(terminal).cmdloop()
    except KeyboardInterrupt:
        print()
    return 0


if __name__ == "__main__":
    sys.exit(main())
