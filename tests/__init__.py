"""
vfsim Test Suite

Engine modules log rejected operations at DEBUG; keep the suite quiet
unless a test lowers the level itself.
"""

import logging

logging.getLogger('VFSIM').setLevel(logging.WARNING)
