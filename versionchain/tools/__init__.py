"""
CLI tools for versionchain.

This module provides command-line tools for:
- describe: Show the versions registered in a chain
- check: Verify consecutive versions are compatible
- upgrade: Migrate a stored JSON record
- inspect: Report how a stored JSON record relates to the latest version

Invariants:
    - Tools never modify input files
    - Failures exit with a non-zero status
"""

from .chain_cli import ChainCLI

__all__ = ["ChainCLI"]
