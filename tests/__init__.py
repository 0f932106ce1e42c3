"""
versionchain Test Suite.

This package contains:
- unit/: Unit tests for the chain, slots, issues, compatibility and settings
- integration/: CLI tests running commands against sample chains
"""
