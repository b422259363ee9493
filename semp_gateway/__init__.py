"""
SEMP gateway package.

Bridges the SMA SEMP energy-management protocol with an in-memory device
registry and exposes a REST management API for operators.

CHANGELOG:
- 2026-10-10: Initial creation (STORY-001)

TODO:
- None
"""
