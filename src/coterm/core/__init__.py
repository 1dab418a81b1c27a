"""
Core building blocks.

Components:
- errors.py: exception hierarchy
- events.py: Event type, event classes, key codes
- terminal.py: in-memory virtual terminal (character grid)
- ports.py: Protocols the host must satisfy
- state.py: read-only session snapshots for inspection
"""
