"""
Session-level components around the scheduler.

- compositor.py: draws the focused terminal and the status bar
- hotkeys.py: recognizes session chords before events reach tasks
"""
