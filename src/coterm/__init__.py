"""
coterm: a cooperative multitasking session manager.

Several generator-based programs share one terminal. One task is focused
(rendered, receives input); the others keep running against private
virtual terminals.
"""

__version__ = "0.1.0"
