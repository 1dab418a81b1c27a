"""
Host implementations.

- curses_host.py: real terminal via the standard curses module
"""
