"""
Programs and how they are found.

- registry.py: name -> program table
- builtin.py: clock, echo, tasks, help
- loader.py: resolves names, "module:function" entry points and .py files
"""
