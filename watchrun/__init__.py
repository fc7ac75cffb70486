"""
watchrun keeps a long-running executable in sync with its build output.

Whenever the binary changes on disk, the running instance is killed together
with its process group and a fresh one is started with the same arguments.
"""

__version__ = "0.1.0"
