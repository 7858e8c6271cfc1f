"""
basinstats CLI command handlers.
"""

from .run_commands import RunCommands

__all__ = ['RunCommands']
