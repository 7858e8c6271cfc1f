"""
Command-line interface for basinstats.
"""

from .argument_parser import CLIParser
from .exit_codes import ExitCode

__all__ = ['CLIParser', 'ExitCode']
