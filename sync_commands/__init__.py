"""
Command Line Module

Provides the ``sulu-sync`` command with its ``export``, ``import`` and
``show-config`` sub-commands.
"""

from .cli import main, build_parser

__all__ = ['main', 'build_parser']
