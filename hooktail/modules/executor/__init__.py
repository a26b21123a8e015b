"""
Executor Module - Black Box Interface

Purpose: Run hook commands and stream their output
Interface: CommandRunner.run()
Hidden: Process spawning, pipe reading, line framing

Can be replaced with different execution mechanisms (containers, remote agents).
"""

from .runner import CommandRunner, LineFramer, SUCCESS_LINE, describe_exit

__all__ = ["CommandRunner", "LineFramer", "SUCCESS_LINE", "describe_exit"]
