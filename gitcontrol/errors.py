"""
Exception types raised by gitcontrol operations.

The CLI turns any GitControlError into a red error line and exit code 1.
"""
from typing import List, Optional


class GitControlError(Exception):
    """Base class for all gitcontrol failures."""

    def __init__(self, message: str, hint: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.hint = hint


class PrerequisiteError(GitControlError):
    """A required tool is missing or not authenticated."""


class InputError(GitControlError):
    """A required file or value is missing or malformed."""


class CommandError(GitControlError):
    """An external command exited with a non-zero status."""

    def __init__(self, command: List[str], returncode: int, stderr: str = ""):
        self.command = command
        self.returncode = returncode
        self.stderr = stderr.strip()
        message = f"Command failed ({returncode}): {' '.join(command)}"
        if self.stderr:
            message += f"\n{self.stderr}"
        super().__init__(message)
