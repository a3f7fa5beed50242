"""Exception hierarchy for github-ci-status."""

from typing import List, Optional


class CiStatusError(Exception):
    """Base error for all custom exceptions."""


class ConfigCorruptionError(CiStatusError):
    """Raised when git config holds the same remote URL key twice."""


class UnknownProjectError(CiStatusError):
    """Raised when no configured remote names a GitHub project."""


class UrlParseError(CiStatusError, ValueError):
    """Raised when a remote URL can not be parsed."""

    def __init__(self, url: str, reason: str):
        super().__init__(f"Unable to parse remote URL <{url}>: {reason}")
        self.url = url
        self.reason = reason


class GitCommandError(CiStatusError):
    """Raised when a git invocation fails."""

    def __init__(self, command: List[str], returncode: int, stderr: Optional[str] = None):
        message = "Git command failed"
        if command:
            message = f"Git command failed: {' '.join(command)}"
        if stderr and stderr.strip():
            message = f"{message}: {stderr.strip()}"
        super().__init__(message)
        self.command = command
        self.returncode = returncode
        self.stderr = stderr or ""


class FetchError(CiStatusError):
    """Raised when the GitHub API can not be reached or rejects a request."""
