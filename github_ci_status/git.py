"""Thin async wrappers around the git CLI."""

import asyncio
import logging
import subprocess
from pathlib import Path
from typing import Dict, Iterable, Optional

from github_ci_status.exceptions import GitCommandError

logger = logging.getLogger(__name__)


def run_git(
    args: Iterable[str],
    *,
    cwd: Optional[Path] = None,
    raise_on_error: bool = True,
) -> "subprocess.CompletedProcess[str]":
    """Execute a git command and optionally raise on failure."""

    cmd = ["git", *args]
    try:
        proc = subprocess.run(
            cmd,
            cwd=str(cwd) if cwd is not None else None,
            capture_output=True,
            text=True,
            check=False,
        )
    except OSError as e:
        raise GitCommandError(cmd, -1, str(e)) from e
    if raise_on_error and proc.returncode != 0:
        raise GitCommandError(cmd, proc.returncode, proc.stderr)
    return proc


async def run_git_async(args: Iterable[str], *, cwd: Optional[Path] = None):
    return await asyncio.to_thread(run_git, list(args), cwd=cwd)


def parse_config_list(output: str) -> Dict[str, str]:
    """Parse the output of ``git config --null --list``.

    Each entry is ``key\\nvalue\\0``; a key without a value (``key\\0``) is
    an implicit boolean and maps to ``""``. Later entries replace earlier ones.
    """
    config: Dict[str, str] = {}
    for entry in output.split("\0"):
        if not entry:
            continue
        key, _, value = entry.partition("\n")
        if key in config:
            logger.debug("Config key %s set more than once, using last value", key)
        config[key] = value
    return config


async def read_config(scope: str = "local", cwd: Optional[Path] = None) -> Dict[str, str]:
    """Read a flat snapshot of git config for ``scope`` (local, global, ...)."""
    proc = await run_git_async(["config", f"--{scope}", "--null", "--list"], cwd=cwd)
    return parse_config_list(proc.stdout)


async def get_branch(cwd: Optional[Path] = None) -> str:
    """Name of the current branch. Raises GitCommandError when HEAD is detached."""
    proc = await run_git_async(["symbolic-ref", "-q", "--short", "HEAD"], cwd=cwd)
    return proc.stdout.strip()


async def resolve_commit(ref: str = "HEAD", cwd: Optional[Path] = None) -> str:
    """Full SHA of the commit ``ref`` points to."""
    proc = await run_git_async(
        ["rev-parse", "--verify", "--end-of-options", f"{ref}^{{commit}}"], cwd=cwd
    )
    return proc.stdout.strip()
