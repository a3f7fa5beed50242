"""Command line interface for github-ci-status."""

import argparse
import asyncio
import logging
import math
import sys
import traceback
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path
from typing import List, Optional, TextIO

from github_ci_status.exceptions import CiStatusError
from github_ci_status.fetch import fetch_ci_status
from github_ci_status.formatting import render
from github_ci_status.git import resolve_commit
from github_ci_status.project import get_project_name
from github_ci_status.settings import settings
from github_ci_status.status import combine_statuses, get_state, state_to_exit_code

# Exit code for errors, distinct from the status exit codes 0-3
ERROR_EXIT_CODE = 4

COLOR_CHOICES = {"always": True, "never": False, "auto": None}


class UsageError(CiStatusError):
    """Raised for invalid command line arguments."""


class _ArgumentParser(argparse.ArgumentParser):
    def error(self, message):
        raise UsageError(f"{self.prog}: error: {message}")


def _package_version() -> str:
    try:
        return version("github-ci-status")
    except PackageNotFoundError:
        return "unknown"


def _parse_wait(value: str) -> float:
    try:
        seconds = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid wait value: {value!r}") from None
    if seconds < 0 or math.isnan(seconds):
        raise argparse.ArgumentTypeError(
            f"wait must be a non-negative number of seconds: {value!r}"
        )
    return seconds


def build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog="github-ci-status",
        description="Show the CI status of a commit of the GitHub project in the current repository.",
    )
    parser.add_argument(
        "-V",
        "--version",
        action="version",
        version=f"github-ci-status {_package_version()}",
    )
    parser.add_argument(
        "--color",
        nargs="?",
        const="always",
        default="auto",
        choices=list(COLOR_CHOICES),
        help="Colorize output: always, never or auto (default: auto)",
    )
    parser.add_argument(
        "-q",
        "--quiet",
        action="count",
        default=0,
        help="Print less output (repeatable)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Print more output (repeatable)",
    )
    parser.add_argument(
        "-w",
        "--wait",
        nargs="?",
        const=math.inf,
        default=None,
        type=_parse_wait,
        metavar="SECONDS",
        help="Wait while CI is pending, at most SECONDS if given",
    )
    parser.add_argument(
        "ref",
        nargs="?",
        default="HEAD",
        help="Commit to check (default: HEAD)",
    )
    return parser


async def github_ci_status(
    ref: str = "HEAD",
    *,
    auth: Optional[str] = None,
    wait: Optional[float] = None,
    verbosity: int = 0,
    use_color: Optional[bool] = None,
    stdout: Optional[TextIO] = None,
    stderr: Optional[TextIO] = None,
    cwd: Optional[Path] = None,
) -> int:
    """
    Print the CI status of `ref` and return the exit code for that status.
    `use_color=None` colors output when stdout is a terminal.
    """
    stdout = stdout or sys.stdout
    stderr = stderr or sys.stderr

    (owner, repo), sha = await asyncio.gather(
        get_project_name(cwd),
        resolve_commit(ref, cwd),
    )

    debug = None
    if verbosity > 1:
        def debug(msg: str) -> None:
            stderr.write(f"DEBUG: {msg}\n")

    combined_status, checks_list = await fetch_ci_status(
        owner, repo, sha, auth=auth, wait=wait, debug=debug
    )

    statuses = combine_statuses(combined_status, checks_list)
    state = get_state(statuses)
    if use_color is None:
        use_color = stdout.isatty()
    output = render(state, statuses, verbosity, use_color)
    if output is not None:
        stdout.write(f"{output}\n")

    return state_to_exit_code(state)


def main(
    argv: Optional[List[str]] = None,
    stdout: Optional[TextIO] = None,
    stderr: Optional[TextIO] = None,
) -> int:
    stdout = stdout or sys.stdout
    stderr = stderr or sys.stderr

    try:
        args = build_parser().parse_args(argv)
    except UsageError as e:
        stderr.write(f"{e}\n")
        return ERROR_EXIT_CODE

    verbosity = args.verbose - args.quiet
    logging.basicConfig(
        level=logging.DEBUG if verbosity > 1 else logging.WARNING,
        format="%(levelname)s: %(name)s: %(message)s",
        stream=stderr,
    )

    try:
        return asyncio.run(
            github_ci_status(
                args.ref,
                auth=settings.github_token or None,
                wait=args.wait,
                verbosity=verbosity,
                use_color=COLOR_CHOICES[args.color],
                stdout=stdout,
                stderr=stderr,
            )
        )
    except CiStatusError as e:
        if verbosity > 1:
            stderr.write("".join(traceback.format_exception(type(e), e, e.__traceback__)))
        else:
            stderr.write(f"{e}\n")
        return ERROR_EXIT_CODE


def run() -> None:
    raise SystemExit(main())


if __name__ == "__main__":
    run()
