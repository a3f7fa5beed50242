import asyncio
import subprocess
from pathlib import Path

import pytest

from github_ci_status.exceptions import ConfigCorruptionError, UnknownProjectError
from github_ci_status.models import ParsedRemoteUrl, ProjectIdentity, RemoteEntry
from github_ci_status.project import (
    get_github_urls,
    get_project_name,
    get_remote_entries,
    project_from_url,
    resolve_projects,
    sort_remote_entries,
)
from github_ci_status.settings import settings


@pytest.fixture(autouse=True)
def _no_github_host(monkeypatch):
    monkeypatch.setattr(settings, "github_host", None)


def _first(config, branch_remote=None, github_host=None):
    return next(resolve_projects(config, branch_remote, github_host), None)


# --- RemoteResolver ---


def test_no_remotes_yields_nothing():
    config = {"core.bare": "false", "user.name": "Test User"}
    assert list(resolve_projects(config)) == []


def test_get_remote_entries_parses_url_and_pushurl():
    entries = get_remote_entries(
        [
            ("remote.origin.url", "https://github.com/o/r.git"),
            ("remote.origin.pushurl", "git@github.com:o/push.git"),
            ("remote.origin.fetch", "+refs/heads/*:refs/remotes/origin/*"),
            ("branch.main.remote", "origin"),
        ]
    )
    assert entries == [
        RemoteEntry("origin", False, "https://github.com/o/r.git"),
        RemoteEntry("origin", True, "git@github.com:o/push.git"),
    ]


def test_unlisted_remotes_ordered_by_name():
    config = {
        "remote.b.url": "https://github.com/bowner/proj.git",
        "remote.a.url": "https://github.com/aowner/proj.git",
    }
    assert list(resolve_projects(config)) == [
        ProjectIdentity("aowner", "proj"),
        ProjectIdentity("bowner", "proj"),
    ]


def test_known_names_preferred_in_lookup_order():
    config = {
        "remote.aaa.url": "https://github.com/aaa/proj.git",
        "remote.origin.url": "https://github.com/origin/proj.git",
        "remote.github.url": "https://github.com/github/proj.git",
        "remote.upstream.url": "https://github.com/upstream/proj.git",
    }
    owners = [p.owner for p in resolve_projects(config)]
    assert owners == ["upstream", "github", "origin", "aaa"]


def test_branch_remote_always_wins():
    config = {
        "remote.upstream.url": "https://github.com/upstream/proj.git",
        "remote.origin.url": "https://github.com/origin/proj.git",
        "remote.zzz.url": "https://github.com/branch/proj.git",
    }
    assert _first(config, branch_remote="zzz") == ("branch", "proj")
    assert _first(config, branch_remote="origin") == ("origin", "proj")


def test_pushurl_preferred_over_url():
    config = {
        "remote.origin.url": "https://github.com/fetch/proj.git",
        "remote.origin.pushurl": "https://github.com/push/proj.git",
    }
    assert _first(config) == ("push", "proj")


def test_duplicate_entries_raise():
    entries = [
        RemoteEntry("origin", False, "https://github.com/a/b.git"),
        RemoteEntry("other", False, "https://github.com/c/d.git"),
        RemoteEntry("origin", False, "https://github.com/e/f.git"),
    ]
    with pytest.raises(ConfigCorruptionError, match="remote.origin.url"):
        sort_remote_entries(entries)


def test_duplicate_pushurl_raises():
    entries = [
        RemoteEntry("origin", True, "https://github.com/a/b.git"),
        RemoteEntry("origin", True, "https://github.com/a/b.git"),
    ]
    with pytest.raises(ConfigCorruptionError, match="remote.origin.pushurl"):
        sort_remote_entries(entries)


@pytest.mark.parametrize(
    "url",
    [
        "https://github.com.example.com/owner/proj.git",
        "https://gitlab.com/owner/proj.git",
        "/srv/git/proj.git",
        "bad_:invalid",
    ],
)
def test_non_github_or_invalid_urls_skipped(url):
    assert _first({"remote.origin.url": url}) is None


@pytest.mark.parametrize(
    "url",
    [
        "https://github.com/owner/proj.git",
        "https://github.com/owner/proj",
        "git@github.com:owner/proj.git",
        "ssh://git@github.com/owner/proj.git",
        "https://example.github.com/owner/proj.git",
        "https://GitHub.com/owner/proj.git",
    ],
)
def test_github_urls_resolve(url):
    assert _first({"remote.origin.url": url}) == ("owner", "proj")


def test_alternate_host_accepted():
    config = {"remote.origin.url": "https://ghe.example.com/owner/proj.git"}
    assert _first(config) is None
    assert _first(config, github_host="ghe.example.com") == ("owner", "proj")


def test_alternate_host_read_from_settings(monkeypatch):
    monkeypatch.setattr(settings, "github_host", "ghe.example.com")
    config = {"remote.origin.url": "git@ghe.example.com:owner/proj.git"}
    assert _first(config) == ("owner", "proj")


@pytest.mark.parametrize("path", ["/foo", "/foo/bar/baz", "/foo/", "/foo/.git", "//bar"])
def test_bad_path_shapes_rejected(path):
    assert project_from_url(ParsedRemoteUrl("github.com", path)) is None


def test_bad_path_skipped_for_next_candidate():
    config = {
        "remote.origin.url": "https://github.com/foo/bar/baz.git",
        "remote.zzz.url": "https://github.com/owner/proj.git",
    }
    assert _first(config) == ("owner", "proj")


def test_value_equal_urls_deduplicated():
    config = {
        "remote.a.url": "https://github.com/owner/proj.git",
        "remote.b.url": "https://github.com/owner/proj.git",
        "remote.c.url": "git@github.com:owner/proj.git",
    }
    assert get_github_urls(config) == [ParsedRemoteUrl("github.com", "/owner/proj.git")]


# --- ProjectIdentifier, against real repositories ---


def _git(repo: Path, *args: str) -> str:
    proc = subprocess.run(
        ["git", *args], cwd=repo, check=True, capture_output=True, text=True
    )
    return proc.stdout


@pytest.fixture
def git_repo(tmp_path):
    """Create an empty git repository on branch main."""
    repo = tmp_path / "repo"
    repo.mkdir()
    _git(repo, "init", "-q")
    _git(repo, "symbolic-ref", "HEAD", "refs/heads/main")
    _git(repo, "config", "user.name", "Test User")
    _git(repo, "config", "user.email", "test@example.com")
    return repo


def test_get_project_name_without_remotes(git_repo):
    with pytest.raises(UnknownProjectError):
        asyncio.run(get_project_name(git_repo))


def test_get_project_name_with_github_remote(git_repo):
    _git(git_repo, "remote", "add", "remote1", "https://github.com/owner/proj.git")
    assert asyncio.run(get_project_name(git_repo)) == ("owner", "proj")


def test_get_project_name_detached_head(git_repo):
    _git(git_repo, "commit", "-q", "--allow-empty", "-m", "Initial Commit")
    sha = _git(git_repo, "rev-parse", "HEAD").strip()
    _git(git_repo, "checkout", "-q", sha)
    _git(git_repo, "remote", "add", "origin", "git@github.com:owner/proj.git")
    assert asyncio.run(get_project_name(git_repo)) == ("owner", "proj")


def test_get_project_name_prefers_branch_remote(git_repo):
    _git(git_repo, "remote", "add", "upstream", "https://github.com/upstream/proj.git")
    _git(git_repo, "remote", "add", "remote2", "https://github.com/branch/proj.git")
    # Can't use `git branch -u` when the remote branch doesn't exist
    _git(git_repo, "config", "branch.main.remote", "remote2")
    _git(git_repo, "config", "branch.main.merge", "refs/heads/main")
    assert asyncio.run(get_project_name(git_repo)) == ("branch", "proj")

    _git(git_repo, "remote", "set-url", "--push", "remote2", "https://github.com/branchpush/proj.git")
    assert asyncio.run(get_project_name(git_repo)) == ("branchpush", "proj")
