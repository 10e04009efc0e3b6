"""Shared fixtures: Mercurial-shaped histories in memory and real Git repositories."""

import os
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Dict

import pytest
from git import Actor, Repo

from revsage.repository import Navigator
from revsage.store.memory import MemoryFile, MemoryRevisionStore

BASE_DATE = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)
AUTHOR = "Jane Doe <jane@example.com>"
GIT_ACTOR = Actor("Test User", "test@example.com")


def at(hours: int) -> datetime:
    return BASE_DATE + timedelta(hours=hours)


@pytest.fixture
def linear_store():
    """Three changesets on the default branch, a global tag and a local tag.

    rev 0: README
    rev 1: README, src/main.py, bin/run.sh (executable)        tagged v1.0
    rev 2: README changed, src/lib/util.py added, link symlink  tagged wip (local)
    """
    store = MemoryRevisionStore("linear")
    nodes: Dict[str, str] = {}
    nodes["c0"] = store.commit({"README": "hello\n"}, "Initial commit", author=AUTHOR, date=at(0))
    nodes["c1"] = store.commit(
        {
            "README": "hello\n",
            "src/main.py": "print('hi')\n",
            "bin/run.sh": MemoryFile(b"#!/bin/sh\necho run\n", executable=True),
        },
        "Add sources",
        author=AUTHOR,
        date=at(1),
    )
    nodes["c2"] = store.commit(
        {
            "README": "hello world\n",
            "src/main.py": "print('hi')\n",
            "src/lib/util.py": "x = 1\n",
            "bin/run.sh": MemoryFile(b"#!/bin/sh\necho run\n", executable=True),
            "link": MemoryFile(b"README", symlink=True),
        },
        "Expand README\n\nAlso add a helper module.",
        author=AUTHOR,
        date=at(2),
    )
    store.tag("v1.0", nodes["c1"])
    store.tag("wip", nodes["c2"], local=True)
    return store, nodes


@pytest.fixture
def linear_nav(linear_store):
    store, nodes = linear_store
    return Navigator(store), nodes


@pytest.fixture
def merge_store():
    """Two lines of work from one root, joined by a merge.

    rev 0: root   rev 1: left (p=0)   rev 2: right (p=0)   rev 3: merge (p=1,2)
    """
    store = MemoryRevisionStore("merge")
    nodes: Dict[str, str] = {}
    nodes["root"] = store.commit({"a.txt": "a\n"}, "root", author=AUTHOR, date=at(0))
    nodes["left"] = store.commit({"a.txt": "a\n", "left.txt": "l\n"}, "left", author=AUTHOR, date=at(1))
    nodes["right"] = store.commit(
        {"a.txt": "a\n", "right.txt": "r\n"},
        "right",
        author=AUTHOR,
        date=at(2),
        parents=[nodes["root"]],
        branch="feature",
    )
    nodes["merge"] = store.commit(
        {"a.txt": "a\n", "left.txt": "l\n", "right.txt": "r\n"},
        "merge feature",
        author=AUTHOR,
        date=at(3),
        parents=[nodes["left"], nodes["right"]],
    )
    return store, nodes


def create_commit(repo: Repo, rel_path: str, content: str, message: str, mode: int = 0o644):
    """Helper function to create a commit in the test repository."""
    file_path = Path(repo.working_dir) / rel_path
    file_path.parent.mkdir(parents=True, exist_ok=True)
    file_path.write_text(content)
    os.chmod(file_path, mode)
    repo.index.add([str(file_path)])
    return repo.index.commit(message, author=GIT_ACTOR, committer=GIT_ACTOR)


@pytest.fixture
def temp_git_repo(tmp_path):
    """Create a basic temporary Git repository."""
    repo_path = tmp_path / "test_repo"
    repo_path.mkdir()
    return Repo.init(repo_path)


@pytest.fixture
def git_repo(temp_git_repo):
    """Repository with three commits, a nested tree, an executable and a tag."""
    repo = temp_git_repo
    commits = [
        create_commit(repo, "README.md", "Initial content\n", "Initial commit"),
        create_commit(repo, "src/app.py", "print('app')\n", "Add app"),
    ]
    repo.create_tag("v1.0.0")
    commits.append(create_commit(repo, "scripts/build.sh", "#!/bin/sh\n", "Add build script", mode=0o755))
    return repo, commits
