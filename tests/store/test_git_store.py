"""Tests for browsing Git repositories through the navigator."""

import os

import pytest

from revsage.errors import PathNotFound, RevisionNotFound, RevsageConfigError, TagNotFound
from revsage.repository import Navigator, open_repository
from revsage.store.git import GitRevisionStore
from revsage.store.protocol import RecordNotFound

from conftest import GIT_ACTOR, create_commit


def test_tip_is_head(git_repo):
    repo, commits = git_repo
    nav = open_repository(repo.working_dir)

    assert nav.resolve_revision("tip") == repo.head.commit.hexsha
    assert nav.resolve_revision("") == commits[-1].hexsha


def test_indices_follow_history(git_repo):
    repo, commits = git_repo
    nav = open_repository(repo.working_dir)

    for i, commit in enumerate(commits):
        assert nav.resolve_revision(str(i)) == commit.hexsha
    assert nav.resolve_revision(commits[0].hexsha) == commits[0].hexsha


def test_tags_and_branches(git_repo):
    repo, commits = git_repo
    nav = open_repository(repo.working_dir)

    assert nav.resolve_tag("v1.0.0") == commits[1].hexsha
    assert nav.resolve_revision("v1.0.0") == commits[1].hexsha
    assert nav.resolve_branch(repo.active_branch.name) == commits[-1].hexsha
    assert nav.tags() == ["tip", "v1.0.0"]
    with pytest.raises(TagNotFound):
        nav.resolve_tag("v9.9.9")


def test_commit_log_matches_git(git_repo):
    repo, commits = git_repo
    nav = open_repository(repo.working_dir)

    log = nav.commit_log(nav.resolve_revision("tip"))
    assert [c.id for c in log] == [c.hexsha for c in repo.iter_commits()]
    assert log[-1].parents == ()
    assert log[-1].message.strip() == "Initial commit"


def test_get_commit(git_repo):
    repo, commits = git_repo
    nav = open_repository(repo.working_dir)

    commit = nav.get_commit(commits[1].hexsha)
    assert commit.id == commits[1].hexsha
    assert commit.author.name == GIT_ACTOR.name
    assert commit.author.email == GIT_ACTOR.email
    assert commit.parents == (commits[0].hexsha,)
    assert commit.message.strip() == "Add app"


def test_merge_parents(temp_git_repo):
    repo = temp_git_repo
    base = create_commit(repo, "a.txt", "a\n", "base")
    left = create_commit(repo, "left.txt", "l\n", "left")
    right = repo.index.commit("right", parent_commits=[base], head=False, author=GIT_ACTOR, committer=GIT_ACTOR)
    merge = repo.index.commit("merge", parent_commits=[left, right], author=GIT_ACTOR, committer=GIT_ACTOR)
    nav = open_repository(repo.working_dir)

    assert nav.get_commit(merge.hexsha).parents == (left.hexsha, right.hexsha)
    ancestor_ids = [c.id for c in nav.ancestors(merge.hexsha)]
    assert set(ancestor_ids) == {merge.hexsha, left.hexsha, right.hexsha, base.hexsha}
    assert ancestor_ids[0] == merge.hexsha


def test_snapshot_reads_files(git_repo):
    repo, commits = git_repo
    nav = open_repository(repo.working_dir)
    fs = nav.snapshot_at(commits[-1].hexsha)

    assert fs.open("src/app.py").read() == b"print('app')\n"
    assert fs.stat("README.md").size == len("Initial content\n")
    assert fs.stat("scripts/build.sh").is_executable()
    assert not fs.stat("README.md").is_executable()
    assert fs.stat("src").is_dir()
    assert sorted(e.name for e in fs.read_dir(".")) == ["README.md", "scripts", "src"]


def test_snapshot_of_older_commit(git_repo):
    repo, commits = git_repo
    nav = open_repository(repo.working_dir)
    fs = nav.snapshot_at(nav.resolve_revision("v1.0.0"))

    assert sorted(e.name for e in fs.read_dir(".")) == ["README.md", "src"]
    with pytest.raises(PathNotFound):
        fs.stat("scripts/build.sh")
    with pytest.raises(PathNotFound):
        fs.stat("scripts")


def test_symlink_entry(temp_git_repo):
    repo = temp_git_repo
    create_commit(repo, "target.txt", "target\n", "add target")
    link = os.path.join(repo.working_tree_dir, "link.txt")
    os.symlink("target.txt", link)
    repo.index.add([link])
    commit = repo.index.commit("add link", author=GIT_ACTOR, committer=GIT_ACTOR)

    fs = open_repository(repo.working_dir).snapshot_at(commit.hexsha)
    assert fs.lstat("link.txt").is_symlink()
    assert fs.open("link.txt").read() == b"target.txt"


def test_empty_repository(temp_git_repo):
    nav = Navigator(GitRevisionStore(temp_git_repo.working_dir))

    with pytest.raises(RevisionNotFound):
        nav.resolve_revision("tip")
    assert nav.branches() == []


def test_store_errors(git_repo):
    repo, _ = git_repo
    store = GitRevisionStore(repo.working_dir)

    with pytest.raises(RecordNotFound):
        store.open_changelog().lookup_index(10)
    with pytest.raises(RecordNotFound):
        store.open_file_history("missing.txt").lookup_linkrev(0)
    with pytest.raises(RecordNotFound):
        store.open_manifest_log().read(0, "f" * 40)
    assert "test_repo" in str(store)


def test_open_repository_rejects_non_repo(tmp_path):
    with pytest.raises(RevsageConfigError):
        open_repository(str(tmp_path / "missing"))
    with pytest.raises(RevsageConfigError):
        open_repository(str(tmp_path))
