"""Navigator facade: the operations revsage exposes over a revision store."""

from typing import List, Optional

from git.exc import InvalidGitRepositoryError, NoSuchPathError
from loguru import logger

from revsage.config import NavigatorSettings
from revsage.errors import RevsageConfigError
from revsage.navigator.commits import CommitReader
from revsage.navigator.resolver import RevisionResolver
from revsage.navigator.snapshot import Snapshot
from revsage.store.git import GitRevisionStore
from revsage.store.protocol import RevisionStore
from revsage.types.base import Commit, ContentID


class Navigator:
    """Resolves revisions, reads commits and opens snapshots of one store.

    Tags and branch heads are read when the navigator is built.
    """

    def __init__(self, store: RevisionStore, default_revision: str = "tip"):
        self.store = store
        self.changelog = store.open_changelog()
        self.resolver = RevisionResolver(store, self.changelog, default_revision)
        self.commits = CommitReader(self.changelog)

    def __str__(self) -> str:
        return f"navigator over {self.store}"

    def resolve_revision(self, spec: str) -> ContentID:
        return self.resolver.resolve(spec)

    def resolve_tag(self, name: str) -> ContentID:
        return self.resolver.resolve_tag(name)

    def resolve_branch(self, name: str) -> ContentID:
        return self.resolver.resolve_branch(name)

    def tags(self) -> List[str]:
        return self.resolver.tags()

    def branches(self) -> List[str]:
        return self.resolver.branches()

    def get_commit(self, commit_id: ContentID) -> Commit:
        return self.commits.get_commit(commit_id)

    def commit_log(self, to: ContentID) -> List[Commit]:
        return self.commits.commit_log(to)

    def ancestors(self, commit_id: ContentID) -> List[Commit]:
        return self.commits.ancestors(commit_id)

    def snapshot_at(self, commit_id: ContentID) -> Snapshot:
        return Snapshot(self.store, self.changelog, commit_id)


def open_repository(repo_path: str, settings: Optional[NavigatorSettings] = None) -> Navigator:
    """Factory function to create a Navigator over a Git working copy."""
    settings = settings or NavigatorSettings(repo_path=repo_path)
    logger.info(f"Opening repository: {repo_path}")
    try:
        store = GitRevisionStore(repo_path)
    except (InvalidGitRepositoryError, NoSuchPathError) as exc:
        raise RevsageConfigError(f"not a git repository: {repo_path}") from exc
    return Navigator(store, default_revision=settings.default_revision)
