"""Commit materialization and history walks."""

from collections import deque
from datetime import datetime
from email.errors import HeaderParseError
from email.headerregistry import HeaderRegistry
from typing import List, Set

from loguru import logger

from revsage.errors import CorruptData, RevisionNotFound
from revsage.store.protocol import Changelog, ChangelogRecord, RecordNotFound
from revsage.types.base import Commit, ContentID, Signature

_headers = HeaderRegistry()


def parse_signature(author: str, timestamp: datetime) -> Signature:
    """Parse an ``"Name <user@host>"`` author field.

    Raises:
        CorruptData: The field holds no well-formed address.
    """
    try:
        header = _headers("From", author)
    except (HeaderParseError, IndexError, ValueError) as exc:
        raise CorruptData(f"malformed author field: {author!r}") from exc
    if header.defects or len(header.addresses) != 1:
        raise CorruptData(f"malformed author field: {author!r}")

    address = header.addresses[0]
    if not address.username or not address.domain or any(c.isspace() for c in address.addr_spec):
        raise CorruptData(f"malformed author field: {author!r}")
    return Signature(name=address.display_name, email=address.addr_spec, timestamp=timestamp)


class CommitReader:
    """Builds Commit objects from changelog records.

    Nothing is cached: every call decodes the records again.
    """

    def __init__(self, changelog: Changelog):
        self.changelog = changelog

    def _lookup(self, commit_id: ContentID) -> ChangelogRecord:
        try:
            record = self.changelog.lookup_node(commit_id)
        except RecordNotFound as exc:
            raise RevisionNotFound(f"commit not found: {commit_id!r}") from exc
        if record.node != commit_id:
            raise RevisionNotFound(f"commit not found: {commit_id!r} (only a prefix of {record.node})")
        return record

    def make_commit(self, record: ChangelogRecord) -> Commit:
        try:
            entry = self.changelog.read_entry(record)
        except ValueError as exc:
            raise CorruptData(f"cannot decode changeset {record.node}: {exc}") from exc

        parents = []
        # Parent pointers of a root record refer to unrelated lines of history.
        if not record.is_start_of_branch():
            parent = record.parent()
            if parent is not None:
                parents.append(parent.node)
            if record.has_parent2():
                parent2 = record.parent2()
                if parent2 is not None:
                    parents.append(parent2.node)

        return Commit(
            id=entry.node,
            author=parse_signature(entry.author, entry.date),
            message=entry.message,
            parents=tuple(parents),
        )

    def get_commit(self, commit_id: ContentID) -> Commit:
        return self.make_commit(self._lookup(commit_id))

    def commit_log(self, to: ContentID) -> List[Commit]:
        """Return commits newest first, walking the changelog's storage order.

        The walk follows each record's previous record, not its parents, and
        stops after the first start-of-branch record it meets.
        """
        record = self._lookup(to)
        commits = []
        while True:
            commits.append(self.make_commit(record))
            if record.is_start_of_branch():
                break
            record = record.previous()
            if record is None:
                break
        logger.debug(f"Built log of {len(commits)} commits ending at {to}")
        return commits

    def ancestors(self, commit_id: ContentID) -> List[Commit]:
        """Return ``commit_id`` and every commit reachable through parent links.

        Breadth-first from ``commit_id``; each commit appears once.
        """
        seen: Set[ContentID] = {commit_id}
        queue = deque([commit_id])
        result = []
        while queue:
            commit = self.get_commit(queue.popleft())
            result.append(commit)
            for parent in commit.parents:
                if parent not in seen:
                    seen.add(parent)
                    queue.append(parent)
        return result
