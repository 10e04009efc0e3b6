"""Interface of the revision store consumed by the navigator.

A store exposes three indices: the changelog (one record per commit, in
linear storage order), the manifest log (the flat file list of each commit)
and one history per tracked file. The navigator never looks at how a store
encodes them on disk.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Optional, Protocol, Tuple

from revsage.types.base import ContentID, ManifestEntry
from revsage.types.refs import TagTable

Manifest = Dict[str, ManifestEntry]


class RecordNotFound(LookupError):
    """Raised by a store when no record matches the requested address."""


class AmbiguousIdentifier(RecordNotFound):
    """Raised by a store when an id prefix matches more than one record."""


@dataclass(frozen=True)
class ChangelogEntry:
    """Decoded contents of one changelog record."""

    node: ContentID
    manifest_node: ContentID
    author: str
    date: datetime
    message: str
    linkrev: int
    branch: str = "default"


@dataclass(frozen=True)
class FileRecord:
    """A revision of a single file in its own history."""

    path: str
    node: ContentID
    linkrev: int
    file_rev: int
    leaf: bool = True

    def is_leaf(self) -> bool:
        """True when no later revision of the file has this one as a parent."""
        return self.leaf


class ChangelogRecord(Protocol):
    """A changelog record and its links to neighbouring records."""

    @property
    def index(self) -> int: ...

    @property
    def node(self) -> ContentID: ...

    def previous(self) -> Optional["ChangelogRecord"]:
        """Record stored immediately before this one, or None at index 0."""
        ...

    def parent(self) -> Optional["ChangelogRecord"]: ...

    def parent2(self) -> Optional["ChangelogRecord"]: ...

    def has_parent2(self) -> bool: ...

    def is_start_of_branch(self) -> bool:
        """True when the record has no predecessor within its own line of history."""
        ...


class Changelog(Protocol):
    def __len__(self) -> int: ...

    def tip(self) -> Optional[ChangelogRecord]:
        """Most recent record, or None for an empty store."""
        ...

    def lookup_index(self, index: int) -> ChangelogRecord: ...

    def lookup_node(self, node: str) -> ChangelogRecord:
        """Find a record by full id or unambiguous id prefix."""
        ...

    def read_entry(self, record: ChangelogRecord) -> ChangelogEntry: ...


class ManifestLog(Protocol):
    def read(self, index: int, manifest_node: ContentID) -> Manifest: ...


class FileHistory(Protocol):
    def lookup_linkrev(self, rev: int) -> FileRecord:
        """Find the file revision present at changelog index ``rev``."""
        ...


class RevisionStore(Protocol):
    def open_changelog(self) -> Changelog: ...

    def open_manifest_log(self) -> ManifestLog: ...

    def open_file_history(self, path: str) -> FileHistory: ...

    def materialize(self, record: FileRecord) -> bytes: ...

    def tags(self) -> Tuple[TagTable, TagTable]:
        """Return (global tags, all tags including local ones)."""
        ...

    def branch_heads(self) -> TagTable: ...
