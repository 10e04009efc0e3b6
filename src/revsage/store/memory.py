"""In-memory revision store with Mercurial-shaped indices.

Changesets, manifests and file revisions are kept as raw revision texts and
identified by SHA-1 over their sorted parent ids and text, as Mercurial does.
Changeset and manifest texts use Mercurial's layouts and are decoded on read.
"""

import hashlib
import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from loguru import logger

from revsage.store.protocol import (
    AmbiguousIdentifier,
    ChangelogEntry,
    FileRecord,
    Manifest,
    RecordNotFound,
)
from revsage.types.base import NULL_ID, ContentID, ManifestEntry
from revsage.types.refs import TagTable

NULL_REV = -1

_HEX_RE = re.compile(r"^[0-9a-f]{1,40}$")


def hash_revision(text: bytes, p1: ContentID = NULL_ID, p2: ContentID = NULL_ID) -> ContentID:
    """Node id of a revision: sha1(min(p1, p2) + max(p1, p2) + text)."""
    a, b = sorted([bytes.fromhex(p1), bytes.fromhex(p2)])
    return hashlib.sha1(a + b + text).hexdigest()


@dataclass(frozen=True)
class MemoryFile:
    """File content and flags for ``MemoryRevisionStore.commit``.

    For symlinks ``data`` is the link target.
    """

    data: bytes
    executable: bool = False
    symlink: bool = False

    @property
    def flags(self) -> str:
        if self.symlink:
            return "l"
        if self.executable:
            return "x"
        return ""


FileInput = Union[bytes, str, MemoryFile]


@dataclass
class _Changeset:
    index: int
    node: ContentID
    p1: int
    p2: int
    text: bytes
    branch: str


@dataclass
class _FileRevision:
    node: ContentID
    linkrev: int
    p1: int
    p2: int
    text: bytes


class _ChangelogRecord:
    def __init__(self, store: "MemoryRevisionStore", index: int):
        self._store = store
        self._cs = store._changesets[index]

    def __repr__(self) -> str:
        return f"<changeset {self.index}:{self.node[:12]}>"

    @property
    def index(self) -> int:
        return self._cs.index

    @property
    def node(self) -> ContentID:
        return self._cs.node

    def _record(self, index: int) -> Optional["_ChangelogRecord"]:
        if index == NULL_REV:
            return None
        return _ChangelogRecord(self._store, index)

    def previous(self) -> Optional["_ChangelogRecord"]:
        return self._record(self.index - 1)

    def parent(self) -> Optional["_ChangelogRecord"]:
        return self._record(self._cs.p1)

    def parent2(self) -> Optional["_ChangelogRecord"]:
        return self._record(self._cs.p2)

    def has_parent2(self) -> bool:
        return self._cs.p2 != NULL_REV

    def is_start_of_branch(self) -> bool:
        return self._cs.p1 == NULL_REV and self._cs.p2 == NULL_REV


class _Changelog:
    def __init__(self, store: "MemoryRevisionStore"):
        self._store = store

    def __len__(self) -> int:
        return len(self._store._changesets)

    def tip(self) -> Optional[_ChangelogRecord]:
        if not self._store._changesets:
            return None
        return _ChangelogRecord(self._store, len(self._store._changesets) - 1)

    def lookup_index(self, index: int) -> _ChangelogRecord:
        if not 0 <= index < len(self._store._changesets):
            raise RecordNotFound(f"no changeset at index {index}")
        return _ChangelogRecord(self._store, index)

    def lookup_node(self, node: str) -> _ChangelogRecord:
        if not _HEX_RE.match(node):
            raise RecordNotFound(f"not a node id: {node!r}")
        matches = [cs.index for cs in self._store._changesets if cs.node.startswith(node)]
        if not matches:
            raise RecordNotFound(f"no changeset matches {node!r}")
        if len(matches) > 1:
            raise AmbiguousIdentifier(f"{node!r} matches {len(matches)} changesets")
        return _ChangelogRecord(self._store, matches[0])

    def read_entry(self, record: _ChangelogRecord) -> ChangelogEntry:
        cs = self._store._changesets[record.index]
        return parse_changeset(cs.text, node=cs.node, linkrev=cs.index)


class _ManifestLog:
    def __init__(self, store: "MemoryRevisionStore"):
        self._store = store

    def read(self, index: int, manifest_node: ContentID) -> Manifest:
        if manifest_node == NULL_ID:
            return {}
        text = self._store._manifests.get(manifest_node)
        if text is None:
            raise RecordNotFound(f"no manifest {manifest_node} (linkrev {index})")
        return parse_manifest(text)


class _FileHistory:
    def __init__(self, store: "MemoryRevisionStore", path: str):
        self._store = store
        self.path = path
        self._revs = store._files[path]

    def _record(self, file_rev: int) -> FileRecord:
        rev = self._revs[file_rev]
        leaf = not any(file_rev in (other.p1, other.p2) for other in self._revs)
        return FileRecord(path=self.path, node=rev.node, linkrev=rev.linkrev, file_rev=file_rev, leaf=leaf)

    def lookup_linkrev(self, rev: int) -> FileRecord:
        """Revision introduced at ``rev``, else the one in ``rev``'s manifest,
        else the latest one introduced before ``rev``."""
        for file_rev, frev in enumerate(self._revs):
            if frev.linkrev == rev:
                return self._record(file_rev)

        if 0 <= rev < len(self._store._changesets):
            entry = self._store._manifest_at(rev).get(self.path)
            if entry is not None:
                for file_rev, frev in enumerate(self._revs):
                    if frev.node == entry.node:
                        return self._record(file_rev)

        earlier = [i for i, frev in enumerate(self._revs) if frev.linkrev < rev]
        if not earlier:
            raise RecordNotFound(f"{self.path!r} has no revision at or before {rev}")
        return self._record(earlier[-1])


def format_date(date: datetime) -> str:
    """Mercurial date field: unix time and offset in seconds west of UTC."""
    if date.tzinfo is None:
        date = date.replace(tzinfo=timezone.utc)
    offset = -int(date.utcoffset().total_seconds())
    return f"{int(date.timestamp())} {offset}"


def parse_changeset(text: bytes, node: ContentID, linkrev: int) -> ChangelogEntry:
    """Decode a changeset text.

    Raises:
        ValueError: The text does not follow the changeset layout.
    """
    header, sep, message = text.decode("utf-8").partition("\n\n")
    lines = header.split("\n")
    if not sep or len(lines) < 3:
        raise ValueError("truncated changeset text")

    manifest_node, author, date_field = lines[0], lines[1], lines[2]
    parts = date_field.split(" ")
    if len(parts) < 2:
        raise ValueError(f"bad date field {date_field!r}")
    seconds, offset = int(parts[0]), int(parts[1])
    tz = timezone(timedelta(seconds=-offset))
    branch = "default"
    for extra in parts[2:]:
        key, _, value = extra.partition(":")
        if key == "branch":
            branch = value

    return ChangelogEntry(
        node=node,
        manifest_node=manifest_node,
        author=author,
        date=datetime.fromtimestamp(seconds, tz),
        message=message,
        linkrev=linkrev,
        branch=branch,
    )


def format_manifest(entries: Iterable[Tuple[str, ContentID, str]]) -> bytes:
    return "".join(f"{path}\0{node}{flags}\n" for path, node, flags in sorted(entries)).encode("utf-8")


def parse_manifest(text: bytes) -> Manifest:
    manifest: Manifest = {}
    for line in text.decode("utf-8").splitlines():
        path, _, rest = line.partition("\0")
        node, flags = rest[:40], rest[40:]
        manifest[path] = ManifestEntry(
            file_name=path,
            node=node,
            executable="x" in flags,
            symlink="l" in flags,
        )
    return manifest


def _as_file(value: FileInput) -> MemoryFile:
    if isinstance(value, MemoryFile):
        return value
    if isinstance(value, str):
        return MemoryFile(value.encode("utf-8"))
    return MemoryFile(bytes(value))


class MemoryRevisionStore:
    """Revision store held entirely in memory.

    Each ``commit`` records a complete file set: files missing from it are
    removed in the new changeset.
    """

    def __init__(self, name: str = "memory"):
        self.name = name
        self._changesets: List[_Changeset] = []
        self._manifests: Dict[ContentID, bytes] = {}
        self._files: Dict[str, List[_FileRevision]] = {}
        self._global_tags: Dict[str, ContentID] = {}
        self._local_tags: Dict[str, ContentID] = {}

    def __str__(self) -> str:
        return f"memory store {self.name!r}"

    def _index_of(self, node: ContentID) -> int:
        for cs in self._changesets:
            if cs.node == node:
                return cs.index
        raise RecordNotFound(f"no changeset {node}")

    def _manifest_at(self, index: int) -> Manifest:
        if index == NULL_REV:
            return {}
        entry = parse_changeset(self._changesets[index].text, self._changesets[index].node, index)
        return _ManifestLog(self).read(index, entry.manifest_node)

    def _manifest_node_at(self, index: int) -> ContentID:
        if index == NULL_REV:
            return NULL_ID
        return self._changesets[index].text.split(b"\n", 1)[0].decode("ascii")

    def _add_file_revision(self, path: str, data: bytes, fp1: int, fp2: int, linkrev: int) -> ContentID:
        revs = self._files.setdefault(path, [])
        node = hash_revision(
            data,
            revs[fp1].node if fp1 != NULL_REV else NULL_ID,
            revs[fp2].node if fp2 != NULL_REV else NULL_ID,
        )
        if any(rev.node == node for rev in revs):
            return node
        revs.append(_FileRevision(node=node, linkrev=linkrev, p1=fp1, p2=fp2, text=data))
        return node

    def _file_rev(self, path: str, node: Optional[ContentID]) -> int:
        if node is None:
            return NULL_REV
        for file_rev, rev in enumerate(self._files.get(path, [])):
            if rev.node == node:
                return file_rev
        return NULL_REV

    def commit(
        self,
        files: Mapping[str, FileInput],
        message: str,
        author: str = "Test User <test@example.com>",
        date: Optional[datetime] = None,
        parents: Optional[Sequence[ContentID]] = None,
        branch: str = "default",
    ) -> ContentID:
        """Record a changeset whose tree is exactly ``files``.

        ``parents`` defaults to the current tip. Returns the new changeset id.
        """
        if parents is None:
            parents = [self._changesets[-1].node] if self._changesets else []
        if len(parents) > 2:
            raise ValueError("a changeset has at most two parents")
        parent_revs = [self._index_of(node) for node in parents] + [NULL_REV, NULL_REV]
        p1, p2 = parent_revs[0], parent_revs[1]
        index = len(self._changesets)

        m1, m2 = self._manifest_at(p1), self._manifest_at(p2)
        entries = []
        changed = []
        for path, value in files.items():
            item = _as_file(value)
            old1, old2 = m1.get(path), m2.get(path)
            fp1 = self._file_rev(path, old1.node if old1 else None)
            fp2 = self._file_rev(path, old2.node if old2 else None)
            if fp2 == fp1:
                fp2 = NULL_REV

            if fp1 != NULL_REV and fp2 == NULL_REV and self._files[path][fp1].text == item.data:
                node = old1.node
            else:
                node = self._add_file_revision(path, item.data, fp1, fp2, index)
            entries.append((path, node, item.flags))
            if old1 is None or old1.node != node or old1.flags != item.flags:
                changed.append(path)
        changed.extend(path for path in m1 if path not in files)

        manifest_text = format_manifest(entries)
        manifest_node = hash_revision(manifest_text, self._manifest_node_at(p1), self._manifest_node_at(p2))
        self._manifests.setdefault(manifest_node, manifest_text)

        date_field = format_date(date or datetime.now(timezone.utc))
        if branch != "default":
            date_field += f" branch:{branch}"
        header = [manifest_node, author, date_field] + sorted(changed)
        text = ("\n".join(header) + "\n\n" + message).encode("utf-8")
        node = hash_revision(
            text,
            self._changesets[p1].node if p1 != NULL_REV else NULL_ID,
            self._changesets[p2].node if p2 != NULL_REV else NULL_ID,
        )
        self._changesets.append(_Changeset(index=index, node=node, p1=p1, p2=p2, text=text, branch=branch))
        logger.debug(f"Committed {index}:{node[:12]} on {branch} with {len(entries)} files")
        return node

    def tag(self, name: str, node: ContentID, local: bool = False) -> None:
        self._index_of(node)
        if local:
            self._local_tags[name] = node
        else:
            self._global_tags[name] = node

    def open_changelog(self) -> _Changelog:
        return _Changelog(self)

    def open_manifest_log(self) -> _ManifestLog:
        return _ManifestLog(self)

    def open_file_history(self, path: str) -> _FileHistory:
        if path not in self._files:
            raise RecordNotFound(f"no history for {path!r}")
        return _FileHistory(self, path)

    def materialize(self, record: FileRecord) -> bytes:
        revs = self._files.get(record.path)
        if revs is None or not 0 <= record.file_rev < len(revs):
            raise RecordNotFound(f"no revision {record.file_rev} of {record.path!r}")
        return revs[record.file_rev].text

    def tags(self) -> Tuple[TagTable, TagTable]:
        global_tags, all_tags = TagTable(), TagTable()
        for name, node in self._global_tags.items():
            global_tags.add(name, node)
            all_tags.add(name, node)
        for name, node in self._local_tags.items():
            all_tags.add(name, node)
        return global_tags, all_tags

    def branch_heads(self) -> TagTable:
        heads = TagTable()
        for cs in self._changesets:
            heads.add(cs.branch, cs.node)
        return heads
