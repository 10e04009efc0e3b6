"""Revision store over an on-disk Git repository.

Commits reachable from any ref are numbered in topological order (parents
first) to form the changelog. Each commit's tree, flattened to blob paths,
is its manifest. A file's history is addressed by changelog index: the
revision present at index ``n`` is the blob at that path in commit ``n``.
"""

import re
from typing import Dict, List, Optional, Tuple

from git import Repo
from git.exc import BadName, BadObject
from git.objects.commit import Commit
from loguru import logger

from revsage.store.protocol import (
    AmbiguousIdentifier,
    ChangelogEntry,
    FileRecord,
    Manifest,
    RecordNotFound,
)
from revsage.types.base import ManifestEntry
from revsage.types.refs import TagTable

_HEX_RE = re.compile(r"^[0-9a-f]{1,40}$")

GIT_FILEMODE_EXECUTABLE = 0o100755
GIT_FILEMODE_LINK = 0o120000


class _GitChangelogRecord:
    def __init__(self, store: "GitRevisionStore", index: int):
        self._store = store
        self.index = index
        self.node = store._nodes[index]

    def __repr__(self) -> str:
        return f"<commit {self.index}:{self.node[:12]}>"

    def _parents(self) -> List[Commit]:
        return self._store._commit(self.index).parents

    def _parent_record(self, position: int) -> Optional["_GitChangelogRecord"]:
        parents = self._parents()
        if len(parents) <= position:
            return None
        index = self._store._index_by_node.get(parents[position].hexsha)
        if index is None:
            return None
        return _GitChangelogRecord(self._store, index)

    def previous(self) -> Optional["_GitChangelogRecord"]:
        if self.index == 0:
            return None
        return _GitChangelogRecord(self._store, self.index - 1)

    def parent(self) -> Optional["_GitChangelogRecord"]:
        return self._parent_record(0)

    def parent2(self) -> Optional["_GitChangelogRecord"]:
        return self._parent_record(1)

    def has_parent2(self) -> bool:
        return len(self._parents()) > 1

    def is_start_of_branch(self) -> bool:
        return not self._parents()


class _GitChangelog:
    def __init__(self, store: "GitRevisionStore"):
        self._store = store

    def __len__(self) -> int:
        return len(self._store._nodes)

    def tip(self) -> Optional[_GitChangelogRecord]:
        if not self._store._nodes:
            return None
        return _GitChangelogRecord(self._store, len(self._store._nodes) - 1)

    def lookup_index(self, index: int) -> _GitChangelogRecord:
        if not 0 <= index < len(self._store._nodes):
            raise RecordNotFound(f"no commit at index {index}")
        return _GitChangelogRecord(self._store, index)

    def lookup_node(self, node: str) -> _GitChangelogRecord:
        if not _HEX_RE.match(node):
            raise RecordNotFound(f"not a commit id: {node!r}")
        index = self._store._index_by_node.get(node)
        if index is not None:
            return _GitChangelogRecord(self._store, index)

        matches = [i for i, hexsha in enumerate(self._store._nodes) if hexsha.startswith(node)]
        if not matches:
            raise RecordNotFound(f"no commit matches {node!r}")
        if len(matches) > 1:
            raise AmbiguousIdentifier(f"{node!r} matches {len(matches)} commits")
        return _GitChangelogRecord(self._store, matches[0])

    def read_entry(self, record: _GitChangelogRecord) -> ChangelogEntry:
        commit = self._store._commit(record.index)
        return ChangelogEntry(
            node=commit.hexsha,
            manifest_node=commit.tree.hexsha,
            author=f"{commit.author.name} <{commit.author.email}>",
            date=commit.authored_datetime,
            message=commit.message,
            linkrev=record.index,
        )


class _GitManifestLog:
    def __init__(self, store: "GitRevisionStore"):
        self._store = store

    def read(self, index: int, manifest_node: str) -> Manifest:
        try:
            tree = self._store.repo.tree(manifest_node)
        except (BadName, BadObject, ValueError) as exc:
            raise RecordNotFound(f"no tree {manifest_node} (commit {index})") from exc

        manifest: Manifest = {}
        for item in tree.traverse():
            # Submodule entries are commits, not files of this repository.
            if item.type != "blob":
                continue
            manifest[item.path] = ManifestEntry(
                file_name=item.path,
                node=item.hexsha,
                executable=item.mode == GIT_FILEMODE_EXECUTABLE,
                symlink=item.mode == GIT_FILEMODE_LINK,
            )
        return manifest


class _GitFileHistory:
    def __init__(self, store: "GitRevisionStore", path: str):
        self._store = store
        self.path = path

    def _blob_sha(self, index: int) -> Optional[str]:
        try:
            item = self._store._commit(index).tree / self.path
        except KeyError:
            return None
        return item.hexsha if item.type == "blob" else None

    def lookup_linkrev(self, rev: int) -> FileRecord:
        if not 0 <= rev < len(self._store._nodes):
            raise RecordNotFound(f"no commit at index {rev}")
        node = self._blob_sha(rev)
        if node is None:
            raise RecordNotFound(f"{self.path!r} is not a file at commit {rev}")
        tip_node = self._blob_sha(len(self._store._nodes) - 1)
        return FileRecord(path=self.path, node=node, linkrev=rev, file_rev=rev, leaf=node == tip_node)


class GitRevisionStore:
    """Exposes a Git repository through the revision store interface.

    The commit list is read when the store is opened; reopen the store to see
    commits or refs created afterwards. One ``Repo`` handle backs every
    lookup, so use one store per thread.
    """

    def __init__(self, repo_path: str):
        self.repo = Repo(repo_path)
        self.path = self.repo.working_tree_dir or self.repo.git_dir

        output = self.repo.git.rev_list("--all", "--topo-order", "--reverse") if self.repo.refs else ""
        self._nodes: List[str] = output.split()
        self._index_by_node: Dict[str, int] = {node: i for i, node in enumerate(self._nodes)}
        self._commits: Dict[int, Commit] = {}
        logger.info(f"Opened git repository {self.path} with {len(self._nodes)} commits")

    def __str__(self) -> str:
        return f"git repository {self.path}"

    def _commit(self, index: int) -> Commit:
        commit = self._commits.get(index)
        if commit is None:
            commit = self.repo.commit(self._nodes[index])
            self._commits[index] = commit
        return commit

    def open_changelog(self) -> _GitChangelog:
        return _GitChangelog(self)

    def open_manifest_log(self) -> _GitManifestLog:
        return _GitManifestLog(self)

    def open_file_history(self, path: str) -> _GitFileHistory:
        return _GitFileHistory(self, path)

    def materialize(self, record: FileRecord) -> bytes:
        try:
            return self.repo.odb.stream(bytes.fromhex(record.node)).read()
        except (BadName, BadObject, ValueError) as exc:
            raise RecordNotFound(f"no blob {record.node} for {record.path!r}") from exc

    def tags(self) -> Tuple[TagTable, TagTable]:
        global_tags, all_tags = TagTable(), TagTable()
        for tag in self.repo.tags:
            try:
                node = tag.commit.hexsha
            except ValueError:
                logger.warning(f"Skipping tag {tag.name!r}: it does not point to a commit")
                continue
            global_tags.add(tag.name, node)
            all_tags.add(tag.name, node)
        return global_tags, all_tags

    def branch_heads(self) -> TagTable:
        heads = TagTable()
        for head in self.repo.heads:
            heads.add(head.name, head.commit.hexsha)
        return heads
