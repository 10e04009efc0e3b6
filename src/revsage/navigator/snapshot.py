"""Read-only filesystem view of the tree at one commit."""

import io
from typing import Dict, List, Optional, Tuple

from loguru import logger

from revsage.errors import CorruptData, PathNotFound, RevisionNotFound
from revsage.navigator.dirs import ROOT, dir_exists, dir_info, file_info, list_dir, normalize_path
from revsage.navigator.revspec import LinkRevSpec, lookup
from revsage.store.protocol import (
    Changelog,
    ChangelogRecord,
    FileHistory,
    FileRecord,
    Manifest,
    ManifestLog,
    RecordNotFound,
    RevisionStore,
)
from revsage.types.base import NULL_ID, ContentID, FileInfo, ManifestEntry

NULL_REV = -1


class Snapshot:
    """Files and directories as they existed at commit ``node``.

    The manifest and every opened file history are cached on the instance.
    Instances are not safe for concurrent use; give each reader its own.
    """

    def __init__(self, store: RevisionStore, changelog: Changelog, node: ContentID):
        self.store = store
        self.changelog = changelog
        self.node = node
        self._record: Optional[ChangelogRecord] = None
        self.rev = NULL_REV

        if node != NULL_ID:
            try:
                record = changelog.lookup_node(node)
            except RecordNotFound as exc:
                raise RevisionNotFound(f"commit not found: {node!r}") from exc
            if record.node != node:
                raise RevisionNotFound(f"commit not found: {node!r} (only a prefix of {record.node})")
            self._record = record
            self.rev = record.index

        self._manifest: Optional[Manifest] = None
        self._manifest_log: Optional[ManifestLog] = None
        self._file_histories: Dict[str, FileHistory] = {}

    def __str__(self) -> str:
        return f"{self.store} at {self.node} (rev {self.rev})"

    def _get_manifest(self) -> Manifest:
        if self._manifest is not None:
            return self._manifest
        if self._record is None:
            self._manifest = {}
            return self._manifest

        try:
            entry = self.changelog.read_entry(self._record)
        except ValueError as exc:
            raise CorruptData(f"cannot decode changeset {self.node}: {exc}") from exc
        if self._manifest_log is None:
            self._manifest_log = self.store.open_manifest_log()
        try:
            self._manifest = self._manifest_log.read(entry.linkrev, entry.manifest_node)
        except RecordNotFound as exc:
            raise CorruptData(f"manifest {entry.manifest_node} of changeset {self.node} is missing") from exc

        logger.debug(f"Loaded manifest of rev {self.rev} with {len(self._manifest)} files")
        return self._manifest

    def _file_history(self, path: str) -> FileHistory:
        history = self._file_histories.get(path)
        if history is None:
            history = self.store.open_file_history(path)
            self._file_histories[path] = history
        return history

    def _get_entry(self, path: str) -> Tuple[FileRecord, ManifestEntry]:
        """Find the file revision at this snapshot and check it against the manifest.

        Raises:
            PathNotFound: No file lives at ``path`` in this snapshot.
            CorruptData: The file history and the manifest disagree.
        """
        if self._record is None or path == ROOT:
            raise PathNotFound(f"no such file: {path!r}")

        try:
            record = lookup(LinkRevSpec(self.rev), self._file_history(path))
        except RecordNotFound as exc:
            raise PathNotFound(f"no such file: {path!r}") from exc

        entry = self._get_manifest().get(path)
        if entry is None:
            raise PathNotFound(f"no such file: {path!r}")
        if entry.node != record.node:
            raise CorruptData(
                f"manifest node {entry.node} for {path!r} does not match file node {record.node}"
            )

        if record.linkrev != self.rev:
            logger.debug(
                f"{path!r} at rev {self.rev} comes from linkrev {record.linkrev} (leaf={record.is_leaf()})"
            )
        return record, entry

    def _read(self, record: FileRecord) -> bytes:
        try:
            return self.store.materialize(record)
        except RecordNotFound as exc:
            raise CorruptData(f"cannot materialize {record.path!r} revision {record.node}") from exc

    def open(self, path: str) -> io.BytesIO:
        """Return a seekable reader over the full content of the file at ``path``."""
        record, _ = self._get_entry(normalize_path(path))
        return io.BytesIO(self._read(record))

    def read_bytes(self, path: str) -> bytes:
        record, _ = self._get_entry(normalize_path(path))
        return self._read(record)

    def stat(self, path: str) -> FileInfo:
        """Describe the file or directory at ``path``.

        File sizes require materializing the content. Symlinks are reported
        as symlinks, not followed.
        """
        path = normalize_path(path)
        try:
            record, entry = self._get_entry(path)
        except PathNotFound:
            if dir_exists(self._get_manifest(), path):
                return dir_info(path)
            raise
        return file_info(entry, size=len(self._read(record)))

    def lstat(self, path: str) -> FileInfo:
        return self.stat(path)

    def read_dir(self, path: str = ROOT) -> List[FileInfo]:
        return list_dir(self._get_manifest(), normalize_path(path))

    def exists(self, path: str) -> bool:
        path = normalize_path(path)
        manifest = self._get_manifest()
        return path in manifest or dir_exists(manifest, path)
