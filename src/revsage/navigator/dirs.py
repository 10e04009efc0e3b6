"""Directory synthesis over flat manifests.

Manifests only record files. A directory exists when some file path has it
as a ``/``-delimited prefix, so both existence checks and listings are linear
scans of the manifest.
"""

import posixpath
from typing import Dict, List

from revsage.errors import PathNotFound
from revsage.store.protocol import Manifest
from revsage.types.base import (
    MODE_DIRECTORY,
    MODE_EXECUTABLE,
    MODE_REGULAR,
    MODE_SYMLINK,
    FileInfo,
    ManifestEntry,
)

ROOT = "."


def normalize_path(path: str) -> str:
    """Clean ``path`` into manifest form; the root becomes ``"."``.

    Raises:
        PathNotFound: The path climbs above the root.
    """
    path = posixpath.normpath(path.lstrip("/") or ROOT)
    if path == ".." or path.startswith("../"):
        raise PathNotFound(f"path escapes the snapshot root: {path!r}")
    return path


def _prefix(path: str) -> str:
    return "" if path == ROOT else path + "/"


def file_info(entry: ManifestEntry, size: int = 0) -> FileInfo:
    if entry.symlink:
        mode = MODE_SYMLINK
    elif entry.executable:
        mode = MODE_EXECUTABLE
    else:
        mode = MODE_REGULAR
    return FileInfo(name=posixpath.basename(entry.file_name), mode=mode, size=size)


def dir_info(path: str) -> FileInfo:
    return FileInfo(name=posixpath.basename(path) if path != ROOT else ROOT, mode=MODE_DIRECTORY)


def dir_exists(manifest: Manifest, path: str) -> bool:
    if path == ROOT:
        return True
    prefix = _prefix(path)
    return any(name.startswith(prefix) for name in manifest)


def list_dir(manifest: Manifest, path: str) -> List[FileInfo]:
    """List the files and synthesized subdirectories directly under ``path``.

    File entries carry a size of 0; the size is only known after
    materializing the content, which ``Snapshot.stat`` does.

    Raises:
        PathNotFound: No manifest entry lies under ``path`` (and it is not the root).
    """
    prefix = _prefix(path)
    infos: List[FileInfo] = []
    subdirs: Dict[str, None] = {}

    for name, entry in manifest.items():
        if not name.startswith(prefix):
            continue
        rest = name[len(prefix):]
        head, sep, _ = rest.partition("/")
        if not sep:
            infos.append(file_info(entry))
        elif head not in subdirs:
            subdirs[head] = None
            infos.append(dir_info(head))

    if not infos and path != ROOT:
        raise PathNotFound(f"no such directory: {path!r}")
    return infos
