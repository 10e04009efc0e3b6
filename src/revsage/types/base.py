"""Base types used across the revsage system."""

import stat
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Tuple

ContentID = str

NULL_ID: ContentID = "0" * 40

# Synthetic entries (and files, whose per-file times the store does not keep)
# report this instead of a real modification time.
ZERO_TIME = datetime.min.replace(tzinfo=timezone.utc)

MODE_REGULAR = stat.S_IFREG | 0o644
MODE_EXECUTABLE = stat.S_IFREG | 0o755
MODE_SYMLINK = stat.S_IFLNK | 0o777
MODE_DIRECTORY = stat.S_IFDIR | 0o755


@dataclass(frozen=True)
class Signature:
    """Identity and time of a commit's author."""

    name: str
    email: str
    timestamp: datetime


@dataclass(frozen=True)
class Commit:
    """A single historical commit, projected from one changelog record."""

    id: ContentID
    author: Signature
    message: str
    parents: Tuple[ContentID, ...] = ()


@dataclass(frozen=True)
class ManifestEntry:
    """One file of a manifest: its path, file node and flags."""

    file_name: str
    node: ContentID
    executable: bool = False
    symlink: bool = False

    @property
    def flags(self) -> str:
        """Manifest flag suffix: 'l' for symlinks, 'x' for executables."""
        if self.symlink:
            return "l"
        if self.executable:
            return "x"
        return ""


@dataclass(frozen=True)
class FileInfo:
    """Metadata for a file or a synthesized directory inside a snapshot."""

    name: str
    mode: int
    size: int = 0
    mod_time: datetime = field(default=ZERO_TIME)

    def is_dir(self) -> bool:
        return stat.S_ISDIR(self.mode)

    def is_symlink(self) -> bool:
        return stat.S_ISLNK(self.mode)

    def is_executable(self) -> bool:
        return stat.S_ISREG(self.mode) and bool(self.mode & 0o111)
