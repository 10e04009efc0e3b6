"""Exception hierarchy for revsage.

Lookups that can be recovered from by the caller (unknown tag, missing path)
are distinct from store inconsistencies, which are always surfaced.
"""


class RevsageError(Exception):
    """Base exception for all revsage failures."""


class RevsageConfigError(RevsageError):
    """Raised for invalid runtime configuration."""


class ReferenceNotFound(RevsageError, LookupError):
    """Raised when a specifier, tag or branch name does not resolve."""


class RevisionNotFound(ReferenceNotFound):
    """Raised when a revision specifier or commit id is unknown to the changelog."""


class TagNotFound(ReferenceNotFound):
    """Raised when a tag name is not in the tag table."""


class BranchNotFound(ReferenceNotFound):
    """Raised when a branch name has no recorded head."""


class MalformedSpec(RevisionNotFound):
    """Raised when a specifier looks like an index or tag but does not resolve."""


class PathNotFound(RevsageError, FileNotFoundError):
    """Raised when a path exists neither as a file nor as a directory in a snapshot."""


class CorruptData(RevsageError):
    """Raised when the store's indices disagree or a record cannot be decoded."""
