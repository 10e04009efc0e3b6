"""Revision specifiers and the single function that looks them up."""

import re
from dataclasses import dataclass
from typing import Optional, Union

from revsage.store.protocol import (
    Changelog,
    ChangelogRecord,
    FileHistory,
    FileRecord,
    RecordNotFound,
)
from revsage.types.refs import TagTable

_INDEX_RE = re.compile(r"^[0-9]+$")


@dataclass(frozen=True)
class TipSpec:
    """The most recent changelog record."""


@dataclass(frozen=True)
class NullSpec:
    """The empty state that precedes every root commit."""


@dataclass(frozen=True)
class IndexSpec:
    """A linear index into the changelog."""

    index: int


@dataclass(frozen=True)
class LinkRevSpec:
    """The revision of a file present at a given changelog index."""

    rev: int


@dataclass(frozen=True)
class NodeSpec:
    """A full content id or an unambiguous prefix of one."""

    node: str


RevisionSpec = Union[TipSpec, NullSpec, IndexSpec, LinkRevSpec, NodeSpec]


def parse_revision_spec(spec: str, tags: TagTable, default: str = "tip") -> RevisionSpec:
    """Turn a specifier string into a RevisionSpec.

    Tag names are substituted with their ids before the numeric check, so a
    tag called "42" wins over changelog index 42.
    """
    if spec == "":
        spec = default
    if spec == "tip":
        return TipSpec()
    if spec == "null":
        return NullSpec()

    node = tags.get(spec)
    if node is not None:
        return NodeSpec(node)
    if _INDEX_RE.match(spec):
        return IndexSpec(int(spec))
    return NodeSpec(spec)


def lookup(
    spec: RevisionSpec, log: Union[Changelog, FileHistory]
) -> Optional[Union[ChangelogRecord, FileRecord]]:
    """Address ``log`` with ``spec``.

    Returns None for NullSpec, which names no stored record. Raises
    RecordNotFound when the log has no matching record.
    """
    if isinstance(spec, TipSpec):
        record = log.tip()
        if record is None:
            raise RecordNotFound("changelog is empty")
        return record
    if isinstance(spec, NullSpec):
        return None
    if isinstance(spec, IndexSpec):
        return log.lookup_index(spec.index)
    if isinstance(spec, LinkRevSpec):
        return log.lookup_linkrev(spec.rev)
    if isinstance(spec, NodeSpec):
        return log.lookup_node(spec.node)
    raise TypeError(f"unsupported revision spec: {spec!r}")
