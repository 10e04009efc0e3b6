"""Resolution of branch names, tags and revision specifiers to content ids."""

from typing import List, Optional

from loguru import logger

from revsage.errors import BranchNotFound, MalformedSpec, RevisionNotFound, TagNotFound
from revsage.navigator.revspec import IndexSpec, lookup, parse_revision_spec
from revsage.store.protocol import Changelog, RecordNotFound, RevisionStore
from revsage.types.base import NULL_ID, ContentID


class RevisionResolver:
    """Maps specifier strings to content ids.

    Branch and tag tables are read once at construction; build a new resolver
    to observe tags or branches added afterwards.
    """

    def __init__(self, store: RevisionStore, changelog: Optional[Changelog] = None, default_revision: str = "tip"):
        self.changelog = changelog if changelog is not None else store.open_changelog()
        self.default_revision = default_revision or "tip"

        self.global_tags, self.all_tags = store.tags()
        tip = self.changelog.tip()
        if tip is not None:
            self.all_tags.add("tip", tip.node)
        self.global_tags.sort()
        self.all_tags.sort()

        self.branch_heads = store.branch_heads()
        self.branch_heads.sort()

        logger.debug(
            f"Loaded {len(self.all_tags)} tags and {len(self.branch_heads)} branch heads "
            f"over {len(self.changelog)} changesets"
        )

    def resolve_tag(self, name: str) -> ContentID:
        node = self.all_tags.get(name)
        if node is None:
            raise TagNotFound(f"tag not found: {name!r}")
        return node

    def resolve_branch(self, name: str) -> ContentID:
        node = self.branch_heads.get(name)
        if node is None:
            raise BranchNotFound(f"branch not found: {name!r}")
        return node

    def resolve(self, spec: str) -> ContentID:
        """Resolve ``spec`` trying branch heads, then tags, then a revision spec.

        Raises:
            MalformedSpec: ``spec`` is numeric but no record has that index.
            RevisionNotFound: nothing else matches.
        """
        if spec == "":
            spec = self.default_revision

        try:
            return self.resolve_branch(spec)
        except BranchNotFound:
            pass
        try:
            return self.resolve_tag(spec)
        except TagNotFound:
            pass

        parsed = parse_revision_spec(spec, self.all_tags, self.default_revision)
        try:
            record = lookup(parsed, self.changelog)
        except RecordNotFound as exc:
            if isinstance(parsed, IndexSpec):
                raise MalformedSpec(f"revision {spec!r} does not resolve: {exc}") from exc
            raise RevisionNotFound(f"unknown revision {spec!r}") from exc

        if record is None:
            return NULL_ID
        logger.debug(f"Resolved {spec!r} to {record.node}")
        return record.node

    def tags(self) -> List[str]:
        return self.all_tags.names()

    def branches(self) -> List[str]:
        return self.branch_heads.names()
