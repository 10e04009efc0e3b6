"""Name to content-id tables for tags and branch heads."""

from typing import Dict, Iterator, List, Optional

from revsage.types.base import ContentID


class TagTable:
    """Mapping of reference names to content ids.

    Names are iterated in insertion order until ``sort()`` is called, after
    which iteration is alphabetical. Adding a name that already exists
    rebinds it without changing its position.
    """

    def __init__(self) -> None:
        self.id_by_name: Dict[str, ContentID] = {}
        self._names: List[str] = []

    def add(self, name: str, node: ContentID) -> None:
        if name not in self.id_by_name:
            self._names.append(name)
        self.id_by_name[name] = node

    def sort(self) -> None:
        self._names.sort()

    def get(self, name: str) -> Optional[ContentID]:
        return self.id_by_name.get(name)

    def names(self) -> List[str]:
        return list(self._names)

    def __contains__(self, name: object) -> bool:
        return name in self.id_by_name

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._names))

    def __len__(self) -> int:
        return len(self._names)

    def __repr__(self) -> str:
        return f"TagTable({len(self)} names)"
