"""Type descriptors used in place of runtime reflection.

Asset records carry an explicit :class:`TypeDescriptor` for their own type and
for each attached component.  A descriptor knows its namespace and its direct
base type, which is everything the classifier needs to pick folders.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Optional


@dataclass(frozen=True)
class TypeDescriptor:
    name: str
    namespace: Optional[str] = None
    base: Optional["TypeDescriptor"] = None

    @classmethod
    def parse(cls, full_name: str, base: Optional["TypeDescriptor"] = None) -> "TypeDescriptor":
        """Build a descriptor from a dotted name such as ``Game.Items.ItemData``."""

        full_name = full_name.strip()
        if not full_name:
            raise ValueError("Type name must not be empty")
        namespace, _, name = full_name.rpartition(".")
        return cls(name=name, namespace=namespace or None, base=base)

    @property
    def full_name(self) -> str:
        if self.namespace:
            return f"{self.namespace}.{self.name}"
        return self.name

    @property
    def root_namespace(self) -> Optional[str]:
        if not self.namespace:
            return None
        return self.namespace.split(".")[0]

    def lineage(self) -> Iterator["TypeDescriptor"]:
        """Yield this type followed by each base up to the root."""

        current: Optional[TypeDescriptor] = self
        while current is not None:
            yield current
            current = current.base

    def is_subtype_of(self, other: "TypeDescriptor | str") -> bool:
        """Return ``True`` when ``other`` is this type or one of its bases.

        A string matches either the full name or, for namespace-less queries,
        the bare type name.
        """

        for candidate in self.lineage():
            if isinstance(other, TypeDescriptor):
                if candidate.full_name == other.full_name:
                    return True
            elif other in (candidate.full_name, candidate.name):
                return True
        return False

    def __str__(self) -> str:  # pragma: no cover - debugging helper
        return self.full_name


__all__ = ["TypeDescriptor"]
