"""Category to destination lookup for ripper output folders."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import PurePosixPath
from types import MappingProxyType
from typing import Iterable, Iterator, Mapping, Optional

from .errors import ConfigError


@dataclass(frozen=True)
class CategoryMapping:
    source_category: str
    destination: str

    def __post_init__(self) -> None:
        if not self.source_category:
            raise ConfigError("Category mapping requires a source category name")
        object.__setattr__(self, "destination", normalize_relative(self.destination))


def normalize_relative(value: str) -> str:
    """Return ``value`` as a forward-slash relative path without dot segments."""

    text = str(value).replace("\\", "/").strip()
    parts = [part for part in PurePosixPath(text).parts if part not in ("", ".", "/")]
    if not parts:
        raise ConfigError(f"Destination path must not be empty: {value!r}")
    if ".." in parts:
        raise ConfigError(f"Destination path must stay inside the project: {value!r}")
    return "/".join(parts)


class MappingResolver:
    """Immutable lookup table built once per run."""

    def __init__(self, mappings: Iterable[CategoryMapping] | Mapping[str, str]):
        if isinstance(mappings, Mapping):
            entries = [CategoryMapping(str(key), str(value)) for key, value in mappings.items()]
        else:
            entries = list(mappings)
        table: dict[str, str] = {}
        for entry in entries:
            if entry.source_category in table:
                raise ConfigError(f"Duplicate mapping for category {entry.source_category!r}")
            table[entry.source_category] = entry.destination
        self._table = MappingProxyType(table)

    def resolve(self, category: str) -> Optional[str]:
        return self._table.get(category)

    def resolve_or_default(self, category: str) -> str:
        return self._table.get(category, category)

    def __contains__(self, category: object) -> bool:
        return category in self._table

    def __iter__(self) -> Iterator[CategoryMapping]:
        for key, value in self._table.items():
            yield CategoryMapping(key, value)

    def __len__(self) -> int:
        return len(self._table)

    def as_dict(self) -> dict[str, str]:
        return dict(self._table)


__all__ = ["CategoryMapping", "MappingResolver", "normalize_relative"]
