from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class PageEntry:
    name: str
    file: str  # document file name, relative to the documents root

    def to_dict(self) -> dict[str, str]:
        return {"name": self.name, "file": self.file}


@dataclass(frozen=True)
class PresentationEntry:
    url: str
    duration: int  # milliseconds
    original_duration: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "url": self.url,
            "duration": self.duration,
            "originalDuration": self.original_duration,
        }


@dataclass
class Registry:
    """Ordered page list; lookups by name or file ignore case."""

    entries: list[PageEntry] = field(default_factory=list)

    def __iter__(self):
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def has_name(self, name: str) -> bool:
        folded = name.casefold()
        return any(e.name.casefold() == folded for e in self.entries)

    def has_file(self, file: str) -> bool:
        folded = file.casefold()
        return any(e.file.casefold() == folded for e in self.entries)

    def find_by_file(self, file: str) -> PageEntry | None:
        folded = file.casefold()
        return next((e for e in self.entries if e.file.casefold() == folded), None)

    def appended(self, entry: PageEntry) -> "Registry":
        return Registry(self.entries + [entry])

    def without_file(self, file: str) -> "Registry":
        folded = file.casefold()
        return Registry([e for e in self.entries if e.file.casefold() != folded])

    def to_list(self) -> list[dict[str, str]]:
        return [e.to_dict() for e in self.entries]
