"""
BEACON Document - Meta fields, links, and a bounded in-memory snapshot.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class MetaField:
    """A single header line: ``#NAME: value``."""
    name: str
    value: str

    def __str__(self) -> str:
        return f"#{self.name}: {self.value}"


@dataclass(frozen=True)
class Link:
    """A single link record.

    ``annotation`` is only ever set by three-field RFC lines.
    """
    source: str
    target: str = ""
    annotation: str = ""

    def __str__(self) -> str:
        if self.annotation:
            return f"{self.source}|{self.annotation}|{self.target}"
        return f"{self.source}|{self.target}"


@dataclass
class BeaconDocument:
    """
    The head of a link dump held in memory.

    Only the first ``limit`` links are kept; ``truncated`` records whether
    the dump had more. Use BeaconReader directly to walk a whole dump.

    Usage:
        doc = BeaconReader.load("links.txt", limit=100)
        for link in doc.links:
            print(link)
    """

    meta: list[MetaField] = field(default_factory=list)
    links: list[Link] = field(default_factory=list)
    truncated: bool = False

    def get_meta(self, name: str) -> str | None:
        """Value of the first meta field with this name."""
        for m in self.meta:
            if m.name == name:
                return m.value
        return None

    def get_meta_dict(self) -> dict[str, str]:
        """All meta fields as a dict. First occurrence wins."""
        meta: dict[str, str] = {}
        for m in self.meta:
            meta.setdefault(m.name, m.value)
        return meta

    def __repr__(self) -> str:
        more = "+" if self.truncated else ""
        return f"BeaconDocument(meta={[m.name for m in self.meta]}, links={len(self.links)}{more})"
