"""
Protocol catalog.

A ProtocolCatalog is an immutable, versioned set of protocol definitions.
It is built explicitly (usually with default_catalog()) and passed into
the stateless scheduler functions; nothing here is cached at module level.
"""

from collections.abc import Iterable, Iterator
from dataclasses import dataclass

from ..models import Protocol


@dataclass(frozen=True)
class ProtocolCatalog:
    """Read-only, ordered collection of protocols partitioned by domain."""

    protocols: tuple[Protocol, ...]
    version: str = "custom"

    def __post_init__(self) -> None:
        # Accept any iterable but store a tuple so the value stays immutable.
        object.__setattr__(self, "protocols", tuple(self.protocols))

    def __iter__(self) -> Iterator[Protocol]:
        return iter(self.protocols)

    def __len__(self) -> int:
        return len(self.protocols)

    def __contains__(self, protocol_id: object) -> bool:
        return any(p.id == protocol_id for p in self.protocols)

    def domains(self) -> list[str]:
        """Domains present in the catalog, in first-appearance order."""
        seen: list[str] = []
        for p in self.protocols:
            if p.domain not in seen:
                seen.append(p.domain)
        return seen

    def by_domain(self, domain: str) -> list[Protocol]:
        """Return the protocols of one domain, in catalog order."""
        return [p for p in self.protocols if p.domain == domain]

    def get(self, protocol_id: str) -> Protocol:
        """
        Return the protocol with the given id.

        Raises:
            KeyError: If no protocol has that id
        """
        for p in self.protocols:
            if p.id == protocol_id:
                return p
        raise KeyError(f"Unknown protocol '{protocol_id}'")

    def extended(self, extra: Iterable[Protocol]) -> "ProtocolCatalog":
        """Return a new catalog with extra protocols appended (no dedup)."""
        extra = tuple(extra)
        if not extra:
            return self
        return ProtocolCatalog(self.protocols + extra, version=self.version)


def default_catalog() -> ProtocolCatalog:
    """
    Build the built-in catalog from the bundled YAML files.

    User overrides in ``~/.anchor-scheduler/protocols/`` are merged in.

    Raises:
        RuntimeError: If no protocol definitions could be loaded
    """
    from .loader import load_protocols_from_yaml

    loaded = load_protocols_from_yaml()
    if loaded is None:
        raise RuntimeError(
            "anchor-scheduler: no protocol definitions could be loaded from YAML. "
            "Check that src/anchor_scheduler/protocols/*.yaml files are present and valid."
        )
    version, protocols = loaded
    return ProtocolCatalog(tuple(protocols), version=version)
