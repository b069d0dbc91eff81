from dataclasses import dataclass, field

from contentflow.domain.entities import User


@dataclass(frozen=True)
class DomainEntry:
    name: str
    language_id: int
    duplicate: bool = False
    # Name path of the node already owning a duplicate hostname.
    other: str | None = None


@dataclass
class DomainSaveInput:
    actor: User
    node_id: int
    # Culture for the ``*<node id>`` wildcard; None removes the wildcard.
    language_id: int | None = None
    domains: list[DomainEntry] = field(default_factory=list)


@dataclass
class DomainSaveOutput:
    node_id: int
    language_id: int | None
    domains: list[DomainEntry] = field(default_factory=list)
    valid: bool = False
    success: bool = False
