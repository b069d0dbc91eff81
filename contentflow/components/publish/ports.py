"""Publish component port definitions - protocols for dependencies."""

from collections.abc import MutableMapping, Sequence
from typing import Protocol

from contentflow.domain.entities import ContentAction, ContentNode, PermissionCode, User
from contentflow.ports import (
    ClockPort,
    ContentRepoPort,
    ContentTypeServicePort,
    LanguageCatalogPort,
)


class PermissionGatePort(Protocol):
    """The slice of the permission evaluator the publish workflow needs."""

    def required_for(self, action: ContentAction) -> tuple[str, ...]:
        """Permission codes an action requires."""
        ...

    def ensure(
        self,
        user: User,
        node_id: int,
        required_codes: Sequence[PermissionCode] = (),
        node: ContentNode | None = None,
        storage: MutableMapping[int, ContentNode] | None = None,
    ) -> None:
        """Raise ForbiddenError unless ``user`` holds every code at the node."""
        ...


__all__ = [
    "ClockPort",
    "ContentRepoPort",
    "ContentTypeServicePort",
    "LanguageCatalogPort",
    "PermissionGatePort",
]
