from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Literal, Protocol

from contentflow.domain.entities import (
    AssignedGroupPermission,
    ContentNode,
    ContentType,
    Domain,
    Language,
    OperationStatus,
    PermissionCode,
    UserGroup,
)

OrderBy = Literal["sort_order", "name", "id", "updated_at"]


@dataclass(frozen=True)
class ChildrenQuery:
    page: int = 1
    # 0 returns every child on one page.
    page_size: int = 0
    order_by: OrderBy = "sort_order"
    descending: bool = False
    filter: str | None = None


@dataclass(frozen=True)
class PagedResult:
    items: list[ContentNode] = field(default_factory=list)
    total: int = 0
    page: int = 1
    page_size: int = 0


class ContentRepoPort(Protocol):
    """
    Content persistence.

    Every mutator commits atomically and reports whether an event hook
    cancelled the operation or the stored row was stale. Nodes handed in carry
    their next version: a commit is stale unless the stored row is at
    ``node.version - 1``.
    """

    def get_by_id(self, node_id: int) -> ContentNode | None:
        ...

    def get_many(self, node_ids: Sequence[int]) -> list[ContentNode]:
        ...

    def get_descendants(self, node: ContentNode) -> list[ContentNode]:
        ...

    def get_children(self, parent_id: int, query: ChildrenQuery | None = None) -> PagedResult:
        ...

    def get_trashed(self) -> list[ContentNode]:
        ...

    def allocate_id(self) -> int:
        ...

    def save(self, node: ContentNode, user_id: int) -> OperationStatus:
        ...

    def publish(
        self, node: ContentNode, cultures: Sequence[str | None], user_id: int
    ) -> OperationStatus:
        ...

    def unpublish(
        self, node: ContentNode, cultures: Sequence[str | None], user_id: int
    ) -> OperationStatus:
        ...

    def send_to_publication(self, node: ContentNode, user_id: int) -> OperationStatus:
        ...

    def save_many(
        self, nodes: Sequence[ContentNode], user_id: int, *, event: str
    ) -> OperationStatus:
        ...

    def delete_many(self, nodes: Sequence[ContentNode], user_id: int) -> OperationStatus:
        ...


class ContentTypeServicePort(Protocol):
    def get_by_id(self, content_type_id: int) -> ContentType | None:
        ...

    def get_all(self) -> list[ContentType]:
        ...


class LanguageCatalogPort(Protocol):
    def get_all(self) -> list[Language]:
        ...


class PermissionRepoPort(Protocol):
    def get_assigned(self, node_ids: Sequence[int]) -> list[AssignedGroupPermission]:
        ...

    def get_all_groups(self) -> list[UserGroup]:
        ...

    def replace_group_permissions(
        self, group_id: int, permissions: Sequence[PermissionCode], node_id: int
    ) -> None:
        ...

    def remove_group_permissions(self, group_id: int, node_id: int) -> None:
        ...


class DomainRepoPort(Protocol):
    def get_assigned(self, node_id: int, include_wildcards: bool = True) -> list[Domain]:
        ...

    def get_by_name(self, name: str) -> Domain | None:
        ...

    def exists(self, name: str) -> bool:
        ...

    def save(self, domain: Domain) -> OperationStatus:
        ...

    def delete(self, domain: Domain) -> OperationStatus:
        ...


class RelationRepoPort(Protocol):
    def relate(self, parent_id: int, child_id: int, relation_type: str) -> None:
        ...


class NotificationPort(Protocol):
    def send(self, node: ContentNode, action: str) -> None:
        """Notify subscribers of ``node`` that ``action`` happened below it."""
        ...
