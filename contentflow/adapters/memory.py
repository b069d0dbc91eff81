"""
In-memory adapters for every workflow port.

Used for development and tests. Mutating calls raise named events through
``EventHooks`` before committing; any handler returning False cancels the
whole call. Content commits are checked against the stored row version.

Key behaviors:
- One call commits all of its nodes or none of them
- Stale rows report CONCURRENCY_CONFLICT instead of writing
- Deleted ids are never reused
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Callable, Sequence

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
from contentflow.ports.repo import ChildrenQuery, PagedResult

logger = logging.getLogger(__name__)

EventHandler = Callable[[str, Sequence[object]], bool]


class EventHooks:
    """Synchronous cancellable event hooks, keyed by event name."""

    def __init__(self) -> None:
        self._handlers: dict[str, list[EventHandler]] = defaultdict(list)

    def subscribe(self, event: str, handler: EventHandler) -> None:
        self._handlers[event].append(handler)

    def cancel(self, event: str) -> None:
        """Veto every future occurrence of ``event``."""
        self.subscribe(event, lambda _event, _items: False)

    def clear(self) -> None:
        self._handlers.clear()

    def raise_event(self, event: str, items: Sequence[object]) -> bool:
        """Return True when the operation may go ahead."""
        for handler in self._handlers.get(event, []):
            if not handler(event, items):
                logger.info("Event %s cancelled by %r", event, handler)
                return False
        return True


class InMemoryContentRepo:
    def __init__(self, hooks: EventHooks | None = None, first_id: int = 1000) -> None:
        self.hooks = hooks or EventHooks()
        self._nodes: dict[int, ContentNode] = {}
        self._next_id = first_id
        self.sent_for_approval: list[int] = []

    # --- seeding ---

    def add(self, node: ContentNode) -> ContentNode:
        self._nodes[node.id] = node
        self._next_id = max(self._next_id, node.id + 1)
        return node

    # --- queries ---

    def get_by_id(self, node_id: int) -> ContentNode | None:
        return self._nodes.get(node_id)

    def get_many(self, node_ids: Sequence[int]) -> list[ContentNode]:
        return [self._nodes[i] for i in node_ids if i in self._nodes]

    def get_descendants(self, node: ContentNode) -> list[ContentNode]:
        prefix = node.path + ","
        found = [n for n in self._nodes.values() if n.path.startswith(prefix)]
        return sorted(found, key=lambda n: (n.level, n.sort_order, n.id))

    def get_children(self, parent_id: int, query: ChildrenQuery | None = None) -> PagedResult:
        query = query or ChildrenQuery()
        children = [n for n in self._nodes.values() if n.parent_id == parent_id]
        if query.filter:
            needle = query.filter.lower()
            children = [n for n in children if needle in n.name.lower()]

        def sort_key(n: ContentNode) -> object:
            if query.order_by == "name":
                return n.name.lower()
            if query.order_by == "id":
                return n.id
            if query.order_by == "updated_at":
                return n.updated_at
            return (n.sort_order, n.id)

        children.sort(key=sort_key, reverse=query.descending)
        total = len(children)
        if query.page_size > 0:
            start = (max(query.page, 1) - 1) * query.page_size
            children = children[start : start + query.page_size]
        return PagedResult(items=children, total=total, page=query.page, page_size=query.page_size)

    def get_trashed(self) -> list[ContentNode]:
        return [n for n in self._nodes.values() if n.trashed]

    def allocate_id(self) -> int:
        node_id = self._next_id
        self._next_id += 1
        return node_id

    # --- commits ---

    def _is_stale(self, node: ContentNode) -> bool:
        stored = self._nodes.get(node.id)
        if stored is None:
            return False
        return stored.version != node.version - 1

    def _commit(self, event: str, nodes: Sequence[ContentNode]) -> OperationStatus:
        if any(self._is_stale(n) for n in nodes):
            logger.warning("Stale write rejected for nodes %s", [n.id for n in nodes])
            return OperationStatus.CONCURRENCY_CONFLICT
        if not self.hooks.raise_event(event, nodes):
            return OperationStatus.CANCELLED_BY_EVENT
        for node in nodes:
            self.add(node)
        return OperationStatus.SUCCESS

    def save(self, node: ContentNode, user_id: int) -> OperationStatus:
        return self._commit("saving", [node])

    def publish(
        self, node: ContentNode, cultures: Sequence[str | None], user_id: int
    ) -> OperationStatus:
        return self._commit("publishing", [node])

    def unpublish(
        self, node: ContentNode, cultures: Sequence[str | None], user_id: int
    ) -> OperationStatus:
        return self._commit("unpublishing", [node])

    def send_to_publication(self, node: ContentNode, user_id: int) -> OperationStatus:
        status = self._commit("sending_to_publish", [node])
        if status == OperationStatus.SUCCESS:
            self.sent_for_approval.append(node.id)
        return status

    def save_many(
        self, nodes: Sequence[ContentNode], user_id: int, *, event: str
    ) -> OperationStatus:
        return self._commit(event, nodes)

    def delete_many(self, nodes: Sequence[ContentNode], user_id: int) -> OperationStatus:
        if not self.hooks.raise_event("deleting", nodes):
            return OperationStatus.CANCELLED_BY_EVENT
        for node in nodes:
            self._nodes.pop(node.id, None)
        return OperationStatus.SUCCESS


class InMemoryContentTypes:
    def __init__(self, content_types: Sequence[ContentType] = ()) -> None:
        self._types = {t.id: t for t in content_types}

    def add(self, content_type: ContentType) -> ContentType:
        self._types[content_type.id] = content_type
        return content_type

    def get_by_id(self, content_type_id: int) -> ContentType | None:
        return self._types.get(content_type_id)

    def get_all(self) -> list[ContentType]:
        return sorted(self._types.values(), key=lambda t: t.id)


class InMemoryLanguageCatalog:
    def __init__(self, languages: Sequence[Language] = ()) -> None:
        self._languages = list(languages)

    def add(self, language: Language) -> Language:
        self._languages.append(language)
        return language

    def get_all(self) -> list[Language]:
        return list(self._languages)


class InMemoryPermissionRepo:
    def __init__(self, groups: Sequence[UserGroup] = ()) -> None:
        self._groups = {g.id: g for g in groups}
        self._assigned: dict[tuple[int, int], AssignedGroupPermission] = {}

    def add_group(self, group: UserGroup) -> UserGroup:
        self._groups[group.id] = group
        return group

    def get_assigned(self, node_ids: Sequence[int]) -> list[AssignedGroupPermission]:
        wanted = set(node_ids)
        return [a for a in self._assigned.values() if a.node_id in wanted]

    def get_all_groups(self) -> list[UserGroup]:
        return list(self._groups.values())

    def replace_group_permissions(
        self, group_id: int, permissions: Sequence[PermissionCode], node_id: int
    ) -> None:
        self._assigned[(group_id, node_id)] = AssignedGroupPermission(
            group_id=group_id, node_id=node_id, permissions=list(permissions)
        )

    def remove_group_permissions(self, group_id: int, node_id: int) -> None:
        self._assigned.pop((group_id, node_id), None)


class InMemoryDomainRepo:
    def __init__(self, hooks: EventHooks | None = None) -> None:
        self.hooks = hooks or EventHooks()
        self._domains: dict[int, Domain] = {}
        self._next_id = 1

    def get_assigned(self, node_id: int, include_wildcards: bool = True) -> list[Domain]:
        return [
            d
            for d in self._domains.values()
            if d.root_content_id == node_id and (include_wildcards or not d.is_wildcard)
        ]

    def get_by_name(self, name: str) -> Domain | None:
        for domain in self._domains.values():
            if domain.name.lower() == name.lower():
                return domain
        return None

    def exists(self, name: str) -> bool:
        return self.get_by_name(name) is not None

    def save(self, domain: Domain) -> OperationStatus:
        if not self.hooks.raise_event("saving_domain", [domain]):
            return OperationStatus.CANCELLED_BY_EVENT
        if domain.id == 0:
            domain = domain.model_copy(update={"id": self._next_id})
            self._next_id += 1
        self._domains[domain.id] = domain
        return OperationStatus.SUCCESS

    def delete(self, domain: Domain) -> OperationStatus:
        if not self.hooks.raise_event("deleting_domain", [domain]):
            return OperationStatus.CANCELLED_BY_EVENT
        self._domains.pop(domain.id, None)
        return OperationStatus.SUCCESS


class InMemoryRelationRepo:
    def __init__(self) -> None:
        self.relations: list[tuple[int, int, str]] = []

    def relate(self, parent_id: int, child_id: int, relation_type: str) -> None:
        self.relations.append((parent_id, child_id, relation_type))


class RecordingNotifier:
    def __init__(self) -> None:
        self.sent: list[tuple[int, str]] = []

    def send(self, node: ContentNode, action: str) -> None:
        self.sent.append((node.id, action))
