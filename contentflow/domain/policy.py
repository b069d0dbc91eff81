import logging
from collections.abc import Mapping, MutableMapping, Sequence
from dataclasses import dataclass
from enum import Enum

from contentflow.domain.entities import (
    RECYCLE_BIN_ID,
    ROOT_ID,
    AssignedGroupPermission,
    ContentAction,
    ContentNode,
    EntityPermission,
    PermissionCode,
    PermissionSet,
    User,
    UserGroup,
    join_path,
    split_path,
)
from contentflow.domain.errors import ForbiddenError, NotFoundError
from contentflow.ports.repo import ContentRepoPort, PermissionRepoPort
from contentflow.rules.models import PermissionLetters, Rules

logger = logging.getLogger(__name__)


def has_path_access(user: User, path: str) -> bool:
    ids = split_path(path)
    return any(start in ids for start in user.start_content_ids)


def has_root_access(user: User) -> bool:
    return ROOT_ID in user.start_content_ids


def has_bin_access(user: User) -> bool:
    return has_path_access(user, join_path([ROOT_ID, RECYCLE_BIN_ID]))


def calculate_path_permissions(
    user: User, path: str, assigned: Sequence[AssignedGroupPermission]
) -> PermissionSet:
    """
    Effective permissions for every segment of ``path``.

    Per group, the nearest explicit assignment on the way up wins; a group
    with none along the path contributes its defaults. Groups are unioned.
    """
    by_group_node = {(a.group_id, a.node_id): a.permissions for a in assigned}
    ids = split_path(path)
    entries: dict[int, EntityPermission] = {}

    for depth, node_id in enumerate(ids):
        chain = ids[: depth + 1]
        codes: set[PermissionCode] = set()
        is_default = True
        for group in user.groups:
            explicit = None
            for ancestor in reversed(chain):
                explicit = by_group_node.get((group.id, ancestor))
                if explicit is not None:
                    break
            if explicit is None:
                codes.update(group.default_permissions)
            else:
                codes.update(explicit)
                is_default = False
        entries[node_id] = EntityPermission(
            node_id=node_id, permissions=frozenset(codes), is_default=is_default
        )

    return PermissionSet(entries=entries)


class PermissionEvaluator:
    def __init__(
        self,
        rules: Rules,
        content_repo: ContentRepoPort,
        permission_repo: PermissionRepoPort,
    ):
        self.rules = rules
        self._content_repo = content_repo
        self._permission_repo = permission_repo

    @property
    def letters(self) -> PermissionLetters:
        return self.rules.permissions.letters

    def required_for(self, action: ContentAction) -> tuple[str, ...]:
        return self.rules.permissions.for_action(action)

    def permissions_for_path(self, user: User, path: str) -> PermissionSet:
        assigned = self._permission_repo.get_assigned(split_path(path))
        return calculate_path_permissions(user, path, assigned)

    def evaluate(
        self,
        user: User,
        node_id: int,
        required_codes: Sequence[PermissionCode] = (),
        node: ContentNode | None = None,
        storage: MutableMapping[int, ContentNode] | None = None,
    ) -> bool:
        """
        Check path access and required codes for ``user`` at a node.

        A node fetched here is put into ``storage`` so the caller does not
        fetch it again. Unknown ids raise NotFoundError; every required code
        must be granted.
        """
        is_system = node_id in (ROOT_ID, RECYCLE_BIN_ID)
        if node is None and not is_system:
            node = self._content_repo.get_by_id(node_id)
            if node is None:
                raise NotFoundError("Content", node_id)
            if storage is not None:
                storage[node_id] = node

        if node_id == ROOT_ID:
            path_access = has_root_access(user)
        elif node_id == RECYCLE_BIN_ID:
            path_access = has_bin_access(user)
        elif node is not None:
            path_access = has_path_access(user, node.path)
        else:
            raise NotFoundError("Content", node_id)

        if not path_access:
            logger.debug("User %s has no path access to node %s", user.id, node_id)
            return False

        if not required_codes:
            return True

        # System nodes have no stored path; their id is the path.
        path = node.path if node is not None else str(node_id)
        granted = self.permissions_for_path(user, path).get_permissions(split_path(path)[-1])
        missing = [code for code in required_codes if code not in granted]
        if missing:
            logger.debug("User %s lacks %s on node %s", user.id, "".join(missing), node_id)
            return False
        return True

    def ensure(
        self,
        user: User,
        node_id: int,
        required_codes: Sequence[PermissionCode] = (),
        node: ContentNode | None = None,
        storage: MutableMapping[int, ContentNode] | None = None,
    ) -> None:
        if not self.evaluate(user, node_id, required_codes, node=node, storage=storage):
            raise ForbiddenError(
                f"User {user.id} is not allowed to do this on node {node_id}", node_id=node_id
            )

    def get_permissions(self, user: User, node_ids: Sequence[int]) -> dict[int, list[str]]:
        """Aggregate codes per node; unknown nodes resolve by id alone."""
        result: dict[int, list[str]] = {}
        for node_id in node_ids:
            node = self._content_repo.get_by_id(node_id) if node_id > 0 else None
            path = node.path if node is not None else str(node_id)
            codes = self.permissions_for_path(user, path).get_permissions(split_path(path)[-1])
            result[node_id] = sorted(codes)
        return result

    def has_permission(self, user: User, code: PermissionCode, node_id: int) -> bool:
        return code in self.get_permissions(user, [node_id])[node_id]


# --- Group permission administration ---


class ChangeKind(str, Enum):
    REMOVE = "remove"
    REPLACE = "replace"


@dataclass(frozen=True)
class GroupPermissionChange:
    group_id: int
    kind: ChangeKind
    permissions: tuple[str, ...] = ()


@dataclass(frozen=True)
class GroupPermissionDetail:
    group_id: int
    alias: str
    name: str
    default_permissions: tuple[str, ...]
    assigned_permissions: tuple[str, ...]
    is_default: bool


def _same_codes(a: Sequence[str], b: Sequence[str]) -> bool:
    return sorted(a) == sorted(b)


def plan_group_permission_changes(
    groups: Sequence[UserGroup],
    current: Mapping[int, AssignedGroupPermission],
    posted: Mapping[int, Sequence[str]],
) -> list[GroupPermissionChange]:
    """
    Work out which node overrides to write for the posted group codes.

    An override equal to the group defaults is never stored.
    """
    changes: list[GroupPermissionChange] = []
    for group in groups:
        if group.id not in posted:
            continue
        codes = [c[0] for c in posted[group.id] if c]
        if not codes:
            changes.append(GroupPermissionChange(group.id, ChangeKind.REMOVE))
        elif _same_codes(group.default_permissions, codes):
            if group.id in current:
                changes.append(GroupPermissionChange(group.id, ChangeKind.REMOVE))
        elif group.id not in current or not _same_codes(current[group.id].permissions, codes):
            changes.append(GroupPermissionChange(group.id, ChangeKind.REPLACE, tuple(codes)))
    return changes


def detail_group_permissions(
    groups: Sequence[UserGroup], assigned: Sequence[AssignedGroupPermission]
) -> list[GroupPermissionDetail]:
    by_group = {a.group_id: a for a in assigned}
    details: list[GroupPermissionDetail] = []
    for group in groups:
        override = by_group.get(group.id)
        details.append(
            GroupPermissionDetail(
                group_id=group.id,
                alias=group.alias,
                name=group.name,
                default_permissions=tuple(group.default_permissions),
                assigned_permissions=tuple(
                    override.permissions if override else group.default_permissions
                ),
                is_default=override is None,
            )
        )
    return details
