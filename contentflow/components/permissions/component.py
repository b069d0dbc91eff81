import logging

from contentflow.domain.entities import ContentNode
from contentflow.domain.errors import NotFoundError
from contentflow.domain.policy import (
    ChangeKind,
    PermissionEvaluator,
    detail_group_permissions,
    plan_group_permission_changes,
)

from .models import (
    DetailedPermissionsOutput,
    GetDetailedPermissionsInput,
    GetPermissionsInput,
    HasPermissionInput,
    HasPermissionOutput,
    PermissionsOutput,
    SaveGroupPermissionsInput,
)
from .ports import PermissionRepoPort

logger = logging.getLogger(__name__)


def _load_for_rights(
    inp: GetDetailedPermissionsInput | SaveGroupPermissionsInput, policy: PermissionEvaluator
) -> ContentNode:
    if inp.node_id <= 0:
        raise NotFoundError("Content", inp.node_id)
    storage: dict[int, ContentNode] = {}
    policy.ensure(inp.actor, inp.node_id, [policy.letters.rights], storage=storage)
    return storage[inp.node_id]


def run_get_permissions(inp: GetPermissionsInput, policy: PermissionEvaluator) -> PermissionsOutput:
    permissions = policy.get_permissions(inp.actor, inp.node_ids)
    return PermissionsOutput(permissions=permissions, success=True)


def run_has_permission(inp: HasPermissionInput, policy: PermissionEvaluator) -> HasPermissionOutput:
    allowed = policy.has_permission(inp.actor, inp.code, inp.node_id)
    return HasPermissionOutput(allowed=allowed, success=True)


def run_get_detailed_permissions(
    inp: GetDetailedPermissionsInput,
    permission_repo: PermissionRepoPort,
    policy: PermissionEvaluator,
) -> DetailedPermissionsOutput:
    """Per group: defaults, effective codes on the node, and whether defaults apply."""
    node = _load_for_rights(inp, policy)
    groups = permission_repo.get_all_groups()
    details = detail_group_permissions(groups, permission_repo.get_assigned([node.id]))
    return DetailedPermissionsOutput(groups=details, success=True)


def run_save_group_permissions(
    inp: SaveGroupPermissionsInput,
    permission_repo: PermissionRepoPort,
    policy: PermissionEvaluator,
) -> DetailedPermissionsOutput:
    """
    Store the posted group overrides for a node.

    Codes equal to a group's defaults are not stored; an existing override
    is removed instead.
    """
    node = _load_for_rights(inp, policy)
    groups = permission_repo.get_all_groups()
    current = {a.group_id: a for a in permission_repo.get_assigned([node.id])}

    for change in plan_group_permission_changes(groups, current, inp.assigned):
        if change.kind == ChangeKind.REMOVE:
            permission_repo.remove_group_permissions(change.group_id, node.id)
        else:
            permission_repo.replace_group_permissions(change.group_id, change.permissions, node.id)
        logger.info(
            "Group %s permissions on node %s: %s %s",
            change.group_id,
            node.id,
            change.kind.value,
            "".join(change.permissions),
        )

    details = detail_group_permissions(groups, permission_repo.get_assigned([node.id]))
    return DetailedPermissionsOutput(groups=details, success=True)


def run(
    inp: GetPermissionsInput
    | HasPermissionInput
    | GetDetailedPermissionsInput
    | SaveGroupPermissionsInput,
    *,
    policy: PermissionEvaluator,
    permission_repo: PermissionRepoPort | None = None,
) -> PermissionsOutput | HasPermissionOutput | DetailedPermissionsOutput:
    if isinstance(inp, GetPermissionsInput):
        return run_get_permissions(inp, policy)

    elif isinstance(inp, HasPermissionInput):
        return run_has_permission(inp, policy)

    elif isinstance(inp, GetDetailedPermissionsInput):
        assert permission_repo
        return run_get_detailed_permissions(inp, permission_repo, policy)

    elif isinstance(inp, SaveGroupPermissionsInput):
        assert permission_repo
        return run_save_group_permissions(inp, permission_repo, policy)

    else:
        raise ValueError(f"Unknown input type: {type(inp)}")
