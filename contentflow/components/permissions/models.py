from dataclasses import dataclass, field

from contentflow.domain.entities import PermissionCode, User
from contentflow.domain.policy import GroupPermissionDetail


@dataclass
class GetPermissionsInput:
    actor: User
    node_ids: list[int]


@dataclass
class HasPermissionInput:
    actor: User
    code: PermissionCode
    node_id: int


@dataclass
class GetDetailedPermissionsInput:
    actor: User
    node_id: int


@dataclass
class SaveGroupPermissionsInput:
    actor: User
    node_id: int
    # Posted codes per group id; an empty list resets the group to its defaults.
    assigned: dict[int, list[PermissionCode]] = field(default_factory=dict)


@dataclass
class PermissionsOutput:
    permissions: dict[int, list[PermissionCode]] = field(default_factory=dict)
    success: bool = False


@dataclass
class HasPermissionOutput:
    allowed: bool = False
    success: bool = False


@dataclass
class DetailedPermissionsOutput:
    groups: list[GroupPermissionDetail] = field(default_factory=list)
    success: bool = False
    error: str | None = None
