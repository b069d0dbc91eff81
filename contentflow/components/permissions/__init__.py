"""
Permissions component - effective permissions and group overrides per node.

Reads resolved permission codes for users and manages explicit group
permission overrides on content nodes.
"""

from .component import (
    run,
    run_get_detailed_permissions,
    run_get_permissions,
    run_has_permission,
    run_save_group_permissions,
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
from .ports import ContentRepoPort, PermissionRepoPort

__all__ = [
    # Entry points
    "run",
    "run_get_detailed_permissions",
    "run_get_permissions",
    "run_has_permission",
    "run_save_group_permissions",
    # Input models
    "GetDetailedPermissionsInput",
    "GetPermissionsInput",
    "HasPermissionInput",
    "SaveGroupPermissionsInput",
    # Output models
    "DetailedPermissionsOutput",
    "HasPermissionOutput",
    "PermissionsOutput",
    # Ports
    "ContentRepoPort",
    "PermissionRepoPort",
]
