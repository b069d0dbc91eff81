"""
Hierarchy component - move, copy, sort and retype content within the tree.

Every mutation checks allowed parent and child types and refuses cycles
before the subtree is rewritten and committed as one batch.
"""

from .component import (
    COPY_RELATION,
    run,
    run_change_content_type,
    run_copy,
    run_get_available_content_types,
    run_move,
    run_sort,
    run_validate_move,
)
from .models import (
    AvailableContentTypesInput,
    AvailableContentTypesOutput,
    ChangeContentTypeInput,
    ChangeContentTypeOutput,
    CopyInput,
    HierarchyOutput,
    MoveCheckOutput,
    MoveInput,
    SortInput,
    ValidateMoveInput,
)
from .ports import (
    ClockPort,
    ContentRepoPort,
    ContentTypeServicePort,
    NotificationPort,
    RelationRepoPort,
)

__all__ = [
    # Entry points
    "run",
    "run_change_content_type",
    "run_copy",
    "run_get_available_content_types",
    "run_move",
    "run_sort",
    "run_validate_move",
    "COPY_RELATION",
    # Input models
    "AvailableContentTypesInput",
    "ChangeContentTypeInput",
    "CopyInput",
    "MoveInput",
    "SortInput",
    "ValidateMoveInput",
    # Output models
    "AvailableContentTypesOutput",
    "ChangeContentTypeOutput",
    "HierarchyOutput",
    "MoveCheckOutput",
    # Ports
    "ClockPort",
    "ContentRepoPort",
    "ContentTypeServicePort",
    "NotificationPort",
    "RelationRepoPort",
]
