"""
Content component - recycle bin handling and child browsing.
"""

from .component import (
    run,
    run_delete,
    run_empty_recycle_bin,
    run_get_children,
)
from .models import (
    ChildrenOutput,
    DeleteInput,
    DeleteOutput,
    EmptyRecycleBinInput,
    GetChildrenInput,
)
from .ports import ChildrenQuery, ClockPort, ContentRepoPort, PagedResult

__all__ = [
    # Entry points
    "run",
    "run_delete",
    "run_empty_recycle_bin",
    "run_get_children",
    # Input models
    "DeleteInput",
    "EmptyRecycleBinInput",
    "GetChildrenInput",
    # Output models
    "ChildrenOutput",
    "DeleteOutput",
    # Ports
    "ChildrenQuery",
    "ClockPort",
    "ContentRepoPort",
    "PagedResult",
]
