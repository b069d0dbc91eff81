from dataclasses import dataclass, field

from contentflow.domain.entities import ContentNode, User
from contentflow.ports.repo import OrderBy


@dataclass
class DeleteInput:
    actor: User
    node_id: int


@dataclass
class EmptyRecycleBinInput:
    actor: User


@dataclass
class GetChildrenInput:
    actor: User
    parent_id: int
    page: int = 1
    page_size: int = 0
    order_by: OrderBy = "sort_order"
    descending: bool = False
    filter: str | None = None


@dataclass
class DeleteOutput:
    nodes: list[ContentNode] = field(default_factory=list)
    # True when nodes were removed for good rather than moved to the recycle bin.
    hard_deleted: bool = False
    success: bool = False
    error: str | None = None
    retryable: bool = False


@dataclass
class ChildrenOutput:
    items: list[ContentNode] = field(default_factory=list)
    total: int = 0
    page: int = 1
    page_size: int = 0
    success: bool = False
