from dataclasses import dataclass, field

from contentflow.domain.entities import ContentNode, ContentType, User
from contentflow.domain.errors import FieldError


@dataclass
class ValidateMoveInput:
    actor: User
    node_id: int
    parent_id: int


@dataclass
class MoveInput:
    actor: User
    node_id: int
    parent_id: int


@dataclass
class CopyInput:
    actor: User
    node_id: int
    parent_id: int
    recursive: bool = False
    relate_to_original: bool = False


@dataclass
class SortInput:
    actor: User
    parent_id: int
    ordered_ids: list[int] = field(default_factory=list)


@dataclass
class MoveCheckOutput:
    ok: bool
    reason: str | None = None


@dataclass
class HierarchyOutput:
    # The moved or copied top node; None for sorts.
    node: ContentNode | None = None
    nodes: list[ContentNode] = field(default_factory=list)
    success: bool = False
    error: str | None = None
    retryable: bool = False

    @property
    def path(self) -> str | None:
        return self.node.path if self.node else None


@dataclass
class AvailableContentTypesInput:
    actor: User
    node_id: int


@dataclass
class ChangeContentTypeInput:
    actor: User
    node_id: int
    content_type_id: int
    # Current property alias -> new alias; None drops the value.
    field_map: dict[str, str | None] = field(default_factory=dict)


@dataclass
class AvailableContentTypesOutput:
    node_name: str
    current: ContentType
    content_types: list[ContentType] = field(default_factory=list)


@dataclass
class ChangeContentTypeOutput:
    node: ContentNode | None = None
    success: bool = False
    republished: bool = False
    errors: list[FieldError] = field(default_factory=list)
    error: str | None = None
    retryable: bool = False
