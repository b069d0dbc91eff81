"""Publish component models - frozen dataclass inputs and outputs."""

from dataclasses import dataclass, field
from typing import Any

from contentflow.domain.entities import (
    ContentAction,
    ContentNode,
    PublicationState,
    PublishResultType,
    User,
    VariantRequest,
)
from contentflow.domain.errors import FieldError


@dataclass(frozen=True)
class ApplyActionInput:
    """
    A posted editor action.

    ``node_id`` is 0 for creating actions, which need ``parent_id`` and
    ``content_type_id`` instead. ``model_errors`` carries binding errors the
    transport already found.
    """

    user: User
    action: ContentAction
    variants: list[VariantRequest]
    node_id: int = 0
    parent_id: int | None = None
    content_type_id: int | None = None
    properties: dict[str, Any] = field(default_factory=dict)
    model_errors: list[FieldError] = field(default_factory=list)


@dataclass(frozen=True)
class PublishByIdInput:
    """Publish a stored node as it is."""

    user: User
    node_id: int


@dataclass(frozen=True)
class UnpublishInput:
    """Unpublish one culture, or the whole node when ``culture`` is None."""

    user: User
    node_id: int
    culture: str | None = None


@dataclass(frozen=True)
class PublishResult:
    result: PublishResultType
    node: ContentNode
    state: PublicationState
    cultures: tuple[str | None, ...] = ()
    invalid_properties: tuple[str, ...] = ()
    requested_action: ContentAction | None = None
    action: ContentAction | None = None
    downgraded: bool = False
    # Set when a stale write was rejected; the caller may reload and retry.
    retryable: bool = False


@dataclass(frozen=True)
class ApplyActionOutput:
    result: PublishResult | None
    errors: list[FieldError]
    success: bool


@dataclass(frozen=True)
class PublishByIdOutput:
    result: PublishResult | None
    errors: list[FieldError]
    success: bool


@dataclass(frozen=True)
class UnpublishOutput:
    result: PublishResult | None
    errors: list[FieldError]
    success: bool
