"""
Publication state machine.

States are derived from persisted flags, never stored. The allowed state
changes form a closed table; every operation below is a pure function that
returns a NEW node plus the outcome tag and leaves persistence to the caller.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from contentflow.domain.entities import (
    ContentAction,
    ContentNode,
    ContentType,
    PublicationState,
    PublishResultType,
    VariantRequest,
    same_culture,
)
from contentflow.domain.errors import (
    FieldError,
    InvalidTransitionError,
    NotFoundError,
    ValidationFailedError,
)
from contentflow.domain.validation import apply_edits, invalid_properties

_ALLOWED: dict[PublicationState, frozenset[PublicationState]] = {
    PublicationState.DRAFT: frozenset(
        {
            PublicationState.DRAFT,
            PublicationState.PUBLISHED,
            PublicationState.PARTIALLY_PUBLISHED,
            PublicationState.TRASHED,
        }
    ),
    PublicationState.PUBLISHED: frozenset(
        {
            PublicationState.PUBLISHED,
            PublicationState.PARTIALLY_PUBLISHED,
            PublicationState.DRAFT,
            PublicationState.TRASHED,
        }
    ),
    PublicationState.PARTIALLY_PUBLISHED: frozenset(
        {
            PublicationState.PARTIALLY_PUBLISHED,
            PublicationState.PUBLISHED,
            PublicationState.DRAFT,
            PublicationState.TRASHED,
        }
    ),
    # Restoring from the bin always lands in draft.
    PublicationState.TRASHED: frozenset(
        {PublicationState.TRASHED, PublicationState.DRAFT, PublicationState.DELETED}
    ),
    PublicationState.DELETED: frozenset(),
}

_DOWNGRADES: dict[ContentAction, ContentAction] = {
    ContentAction.PUBLISH: ContentAction.SAVE,
    ContentAction.PUBLISH_NEW: ContentAction.SAVE_NEW,
}


def derive_state(node: ContentNode, content_type: ContentType) -> PublicationState:
    if node.trashed:
        return PublicationState.TRASHED
    published = [v for v in node.variants if v.published]
    if not published:
        return PublicationState.DRAFT
    if content_type.varies_by_culture and len(published) < len(node.variants):
        return PublicationState.PARTIALLY_PUBLISHED
    return PublicationState.PUBLISHED


def can_transition(current: PublicationState, new: PublicationState) -> bool:
    return new in _ALLOWED[current]


def transition(current: PublicationState, new: PublicationState) -> PublicationState:
    """Raises InvalidTransitionError if the state change is not in the table."""
    if not can_transition(current, new):
        raise InvalidTransitionError(current.value, new.value)
    return new


# --- Action planning ---


class Operation(str, Enum):
    REJECT = "reject"
    SAVE = "save"
    SEND_TO_PUBLICATION = "send_to_publication"
    PUBLISH = "publish"
    PUBLISH_CULTURES = "publish_cultures"
    UNPUBLISH = "unpublish"


@dataclass(frozen=True)
class ActionPlan:
    requested: ContentAction
    action: ContentAction
    operation: Operation
    downgraded: bool = False


def plan_action(
    action: ContentAction,
    *,
    state: PublicationState,
    varies_by_culture: bool,
    model_valid: bool,
    has_required_for_persistence: bool,
) -> ActionPlan:
    """
    Map a requested action onto the operation to run.

    A new node missing the data needed to store it at all is rejected. Any
    other invalid model turns a publish into the matching save.
    """
    if state == PublicationState.DELETED:
        raise InvalidTransitionError(state.value, action.value)

    if not model_valid:
        if action.is_creating and not has_required_for_persistence:
            return ActionPlan(action, action, Operation.REJECT)
        if action.is_publish:
            return ActionPlan(action, _DOWNGRADES[action], Operation.SAVE, downgraded=True)

    if action.is_save:
        return ActionPlan(action, action, Operation.SAVE)
    if action.is_send:
        return ActionPlan(action, action, Operation.SEND_TO_PUBLICATION)
    if action.is_publish:
        operation = Operation.PUBLISH_CULTURES if varies_by_culture else Operation.PUBLISH
        return ActionPlan(action, action, operation)
    return ActionPlan(action, action, Operation.UNPUBLISH)


# --- Operations ---


@dataclass(frozen=True)
class Outcome:
    node: ContentNode
    result: PublishResultType
    cultures: tuple[str | None, ...] = ()
    invalid_properties: tuple[str, ...] = ()


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def save_edits(
    node: ContentNode,
    content_type: ContentType,
    variants: Sequence[VariantRequest],
    properties: dict[str, Any] | None = None,
) -> Outcome:
    """Map posted edits onto the node; publish flags are kept as they are."""
    edited = apply_edits(node, content_type, variants, properties)
    return Outcome(edited, PublishResultType.SUCCESS)


def publish_guard(
    node: ContentNode, *, now: datetime, parent_published: bool
) -> PublishResultType | None:
    """First node-level reason preventing a publish, or None."""
    now = _as_utc(now)
    if node.trashed:
        return PublishResultType.FAILED_IS_TRASHED
    if node.release_date is not None and _as_utc(node.release_date) > now:
        return PublishResultType.FAILED_AWAITING_RELEASE
    if node.expire_date is not None and _as_utc(node.expire_date) <= now:
        return PublishResultType.FAILED_HAS_EXPIRED
    if not parent_published:
        return PublishResultType.FAILED_PATH_NOT_PUBLISHED
    return None


def publish_invariant(
    node: ContentNode,
    content_type: ContentType,
    *,
    now: datetime,
    parent_published: bool,
) -> Outcome:
    """Single-culture publish: save the edits, then mark the variant published."""
    guard = publish_guard(node, now=now, parent_published=parent_published)
    if guard is not None:
        return Outcome(node, guard)

    invalid = invalid_properties(content_type, node, None)
    if invalid:
        return Outcome(
            node,
            PublishResultType.FAILED_CONTENT_INVALID,
            invalid_properties=tuple(invalid),
        )

    variant = node.variants[0]
    if variant.published and not variant.edited:
        return Outcome(node, PublishResultType.SUCCESS_ALREADY, cultures=(None,))

    published = variant.model_copy(update={"published": True, "edited": False})
    return Outcome(
        node.model_copy(update={"variants": [published]}),
        PublishResultType.SUCCESS,
        cultures=(None,),
    )


def publish_cultures(
    node: ContentNode,
    cultures: Sequence[str],
    *,
    now: datetime,
    parent_published: bool,
) -> Outcome:
    """
    Publish every culture in ``cultures`` together.

    Callers validate the cultures first; this only applies the flags, all of
    them or none.
    """
    guard = publish_guard(node, now=now, parent_published=parent_published)
    if guard is not None:
        return Outcome(node, guard, cultures=tuple(cultures))

    targets = []
    for culture in cultures:
        variant = node.get_variant(culture)
        if variant is None:
            raise NotFoundError("Culture variant", culture)
        targets.append(variant)

    if not targets:
        if node.published_cultures:
            return Outcome(node, PublishResultType.SUCCESS_ALREADY)
        return Outcome(node, PublishResultType.FAILED_CANNOT_PUBLISH)

    if all(v.published and not v.edited for v in targets):
        return Outcome(node, PublishResultType.SUCCESS_ALREADY, cultures=tuple(cultures))

    new_variants = []
    for variant in node.variants:
        if any(same_culture(variant.culture, c) for c in cultures):
            variant = variant.model_copy(update={"published": True, "edited": False})
        new_variants.append(variant)

    return Outcome(
        node.model_copy(update={"variants": new_variants}),
        PublishResultType.SUCCESS,
        cultures=tuple(cultures),
    )


def unpublish(
    node: ContentNode, content_type: ContentType, culture: str | None = None
) -> Outcome:
    """Demote one culture (varying types) or every published variant."""
    if culture is not None and not content_type.varies_by_culture and culture != "*":
        raise ValidationFailedError(
            [
                FieldError(
                    code="culture_not_applicable",
                    message=f"Content type {content_type.alias} does not vary by culture",
                    field="culture",
                )
            ]
        )

    scoped = content_type.varies_by_culture and culture not in (None, "*")
    if scoped:
        variant = node.get_variant(culture)
        if variant is None:
            raise NotFoundError("Culture variant", culture)
        if not variant.published:
            return Outcome(node, PublishResultType.SUCCESS_ALREADY, cultures=(variant.culture,))

    demoted: list[str | None] = []
    new_variants = []
    for variant in node.variants:
        if variant.published and (not scoped or same_culture(variant.culture, culture)):
            demoted.append(variant.culture)
            variant = variant.model_copy(update={"published": False})
        new_variants.append(variant)

    if not demoted:
        return Outcome(node, PublishResultType.SUCCESS_ALREADY)

    return Outcome(
        node.model_copy(update={"variants": new_variants}),
        PublishResultType.SUCCESS,
        cultures=tuple(demoted),
    )
