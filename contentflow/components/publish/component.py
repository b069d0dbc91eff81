"""Publish component - applies editor actions to content nodes."""

import logging
from collections.abc import Sequence
from datetime import datetime

from contentflow.components.publish.models import (
    ApplyActionInput,
    ApplyActionOutput,
    PublishByIdInput,
    PublishByIdOutput,
    PublishResult,
    UnpublishInput,
    UnpublishOutput,
)
from contentflow.components.publish.ports import (
    ClockPort,
    ContentRepoPort,
    ContentTypeServicePort,
    LanguageCatalogPort,
    PermissionGatePort,
)
from contentflow.domain.culture import ensure_known_cultures, validate_for_publish
from contentflow.domain.entities import (
    ROOT_ID,
    ContentAction,
    ContentNode,
    ContentType,
    OperationStatus,
    PublishResultType,
    User,
    VariantRequest,
)
from contentflow.domain.errors import FieldError, NotFoundError, ValidationFailedError
from contentflow.domain.hierarchy import ensure_move_allowed, level_of, validate_move
from contentflow.domain.state import (
    ActionPlan,
    Operation,
    Outcome,
    derive_state,
    plan_action,
    publish_cultures,
    publish_invariant,
    save_edits,
    transition,
    unpublish,
)
from contentflow.domain.validation import has_required_for_persistence, validate_model

logger = logging.getLogger(__name__)

# Type alias for all supported inputs
PublishInput = ApplyActionInput | PublishByIdInput | UnpublishInput
PublishOutput = ApplyActionOutput | PublishByIdOutput | UnpublishOutput

def _unchanged(before: ContentNode, after: ContentNode) -> bool:
    return before.variants == after.variants and before.properties == after.properties


class PublishComponent:
    """Save, publish, send-to-publish and unpublish content nodes."""

    def __init__(
        self,
        content_repo: ContentRepoPort,
        content_types: ContentTypeServicePort,
        languages: LanguageCatalogPort,
        permissions: PermissionGatePort,
        clock: ClockPort,
    ) -> None:
        self._content_repo = content_repo
        self._content_types = content_types
        self._languages = languages
        self._permissions = permissions
        self._clock = clock

    def run(self, input_data: PublishInput) -> PublishOutput:
        """Main dispatcher - routes to appropriate handler based on input type."""
        if isinstance(input_data, ApplyActionInput):
            return self.run_apply_action(input_data)
        elif isinstance(input_data, PublishByIdInput):
            return self.run_publish_by_id(input_data)
        elif isinstance(input_data, UnpublishInput):
            return self.run_unpublish(input_data)
        else:
            raise TypeError(f"Unknown input type: {type(input_data)}")

    # --- entry points ---

    def run_apply_action(self, input_data: ApplyActionInput) -> ApplyActionOutput:
        """
        Apply a posted save / publish / send-to-publish / unpublish action.

        Publishing that cannot go ahead falls back to saving the edits; the
        returned result then carries the failure tag. Only a rejected new
        node, a cancelled creation or bad input report ``success=False``.
        """
        try:
            return self._apply_action(input_data)
        except ValidationFailedError as e:
            return ApplyActionOutput(result=None, errors=list(e.errors), success=False)

    def run_publish_by_id(self, input_data: PublishByIdInput) -> PublishByIdOutput:
        """Publish a stored node without applying any edits."""
        if input_data.node_id <= 0:
            raise NotFoundError("Content", input_data.node_id)
        storage: dict[int, ContentNode] = {}
        required = self._permissions.required_for(ContentAction.PUBLISH)
        self._permissions.ensure(input_data.user, input_data.node_id, required, storage=storage)
        node = storage[input_data.node_id]
        content_type = self._content_type(node.content_type_id)
        now = self._clock.now_utc()

        operation = Operation.PUBLISH
        if content_type.varies_by_culture:
            operation = Operation.PUBLISH_CULTURES
        requested = [VariantRequest(culture=v.culture, publish=True) for v in node.variants]
        outcome = self._publish(operation, node, content_type, requested, storage, now)

        persist = Operation.PUBLISH if outcome.result == PublishResultType.SUCCESS else None
        result, status = self._commit(
            node, content_type, outcome, persist, input_data.user, now, ContentAction.PUBLISH
        )
        if status != OperationStatus.SUCCESS:
            return PublishByIdOutput(result=result, errors=[], success=False)
        return PublishByIdOutput(result=result, errors=[], success=result.result.is_success)

    def run_unpublish(self, input_data: UnpublishInput) -> UnpublishOutput:
        """Demote one culture, or every published variant when no culture is given."""
        if input_data.node_id <= 0:
            raise NotFoundError("Content", input_data.node_id)
        storage: dict[int, ContentNode] = {}
        required = self._permissions.required_for(ContentAction.UNPUBLISH)
        self._permissions.ensure(input_data.user, input_data.node_id, required, storage=storage)
        node = storage[input_data.node_id]
        content_type = self._content_type(node.content_type_id)

        try:
            outcome = unpublish(node, content_type, input_data.culture)
        except ValidationFailedError as e:
            return UnpublishOutput(result=None, errors=list(e.errors), success=False)

        persist = Operation.UNPUBLISH if outcome.result == PublishResultType.SUCCESS else None
        result, status = self._commit(
            node,
            content_type,
            outcome,
            persist,
            input_data.user,
            self._clock.now_utc(),
            ContentAction.UNPUBLISH,
        )
        return UnpublishOutput(result=result, errors=[], success=status == OperationStatus.SUCCESS)

    # --- apply action ---

    def _apply_action(self, inp: ApplyActionInput) -> ApplyActionOutput:
        action = inp.action
        now = self._clock.now_utc()
        storage: dict[int, ContentNode] = {}
        required = self._permissions.required_for(action)

        if action.is_creating:
            original, content_type = self._new_node(inp, required, storage, now)
        else:
            if inp.node_id <= 0:
                raise ValidationFailedError(
                    [
                        FieldError(
                            code="node_required",
                            message=f"Action {action.value} needs an existing node",
                            field="node_id",
                        )
                    ]
                )
            self._permissions.ensure(inp.user, inp.node_id, required, storage=storage)
            original = storage[inp.node_id]
            content_type = self._content_type(original.content_type_id)

        ensure_known_cultures(content_type, inp.variants, self._languages.get_all())
        state = derive_state(original, content_type)
        edited = save_edits(original, content_type, inp.variants, inp.properties).node
        errors = validate_model(edited, content_type, inp.model_errors)
        plan = plan_action(
            action,
            state=state,
            varies_by_culture=content_type.varies_by_culture,
            model_valid=not errors,
            has_required_for_persistence=has_required_for_persistence(edited),
        )

        if plan.operation == Operation.REJECT:
            logger.info(
                "Rejected %s by user %s: %d validation errors",
                action.value,
                inp.user.id,
                len(errors),
            )
            return ApplyActionOutput(result=None, errors=errors, success=False)

        if original.is_new:
            edited = self._place_new(edited, storage)

        outcome, persist = self._decide(
            plan, original, edited, content_type, inp.variants, storage, now
        )
        result, status = self._commit(
            original, content_type, outcome, persist, inp.user, now, action, plan
        )
        if status != OperationStatus.SUCCESS:
            return ApplyActionOutput(result=result, errors=errors, success=not action.is_creating)
        return ApplyActionOutput(result=result, errors=errors, success=True)

    def _new_node(
        self,
        inp: ApplyActionInput,
        required: Sequence[str],
        storage: dict[int, ContentNode],
        now: datetime,
    ) -> tuple[ContentNode, ContentType]:
        parent_id = inp.parent_id if inp.parent_id is not None else ROOT_ID
        self._permissions.ensure(inp.user, parent_id, required, storage=storage)
        if inp.content_type_id is None:
            raise ValidationFailedError(
                [
                    FieldError(
                        code="content_type_required",
                        message="A content type is required to create content",
                        field="content_type_id",
                    )
                ]
            )
        content_type = self._content_type(inp.content_type_id)
        parent = storage.get(parent_id)
        parent_type = self._content_type(parent.content_type_id) if parent else None

        node = ContentNode(
            parent_id=parent_id, content_type_id=content_type.id, created_at=now, updated_at=now
        )
        ensure_move_allowed(validate_move(node, content_type, parent_id, parent, parent_type))
        return node, content_type

    def _place_new(self, node: ContentNode, storage: dict[int, ContentNode]) -> ContentNode:
        node_id = self._content_repo.allocate_id()
        parent = storage.get(node.parent_id)
        parent_path = parent.path if parent else str(node.parent_id)
        path = f"{parent_path},{node_id}"
        return node.model_copy(
            update={
                "id": node_id,
                "path": path,
                "level": level_of(path),
                "sort_order": self._content_repo.get_children(node.parent_id).total,
            }
        )

    def _decide(
        self,
        plan: ActionPlan,
        original: ContentNode,
        edited: ContentNode,
        content_type: ContentType,
        variants: Sequence[VariantRequest],
        storage: dict[int, ContentNode],
        now: datetime,
    ) -> tuple[Outcome, Operation | None]:
        """Outcome of the planned operation and the repository call that commits it."""
        if plan.operation in (Operation.SAVE, Operation.SEND_TO_PUBLICATION):
            return Outcome(edited, PublishResultType.SUCCESS), plan.operation

        if plan.operation == Operation.UNPUBLISH:
            outcome = unpublish(edited, content_type)
            if outcome.result == PublishResultType.SUCCESS:
                return outcome, Operation.UNPUBLISH
        else:
            outcome = self._publish(plan.operation, edited, content_type, variants, storage, now)
            if outcome.result == PublishResultType.SUCCESS:
                return outcome, Operation.PUBLISH

        if outcome.result == PublishResultType.SUCCESS_ALREADY and _unchanged(original, edited):
            return outcome, None
        # Publish refused: keep the edits.
        return outcome, Operation.SAVE

    # --- shared ---

    def _content_type(self, content_type_id: int) -> ContentType:
        content_type = self._content_types.get_by_id(content_type_id)
        if content_type is None:
            raise NotFoundError("Content type", content_type_id)
        return content_type

    def _parent_published(self, node: ContentNode, storage: dict[int, ContentNode]) -> bool:
        if node.parent_id < 0:
            return True
        parent = storage.get(node.parent_id) or self._content_repo.get_by_id(node.parent_id)
        if parent is None:
            raise NotFoundError("Parent", node.parent_id)
        return bool(parent.published_cultures)

    def _publish(
        self,
        operation: Operation,
        node: ContentNode,
        content_type: ContentType,
        variants: Sequence[VariantRequest],
        storage: dict[int, ContentNode],
        now: datetime,
    ) -> Outcome:
        parent_published = self._parent_published(node, storage)
        if operation == Operation.PUBLISH:
            return publish_invariant(node, content_type, now=now, parent_published=parent_published)

        validation = validate_for_publish(node, content_type, variants, self._languages.get_all())
        if not validation.ok:
            result_type = PublishResultType.FAILED_BY_CULTURE
            if validation.reason == "mandatory_culture_missing":
                result_type = PublishResultType.FAILED_CANNOT_PUBLISH
            logger.info(
                "Culture %s blocks publishing node %s: %s",
                validation.failing_culture,
                node.id,
                validation.reason,
            )
            return Outcome(
                node,
                result_type,
                cultures=(validation.failing_culture,),
                invalid_properties=validation.invalid_properties,
            )
        return publish_cultures(
            node, list(validation.valid_cultures), now=now, parent_published=parent_published
        )

    def _persist(
        self, operation: Operation, node: ContentNode, cultures: Sequence[str | None], user: User
    ) -> OperationStatus:
        if operation == Operation.PUBLISH:
            return self._content_repo.publish(node, list(cultures), user.id)
        if operation == Operation.UNPUBLISH:
            return self._content_repo.unpublish(node, list(cultures), user.id)
        if operation == Operation.SEND_TO_PUBLICATION:
            return self._content_repo.send_to_publication(node, user.id)
        return self._content_repo.save(node, user.id)

    def _commit(
        self,
        original: ContentNode,
        content_type: ContentType,
        outcome: Outcome,
        persist: Operation | None,
        user: User,
        now: datetime,
        action: ContentAction,
        plan: ActionPlan | None = None,
    ) -> tuple[PublishResult, OperationStatus]:
        """Check the state change, commit it and build the result."""
        transition(derive_state(original, content_type), derive_state(outcome.node, content_type))

        node = outcome.node
        status = OperationStatus.SUCCESS
        if persist is not None:
            node = node.touched(now)
            status = self._persist(persist, node, outcome.cultures, user)

        requested = plan.requested if plan else action
        effective = plan.action if plan else action
        downgraded = plan.downgraded if plan else False

        if status != OperationStatus.SUCCESS:
            logger.warning(
                "%s of node %s by user %s did not commit: %s",
                effective.value,
                original.id,
                user.id,
                status.value,
            )
            result = PublishResult(
                result=PublishResultType.FAILED_CANCELLED_BY_EVENT,
                node=original,
                state=derive_state(original, content_type),
                requested_action=requested,
                action=effective,
                downgraded=downgraded,
                retryable=status == OperationStatus.CONCURRENCY_CONFLICT,
            )
            return result, status

        if persist is not None:
            logger.info(
                "%s node %s by user %s: %s", effective.value, node.id, user.id, outcome.result.value
            )
        return (
            PublishResult(
                result=outcome.result,
                node=node,
                state=derive_state(node, content_type),
                cultures=outcome.cultures,
                invalid_properties=outcome.invalid_properties,
                requested_action=requested,
                action=effective,
                downgraded=downgraded,
            ),
            status,
        )


def run(
    input_data: PublishInput,
    *,
    content_repo: ContentRepoPort,
    content_types: ContentTypeServicePort,
    languages: LanguageCatalogPort,
    permissions: PermissionGatePort,
    clock: ClockPort,
) -> PublishOutput:
    """Functional entry point around PublishComponent.run."""
    component = PublishComponent(
        content_repo=content_repo,
        content_types=content_types,
        languages=languages,
        permissions=permissions,
        clock=clock,
    )
    return component.run(input_data)
