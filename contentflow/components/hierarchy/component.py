import logging
from collections.abc import Sequence

from contentflow.domain.entities import ContentNode, ContentType, OperationStatus, User
from contentflow.domain.errors import (
    NotFoundError,
    StructuralViolationError,
    ValidationFailedError,
)
from contentflow.domain.hierarchy import (
    NOT_ALLOWED_BY_CONTENT_TYPE,
    MoveCheck,
    apply_sort,
    available_content_types,
    change_content_type,
    copy_subtree,
    ensure_move_allowed,
    rebase_subtree,
    validate_move,
)
from contentflow.domain.policy import PermissionEvaluator

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

logger = logging.getLogger(__name__)

COPY_RELATION = "relateDocumentOnCopy"
SORT_CANCELLED = "Content sorting failed, this was probably caused by an event being cancelled"


def _content_type(content_types: ContentTypeServicePort, content_type_id: int) -> ContentType:
    content_type = content_types.get_by_id(content_type_id)
    if content_type is None:
        raise NotFoundError("Content type", content_type_id)
    return content_type


def _source(
    actor: User, node_id: int, policy: PermissionEvaluator, storage: dict[int, ContentNode]
) -> ContentNode:
    if node_id <= 0:
        raise NotFoundError("Content", node_id)
    policy.ensure(actor, node_id, storage=storage)
    return storage[node_id]


def _check_target(
    node: ContentNode,
    parent_id: int,
    content_repo: ContentRepoPort,
    content_types: ContentTypeServicePort,
    storage: dict[int, ContentNode],
) -> MoveCheck:
    node_type = _content_type(content_types, node.content_type_id)
    parent = parent_type = None
    if parent_id > 0:
        parent = storage.get(parent_id) or content_repo.get_by_id(parent_id)
        if parent is not None:
            parent_type = _content_type(content_types, parent.content_type_id)
    return validate_move(node, node_type, parent_id, parent, parent_type)


def _parent_path(parent_id: int, storage: dict[int, ContentNode]) -> str:
    parent = storage.get(parent_id)
    return parent.path if parent else str(parent_id)


def _committed(
    status: OperationStatus, nodes: Sequence[ContentNode], what: str, actor: User
) -> HierarchyOutput:
    if status != OperationStatus.SUCCESS:
        logger.warning(
            "%s of node %s by user %s cancelled: %s", what, nodes[0].id, actor.id, status.value
        )
        return HierarchyOutput(
            success=False,
            error=f"{what} did not commit: {status.value}",
            retryable=status == OperationStatus.CONCURRENCY_CONFLICT,
        )
    logger.info("%s of node %s (%d nodes) by user %s", what, nodes[0].id, len(nodes), actor.id)
    return HierarchyOutput(node=nodes[0], nodes=list(nodes), success=True)


def run_validate_move(
    inp: ValidateMoveInput,
    content_repo: ContentRepoPort,
    content_types: ContentTypeServicePort,
    policy: PermissionEvaluator,
) -> MoveCheckOutput:
    storage: dict[int, ContentNode] = {}
    node = _source(inp.actor, inp.node_id, policy, storage)
    check = _check_target(node, inp.parent_id, content_repo, content_types, storage)
    return MoveCheckOutput(ok=check.ok, reason=check.reason)


def run_move(
    inp: MoveInput,
    content_repo: ContentRepoPort,
    content_types: ContentTypeServicePort,
    policy: PermissionEvaluator,
    clock: ClockPort,
) -> HierarchyOutput:
    """
    Move a node and its descendants below a new parent.

    The node goes after the parent's existing children. A trashed node moved
    out of the recycle bin comes back as an unpublished draft.
    """
    storage: dict[int, ContentNode] = {}
    policy.ensure(inp.actor, inp.parent_id, [policy.letters.move], storage=storage)
    node = _source(inp.actor, inp.node_id, policy, storage)
    ensure_move_allowed(_check_target(node, inp.parent_id, content_repo, content_types, storage))

    if node.parent_id == inp.parent_id:
        return HierarchyOutput(node=node, nodes=[node], success=True)

    now = clock.now_utc()
    moved = rebase_subtree(
        node,
        content_repo.get_descendants(node),
        inp.parent_id,
        _parent_path(inp.parent_id, storage),
        sort_order=content_repo.get_children(inp.parent_id).total,
    )
    moved = [n.touched(now) for n in moved]
    status = content_repo.save_many(moved, inp.actor.id, event="moving")
    return _committed(status, moved, "Move", inp.actor)


def run_copy(
    inp: CopyInput,
    content_repo: ContentRepoPort,
    content_types: ContentTypeServicePort,
    relation_repo: RelationRepoPort,
    policy: PermissionEvaluator,
    clock: ClockPort,
) -> HierarchyOutput:
    """Copy a node (and optionally its subtree) below a parent, unpublished."""
    storage: dict[int, ContentNode] = {}
    policy.ensure(inp.actor, inp.parent_id, [policy.letters.copy], storage=storage)
    node = _source(inp.actor, inp.node_id, policy, storage)
    ensure_move_allowed(_check_target(node, inp.parent_id, content_repo, content_types, storage))

    descendants = content_repo.get_descendants(node) if inp.recursive else []
    copies = copy_subtree(
        node,
        descendants,
        inp.parent_id,
        _parent_path(inp.parent_id, storage),
        allocate_id=content_repo.allocate_id,
        recursive=inp.recursive,
        sort_order=content_repo.get_children(inp.parent_id).total,
        now=clock.now_utc(),
    )
    status = content_repo.save_many(copies, inp.actor.id, event="copying")
    output = _committed(status, copies, "Copy", inp.actor)
    if output.success and inp.relate_to_original:
        relation_repo.relate(node.id, copies[0].id, COPY_RELATION)
    return output


def run_sort(
    inp: SortInput,
    content_repo: ContentRepoPort,
    policy: PermissionEvaluator,
    notifier: NotificationPort,
    clock: ClockPort,
) -> HierarchyOutput:
    """Reorder children of a parent as one batch; an empty list is a no-op."""
    storage: dict[int, ContentNode] = {}
    policy.ensure(inp.actor, inp.parent_id, [policy.letters.sort], storage=storage)

    if not inp.ordered_ids:
        return HierarchyOutput(success=True)

    children = content_repo.get_children(inp.parent_id).items
    now = clock.now_utc()
    reordered = [n.touched(now) for n in apply_sort(children, inp.ordered_ids)]
    status = content_repo.save_many(reordered, inp.actor.id, event="sorting")
    if status != OperationStatus.SUCCESS:
        logger.warning(SORT_CANCELLED)
        return HierarchyOutput(
            success=False,
            error=SORT_CANCELLED,
            retryable=status == OperationStatus.CONCURRENCY_CONFLICT,
        )

    if inp.parent_id > 0:
        notifier.send(storage[inp.parent_id], "sort")
    logger.info("Sorted %d children of node %s", len(reordered), inp.parent_id)
    return HierarchyOutput(nodes=reordered, success=True)


def _type_options(
    node: ContentNode,
    content_repo: ContentRepoPort,
    content_types: ContentTypeServicePort,
    storage: dict[int, ContentNode],
) -> tuple[ContentType, list[ContentType]]:
    current_type = _content_type(content_types, node.content_type_id)
    parent_type = None
    if node.parent_id > 0:
        parent = storage.get(node.parent_id) or content_repo.get_by_id(node.parent_id)
        if parent is None:
            raise NotFoundError("Parent", node.parent_id)
        parent_type = _content_type(content_types, parent.content_type_id)
    child_type_ids = {c.content_type_id for c in content_repo.get_children(node.id).items}
    available = available_content_types(
        node, current_type, content_types.get_all(), parent_type, child_type_ids
    )
    return current_type, available


def run_get_available_content_types(
    inp: AvailableContentTypesInput,
    content_repo: ContentRepoPort,
    content_types: ContentTypeServicePort,
    policy: PermissionEvaluator,
) -> AvailableContentTypesOutput:
    storage: dict[int, ContentNode] = {}
    node = _source(inp.actor, inp.node_id, policy, storage)
    current_type, available = _type_options(node, content_repo, content_types, storage)
    return AvailableContentTypesOutput(
        node_name=node.name, current=current_type, content_types=available
    )


def run_change_content_type(
    inp: ChangeContentTypeInput,
    content_repo: ContentRepoPort,
    content_types: ContentTypeServicePort,
    policy: PermissionEvaluator,
    clock: ClockPort,
) -> ChangeContentTypeOutput:
    """
    Switch a node to another allowed content type, remapping property values.

    A published node is republished under the new type in the same commit.
    """
    storage: dict[int, ContentNode] = {}
    node = _source(inp.actor, inp.node_id, policy, storage)
    published = node.published_cultures
    required = [policy.letters.update]
    if published:
        required.append(policy.letters.publish)
    policy.ensure(inp.actor, node.id, required, node=node)

    current_type, available = _type_options(node, content_repo, content_types, storage)
    new_type = next((t for t in available if t.id == inp.content_type_id), None)
    if new_type is None:
        target = _content_type(content_types, inp.content_type_id)
        raise StructuralViolationError(
            NOT_ALLOWED_BY_CONTENT_TYPE,
            f"Node {node.id} cannot change from {current_type.alias} to {target.alias}",
        )

    try:
        changed = change_content_type(node, current_type, new_type, inp.field_map)
    except ValidationFailedError as e:
        return ChangeContentTypeOutput(errors=list(e.errors), success=False)

    changed = changed.touched(clock.now_utc())
    if published:
        status = content_repo.publish(changed, published, inp.actor.id)
    else:
        status = content_repo.save(changed, inp.actor.id)

    if status != OperationStatus.SUCCESS:
        logger.warning(
            "Content type change of node %s by user %s cancelled: %s",
            node.id,
            inp.actor.id,
            status.value,
        )
        return ChangeContentTypeOutput(
            success=False,
            error=f"Content type change did not commit: {status.value}",
            retryable=status == OperationStatus.CONCURRENCY_CONFLICT,
        )

    logger.info(
        "Changed node %s from %s to %s by user %s",
        node.id,
        current_type.alias,
        new_type.alias,
        inp.actor.id,
    )
    return ChangeContentTypeOutput(node=changed, success=True, republished=bool(published))


def run(
    inp: (
        ValidateMoveInput
        | MoveInput
        | CopyInput
        | SortInput
        | AvailableContentTypesInput
        | ChangeContentTypeInput
    ),
    *,
    content_repo: ContentRepoPort,
    content_types: ContentTypeServicePort | None = None,
    relation_repo: RelationRepoPort | None = None,
    policy: PermissionEvaluator,
    notifier: NotificationPort | None = None,
    clock: ClockPort | None = None,
) -> MoveCheckOutput | HierarchyOutput | AvailableContentTypesOutput | ChangeContentTypeOutput:
    if isinstance(inp, ValidateMoveInput):
        assert content_types
        return run_validate_move(inp, content_repo, content_types, policy)

    elif isinstance(inp, MoveInput):
        assert content_types and clock
        return run_move(inp, content_repo, content_types, policy, clock)

    elif isinstance(inp, CopyInput):
        assert content_types and relation_repo and clock
        return run_copy(inp, content_repo, content_types, relation_repo, policy, clock)

    elif isinstance(inp, SortInput):
        assert notifier and clock
        return run_sort(inp, content_repo, policy, notifier, clock)

    elif isinstance(inp, AvailableContentTypesInput):
        assert content_types
        return run_get_available_content_types(inp, content_repo, content_types, policy)

    elif isinstance(inp, ChangeContentTypeInput):
        assert content_types and clock
        return run_change_content_type(inp, content_repo, content_types, policy, clock)

    else:
        raise ValueError(f"Unknown input type: {type(inp)}")
