import logging

from contentflow.domain.entities import RECYCLE_BIN_ID, ContentNode, OperationStatus
from contentflow.domain.errors import NotFoundError
from contentflow.domain.hierarchy import ensure_hard_delete, trash_subtree
from contentflow.domain.policy import PermissionEvaluator

from .models import (
    ChildrenOutput,
    DeleteInput,
    DeleteOutput,
    EmptyRecycleBinInput,
    GetChildrenInput,
)
from .ports import ChildrenQuery, ClockPort, ContentRepoPort

logger = logging.getLogger(__name__)


def _failed(status: OperationStatus, what: str) -> DeleteOutput:
    logger.warning("%s cancelled: %s", what, status.value)
    return DeleteOutput(
        success=False,
        error=f"{what} did not commit: {status.value}",
        retryable=status == OperationStatus.CONCURRENCY_CONFLICT,
    )


def run_delete(
    inp: DeleteInput,
    content_repo: ContentRepoPort,
    policy: PermissionEvaluator,
    clock: ClockPort,
) -> DeleteOutput:
    """
    Delete a node.

    A node outside the recycle bin is moved into it with its descendants,
    unpublished. A node already in the bin is removed for good.
    """
    if inp.node_id <= 0:
        raise NotFoundError("Content", inp.node_id)
    storage: dict[int, ContentNode] = {}
    policy.ensure(inp.actor, inp.node_id, [policy.letters.delete], storage=storage)
    node = storage[inp.node_id]
    descendants = content_repo.get_descendants(node)

    if not node.trashed:
        now = clock.now_utc()
        trashed = [n.touched(now) for n in trash_subtree(node, descendants)]
        status = content_repo.save_many(trashed, inp.actor.id, event="trashing")
        if status != OperationStatus.SUCCESS:
            return _failed(status, f"Trashing node {node.id}")
        logger.info("Node %s moved to recycle bin by user %s", node.id, inp.actor.id)
        return DeleteOutput(nodes=trashed, success=True)

    ensure_hard_delete(node)
    doomed = [node, *descendants]
    status = content_repo.delete_many(doomed, inp.actor.id)
    if status != OperationStatus.SUCCESS:
        return _failed(status, f"Deleting node {node.id}")
    logger.info("Node %s deleted by user %s (%d nodes)", node.id, inp.actor.id, len(doomed))
    return DeleteOutput(nodes=doomed, hard_deleted=True, success=True)


def run_empty_recycle_bin(
    inp: EmptyRecycleBinInput,
    content_repo: ContentRepoPort,
    policy: PermissionEvaluator,
) -> DeleteOutput:
    policy.ensure(inp.actor, RECYCLE_BIN_ID)
    trashed = content_repo.get_trashed()
    if not trashed:
        return DeleteOutput(hard_deleted=True, success=True)

    status = content_repo.delete_many(trashed, inp.actor.id)
    if status != OperationStatus.SUCCESS:
        return _failed(status, "Emptying recycle bin")
    logger.info("Recycle bin emptied by user %s (%d nodes)", inp.actor.id, len(trashed))
    return DeleteOutput(nodes=trashed, hard_deleted=True, success=True)


def run_get_children(
    inp: GetChildrenInput,
    content_repo: ContentRepoPort,
    policy: PermissionEvaluator,
) -> ChildrenOutput:
    """Page of children the actor may browse; ``total`` counts the unfiltered children."""
    browse = policy.letters.browse
    policy.ensure(inp.actor, inp.parent_id, [browse])

    page = content_repo.get_children(
        inp.parent_id,
        ChildrenQuery(
            page=inp.page,
            page_size=inp.page_size,
            order_by=inp.order_by,
            descending=inp.descending,
            filter=inp.filter,
        ),
    )
    visible = [
        child for child in page.items if policy.evaluate(inp.actor, child.id, [browse], node=child)
    ]
    return ChildrenOutput(
        items=visible,
        total=page.total,
        page=page.page,
        page_size=page.page_size,
        success=True,
    )


def run(
    inp: DeleteInput | EmptyRecycleBinInput | GetChildrenInput,
    *,
    content_repo: ContentRepoPort,
    policy: PermissionEvaluator,
    clock: ClockPort | None = None,
) -> DeleteOutput | ChildrenOutput:
    if isinstance(inp, DeleteInput):
        assert clock
        return run_delete(inp, content_repo, policy, clock)

    elif isinstance(inp, EmptyRecycleBinInput):
        return run_empty_recycle_bin(inp, content_repo, policy)

    elif isinstance(inp, GetChildrenInput):
        return run_get_children(inp, content_repo, policy)

    else:
        raise ValueError(f"Unknown input type: {type(inp)}")
