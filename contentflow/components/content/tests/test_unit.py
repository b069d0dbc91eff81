"""
Content component unit tests.

Tests for trashing, hard delete, emptying the recycle bin and child listing.
"""

from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path

import pytest

from contentflow.adapters.memory import InMemoryContentRepo, InMemoryPermissionRepo
from contentflow.components.content import (
    DeleteInput,
    EmptyRecycleBinInput,
    GetChildrenInput,
    run,
    run_delete,
    run_empty_recycle_bin,
    run_get_children,
)
from contentflow.domain.entities import (
    RECYCLE_BIN_ID,
    ContentNode,
    CultureVariant,
    User,
    UserGroup,
)
from contentflow.domain.errors import ForbiddenError, NotFoundError
from contentflow.domain.policy import PermissionEvaluator
from contentflow.rules.loader import load_rules

# --- Mock Implementations ---


class MockClockPort:
    """Mock clock for deterministic testing."""

    def __init__(self, fixed_time: datetime | None = None) -> None:
        self._time = fixed_time or datetime(2024, 6, 15, 12, 0, 0, tzinfo=UTC)

    def now_utc(self) -> datetime:
        return self._time


def _node(node_id: int, path: str, name: str, sort_order: int = 0) -> ContentNode:
    ids = [int(i) for i in path.split(",")]
    return ContentNode(
        id=node_id,
        parent_id=ids[-2],
        path=path,
        level=len(ids) - 1,
        sort_order=sort_order,
        content_type_id=1,
        trashed=RECYCLE_BIN_ID in ids,
        variants=[CultureVariant(name=name, published=True, edited=False)],
    )


# --- Fixtures ---


@pytest.fixture
def content_repo() -> InMemoryContentRepo:
    repo = InMemoryContentRepo()
    repo.add(_node(100, "-1,100", "Home"))
    repo.add(_node(101, "-1,100,101", "Blog"))
    repo.add(_node(102, "-1,100,101,102", "First post"))
    repo.add(_node(103, "-1,100,103", "About", sort_order=1))
    repo.add(_node(300, "-1,-20,300", "Old page"))
    return repo


@pytest.fixture
def policy(content_repo: InMemoryContentRepo) -> PermissionEvaluator:
    rules = load_rules(Path("rules.yaml").resolve())
    return PermissionEvaluator(rules, content_repo, InMemoryPermissionRepo())


@pytest.fixture
def clock() -> MockClockPort:
    return MockClockPort()


@pytest.fixture
def editor() -> User:
    group = UserGroup(id=1, alias="editor", name="Editors", default_permissions=["F", "D"])
    return User(id=1, name="Editor", groups=[group])


# --- Delete Tests ---


class TestDelete:
    def test_delete_moves_subtree_to_bin(
        self,
        editor: User,
        content_repo: InMemoryContentRepo,
        policy: PermissionEvaluator,
        clock: MockClockPort,
    ) -> None:
        result = run_delete(DeleteInput(actor=editor, node_id=101), content_repo, policy, clock)

        assert result.success is True
        assert result.hard_deleted is False
        blog = content_repo.get_by_id(101)
        post = content_repo.get_by_id(102)
        assert (blog.parent_id, blog.path, blog.trashed) == (RECYCLE_BIN_ID, "-1,-20,101", True)
        assert post.path == "-1,-20,101,102"
        assert post.published_cultures == []

    def test_delete_trashed_node_removes_it(
        self,
        editor: User,
        content_repo: InMemoryContentRepo,
        policy: PermissionEvaluator,
        clock: MockClockPort,
    ) -> None:
        result = run_delete(DeleteInput(actor=editor, node_id=300), content_repo, policy, clock)

        assert result.hard_deleted is True
        assert content_repo.get_by_id(300) is None

    def test_delete_requires_permission(
        self,
        content_repo: InMemoryContentRepo,
        policy: PermissionEvaluator,
        clock: MockClockPort,
    ) -> None:
        reader = User(
            id=2,
            name="Reader",
            groups=[UserGroup(id=2, alias="reader", name="Readers", default_permissions=["F"])],
        )
        with pytest.raises(ForbiddenError):
            run_delete(DeleteInput(actor=reader, node_id=101), content_repo, policy, clock)

    def test_delete_unknown_node(
        self,
        editor: User,
        content_repo: InMemoryContentRepo,
        policy: PermissionEvaluator,
        clock: MockClockPort,
    ) -> None:
        with pytest.raises(NotFoundError):
            run_delete(DeleteInput(actor=editor, node_id=-20), content_repo, policy, clock)

    def test_cancelled_trash(
        self,
        editor: User,
        content_repo: InMemoryContentRepo,
        policy: PermissionEvaluator,
        clock: MockClockPort,
    ) -> None:
        content_repo.hooks.cancel("trashing")
        result = run_delete(DeleteInput(actor=editor, node_id=101), content_repo, policy, clock)

        assert result.success is False
        assert "did not commit" in result.error
        assert content_repo.get_by_id(101).trashed is False


# --- Recycle Bin Tests ---


class TestRecycleBin:
    def test_empty_bin(
        self, editor: User, content_repo: InMemoryContentRepo, policy: PermissionEvaluator
    ) -> None:
        result = run_empty_recycle_bin(EmptyRecycleBinInput(actor=editor), content_repo, policy)

        assert result.success is True
        assert [n.id for n in result.nodes] == [300]
        assert content_repo.get_trashed() == []

    def test_empty_bin_requires_bin_access(
        self, editor: User, content_repo: InMemoryContentRepo, policy: PermissionEvaluator
    ) -> None:
        scoped = editor.model_copy(update={"start_content_ids": [100]})
        with pytest.raises(ForbiddenError):
            run_empty_recycle_bin(EmptyRecycleBinInput(actor=scoped), content_repo, policy)


# --- Children Tests ---


class TestChildren:
    def test_children_in_sort_order(
        self, editor: User, content_repo: InMemoryContentRepo, policy: PermissionEvaluator
    ) -> None:
        result = run_get_children(
            GetChildrenInput(actor=editor, parent_id=100), content_repo, policy
        )
        assert [n.name for n in result.items] == ["Blog", "About"]
        assert result.total == 2

    def test_children_paged_and_filtered(
        self, editor: User, content_repo: InMemoryContentRepo, policy: PermissionEvaluator
    ) -> None:
        result = run(
            GetChildrenInput(actor=editor, parent_id=100, page=2, page_size=1),
            content_repo=content_repo,
            policy=policy,
        )
        assert [n.id for n in result.items] == [103]

        filtered = run(
            GetChildrenInput(actor=editor, parent_id=100, filter="blo"),
            content_repo=content_repo,
            policy=policy,
        )
        assert [n.id for n in filtered.items] == [101]

    def test_children_hidden_outside_start_node(
        self, editor: User, content_repo: InMemoryContentRepo, policy: PermissionEvaluator
    ) -> None:
        scoped = editor.model_copy(update={"start_content_ids": [101]})
        with pytest.raises(ForbiddenError):
            run_get_children(GetChildrenInput(actor=scoped, parent_id=100), content_repo, policy)

        own = run_get_children(GetChildrenInput(actor=scoped, parent_id=101), content_repo, policy)
        assert [n.id for n in own.items] == [102]

    def test_unknown_input_raises(
        self, content_repo: InMemoryContentRepo, policy: PermissionEvaluator
    ) -> None:
        with pytest.raises(ValueError):
            run(object(), content_repo=content_repo, policy=policy)  # type: ignore[arg-type]
