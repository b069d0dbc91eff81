from datetime import UTC, datetime

import pytest

from contentflow.adapters.memory import (
    EventHooks,
    InMemoryContentRepo,
    InMemoryDomainRepo,
)
from contentflow.domain.entities import ContentNode, CultureVariant, Domain, OperationStatus
from contentflow.ports.repo import ChildrenQuery

NOW = datetime(2024, 6, 15, 12, 0, 0, tzinfo=UTC)


def child(node_id, name, sort_order):
    return ContentNode(
        id=node_id,
        parent_id=100,
        path=f"-1,100,{node_id}",
        level=2,
        sort_order=sort_order,
        content_type_id=10,
        variants=[CultureVariant(name=name)],
    )


@pytest.fixture
def repo():
    repo = InMemoryContentRepo()
    repo.add(ContentNode(id=100, path="-1,100", content_type_id=10))
    repo.add(child(101, "Charlie", 2))
    repo.add(child(102, "alpha", 0))
    repo.add(child(103, "Bravo", 1))
    return repo


def test_save_requires_next_version(repo):
    stored = repo.get_by_id(101)
    assert repo.save(stored.touched(NOW), user_id=1) == OperationStatus.SUCCESS
    assert repo.get_by_id(101).version == 2

    # Second writer still holding version 1.
    assert repo.save(stored.touched(NOW), user_id=2) == OperationStatus.CONCURRENCY_CONFLICT
    assert repo.get_by_id(101).version == 2


def test_batch_commits_all_or_nothing(repo):
    fresh = repo.get_by_id(101).touched(NOW)
    stale = repo.get_by_id(102)
    status = repo.save_many([fresh, stale], user_id=1, event="sorting")
    assert status == OperationStatus.CONCURRENCY_CONFLICT
    assert repo.get_by_id(101).version == 1


def test_hook_cancels_commit(repo):
    seen = []
    repo.hooks.subscribe("saving", lambda event, items: seen.append(event) or True)
    repo.hooks.cancel("saving")

    node = repo.get_by_id(101)
    assert repo.save(node.touched(NOW), user_id=1) == OperationStatus.CANCELLED_BY_EVENT
    assert seen == ["saving"]
    assert repo.get_by_id(101).version == 1


def test_hooks_are_per_event(repo):
    repo.hooks.cancel("publishing")
    node = repo.get_by_id(101).touched(NOW)
    assert repo.save(node, user_id=1) == OperationStatus.SUCCESS


def test_send_to_publication_records_node(repo):
    node = repo.get_by_id(101).touched(NOW)
    assert repo.send_to_publication(node, user_id=1) == OperationStatus.SUCCESS
    assert repo.sent_for_approval == [101]


def test_children_default_order_and_paging(repo):
    result = repo.get_children(100)
    assert [n.id for n in result.items] == [102, 103, 101]
    assert result.total == 3

    page = repo.get_children(100, ChildrenQuery(page=2, page_size=2))
    assert [n.id for n in page.items] == [101]
    assert page.total == 3


def test_children_filter_and_name_order(repo):
    by_name = repo.get_children(100, ChildrenQuery(order_by="name", descending=True))
    assert [n.name for n in by_name.items] == ["Charlie", "Bravo", "alpha"]

    filtered = repo.get_children(100, ChildrenQuery(filter="AR"))
    assert [n.id for n in filtered.items] == [101]
    assert filtered.total == 1


def test_descendants_by_path(repo):
    assert [n.id for n in repo.get_descendants(repo.get_by_id(100))] == [102, 103, 101]
    assert repo.get_descendants(repo.get_by_id(101)) == []


def test_deleted_ids_are_not_reused(repo):
    before = repo.allocate_id()
    assert repo.delete_many([repo.get_by_id(101)], user_id=1) == OperationStatus.SUCCESS
    assert repo.get_by_id(101) is None
    assert repo.allocate_id() == before + 1


def test_delete_can_be_cancelled(repo):
    repo.hooks.cancel("deleting")
    assert repo.delete_many([repo.get_by_id(101)], user_id=1) == (
        OperationStatus.CANCELLED_BY_EVENT
    )
    assert repo.get_by_id(101) is not None


def test_domain_repo_assigns_ids_and_matches_names():
    hooks = EventHooks()
    domains = InMemoryDomainRepo(hooks)
    assert domains.save(Domain(name="example.com", root_content_id=100)) == (
        OperationStatus.SUCCESS
    )
    domains.save(Domain(name="*100", root_content_id=100))

    saved = domains.get_by_name("EXAMPLE.com")
    assert saved is not None and saved.id == 1
    assert domains.exists("*100") is True
    assert [d.name for d in domains.get_assigned(100, include_wildcards=False)] == ["example.com"]

    hooks.cancel("deleting_domain")
    assert domains.delete(saved) == OperationStatus.CANCELLED_BY_EVENT


def test_children_order_by_update_time_mixes_seeded_and_committed(repo):
    seeded = child(104, "Delta", 3).model_copy(update={"updated_at": datetime(2024, 1, 1)})
    repo.add(ContentNode.model_validate(seeded.model_dump()))
    assert repo.get_by_id(104).updated_at.tzinfo is UTC

    stored = repo.get_by_id(101)
    assert repo.save(stored.touched(NOW), user_id=1) == OperationStatus.SUCCESS

    ordered = repo.get_children(100, ChildrenQuery(order_by="updated_at", descending=True))
    # 102 and 103 keep their creation stamps, which are newer than both.
    assert [n.id for n in ordered.items][-2:] == [101, 104]
